"""Shared types for px-forge: RenderedShape, Frame, PlacementMetadata, Check, ValidationReport."""

from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import numpy as np

from px_forge.core.colour import Colour

if TYPE_CHECKING:
    from px_forge.core.project import Project


@dataclass
class RenderedShape:
    """A named RGBA pixel buffer, shape (height, width, 4), dtype uint8."""

    name: str
    pixels: np.ndarray

    @classmethod
    def blank(cls, name: str, width: int, height: int) -> RenderedShape:
        return cls(name, np.zeros((height, width, 4), dtype=np.uint8))

    @classmethod
    def from_rows(cls, name: str, rows: list[list[Colour]]) -> RenderedShape:
        if not rows or not rows[0]:
            return cls.blank(name, 0, 0)
        return cls(name, np.array([[tuple(c) for c in row] for row in rows], dtype=np.uint8))

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def get(self, x: int, y: int) -> Colour | None:
        if 0 <= x < self.width and 0 <= y < self.height:
            return Colour(*(int(v) for v in self.pixels[y, x]))
        return None

    def set(self, x: int, y: int, colour: Colour) -> None:
        if 0 <= x < self.width and 0 <= y < self.height:
            self.pixels[y, x] = colour

    def rows(self) -> list[list[Colour]]:
        return [[Colour(*(int(v) for v in px)) for px in row] for row in self.pixels]

    def blit(self, src: RenderedShape, x: int, y: int) -> None:
        """Copy `src` with its top-left at (x, y). Pixels with alpha 0 are skipped; edges clip."""
        x0, y0 = max(x, 0), max(y, 0)
        x1, y1 = min(x + src.width, self.width), min(y + src.height, self.height)
        if x0 >= x1 or y0 >= y1:
            return
        patch = src.pixels[y0 - y : y1 - y, x0 - x : x1 - x]
        region = self.pixels[y0:y1, x0:x1]
        mask = patch[..., 3] > 0
        region[mask] = patch[mask]

    def opaque_count(self) -> int:
        return int(np.count_nonzero(self.pixels[..., 3]))


@dataclass(frozen=True)
class Frame:
    """Where one sprite landed in a packed sheet."""

    name: str
    x: int
    y: int
    width: int
    height: int

    def overlaps(self, other: Frame) -> bool:
        return (
            self.x < other.x + other.width
            and other.x < self.x + self.width
            and self.y < other.y + other.height
            and other.y < self.y + self.height
        )


@dataclass
class PlacementMetadata:
    """What a compositor placed, and where: per referenced name, top-left pixel coordinates."""

    name: str
    size: tuple[int, int] = (0, 0)
    grid: tuple[int, int] = (0, 0)
    cell_size: tuple[int, int] = (0, 0)
    placements: dict[str, list[tuple[int, int]]] = field(default_factory=dict)


class Severity(enum.Enum):
    ERROR = 'error'
    WARNING = 'warning'


@dataclass(frozen=True)
class Diagnostic:
    severity: Severity
    code: str
    message: str
    help: str | None = None


@dataclass
class ValidationReport:
    """Accumulates diagnostics from checks for text/JSON output."""

    source: str = ''
    diagnostics: list[Diagnostic] = field(default_factory=list)
    checks_run: list[str] = field(default_factory=list)

    def error(self, code: str, message: str, help: str | None = None) -> None:
        self.diagnostics.append(Diagnostic(Severity.ERROR, code, message, help))

    def warning(self, code: str, message: str, help: str | None = None) -> None:
        self.diagnostics.append(Diagnostic(Severity.WARNING, code, message, help))

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.ERROR]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.WARNING]

    @property
    def ok(self) -> bool:
        return not self.errors


class Check:
    """A self-registering validation check.

    Usage in a check module:

        check = Check(name='grids', help='Flag empty grids')

        @check.run
        def run(project, report):
            ...
    """

    def __init__(self, name: str, help: str = ''):
        self.name = name
        self.help = help
        self._run_fn: Callable[[Project, ValidationReport], Any] | None = None

    def run(self, fn: Callable) -> Callable:
        """Decorator to register the run function."""
        self._run_fn = fn
        return fn

    def execute(self, project: Project, report: ValidationReport) -> None:
        if self._run_fn is None:
            raise RuntimeError(f'Check {self.name} has no run function')
        self._run_fn(project, report)
        report.checks_run.append(self.name)
