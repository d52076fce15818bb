"""Typed asset definitions and the builtin tables.

Everything here is immutable for the duration of a build. Shapes, prefabs and
maps share GridAsset; they differ only in what their legends point at.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, ClassVar

from px_forge.core.errors import DocumentError, UnknownEffectError

# --- Stamps -----------------------------------------------------------------


class PixelToken(enum.Enum):
    EDGE = '$'
    FILL = '.'
    TRANSPARENT = 'x'

    @classmethod
    def from_char(cls, ch: str) -> PixelToken | None:
        if ch == '$':
            return cls.EDGE
        if ch in ('.', ' '):
            return cls.FILL
        if ch in ('x', 'X'):
            return cls.TRANSPARENT
        return None


@dataclass(frozen=True)
class Stamp:
    """Fixed-size grid of semantic tokens, resolved through the palette's edge/fill colours."""

    name: str
    tokens: tuple[tuple[PixelToken, ...], ...]
    glyph: str | None = None

    @classmethod
    def single(cls, name: str, glyph: str | None, token: PixelToken) -> Stamp:
        return cls(name, ((token,),), glyph)

    @classmethod
    def parse(cls, name: str, rows: list[str], glyph: str | None = None) -> Stamp:
        """Build a stamp from token rows. Short rows are padded with fill."""
        if glyph is not None and len(glyph) != 1:
            raise DocumentError(f"Stamp '{name}': glyph must be a single character, got {glyph!r}")
        rows = rows or [' ']
        width = max(len(row) for row in rows) or 1
        grid = []
        for y, row in enumerate(rows):
            tokens = []
            for x, ch in enumerate(row.ljust(width)):
                token = PixelToken.from_char(ch)
                if token is None:
                    raise DocumentError(
                        f"Stamp '{name}': invalid token {ch!r} at ({x}, {y})",
                        help="Stamps use '$' for edge, '.' for fill and 'x' for transparent",
                    )
                tokens.append(token)
            grid.append(tuple(tokens))
        return cls(name, tuple(grid), glyph)

    @property
    def width(self) -> int:
        return len(self.tokens[0]) if self.tokens else 0

    @property
    def height(self) -> int:
        return len(self.tokens)

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def token_at(self, x: int, y: int) -> PixelToken | None:
        if 0 <= y < self.height and 0 <= x < self.width:
            return self.tokens[y][x]
        return None


BUILTIN_STAMPS: tuple[Stamp, ...] = (
    Stamp.single('corner', '+', PixelToken.EDGE),
    Stamp.single('edge-h', '-', PixelToken.EDGE),
    Stamp.single('edge-v', '|', PixelToken.EDGE),
    Stamp.single('solid', '#', PixelToken.EDGE),
    Stamp.single('fill', '.', PixelToken.FILL),
    Stamp.single('transparent', 'x', PixelToken.TRANSPARENT),
    Stamp.single('space', ' ', PixelToken.FILL),
)

BUILTIN_GLYPHS: dict[str, PixelToken] = {stamp.glyph: stamp.tokens[0][0] for stamp in BUILTIN_STAMPS if stamp.glyph}


# --- Brushes ----------------------------------------------------------------


@dataclass(frozen=True)
class Brush:
    """Tiling grid of positional letters; letters are bound to colours where the brush is used."""

    name: str
    rows: tuple[str, ...]

    def __post_init__(self) -> None:
        width = max((len(row) for row in self.rows), default=0)
        object.__setattr__(self, 'rows', tuple(row.ljust(width) for row in self.rows))

    @property
    def width(self) -> int:
        return len(self.rows[0]) if self.rows else 0

    @property
    def height(self) -> int:
        return len(self.rows)

    def sample(self, x: int, y: int) -> str | None:
        """Letter at (x, y), wrapping in both directions."""
        if not self.width or not self.height:
            return None
        return self.rows[y % self.height][x % self.width]

    def tokens(self) -> list[str]:
        """Distinct letters in first-seen order, blanks excluded."""
        seen: list[str] = []
        for row in self.rows:
            for ch in row:
                if ch != ' ' and ch not in seen:
                    seen.append(ch)
        return seen


BUILTIN_BRUSHES: tuple[Brush, ...] = (
    Brush('solid', ('A',)),
    Brush('checker', ('AB', 'BA')),
    Brush('diagonal-r', ('AB', 'BA')),
    Brush('diagonal-l', ('BA', 'AB')),
    Brush('h-line', ('A', 'B')),
    Brush('v-line', ('AB',)),
    Brush('noise', ('ABBA', 'BAAB', 'AABB', 'BBAA')),
)


# --- Legends and grid assets -------------------------------------------------


@dataclass(frozen=True)
class StampRef:
    name: str


@dataclass(frozen=True)
class BrushRef:
    """One swatch of a brush, sampled at the cell's local origin."""

    name: str
    bindings: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Fill:
    """A brush sampled at the cell's absolute position, so it tiles across the shape."""

    name: str
    bindings: dict[str, str] = field(default_factory=dict)


LegendEntry = StampRef | BrushRef | Fill


@dataclass
class GridAsset:
    """Character grid plus legend, shared by shapes, prefabs and maps."""

    kind: ClassVar[str] = 'shape'

    name: str
    grid: list[str] = field(default_factory=list)
    legend: dict[str, Any] = field(default_factory=dict)
    tags: list[str] = field(default_factory=list)
    scale: int | None = None

    def __post_init__(self) -> None:
        rows = [row.rstrip('\r\n') for row in self.grid]
        width = max((len(row) for row in rows), default=0)
        if not rows or width == 0:
            self.grid = [' ']
        else:
            self.grid = [row.ljust(width) for row in rows]

    @property
    def width(self) -> int:
        return len(self.grid[0])

    @property
    def height(self) -> int:
        return len(self.grid)

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def is_blank(self) -> bool:
        return all(not row.strip() for row in self.grid)

    def cells(self):
        """Yield (x, y, char) in row-major order."""
        for y, row in enumerate(self.grid):
            for x, ch in enumerate(row):
                yield x, y, ch

    def glyphs(self) -> list[str]:
        """Distinct characters used by the grid, first-seen order."""
        seen: list[str] = []
        for _x, _y, ch in self.cells():
            if ch not in seen:
                seen.append(ch)
        return seen

    def reference_name(self, glyph: str) -> str | None:
        entry = self.legend.get(glyph)
        if entry is None:
            return None
        return entry if isinstance(entry, str) else entry.name

    def referenced_names(self) -> list[str]:
        """Names the legend points at, deduplicated, in legend order."""
        names: list[str] = []
        for glyph in self.legend:
            name = self.reference_name(glyph)
            if name is not None and name not in names:
                names.append(name)
        return names


class Shape(GridAsset):
    kind = 'shape'


class Prefab(GridAsset):
    kind = 'prefab'


class Map(GridAsset):
    kind = 'map'

    # Legend target meaning "leave this cell transparent"
    EMPTY: ClassVar[str] = 'empty'


# --- Shaders ----------------------------------------------------------------


@dataclass(frozen=True)
class Vignette:
    strength: float = 0.3
    type: ClassVar[str] = 'vignette'


@dataclass(frozen=True)
class Scanlines:
    opacity: float = 0.1
    gap: int = 2
    type: ClassVar[str] = 'scanlines'


@dataclass(frozen=True)
class Brightness:
    amount: float = 0.0
    type: ClassVar[str] = 'brightness'


@dataclass(frozen=True)
class Contrast:
    amount: float = 0.0
    type: ClassVar[str] = 'contrast'


Effect = Vignette | Scanlines | Brightness | Contrast

EFFECT_TYPES = ['vignette', 'scanlines', 'brightness', 'contrast']


def _clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, float(value)))


def parse_effect(data: dict[str, Any]) -> Effect:
    """Build an effect from its document form, e.g. {'type': 'vignette', 'strength': 0.4}."""
    kind = data.get('type')
    if kind == 'vignette':
        return Vignette(_clamp(data.get('strength', 0.3), 0.0, 1.0))
    if kind == 'scanlines':
        return Scanlines(_clamp(data.get('opacity', 0.1), 0.0, 1.0), max(1, int(data.get('gap', 2))))
    if kind == 'brightness':
        return Brightness(_clamp(data.get('amount', 0.0), -1.0, 1.0))
    if kind == 'contrast':
        return Contrast(_clamp(data.get('amount', 0.0), -1.0, 1.0))
    raise UnknownEffectError(str(kind), EFFECT_TYPES)


@dataclass
class Shader:
    name: str
    palette: str | None = None
    variant: str | None = None
    effects: list[Effect] = field(default_factory=list)
    inherits: str | None = None

    def merged(self, parent: Shader) -> Shader:
        """This shader layered over `parent`: own settings win, effects run parent-first."""
        return Shader(
            name=self.name,
            palette=self.palette if self.palette is not None else parent.palette,
            variant=self.variant if self.variant is not None else parent.variant,
            effects=[*parent.effects, *self.effects],
            inherits=parent.inherits,
        )


DEFAULT_SHADER = Shader(name='default', palette='default')


# --- Targets ----------------------------------------------------------------


class SheetMode(enum.Enum):
    NONE = 'none'
    AUTO = 'auto'
    FIXED = 'fixed'


@dataclass(frozen=True)
class SheetConfig:
    mode: SheetMode = SheetMode.NONE
    width: int = 0
    height: int = 0

    @classmethod
    def parse(cls, text: str | bool | None) -> SheetConfig:
        """Accepts none/false, auto/true, or WxH such as 128x128."""
        if text is None or text is False:
            return cls()
        if text is True:
            return cls(SheetMode.AUTO)
        value = str(text).strip().lower()
        if value in ('none', 'false', ''):
            return cls()
        if value in ('auto', 'true'):
            return cls(SheetMode.AUTO)
        width, sep, height = value.partition('x')
        if not sep or not width.isdigit() or not height.isdigit():
            raise DocumentError(f"Invalid sheet config: '{text}'", help="Expected 'none', 'auto', or 'WxH'")
        return cls(SheetMode.FIXED, int(width), int(height))

    @property
    def enabled(self) -> bool:
        return self.mode is not SheetMode.NONE


class DitherMethod(enum.Enum):
    NONE = 'none'
    ORDERED = 'ordered'
    FLOYD_STEINBERG = 'floyd-steinberg'

    @classmethod
    def parse(cls, text: str | None) -> DitherMethod:
        """Lenient: unknown names fall back to ordered dithering."""
        value = (text or '').strip().lower()
        if value == 'none':
            return cls.NONE
        if value in ('floyd-steinberg', 'fs'):
            return cls.FLOYD_STEINBERG
        return cls.ORDERED


FORMATS = ('png', 'p8')


@dataclass
class Target:
    name: str
    format: str = 'png'
    scale: int | None = None
    sheet: SheetConfig = field(default_factory=SheetConfig)
    padding: int | None = None
    palette_mode: str = 'rgba'
    shader: str | None = None
    dither: DitherMethod = DitherMethod.ORDERED

    def __post_init__(self) -> None:
        if self.format not in FORMATS:
            raise DocumentError(f"Target '{self.name}': unknown format '{self.format}'", help='Formats: png, p8')
        if self.palette_mode not in ('rgba', 'indexed'):
            raise DocumentError(f"Target '{self.name}': palette_mode must be 'rgba' or 'indexed'")


BUILTIN_TARGETS: tuple[Target, ...] = (
    Target('web'),
    Target('sheet', sheet=SheetConfig(SheetMode.AUTO)),
    Target(
        'p8',
        format='p8',
        scale=1,
        sheet=SheetConfig(SheetMode.FIXED, 128, 128),
        padding=0,
        palette_mode='indexed',
    ),
)
