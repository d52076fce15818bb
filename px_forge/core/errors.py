"""Exception hierarchy for px-forge.

Every error is local to one asset. The pipeline collects them per asset and
the CLI turns them into diagnostics; nothing here is swallowed.
"""

from __future__ import annotations

import string
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from px_forge.core.graph import AssetId


class PxError(Exception):
    """Base class for all px-forge errors. Carries optional help text."""

    def __init__(self, message: str, help: str | None = None):
        super().__init__(message)
        self.message = message
        self.help = help


class ExpressionError(PxError, ValueError):
    """Malformed colour expression, bad hex literal, or misuse of a function."""


class UndefinedColourError(ExpressionError):
    def __init__(self, name: str):
        help = None
        if len(name) in (3, 4, 6, 8) and all(c in string.hexdigits for c in name):
            help = f'Hex colours need a leading #: #{name}'
        super().__init__(f'Undefined colour: ${name}', help=help)
        self.name = name


class CircularColourReferenceError(ExpressionError):
    def __init__(self, name: str):
        super().__init__(
            f'Circular colour reference: ${name}',
            help='Check your colour definitions for circular references',
        )
        self.name = name


class UnknownFunctionError(ExpressionError):
    def __init__(self, name: str, available: list[str]):
        super().__init__(
            f'Unknown colour function: {name}()',
            help=f'Available functions: {", ".join(available)}',
        )
        self.name = name


class UnknownEffectError(PxError, ValueError):
    def __init__(self, name: str, available: list[str]):
        super().__init__(
            f'Unknown shader effect: {name}',
            help=f'Available effects: {", ".join(available)}',
        )
        self.name = name


class CycleError(PxError):
    """The dependency graph has a cycle; `cycle` lists it, first node repeated last."""

    def __init__(self, cycle: list[AssetId]):
        path = ' -> '.join(str(asset) for asset in cycle)
        super().__init__(
            f'Circular dependency detected: {path}',
            help='Check for circular references between assets',
        )
        self.cycle = cycle


class MissingReferenceError(PxError):
    def __init__(self, owner: str, glyph: str, target: str):
        super().__init__(
            f"'{owner}': legend glyph '{glyph}' references '{target}' which has not been rendered",
            help='Ensure all referenced shapes are rendered before the composite',
        )
        self.owner = owner
        self.glyph = glyph
        self.target = target


class DocumentError(PxError, ValueError):
    """A project document is structurally invalid."""


class BuildError(PxError):
    """Pipeline-level failure: unknown target, shader or palette."""
