"""Named colour stores with variant overlays.

A PaletteDef holds the raw colour expressions from a project document.
Building it resolves every base and variant definition as one graph: each
name is evaluated at most once, an "in progress" set catches cycles, and
colours inherited from a parent palette are plain lookups that never take
part in cycle detection.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from px_forge.core import expr as expressions
from px_forge.core.colour import Colour
from px_forge.core.errors import CircularColourReferenceError, UndefinedColourError


@dataclass
class Palette:
    """A resolved palette. `$name` and `name` are interchangeable on lookup."""

    name: str
    colours: dict[str, Colour] = field(default_factory=dict)
    variants: dict[str, dict[str, Colour]] = field(default_factory=dict)
    parent: str | None = None

    def get(self, name: str, variant: str | None = None) -> Colour | None:
        """Look up a colour, consulting `variant`'s overlay before the base values."""
        name = expressions.strip_sigil(name)
        if variant is not None:
            overlay = self.variants.get(variant, {})
            if name in overlay:
                return overlay[name]
        return self.colours.get(name)

    def has_variant(self, variant: str) -> bool:
        return variant in self.variants

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and expressions.strip_sigil(name) in self.colours

    def __len__(self) -> int:
        return len(self.colours)


class _Resolver:
    """Resolves one set of definitions, falling back to already-built colours."""

    def __init__(self, definitions: Mapping[str, expressions.Expr], fallback: Callable[[str], Colour | None]):
        self.definitions = definitions
        self.fallback = fallback
        self.resolved: dict[str, Colour] = {}
        self.in_progress: set[str] = set()

    def resolve(self, name: str) -> Colour:
        if name in self.resolved:
            return self.resolved[name]
        if name in self.in_progress:
            raise CircularColourReferenceError(name)

        definition = self.definitions.get(name)
        if definition is None:
            inherited = self.fallback(name)
            if inherited is None:
                raise UndefinedColourError(name)
            return inherited

        self.in_progress.add(name)
        colour = expressions.evaluate(definition, self.resolve)
        self.in_progress.discard(name)
        self.resolved[name] = colour
        return colour

    def resolve_all(self) -> dict[str, Colour]:
        return {name: self.resolve(name) for name in self.definitions}


@dataclass
class PaletteDef:
    """Unresolved palette as written in a project document."""

    name: str
    definitions: dict[str, str] = field(default_factory=dict)
    variant_definitions: dict[str, dict[str, str]] = field(default_factory=dict)
    parent: str | None = None

    def parsed(self) -> tuple[dict[str, expressions.Expr], dict[str, dict[str, expressions.Expr]]]:
        base = {expressions.strip_sigil(k): expressions.parse(v) for k, v in self.definitions.items()}
        variants = {
            variant: {expressions.strip_sigil(k): expressions.parse(v) for k, v in defs.items()}
            for variant, defs in self.variant_definitions.items()
        }
        return base, variants

    def referenced_names(self) -> set[str]:
        """Every colour name mentioned by any base or variant definition."""
        base, variants = self.parsed()
        names: set[str] = set()
        for tree in base.values():
            names |= expressions.references(tree)
        for defs in variants.values():
            for tree in defs.values():
                names |= expressions.references(tree)
        return names

    def build(self, parent: Palette | None = None) -> Palette:
        """Resolve every definition. `parent` must already be built."""
        base_defs, variant_defs = self.parsed()

        palette = Palette(name=self.name, parent=self.parent)
        if parent is not None:
            palette.colours.update(parent.colours)
            for variant, colours in parent.variants.items():
                palette.variants[variant] = dict(colours)

        inherited = dict(palette.colours)
        palette.colours.update(_Resolver(base_defs, inherited.get).resolve_all())

        for variant, defs in variant_defs.items():
            resolved = _Resolver(defs, palette.colours.get).resolve_all()
            palette.variants.setdefault(variant, {}).update(resolved)
        return palette


DEFAULT_PALETTE = PaletteDef(
    name='default',
    definitions={'black': '#000000', 'white': '#FFFFFF', 'edge': '$black', 'fill': '$white'},
)


def default_palette() -> Palette:
    return DEFAULT_PALETTE.build()
