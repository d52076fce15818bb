"""Shape rendering: one grid character becomes one pixel.

Each cell is resolved by the first lookup that answers:

  1. the shape's own legend (stamp, brush swatch, or tiled fill)
  2. a stamp whose declared glyph is the character
  3. the builtin glyph table (+ - | # edge, . and space fill, x transparent)
  4. opaque magenta, so unresolved glyphs are visible rather than fatal
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from px_forge.core.assets import BUILTIN_GLYPHS, Brush, BrushRef, Fill, LegendEntry, PixelToken, Shape, Stamp, StampRef
from px_forge.core.colour import BLACK, MAGENTA, TRANSPARENT, WHITE, Colour
from px_forge.core.errors import ExpressionError
from px_forge.core.palette import Palette
from px_forge.core.types import RenderedShape

log = logging.getLogger(__name__)


class ShapeRenderer:
    def __init__(
        self,
        palette: Palette,
        stamps: Mapping[str, Stamp] | None = None,
        brushes: Mapping[str, Brush] | None = None,
        variant: str | None = None,
    ):
        self.palette = palette
        self.stamps = dict(stamps or {})
        self.brushes = dict(brushes or {})
        self.variant = variant

    def render(self, shape: Shape) -> RenderedShape:
        out = RenderedShape.blank(shape.name, shape.width, shape.height)
        missing: set[str] = set()
        for x, y, glyph in shape.cells():
            colour = self.resolve_glyph(glyph, shape, x, y)
            if colour is None:
                missing.add(glyph)
                colour = MAGENTA
            out.set(x, y, colour)
        if missing:
            log.debug('%s: unresolved glyphs %s rendered as magenta', shape.name, ''.join(sorted(missing)))
        return out

    def resolve_glyph(self, glyph: str, shape: Shape, x: int, y: int) -> Colour | None:
        entry = shape.legend.get(glyph)
        if entry is not None:
            return self.resolve_legend_entry(entry, x, y)

        stamp = self.find_stamp_by_glyph(glyph)
        if stamp is not None:
            return self.stamp_colour(stamp)

        token = BUILTIN_GLYPHS.get(glyph)
        if token is not None:
            return self.token_colour(token)
        return None

    def resolve_legend_entry(self, entry: LegendEntry, x: int, y: int) -> Colour:
        match entry:
            case StampRef(name):
                stamp = self.stamps.get(name)
                return self.stamp_colour(stamp) if stamp is not None else MAGENTA
            case BrushRef(name, bindings):
                brush = self.brushes.get(name)
                return self.brush_colour(brush, bindings, 0, 0) if brush is not None else MAGENTA
            case Fill(name, bindings):
                brush = self.brushes.get(name)
                return self.brush_colour(brush, bindings, x, y) if brush is not None else MAGENTA
        return MAGENTA

    def find_stamp_by_glyph(self, glyph: str) -> Stamp | None:
        for stamp in self.stamps.values():
            if stamp.glyph == glyph:
                return stamp
        return None

    def stamp_colour(self, stamp: Stamp) -> Colour:
        return self.token_colour(stamp.token_at(0, 0) or PixelToken.TRANSPARENT)

    def token_colour(self, token: PixelToken) -> Colour:
        if token is PixelToken.EDGE:
            return self.palette_colour('edge') or BLACK
        if token is PixelToken.FILL:
            return self.palette_colour('fill') or WHITE
        return TRANSPARENT

    def brush_colour(self, brush: Brush, bindings: Mapping[str, str], x: int, y: int) -> Colour:
        letter = brush.sample(x, y)
        if letter is None or letter not in bindings:
            return TRANSPARENT
        return self.binding_colour(bindings[letter]) or TRANSPARENT

    def binding_colour(self, ref: str) -> Colour | None:
        """A brush binding is `#hex`, `$name` or a bare palette name."""
        ref = ref.strip()
        if ref.startswith('#'):
            try:
                return Colour.from_hex(ref)
            except ExpressionError:
                return None
        return self.palette_colour(ref)

    def palette_colour(self, name: str) -> Colour | None:
        return self.palette.get(name, self.variant)
