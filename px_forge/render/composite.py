"""Compositing for prefabs and maps.

Every legend reference must already be rendered. The cell size is the
largest width and height over the referenced pieces, so every grid cell is
the same size; smaller pieces sit flush top-left in their cell.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from px_forge.core.assets import GridAsset, Map
from px_forge.core.errors import MissingReferenceError
from px_forge.core.types import PlacementMetadata, RenderedShape

log = logging.getLogger(__name__)


class Compositor:
    def __init__(self, rendered: Mapping[str, RenderedShape]):
        self.rendered = rendered

    def render(self, grid: GridAsset) -> tuple[RenderedShape, PlacementMetadata]:
        """Render a prefab or map. Raises MissingReferenceError for unrendered pieces."""
        if grid.grid == [' ']:
            return RenderedShape.blank(grid.name, 1, 1), PlacementMetadata(grid.name, (1, 1), (0, 0), (1, 1))

        skip_empty = isinstance(grid, Map)
        pieces: dict[str, RenderedShape] = {}
        for glyph, ref in grid.legend.items():
            if skip_empty and ref == Map.EMPTY:
                continue
            if ref in pieces:
                continue
            piece = self.rendered.get(ref)
            if piece is None:
                raise MissingReferenceError(grid.name, glyph, ref)
            pieces[ref] = piece

        cell_w = max([1, *(p.width for p in pieces.values())])
        cell_h = max([1, *(p.height for p in pieces.values())])
        canvas = RenderedShape.blank(grid.name, grid.width * cell_w, grid.height * cell_h)

        placements: dict[str, list[tuple[int, int]]] = {}
        for x, y, glyph in grid.cells():
            if glyph == ' ':
                continue
            ref = grid.legend.get(glyph)
            if ref is None:
                continue
            if skip_empty and ref == Map.EMPTY:
                continue
            px, py = x * cell_w, y * cell_h
            canvas.blit(pieces[ref], px, py)
            placements.setdefault(ref, []).append((px, py))

        log.debug('%s: %dx%d cells of %dx%d px', grid.name, grid.width, grid.height, cell_w, cell_h)
        meta = PlacementMetadata(
            name=grid.name,
            size=canvas.size,
            grid=grid.size,
            cell_size=(cell_w, cell_h),
            placements=dict(sorted(placements.items())),
        )
        return canvas, meta
