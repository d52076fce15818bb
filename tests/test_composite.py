"""Tests for px_forge.render.composite: placing rendered pieces on a cell grid."""

import numpy as np
import pytest
from px_forge.core.assets import Map, Prefab
from px_forge.core.colour import BLACK, TRANSPARENT, WHITE, Colour
from px_forge.core.errors import MissingReferenceError
from px_forge.core.types import RenderedShape
from px_forge.render.composite import Compositor

RED = Colour(255, 0, 0)


def solid(name, width, height, colour):
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[...] = colour
    return RenderedShape(name, pixels)


class TestCompositor:
    def test_side_by_side(self):
        table = {'a': solid('a', 2, 2, BLACK), 'b': solid('b', 2, 2, WHITE)}
        image, meta = Compositor(table).render(Prefab('pair', grid=['ab'], legend={'a': 'a', 'b': 'b'}))
        assert image.size == (4, 2)
        assert image.get(1, 1) == BLACK
        assert image.get(2, 0) == WHITE
        assert meta.placements == {'a': [(0, 0)], 'b': [(2, 0)]}
        assert meta.cell_size == (2, 2)
        assert meta.grid == (2, 1)
        assert meta.size == (4, 2)

    def test_cell_size_is_largest_piece(self):
        table = {'big': solid('big', 4, 3, BLACK), 'dot': solid('dot', 1, 1, RED)}
        image, meta = Compositor(table).render(Prefab('p', grid=['bd'], legend={'b': 'big', 'd': 'dot'}))
        assert meta.cell_size == (4, 3)
        assert image.size == (8, 3)
        # Small pieces sit top-left; the rest of the cell stays transparent
        assert image.get(4, 0) == RED
        assert image.get(5, 0) == TRANSPARENT
        assert image.get(4, 2) == TRANSPARENT

    def test_repeated_placements_in_row_major_order(self):
        table = {'w': solid('w', 1, 1, BLACK)}
        _image, meta = Compositor(table).render(Prefab('p', grid=['w w', ' w '], legend={'w': 'w'}))
        assert meta.placements == {'w': [(0, 0), (2, 0), (1, 1)]}

    def test_transparent_source_pixels_do_not_overwrite(self):
        piece = solid('hole', 1, 1, TRANSPARENT)
        image, _meta = Compositor({'hole': piece}).render(Prefab('p', grid=['h'], legend={'h': 'hole'}))
        assert image.get(0, 0) == TRANSPARENT

    def test_unmapped_glyphs_are_skipped(self):
        table = {'a': solid('a', 1, 1, BLACK)}
        image, meta = Compositor(table).render(Prefab('p', grid=['a?'], legend={'a': 'a'}))
        assert image.size == (2, 1)
        assert image.get(1, 0) == TRANSPARENT
        assert list(meta.placements) == ['a']

    def test_missing_reference(self):
        with pytest.raises(MissingReferenceError) as excinfo:
            Compositor({}).render(Prefab('p', grid=['a'], legend={'a': 'ghost'}))
        assert excinfo.value.target == 'ghost'
        assert excinfo.value.glyph == 'a'

    def test_placements_sorted_by_name(self):
        table = {'z': solid('z', 1, 1, BLACK), 'a': solid('a', 1, 1, WHITE)}
        _image, meta = Compositor(table).render(Prefab('p', grid=['za'], legend={'z': 'z', 'a': 'a'}))
        assert list(meta.placements) == ['a', 'z']

    def test_empty_grid_is_one_transparent_pixel(self):
        image, meta = Compositor({}).render(Prefab('p'))
        assert image.size == (1, 1)
        assert image.get(0, 0) == TRANSPARENT
        assert meta.size == (1, 1)
        assert meta.grid == (0, 0)
        assert meta.cell_size == (1, 1)
        assert meta.placements == {}


class TestMaps:
    def test_empty_sentinel(self):
        table = {'room': solid('room', 2, 2, RED)}
        level = Map('level', grid=['R.', '.R'], legend={'R': 'room', '.': 'empty'})
        image, meta = Compositor(table).render(level)
        assert image.size == (4, 4)
        assert image.get(0, 0) == RED
        assert image.get(2, 0) == TRANSPARENT
        assert image.get(3, 3) == RED
        assert meta.placements == {'room': [(0, 0), (2, 2)]}

    def test_prefab_cannot_use_empty_sentinel(self):
        with pytest.raises(MissingReferenceError):
            Compositor({}).render(Prefab('p', grid=['.'], legend={'.': 'empty'}))
