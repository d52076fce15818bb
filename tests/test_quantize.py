"""Tests for px_forge.render.quantize: PICO-8 palette mapping and dithering."""

import numpy as np
import pytest
from px_forge.core.assets import DitherMethod
from px_forge.render.quantize import (
    PICO8_PALETTE,
    QuantizeConfig,
    indices_to_image,
    nearest_index,
    quantize,
    redmean_distance,
)

NONE = QuantizeConfig(DitherMethod.NONE)


def uniform(rgb, width=4, height=4, alpha=255):
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[..., :3] = rgb
    pixels[..., 3] = alpha
    return pixels


class TestDistance:
    def test_zero_for_same_colour(self):
        assert redmean_distance((10, 20, 30), (10, 20, 30)) == 0.0

    def test_green_weighs_most(self):
        assert redmean_distance((0, 0, 0), (0, 10, 0)) > redmean_distance((0, 0, 0), (0, 0, 10))


class TestNearestIndex:
    def test_pure_red(self):
        assert nearest_index((255, 0, 0)) == 8

    @pytest.mark.parametrize('index', range(16))
    def test_palette_colours_map_to_themselves(self, index):
        assert nearest_index(PICO8_PALETTE[index][:3]) == index

    def test_near_white(self):
        assert nearest_index((250, 245, 240)) == 7


class TestQuantize:
    def test_shape_and_dtype(self):
        out = quantize(uniform((0, 0, 0), width=5, height=3), NONE)
        assert out.shape == (3, 5)
        assert out.dtype == np.uint8

    def test_no_dither_matches_nearest(self):
        rng = np.random.default_rng(7)
        pixels = rng.integers(0, 256, size=(6, 6, 4), dtype=np.uint8)
        pixels[..., 3] = 255
        out = quantize(pixels, NONE)
        for y in range(6):
            for x in range(6):
                assert out[y, x] == nearest_index(pixels[y, x])

    @pytest.mark.parametrize('dither', list(DitherMethod))
    def test_transparent_pixels_use_transparent_index(self, dither):
        pixels = uniform((255, 0, 0), alpha=0)
        out = quantize(pixels, QuantizeConfig(dither, transparent_index=3))
        assert (out == 3).all()

    def test_floyd_steinberg_on_exact_colour_is_uniform(self):
        out = quantize(uniform(PICO8_PALETTE[12][:3], 8, 8), QuantizeConfig(DitherMethod.FLOYD_STEINBERG))
        assert (out == 12).all()

    def test_floyd_steinberg_mixes_between_colours(self):
        # Mid-grey between black and white-ish palette entries gets a mixture
        out = quantize(uniform((128, 128, 128), 8, 8), QuantizeConfig(DitherMethod.FLOYD_STEINBERG))
        assert len(np.unique(out)) > 1

    def test_ordered_is_deterministic(self):
        pixels = uniform((100, 100, 100), 8, 8)
        config = QuantizeConfig(DitherMethod.ORDERED)
        assert (quantize(pixels, config) == quantize(pixels, config)).all()

    def test_ordered_keeps_black(self):
        out = quantize(uniform((0, 0, 0), 4, 4), QuantizeConfig(DitherMethod.ORDERED))
        assert (out == 0).all()


class TestIndicesToImage:
    def test_expands_to_rgba(self):
        image = indices_to_image('q', np.array([[8, 0]], dtype=np.uint8))
        assert image.get(0, 0) == PICO8_PALETTE[8]
        assert image.get(1, 0) == PICO8_PALETTE[0]

    def test_transparent_mask(self):
        mask = np.array([[False, True]])
        image = indices_to_image('q', np.array([[8, 8]], dtype=np.uint8), transparent=mask)
        assert image.get(0, 0).a == 255
        assert image.get(1, 0).a == 0
