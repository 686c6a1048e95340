"""Tests for nearest-palette quantization."""

import numpy as np
import pytest

from pixel_palette.colour_convert import rgb_to_lab
from pixel_palette.core_types import InvalidInputError
from pixel_palette.quantize import (
    nearest_palette_indices,
    palette_to_rgb,
    quantize_colour,
    quantize_image,
)


@pytest.fixture
def black_white():
    return rgb_to_lab(np.array([[0, 0, 0], [255, 255, 255]], dtype=np.uint8))


class TestQuantizeColour:
    """Single colour lookup."""

    def test_dark_grey_to_black(self, black_white):
        assert quantize_colour((10, 10, 10), black_white) == (0, 0, 0)

    def test_light_grey_to_white(self, black_white):
        assert quantize_colour((250, 250, 250), black_white) == (255, 255, 255)

    def test_accepts_numpy_row(self, black_white):
        pixel = np.array([5, 5, 5], dtype=np.uint8)
        assert quantize_colour(pixel, black_white) == (0, 0, 0)

    def test_picks_perceptually_closest(self):
        palette = rgb_to_lab(
            np.array([[255, 0, 0], [0, 0, 255], [0, 128, 0]], dtype=np.uint8)
        )
        r, g, b = quantize_colour((200, 30, 40), palette)
        assert r > 250 and g <= 1 and b <= 1

    def test_empty_palette(self):
        with pytest.raises(InvalidInputError):
            quantize_colour((1, 2, 3), np.zeros((0, 3), dtype=np.float32))

    @pytest.mark.parametrize("rgb", [(300, 0, 0), (0, -1, 0), (0, 0, 256)])
    def test_channel_out_of_range(self, black_white, rgb):
        with pytest.raises(InvalidInputError):
            quantize_colour(rgb, black_white)


class TestNearestIndices:
    """Vectorised lookup and the tie rule."""

    def test_tie_goes_to_first_entry(self):
        src = np.array([[50.0, 0.0, 0.0]], dtype=np.float32)
        forward = np.array([[40.0, 0.0, 0.0], [60.0, 0.0, 0.0]], dtype=np.float32)
        backward = forward[::-1].copy()

        assert nearest_palette_indices(src, forward).tolist() == [0]
        assert nearest_palette_indices(src, backward).tolist() == [0]

    def test_duplicate_entries(self):
        src = np.array([[30.0, 1.0, 1.0]], dtype=np.float32)
        palette = np.array([[0.0, 0.0, 0.0], [30.0, 0.0, 0.0], [30.0, 0.0, 0.0]])
        assert nearest_palette_indices(src, palette).tolist() == [1]


class TestQuantizeImage:
    """Whole-grid quantization."""

    def test_maps_every_cell(self, black_white):
        blocks = np.array(
            [[[10, 10, 10], [250, 250, 250]], [[240, 240, 240], [20, 20, 20]]],
            dtype=np.uint8,
        )

        out = quantize_image(blocks, black_white)

        expected = np.array(
            [[[0, 0, 0], [255, 255, 255]], [[255, 255, 255], [0, 0, 0]]],
            dtype=np.uint8,
        )
        np.testing.assert_array_equal(out, expected)

    def test_agrees_with_single_lookup(self):
        rng = np.random.default_rng(8)
        blocks = rng.integers(0, 256, size=(6, 6, 3), dtype=np.uint8)
        palette = rgb_to_lab(
            np.array(
                [[0, 0, 0], [255, 255, 255], [200, 30, 30], [30, 160, 60], [40, 60, 200]],
                dtype=np.uint8,
            )
        )

        out = quantize_image(blocks, palette)

        for y in range(6):
            for x in range(6):
                assert tuple(out[y, x].tolist()) == quantize_colour(blocks[y, x], palette)

    def test_output_only_uses_palette_colours(self, random_image):
        palette = rgb_to_lab(
            np.array([[0, 0, 0], [255, 0, 0], [0, 0, 255]], dtype=np.uint8)
        )
        out = quantize_image(random_image, palette)

        allowed = {tuple(row) for row in palette_to_rgb(palette).tolist()}
        used = {tuple(row) for row in out.reshape(-1, 3).tolist()}
        assert used <= allowed
        assert out.shape == random_image.shape


class TestPaletteToRgb:
    def test_shape_and_order(self):
        rgb = np.array([[255, 0, 0], [0, 255, 0], [0, 0, 255]], dtype=np.uint8)
        out = palette_to_rgb(rgb_to_lab(rgb))
        assert out.dtype == np.uint8
        np.testing.assert_array_equal(out, rgb)
