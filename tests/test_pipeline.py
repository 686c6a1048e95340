"""Tests for the end-to-end pipeline."""

import numpy as np
import pytest

from pixel_palette.colour_convert import rgb_to_lab
from pixel_palette.core_types import (
    InvalidInputError,
    KmeansParams,
    PixelSizeTooLargeError,
    TargetGrid,
)
from pixel_palette.pipeline import extract_palette, generate_image, pixelate
from pixel_palette.quantize import palette_to_rgb

from conftest import QUAD_COLOURS


def _close(a, b, tol=1):
    return np.all(np.abs(np.asarray(a, dtype=np.int16) - np.asarray(b, dtype=np.int16)) <= tol)


class TestExtractPalette:
    """Palette extraction from a full image."""

    def test_recovers_quadrant_colours(self, quad_image):
        palette, centroids, result = extract_palette(
            quad_image, KmeansParams(k=4, runs=2)
        )

        assert palette.shape == (4, 3)
        assert centroids.shape == (4, 3)
        assert result.score == pytest.approx(0.0, abs=1e-3)
        for colour in QUAD_COLOURS:
            assert any(_close(row, colour) for row in palette)

    def test_palette_matches_centroids(self, random_image):
        palette, centroids, _ = extract_palette(random_image, KmeansParams(k=5))
        np.testing.assert_array_equal(palette, palette_to_rgb(centroids))

    def test_workers_do_not_change_result(self, random_image):
        params = KmeansParams(k=4, runs=4, seed=2)
        a = extract_palette(random_image, params, workers=1)
        b = extract_palette(random_image, params, workers=4)
        np.testing.assert_array_equal(a[1], b[1])
        assert a[2].score == b[2].score


class TestGenerateImage:
    def test_snaps_to_palette(self):
        image = np.zeros((40, 40, 3), dtype=np.uint8)
        image[:, :20] = 20
        image[:, 20:] = 230
        centroids = rgb_to_lab(np.array([[0, 0, 0], [255, 255, 255]], dtype=np.uint8))

        out = generate_image(image, 4, TargetGrid(width=10, height=10), centroids)

        assert out.shape == (10, 10, 3)
        assert np.all(out[:, :5] == 0)
        assert np.all(out[:, 5:] == 255)


class TestPixelate:
    """Full generation."""

    def test_quadrants(self, quad_image):
        result = pixelate(quad_image, KmeansParams(k=4, runs=2), 10)

        assert result.grid == TargetGrid(width=10, height=10)
        assert result.image.shape == (10, 10, 3)
        assert result.image.dtype == np.uint8
        assert result.palette.shape == (4, 3)
        assert _close(result.image[0, 0], QUAD_COLOURS[0])
        assert _close(result.image[0, 9], QUAD_COLOURS[1])
        assert _close(result.image[9, 0], QUAD_COLOURS[2])
        assert _close(result.image[9, 9], QUAD_COLOURS[3])

    def test_output_uses_only_palette(self, random_image):
        result = pixelate(random_image, KmeansParams(k=3), 5)

        allowed = {tuple(row) for row in result.palette.tolist()}
        used = {tuple(row) for row in result.image.reshape(-1, 3).tolist()}
        assert used <= allowed
        assert result.grid == TargetGrid(width=8, height=6)

    def test_pixel_size_too_large(self, quad_image):
        with pytest.raises(PixelSizeTooLargeError):
            pixelate(quad_image, KmeansParams(k=4), 60)

    def test_pixel_size_checked_before_params(self, quad_image):
        """An oversized pixel size fails before any clustering work."""
        with pytest.raises(PixelSizeTooLargeError):
            pixelate(quad_image, KmeansParams(k=0), 50)

    def test_bad_params(self, quad_image):
        with pytest.raises(InvalidInputError):
            pixelate(quad_image, KmeansParams(k=0), 10)

    def test_sharpen_on_flat_image_is_noop(self):
        image = np.full((30, 30, 3), (40, 120, 200), dtype=np.uint8)
        plain = pixelate(image, KmeansParams(k=1, runs=1), 5)
        sharp = pixelate(image, KmeansParams(k=1, runs=1), 5, sharpen=True)
        np.testing.assert_array_equal(plain.image, sharp.image)

    def test_deterministic(self, random_image):
        params = KmeansParams(k=4, runs=3, seed=5)
        a = pixelate(random_image, params, 4)
        b = pixelate(random_image, params, 4)
        np.testing.assert_array_equal(a.image, b.image)
        np.testing.assert_array_equal(a.palette, b.palette)
        assert a.score == b.score

    def test_verbose_reports_grid(self, quad_image, capsys):
        pixelate(quad_image, KmeansParams(k=4, runs=1, verbose=True), 10)
        out = capsys.readouterr().out
        assert "Grid: 10x10" in out
