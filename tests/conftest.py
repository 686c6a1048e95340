"""Pytest configuration and fixtures."""

import numpy as np
import pytest
from PIL import Image

QUAD_COLOURS = [
    (255, 0, 0),  # Red
    (0, 255, 0),  # Green
    (0, 0, 255),  # Blue
    (255, 255, 0),  # Yellow
]


@pytest.fixture
def quad_image():
    """100x100 image with four solid quadrants."""
    image = np.zeros((100, 100, 3), dtype=np.uint8)
    image[:50, :50] = QUAD_COLOURS[0]
    image[:50, 50:] = QUAD_COLOURS[1]
    image[50:, :50] = QUAD_COLOURS[2]
    image[50:, 50:] = QUAD_COLOURS[3]
    return image


@pytest.fixture
def random_image():
    """Seeded noise image, 40x30."""
    rng = np.random.default_rng(1234)
    return rng.integers(0, 256, size=(30, 40, 3), dtype=np.uint8)


@pytest.fixture
def image_file(tmp_path, quad_image):
    """The quadrant image written as PNG."""
    path = tmp_path / "quad.png"
    Image.fromarray(quad_image).save(path)
    return path
