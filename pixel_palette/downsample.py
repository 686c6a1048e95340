# pixel_palette/downsample.py
from __future__ import annotations

"""
Block-averaging downsampler.

Blocks are pixel_size x pixel_size, tiled from the top-left corner. Remainder
strips on the right and bottom are dropped.
"""

import numpy as np

from .core_types import (
    InvalidInputError,
    PixelSizeTooLargeError,
    TargetGrid,
    U8Image,
    assert_u8_image_rgb,
)


def _check_pixel_size(pixel_size: int) -> int:
    if isinstance(pixel_size, bool) or int(pixel_size) != pixel_size:
        raise InvalidInputError(f"pixel_size must be an integer, got {pixel_size!r}")
    if pixel_size < 1:
        raise InvalidInputError(f"pixel_size must be >= 1, got {pixel_size}")
    return int(pixel_size)


def target_size(image: U8Image, pixel_size: int) -> TargetGrid:
    """
    Output grid for a source image and block size.

    Requires width > 2*pixel_size and height > 2*pixel_size, so the grid is
    always at least 2x2.

    Raises:
      InvalidInputError: empty image or non-positive pixel_size
      PixelSizeTooLargeError: the source is too small for pixel_size
    """
    assert_u8_image_rgb(image)
    size = _check_pixel_size(pixel_size)
    height, width = int(image.shape[0]), int(image.shape[1])
    if width <= 2 * size or height <= 2 * size:
        raise PixelSizeTooLargeError(width, height, size)
    return TargetGrid(width=width // size, height=height // size)


def downsample(image: U8Image, pixel_size: int, grid: TargetGrid) -> U8Image:
    """
    Average each block to one pixel.

    Returns:
      uint8 [grid.height, grid.width, 3]; per-channel means truncated toward zero.
    """
    assert_u8_image_rgb(image)
    size = _check_pixel_size(pixel_size)
    if grid.width < 1 or grid.height < 1:
        raise InvalidInputError(f"grid must be at least 1x1, got {grid}")
    crop_h, crop_w = grid.height * size, grid.width * size
    if crop_h > image.shape[0] or crop_w > image.shape[1]:
        raise InvalidInputError(
            f"grid {grid.width}x{grid.height} at pixel size {size} does not fit "
            f"a {image.shape[1]}x{image.shape[0]} image"
        )

    blocks = image[:crop_h, :crop_w].reshape(grid.height, size, grid.width, size, 3)
    sums = blocks.sum(axis=(1, 3), dtype=np.uint64)
    return (sums // np.uint64(size * size)).astype(np.uint8)


__all__ = ["target_size", "downsample"]
