# pixel_palette/convolve.py
from __future__ import annotations

"""
3x3 convolution with edge clamping, and the sharpen filter built on it.
"""

import numpy as np

from .constants import SHARPEN_KERNEL
from .core_types import InvalidInputError, Kernel3, U8Image, assert_u8_image_rgb


def _as_kernel(kernel: Kernel3 | np.ndarray) -> np.ndarray:
    arr = np.asarray(kernel)
    if arr.shape != (3, 3):
        raise InvalidInputError(f"kernel must be 3x3, got shape {arr.shape}")
    if not np.issubdtype(arr.dtype, np.integer) or arr.dtype == np.bool_:
        raise InvalidInputError(f"kernel must hold integers, got {arr.dtype}")
    return arr.astype(np.int64)


def convolve(image: U8Image, kernel: Kernel3 | np.ndarray, divisor: int = 1) -> U8Image:
    """
    Convolve each channel with a 3x3 integer kernel.

    Out-of-bounds neighbours are clamped to the nearest edge pixel. Sums are
    integer-divided by divisor when it is not 1, then clamped to [0, 255].

    Raises:
      InvalidInputError: bad image, non-3x3 or non-integer kernel, divisor 0
    """
    assert_u8_image_rgb(image)
    weights = _as_kernel(kernel)
    if isinstance(divisor, bool) or int(divisor) != divisor:
        raise InvalidInputError(f"divisor must be an integer, got {divisor!r}")
    divisor = int(divisor)
    if divisor == 0:
        raise InvalidInputError("divisor must not be 0")

    height, width = image.shape[0], image.shape[1]
    padded = np.pad(image.astype(np.int64), ((1, 1), (1, 1), (0, 0)), mode="edge")
    acc = np.zeros((height, width, 3), dtype=np.int64)
    for i in range(3):
        for j in range(3):
            w = int(weights[i, j])
            if w:
                acc += w * padded[i : i + height, j : j + width]

    if divisor != 1:
        # floor and truncation only differ on negative quotients, which clamp to 0
        acc //= divisor
    return np.clip(acc, 0, 255).astype(np.uint8)


def sharpen(image: U8Image) -> U8Image:
    """Sharpen with [[0,-1,0],[-1,5,-1],[0,-1,0]]."""
    return convolve(image, SHARPEN_KERNEL, 1)


__all__ = ["convolve", "sharpen"]
