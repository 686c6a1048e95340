# pixel_palette/quantize.py
from __future__ import annotations

"""
Nearest-palette quantization in Lab space.

Distances are squared Euclidean; the first palette entry wins ties, so palette
order matters. A linear scan over the palette is used since k is small.
"""

from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from .colour_convert import lab_to_rgb, lab_to_rgb_colour, rgb_to_lab, rgb_to_lab_colour
from .core_types import (
    InvalidInputError,
    Lab,
    RGBTuple,
    U8Image,
    assert_u8_image_rgb,
)


def _as_palette(palette_lab: Lab | Sequence[Sequence[float]]) -> NDArray[np.float32]:
    pal = np.asarray(palette_lab, dtype=np.float32)
    if pal.size == 0:
        raise InvalidInputError("palette is empty")
    if pal.ndim == 0 or pal.shape[-1] != 3:
        raise InvalidInputError(f"palette must be (k,3) Lab, got shape {pal.shape}")
    return pal.reshape(-1, 3)


def nearest_palette_indices(src_lab: Lab, palette_lab: Lab) -> NDArray[np.int32]:
    """For each source Lab row, index of the nearest palette row."""
    pal = _as_palette(palette_lab).astype(np.float64)
    src = np.asarray(src_lab, dtype=np.float32).reshape(-1, 3).astype(np.float64)
    best_d2 = np.full(src.shape[0], np.inf, dtype=np.float64)
    best = np.zeros(src.shape[0], dtype=np.int32)
    for j in range(pal.shape[0]):
        diff = src - pal[j]
        d2 = (diff * diff).sum(axis=1)
        closer = d2 < best_d2
        best_d2[closer] = d2[closer]
        best[closer] = j
    return best


def quantize_colour(block_rgb: Sequence[int] | np.ndarray, palette_lab: Lab) -> RGBTuple:
    """
    Nearest palette colour for one RGB8 value.

    Returns:
      RGB8 tuple of the winning palette entry.
    """
    pal = _as_palette(palette_lab)
    src = rgb_to_lab_colour(block_rgb)

    best_index = 0
    best_d2 = float("inf")
    for j in range(pal.shape[0]):
        dL = float(src[0]) - float(pal[j, 0])
        da = float(src[1]) - float(pal[j, 1])
        db = float(src[2]) - float(pal[j, 2])
        d2 = dL * dL + da * da + db * db
        if d2 < best_d2:
            best_d2 = d2
            best_index = j

    return lab_to_rgb_colour(pal[best_index])


def quantize_image(blocks: U8Image, palette_lab: Lab) -> U8Image:
    """
    Replace every pixel of a (downsampled) image with its nearest palette colour.

    Returns:
      uint8 image with the same shape as blocks.
    """
    assert_u8_image_rgb(blocks)
    pal = _as_palette(palette_lab)
    pal_rgb = lab_to_rgb(pal)
    idx = nearest_palette_indices(rgb_to_lab(blocks), pal)
    return pal_rgb[idx].reshape(blocks.shape)


def palette_to_rgb(palette_lab: Lab) -> U8Image:
    """Displayable RGB palette [k,3] in centroid order."""
    return lab_to_rgb(_as_palette(palette_lab))


__all__ = [
    "nearest_palette_indices",
    "quantize_colour",
    "quantize_image",
    "palette_to_rgb",
]
