# pixel_palette/colour_convert.py
from __future__ import annotations

"""
Colour conversions between sRGB and CIE Lab (D65).

Exports:
  rgb_to_linear(srgb)
  linear_to_rgb(linear)
  rgb_to_lab(rgb)
  lab_to_rgb(lab)
  rgb_to_lab_colour(rgb)
  lab_to_rgb_colour(lab)
  rgb_to_lab_threaded(rgb, workers)
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from .core_types import Lab, RGBTuple, U8Image, coerce_to_rgb_tuple
from .utils import split_rows_into_parts

# Linear RGB <-> XYZ (D65)
_RGB_TO_XYZ = np.array(
    [
        [0.4124564, 0.3575761, 0.1804375],
        [0.2126729, 0.7151522, 0.0721750],
        [0.0193339, 0.1191920, 0.9503041],
    ],
    dtype=np.float64,
)
_XYZ_TO_RGB = np.linalg.inv(_RGB_TO_XYZ)

# Reference white (D65)
_WHITE = np.array([0.95047, 1.00000, 1.08883], dtype=np.float64)

_EPSILON = 216.0 / 24389.0
_KAPPA = 24389.0 / 27.0


# sRGB companding


def rgb_to_linear(srgb: np.ndarray) -> np.ndarray:
    """
    Convert sRGB (non-linear 0..1) to linear RGB (0..1). Vectorised.
    Args:
      srgb: array[...,3] in 0..1 (float)
    Returns:
      float32 array[...,3]
    """
    srgb_f = srgb.astype(np.float32, copy=False)
    with np.errstate(invalid="ignore"):
        linear = np.where(
            srgb_f <= 0.04045, srgb_f / 12.92, ((srgb_f + 0.055) / 1.055) ** 2.4
        )
    return linear.astype(np.float32, copy=False)


def linear_to_rgb(linear: np.ndarray) -> np.ndarray:
    """Linear RGB (0..1) to sRGB (0..1). Negative inputs are floored at 0. float64."""
    lin = np.maximum(linear.astype(np.float64, copy=False), 0.0)
    return np.where(lin <= 0.0031308, lin * 12.92, 1.055 * lin ** (1.0 / 2.4) - 0.055)


# sRGB -> Lab


def rgb_to_lab(rgb: np.ndarray) -> Lab:
    """
    sRGB to CIE Lab (D65).
    Integer arrays are read as 0..255, float arrays as 0..1.
    Preserves shape (...,3). Returns float32.
    """
    arr = np.asarray(rgb)
    if np.issubdtype(arr.dtype, np.integer):
        rgb_f = arr.astype(np.float32) / 255.0
    else:
        rgb_f = arr.astype(np.float32, copy=False)

    lin = rgb_to_linear(rgb_f)
    r_lin, g_lin, b_lin = lin[..., 0], lin[..., 1], lin[..., 2]

    m = _RGB_TO_XYZ.astype(np.float32)
    X = m[0, 0] * r_lin + m[0, 1] * g_lin + m[0, 2] * b_lin
    Y = m[1, 0] * r_lin + m[1, 1] * g_lin + m[1, 2] * b_lin
    Z = m[2, 0] * r_lin + m[2, 1] * g_lin + m[2, 2] * b_lin

    Xn, Yn, Zn = (float(v) for v in _WHITE)
    x, y, z = X / Xn, Y / Yn, Z / Zn

    def f(t: np.ndarray) -> np.ndarray:
        with np.errstate(invalid="ignore"):
            return np.where(
                t > _EPSILON, np.cbrt(t), (_KAPPA * t + 16.0) / 116.0
            ).astype(np.float32, copy=False)

    fx, fy, fz = f(x), f(y), f(z)

    out = np.empty(rgb_f.shape, dtype=np.float32)
    out[..., 0] = 116.0 * fy - 16.0
    out[..., 1] = 500.0 * (fx - fy)
    out[..., 2] = 200.0 * (fy - fz)
    return out


# Lab -> sRGB


def lab_to_rgb(lab: np.ndarray) -> U8Image:
    """
    CIE Lab (D65) to sRGB uint8. Inverse of rgb_to_lab.
    Out-of-gamut channels saturate to [0, 255]. Preserves shape (...,3).
    """
    arr = np.asarray(lab, dtype=np.float64)
    L, a, b = arr[..., 0], arr[..., 1], arr[..., 2]

    fy = (L + 16.0) / 116.0
    fx = fy + a / 500.0
    fz = fy - b / 200.0

    def f_inv(t: np.ndarray) -> np.ndarray:
        t3 = t * t * t
        return np.where(t3 > _EPSILON, t3, (116.0 * t - 16.0) / _KAPPA)

    xyz = np.stack([f_inv(fx), f_inv(fy), f_inv(fz)], axis=-1) * _WHITE
    linear = xyz @ _XYZ_TO_RGB.T
    srgb = linear_to_rgb(linear)
    return np.clip(np.rint(srgb * 255.0), 0, 255).astype(np.uint8)


# Single colours


def rgb_to_lab_colour(rgb: Sequence[int] | NDArray[np.integer]) -> Lab:
    """One RGB8 triple to a Lab row of shape (3,)."""
    return rgb_to_lab(np.asarray(coerce_to_rgb_tuple(rgb), dtype=np.uint8))


def lab_to_rgb_colour(lab: Sequence[float] | NDArray[np.floating]) -> RGBTuple:
    """One Lab triple to an RGB8 tuple."""
    r, g, b = lab_to_rgb(np.asarray(lab, dtype=np.float64).reshape(3)).tolist()
    return (int(r), int(g), int(b))


# Threaded helpers


def rgb_to_lab_threaded(rgb: np.ndarray, workers: int) -> Lab:
    """
    Threaded RGB->Lab conversion by splitting rows.

    Args:
      rgb: uint8 or float array [H,W,3]
      workers: number of threads; if <=1 or H<256, runs single-threaded
    Returns:
      Lab float32 array [H,W,3]
    """
    height = int(rgb.shape[0])
    if workers <= 1 or height < 256:
        return rgb_to_lab(rgb)

    chunks = split_rows_into_parts(height, workers)
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(rgb_to_lab, rgb[s:e]) for s, e in chunks]
        parts = [f.result() for f in futures]
    return np.vstack(parts).astype(np.float32, copy=False)


__all__ = [
    "rgb_to_linear",
    "linear_to_rgb",
    "rgb_to_lab",
    "lab_to_rgb",
    "rgb_to_lab_colour",
    "lab_to_rgb_colour",
    "rgb_to_lab_threaded",
]
