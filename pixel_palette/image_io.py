# pixel_palette/image_io.py
from __future__ import annotations

import io
from pathlib import Path

import numpy as np
from PIL import Image, ImageOps

from .constants import SWATCH_CELL
from .core_types import InvalidInputError, U8Image, assert_u8_image_rgb

"""
Image I/O helpers (RGB in sRGB), nearest-neighbour preview scaling, and
palette swatches.
"""

try:
    from PIL import ImageCms  # ICC conversion if profile present
except ImportError:  # pragma: no cover
    ImageCms = None  # type: ignore[assignment]


def _convert_to_srgb_rgb(im: Image.Image) -> Image.Image:
    im = ImageOps.exif_transpose(im)
    icc_bytes = im.info.get("icc_profile")

    if icc_bytes and ImageCms is not None:
        try:
            src_prof = ImageCms.ImageCmsProfile(io.BytesIO(icc_bytes))
            dst_prof = ImageCms.createProfile("sRGB")
            im2 = ImageCms.profileToProfile(
                im.convert("RGB"),
                src_prof,
                dst_prof,
                renderingIntent=ImageCms.Intent.PERCEPTUAL,
                outputMode="RGB",
            )
            if im2 is None:
                return im.convert("RGB")
            return im2
        except (OSError, ValueError):
            return im.convert("RGB")

    return im.convert("RGB")


def load_image_rgb(path: Path) -> U8Image:
    """Decode any Pillow-readable image to uint8 (H,W,3) sRGB. Alpha is dropped."""
    with Image.open(path) as im0:
        im = _convert_to_srgb_rgb(im0)
    arr = np.array(im, dtype=np.uint8)
    if arr.ndim != 3 or arr.shape[0] == 0 or arr.shape[1] == 0:
        raise InvalidInputError(f"{path.name}: decoded image is empty")
    return arr


def upscale_nearest(rgb: U8Image, scale: int) -> U8Image:
    """Repeat every pixel scale x scale times."""
    if scale < 1:
        raise InvalidInputError(f"scale must be >= 1, got {scale}")
    if scale == 1:
        return rgb
    return np.repeat(np.repeat(rgb, scale, axis=0), scale, axis=1)


def save_image_rgb(path: Path, rgb: U8Image, scale: int = 1) -> Path:
    """Write rgb as PNG, optionally upscaled for viewing. Returns the path written."""
    assert_u8_image_rgb(rgb)
    if path.suffix.lower() != ".png":
        path = path.with_suffix(".png")
    Image.fromarray(np.ascontiguousarray(upscale_nearest(rgb, scale))).save(path)
    return path


def palette_swatch(palette: U8Image, cell: int = SWATCH_CELL) -> U8Image:
    """One row of cell x cell squares, one per palette colour, in palette order."""
    pal = np.asarray(palette, dtype=np.uint8).reshape(-1, 3)
    if pal.shape[0] == 0:
        raise InvalidInputError("palette is empty")
    return upscale_nearest(pal[None, :, :], cell)


def save_palette_swatch(path: Path, palette: U8Image, cell: int = SWATCH_CELL) -> Path:
    return save_image_rgb(path, palette_swatch(palette, cell))


__all__ = [
    "load_image_rgb",
    "upscale_nearest",
    "save_image_rgb",
    "palette_swatch",
    "save_palette_swatch",
]
