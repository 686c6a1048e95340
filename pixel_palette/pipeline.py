# pixel_palette/pipeline.py
from __future__ import annotations

"""
End-to-end pixel-art generation.

  extract_palette : full image -> (RGB palette, Lab centroids, ClusterResult)
  generate_image  : image + pixel size + Lab palette -> quantized grid
  pixelate        : both of the above, with optional sharpening first
"""

from typing import Tuple

import numpy as np

from .colour_convert import rgb_to_lab_threaded
from .convolve import sharpen as sharpen_filter
from .core_types import (
    ClusterResult,
    KmeansParams,
    Lab,
    PixelArtResult,
    TargetGrid,
    U8Image,
    assert_u8_image_rgb,
)
from .downsample import downsample, target_size
from .kmeans import cluster
from .quantize import palette_to_rgb, quantize_image
from .utils import debug_log, format_pairs


def extract_palette(
    image: U8Image, params: KmeansParams, *, workers: int = 1
) -> Tuple[U8Image, Lab, ClusterResult]:
    """
    Cluster every pixel of image in Lab space.

    Returns:
      palette  : uint8 [k,3] RGB, centroid order
      centroids: float32 [k,3] Lab
      result   : the winning ClusterResult
    """
    assert_u8_image_rgb(image)
    lab = rgb_to_lab_threaded(image, workers)
    result = cluster(lab.reshape(-1, 3), params, workers=workers)
    return palette_to_rgb(result.centroids), result.centroids, result


def generate_image(
    image: U8Image, pixel_size: int, grid: TargetGrid, centroids: Lab
) -> U8Image:
    """Block-average image onto grid and snap each block to the nearest centroid."""
    blocks = downsample(image, pixel_size, grid)
    return quantize_image(blocks, centroids)


def pixelate(
    image: U8Image,
    params: KmeansParams,
    pixel_size: int,
    *,
    sharpen: bool = False,
    workers: int = 1,
) -> PixelArtResult:
    """
    Palette extraction plus downsample/quantize in one call.

    The pixel size is checked before any clustering so an oversized value fails
    fast. When sharpen is set the filtered image feeds both steps.

    Raises:
      PixelSizeTooLargeError, InvalidInputError
    """
    assert_u8_image_rgb(image)
    grid = target_size(image, pixel_size)
    source = sharpen_filter(image) if sharpen else image

    palette, centroids, result = extract_palette(source, params, workers=workers)
    out = generate_image(source, pixel_size, grid, centroids)

    if params.verbose:
        debug_log(
            format_pairs(
                [
                    ("Source", f"{image.shape[1]}x{image.shape[0]}"),
                    ("Grid", f"{grid.width}x{grid.height}"),
                    ("Colours", int(palette.shape[0])),
                    ("Used", int(np.unique(out.reshape(-1, 3), axis=0).shape[0])),
                    ("Score", result.score),
                ]
            )
        )

    return PixelArtResult(
        image=out,
        palette=palette,
        centroids=centroids,
        grid=grid,
        score=result.score,
    )


__all__ = ["extract_palette", "generate_image", "pixelate"]
