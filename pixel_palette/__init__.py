# pixel_palette/__init__.py
"""
pixel_palette package.

Purpose:
  Reduce an image to a small k-means palette and a downsampled, palette-quantized
  pixel-art rendition. See pixelate.py for the CLI.

Public API:
  pixelate        : end-to-end generation (palette + quantized grid).
  extract_palette : k-means palette of a full image.
  generate_image  : downsample and quantize against a given palette.
  cluster         : best-of-N k-means over Lab samples.
  target_size     : output grid for an image and pixel size.
  downsample      : block averaging.
  quantize_colour : nearest palette colour for one RGB value.
  quantize_image  : nearest palette colour for every pixel.
  convolve        : 3x3 edge-clamped convolution; sharpen is built on it.
  colour_convert  : sRGB <-> Lab transforms.
  core_types      : aliases, value objects and errors.

Quick start:
  from pixel_palette import KmeansParams, pixelate
  result = pixelate(rgb, KmeansParams(k=8), pixel_size=8)
"""

__version__ = "0.1.0"

# Re-export namespaces for convenience.
from . import colour_convert
from . import core_types
from . import image_io
from . import utils

from .core_types import (  # noqa: E402,F401
    ClusterResult,
    InvalidInputError,
    KmeansParams,
    PixelArtResult,
    PixelateError,
    PixelSizeTooLargeError,
    TargetGrid,
)
from .kmeans import cluster  # noqa: E402,F401
from .downsample import downsample, target_size  # noqa: E402,F401
from .quantize import palette_to_rgb, quantize_colour, quantize_image  # noqa: E402,F401
from .convolve import convolve, sharpen  # noqa: E402,F401
from .pipeline import extract_palette, generate_image, pixelate  # noqa: E402,F401

__all__ = [
    "__version__",
    "colour_convert",
    "core_types",
    "image_io",
    "utils",
    "ClusterResult",
    "InvalidInputError",
    "KmeansParams",
    "PixelArtResult",
    "PixelateError",
    "PixelSizeTooLargeError",
    "TargetGrid",
    "cluster",
    "downsample",
    "target_size",
    "palette_to_rgb",
    "quantize_colour",
    "quantize_image",
    "convolve",
    "sharpen",
    "extract_palette",
    "generate_image",
    "pixelate",
]
