# pixel_palette/core_types.py
from __future__ import annotations

"""
Core type aliases, value objects, errors and lightweight helpers.
"""

import math
from dataclasses import dataclass
from typing import Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

# Basic aliases

RGBTuple = Tuple[int, int, int]
HexStr = str

U8Image = NDArray[np.uint8]  # (H, W, 3)
Lab = NDArray[np.float32]  # (..., 3) CIE Lab
Kernel3 = Sequence[Sequence[int]]  # 3x3 integer matrix

# Errors


class PixelateError(ValueError):
    """Base class for recoverable errors raised by pixel_palette."""


class InvalidInputError(PixelateError):
    """Empty or malformed input, or parameters outside their valid range."""


class PixelSizeTooLargeError(PixelateError):
    """The source is too small for the requested pixel size."""

    def __init__(self, width: int, height: int, pixel_size: int) -> None:
        self.width = width
        self.height = height
        self.pixel_size = pixel_size
        super().__init__(
            f"Pixel size is too large: {pixel_size} for a {width}x{height} image "
            f"(needs width and height > {2 * pixel_size})"
        )


# Value objects


@dataclass(frozen=True)
class KmeansParams:
    """Clustering configuration. Run i is seeded with seed + i."""

    k: int = 8
    runs: int = 3
    max_iterations: int = 20
    convergence_threshold: float = 5.0
    seed: int = 0
    verbose: bool = False

    def validate(self) -> "KmeansParams":
        if int(self.k) < 1:
            raise InvalidInputError(f"k must be >= 1, got {self.k}")
        if int(self.runs) < 1:
            raise InvalidInputError(f"runs must be >= 1, got {self.runs}")
        if int(self.max_iterations) < 1:
            raise InvalidInputError(
                f"max_iterations must be >= 1, got {self.max_iterations}"
            )
        thr = float(self.convergence_threshold)
        if not math.isfinite(thr) or thr < 0.0:
            raise InvalidInputError(
                f"convergence_threshold must be finite and >= 0, got {thr}"
            )
        if int(self.seed) < 0:
            raise InvalidInputError(f"seed must be >= 0, got {self.seed}")
        return self


@dataclass(frozen=True)
class ClusterResult:
    """Best run of a clustering call."""

    centroids: Lab  # (k, 3)
    assignments: NDArray[np.int32]  # (N,)
    score: float  # sum of squared Lab distances
    run: int = 0
    iterations: int = 0


@dataclass(frozen=True)
class TargetGrid:
    """Output grid size in blocks."""

    width: int
    height: int

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.height, self.width)


@dataclass(frozen=True)
class PixelArtResult:
    """Everything one generation produces."""

    image: U8Image  # (grid.height, grid.width, 3)
    palette: U8Image  # (k, 3) RGB, centroid order
    centroids: Lab  # (k, 3)
    grid: TargetGrid
    score: float


# Small helpers


def rgb_to_hex(rgb: RGBTuple) -> HexStr:
    """RGB tuple to lowercase hex string '#rrggbb'."""
    return f"#{rgb[0]:02x}{rgb[1]:02x}{rgb[2]:02x}"


def coerce_to_rgb_tuple(value: Union[Sequence[int], NDArray[np.generic]]) -> RGBTuple:
    """
    Coerce a 3-length sequence or array to an (int, int, int) RGB tuple.
    Helpful when extracting values from NumPy rows.
    """
    if isinstance(value, np.ndarray):
        if value.size < 3:
            raise InvalidInputError("array too small for RGB")
        flat = value.reshape(-1)
        rgb = (int(flat[0]), int(flat[1]), int(flat[2]))
    else:
        if len(value) < 3:
            raise InvalidInputError("sequence too small for RGB")
        rgb = (int(value[0]), int(value[1]), int(value[2]))
    if not all(0 <= c <= 255 for c in rgb):
        raise InvalidInputError(f"RGB channels must be in 0..255, got {rgb}")
    return rgb


def assert_u8_image_rgb(image: np.ndarray) -> U8Image:
    """Validate a non-empty uint8 (H,W,3) image and return it typed as U8Image."""
    if not isinstance(image, np.ndarray):
        raise InvalidInputError("expected a numpy array")
    if image.dtype != np.uint8 or image.ndim != 3 or image.shape[-1] != 3:
        raise InvalidInputError(
            f"expected uint8 (H,W,3) image, got {image.dtype} {image.shape}"
        )
    if image.shape[0] == 0 or image.shape[1] == 0:
        raise InvalidInputError("image has zero width or height")
    return image  # type: ignore[return-value]


__all__ = [
    # aliases
    "RGBTuple",
    "HexStr",
    "U8Image",
    "Lab",
    "Kernel3",
    # errors
    "PixelateError",
    "InvalidInputError",
    "PixelSizeTooLargeError",
    # value objects
    "KmeansParams",
    "ClusterResult",
    "TargetGrid",
    "PixelArtResult",
    # helpers
    "rgb_to_hex",
    "coerce_to_rgb_tuple",
    "assert_u8_image_rgb",
]
