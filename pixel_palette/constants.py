# pixel_palette/constants.py
"""
Defaults and tunables used across the project.

- K-means defaults (DEFAULT_*)
- Pixel size default
- 3x3 kernels for the convolution filter
- CLI output naming
"""
from __future__ import annotations

from typing import Tuple

# =========================
# K-means
# =========================
DEFAULT_K: int = 8
DEFAULT_RUNS: int = 3
DEFAULT_MAX_ITERATIONS: int = 20
# Total centroid movement in Lab units below which a run stops early.
DEFAULT_CONVERGENCE: float = 5.0
DEFAULT_SEED: int = 0

# =========================
# Downsampling
# =========================
DEFAULT_PIXEL_SIZE: int = 8

# =========================
# Kernels
# =========================
Kernel = Tuple[Tuple[int, int, int], Tuple[int, int, int], Tuple[int, int, int]]

SHARPEN_KERNEL: Kernel = (
    (0, -1, 0),
    (-1, 5, -1),
    (0, -1, 0),
)

IDENTITY_KERNEL: Kernel = (
    (0, 0, 0),
    (0, 1, 0),
    (0, 0, 0),
)

# =========================
# CLI
# =========================
OUTPUT_SUFFIX: str = "_pixel"
SWATCH_SUFFIX: str = "_palette"
IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".gif", ".webp", ".tif", ".tiff"}
# Side length of one palette cell in swatch images.
SWATCH_CELL: int = 32
