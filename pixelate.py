#!/usr/bin/env python3
"""
pixelate.py
Turn images into palette-quantized pixel art.

Usage:
  python pixelate.py INPUT --colours K --pixel-size N [--runs R] [--sharpen] [--scale S] [--swatch] --debug

Steps:
  1. Check that the image is larger than twice the pixel size in both directions.
  2. Optionally sharpen with a 3x3 kernel.
  3. Cluster every pixel in CIE Lab with best-of-R seeded k-means (K colours).
  4. Average pixel-size blocks and snap each block to its nearest palette colour.

Input:
  Any Pillow-readable image, or a folder of them. Alpha is dropped.

Output:
  <stem>_pixel.png next to INPUT (or in --outdir). --scale upscales the result
  with nearest neighbour for viewing; --swatch also writes <stem>_palette.png.

Notes:
  CPU bound. k-means runs and Lab conversion use a ThreadPoolExecutor; folder
  jobs run in a ProcessPoolExecutor; each job captures its stdout and stderr
  and they are replayed in file order.
"""

from __future__ import annotations

import argparse
import os
import sys
from concurrent.futures import ProcessPoolExecutor
from pathlib import Path
from typing import List, Optional

from pixel_palette.constants import (
    DEFAULT_CONVERGENCE,
    DEFAULT_K,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_PIXEL_SIZE,
    DEFAULT_RUNS,
    DEFAULT_SEED,
    IMAGE_EXTENSIONS,
    OUTPUT_SUFFIX,
    SWATCH_SUFFIX,
)
from pixel_palette.core_types import KmeansParams, PixelateError, rgb_to_hex
from pixel_palette.image_io import load_image_rgb, save_image_rgb, save_palette_swatch
from pixel_palette.pipeline import pixelate
from pixel_palette.utils import (
    StageTimer,
    captured_output,
    debug_log,
    default_workers,
    enable_line_buffered_output,
    error,
    format_duration,
    format_pairs,
    log,
    print_banner,
    print_config_line,
    replay_output,
)

# CLI args


def parse_cli_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse CLI arguments for pixel-art generation.

    Returns:
      argparse.Namespace with:
        src: Path to image or folder
        outdir: optional Path for outputs
        colours: palette size K
        runs, max_iter, converge, seed: k-means controls
        pixel_size: source pixels per output pixel
        sharpen: apply the sharpen kernel first
        scale: nearest-neighbour upscale factor for the saved image
        swatch: also write a palette swatch PNG
        jobs: parallel file workers
        workers: internal threads for heavy steps
        debug: bool for verbose details
    """
    parser = argparse.ArgumentParser(
        prog="pixelate",
        description="Reduce image(s) to a k-means palette and a pixel-art rendition.",
    )
    parser.add_argument("src", type=Path, help="Input image or folder")
    parser.add_argument(
        "--outdir", type=Path, default=None, help="Output directory (optional)"
    )
    parser.add_argument(
        "-k", "--colours", type=int, default=DEFAULT_K, help="Palette size"
    )
    parser.add_argument(
        "--runs", type=int, default=DEFAULT_RUNS, help="Independent k-means restarts"
    )
    parser.add_argument(
        "--max-iter",
        type=int,
        default=DEFAULT_MAX_ITERATIONS,
        help="Iterations per restart",
    )
    parser.add_argument(
        "--converge",
        type=float,
        default=DEFAULT_CONVERGENCE,
        help="Stop a restart once total centroid movement falls below this",
    )
    parser.add_argument(
        "--seed", type=int, default=DEFAULT_SEED, help="Base seed; run i uses seed+i"
    )
    parser.add_argument(
        "--pixel-size",
        type=int,
        default=DEFAULT_PIXEL_SIZE,
        help="Source pixels per output pixel (square blocks)",
    )
    parser.add_argument(
        "--sharpen", action="store_true", help="Sharpen before clustering"
    )
    parser.add_argument(
        "--scale",
        type=int,
        default=1,
        help="Upscale the saved image by this factor (nearest). 0 => pixel size.",
    )
    parser.add_argument(
        "--swatch", action="store_true", help="Also save a palette swatch PNG"
    )
    parser.add_argument(
        "--jobs", type=int, default=2, help="Files processed in parallel"
    )
    parser.add_argument(
        "--workers", type=int, default=default_workers(), help="Internal workers"
    )
    parser.add_argument("--debug", action="store_true", help="Verbose details")
    return parser.parse_args(argv)


def _params_from_args(args: argparse.Namespace) -> KmeansParams:
    return KmeansParams(
        k=args.colours,
        runs=args.runs,
        max_iterations=args.max_iter,
        convergence_threshold=args.converge,
        seed=args.seed,
        verbose=args.debug,
    )


# Per-file processing


def _process_single_image(
    src_path: Path,
    outdir: Optional[Path],
    params: KmeansParams,
    pixel_size: int,
    sharpen: bool,
    scale: int,
    swatch: bool,
    workers: int,
    debug: bool,
) -> bool:
    """
    Process a single image path end-to-end:
      load -> pixelate -> save -> report.
    Returns False when the image was rejected or could not be written.
    """
    timer = StageTimer()
    print_banner(src_path.name)

    out_dir = outdir if outdir is not None else src_path.parent
    out_path = out_dir / f"{src_path.stem}{OUTPUT_SUFFIX}.png"

    try:
        rgb_in = load_image_rgb(src_path)
        if debug:
            debug_log(format_pairs([("Loaded", f"{rgb_in.shape[1]}x{rgb_in.shape[0]}")]))
        timer.mark("load")

        result = pixelate(
            rgb_in, params, pixel_size, sharpen=sharpen, workers=workers
        )
        timer.mark("pixelate")

        out_dir.mkdir(parents=True, exist_ok=True)
        written = save_image_rgb(out_path, result.image, scale or pixel_size)
        if swatch:
            save_palette_swatch(
                out_dir / f"{src_path.stem}{SWATCH_SUFFIX}.png", result.palette
            )
        timer.mark("save")
    except (PixelateError, OSError) as e:
        error(f"{src_path.name}: {e}")
        return False

    log(
        f"Wrote {written.name} | grid={result.grid.width}x{result.grid.height} "
        f"| palette_size={result.palette.shape[0]}"
    )
    log("Palette:")
    for row in result.palette.tolist():
        log(f"  {rgb_to_hex((row[0], row[1], row[2]))}")

    if debug:
        debug_log(timer.summary())
    else:
        log(f"Total time {format_duration(timer.total)}")
    return True


def _process_one_captured(
    path: Path, args: argparse.Namespace
) -> tuple[str, str, bool]:
    """
    Process a single file with stdout and stderr captured.

    Used by folder jobs so each file's lines are replayed together, in order.
    """
    with captured_output() as (out, err):
        ok = _process_one_live(path, args)
    return out.getvalue(), err.getvalue(), ok


def _process_one_live(path: Path, args: argparse.Namespace) -> bool:
    """Process a single file and stream logs to stdout."""
    return _process_single_image(
        path,
        args.outdir,
        _params_from_args(args),
        args.pixel_size,
        args.sharpen,
        args.scale,
        args.swatch,
        args.workers,
        args.debug,
    )


def _collect_files(src: Path) -> List[Path]:
    files = [
        p
        for p in src.iterdir()
        if p.is_file()
        and p.suffix.lower() in IMAGE_EXTENSIONS
        and not p.stem.endswith((OUTPUT_SUFFIX, SWATCH_SUFFIX))
    ]
    files.sort(key=lambda p: p.name.lower())
    return files


# Entry point


def main(argv: Optional[List[str]] = None) -> int:
    """
    CLI entry point.

    Handles single file or folder. In folder mode supports --jobs parallelism
    while preserving readable output ordering.
    """
    enable_line_buffered_output()
    args = parse_cli_args(argv)

    try:
        params = _params_from_args(args).validate()
    except PixelateError as e:
        error(str(e))
        return 2
    if args.scale < 0:
        error(f"--scale must be >= 0, got {args.scale}")
        return 2

    cpu_cores = os.cpu_count() or 1
    # Always show a concise run configuration up-front.
    print_config_line(
        "run",
        [("CPU cores", cpu_cores), ("Workers", args.workers), ("Jobs", args.jobs)],
        debug=False,
    )
    print_config_line(
        "kmeans",
        [
            ("K", params.k),
            ("Runs", params.runs),
            ("Max iter", params.max_iterations),
            ("Converge", float(params.convergence_threshold)),
            ("Seed", params.seed),
        ],
        debug=args.debug,
    )
    if args.debug:
        debug_log(
            format_pairs(
                [
                    ("Pixel size", args.pixel_size),
                    ("Sharpen", args.sharpen),
                    ("Scale", args.scale or args.pixel_size),
                ]
            )
        )

    src = args.src
    if not src.exists():
        error(f"not found: {src}")
        return 2

    if not src.is_dir():
        return 0 if _process_one_live(src, args) else 1

    files = _collect_files(src)
    if args.debug:
        debug_log(format_pairs([("Images", len(files)), ("Jobs", args.jobs)]))

    if args.jobs <= 1:
        results = [_process_one_live(p, args) for p in files]
    else:
        with ProcessPoolExecutor(max_workers=args.jobs) as ex:
            futures = [ex.submit(_process_one_captured, p, args) for p in files]
            blocks = [f.result() for f in futures]
        for out_text, err_text, _ok in blocks:
            replay_output(out_text, err_text)
        results = [ok for _out, _err, ok in blocks]
    return 0 if all(results) else 1


if __name__ == "__main__":
    sys.exit(main())
