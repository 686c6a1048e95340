# pixel_palette/utils.py
from __future__ import annotations

"""
Console and timing helpers shared by the CLI and the core.

Logging is plain print: log() and debug_log() write to stdout, error() to
stderr. Folder jobs capture both streams per image and replay them in file
order once the image is done.
"""

import io
import os
import sys
import time
from contextlib import contextmanager, redirect_stderr, redirect_stdout
from typing import Any, Dict, Iterable, Iterator, List, Tuple


# Durations


def format_duration(seconds: float) -> str:
    """'12.3ms' under a second, '4.567s' under a minute, else '2m 5s'."""
    if seconds < 1.0:
        return f"{seconds * 1000.0:.1f}ms"
    if seconds < 60.0:
        return f"{seconds:.3f}s"
    minutes = int(seconds // 60)
    return f"{minutes}m {int(seconds - 60 * minutes)}s"


class StageTimer:
    """Wall-clock time of consecutive named stages."""

    def __init__(self) -> None:
        self._start = time.perf_counter()
        self._last = self._start
        self.stages: Dict[str, float] = {}

    def mark(self, name: str) -> None:
        """Close the current stage under name and start the next one."""
        now = time.perf_counter()
        self.stages[name] = self.stages.get(name, 0.0) + (now - self._last)
        self._last = now

    @property
    def total(self) -> float:
        return self._last - self._start

    def summary(self) -> str:
        """e.g. 'Total 1.204s (load=12.0ms, pixelate=1.150s, save=42.0ms)'."""
        parts = ", ".join(f"{n}={format_duration(s)}" for n, s in self.stages.items())
        return f"Total {format_duration(self.total)} ({parts})"


# Work partitioning


def default_workers() -> int:
    """CPU count minus a small reserve (1 to 4 cores), at least 1."""
    n = os.cpu_count() or 4
    reserve = 1 if n <= 6 else 2 if n <= 12 else 3 if n <= 18 else 4
    return max(1, n - reserve)


def split_rows_into_parts(height: int, parts: int) -> List[Tuple[int, int]]:
    """Cut [0, height) into at most `parts` contiguous [start, end) spans."""
    parts = max(1, int(parts))
    step = max(1, -(-height // parts))
    return [(start, min(start + step, height)) for start in range(0, height, step)]


# Streams


def enable_line_buffered_output() -> None:
    """Line-buffer stdout and stderr where the stream exposes .reconfigure()."""
    for stream in (sys.stdout, sys.stderr):
        reconfig = getattr(stream, "reconfigure", None)
        if callable(reconfig):
            try:
                reconfig(line_buffering=True)
            except (OSError, ValueError):
                pass


@contextmanager
def captured_output() -> Iterator[Tuple[io.StringIO, io.StringIO]]:
    """Collect everything printed to stdout and stderr inside the block."""
    out, err = io.StringIO(), io.StringIO()
    with redirect_stdout(out), redirect_stderr(err):
        yield out, err


def replay_output(out: str, err: str) -> None:
    """Write text captured by captured_output() to the live streams."""
    if out:
        sys.stdout.write(out)
        sys.stdout.flush()
    if err:
        sys.stderr.write(err)
        sys.stderr.flush()


# Formatting


def format_value(value: Any) -> str:
    """on/off for bools, 1,234 for ints, at most three decimals for floats."""
    if isinstance(value, bool):
        return "on" if value else "off"
    if isinstance(value, int):
        return f"{value:,}"
    if isinstance(value, float):
        return f"{value:.3f}".rstrip("0").rstrip(".")
    return str(value)


def format_pairs(pairs: Iterable[Tuple[str, Any]], sep: str = "  ") -> str:
    """'Name: value' blocks joined by sep."""
    return sep.join(f"{name}: {format_value(value)}" for name, value in pairs)


# Logging


def log(message: str) -> None:
    print(message, flush=True)


def debug_log(message: str) -> None:
    print(f"[debug] {message}", flush=True)


def error(message: str) -> None:
    """Error line to stderr. Looked up at call time so captured_output() sees it."""
    print(f"[error] {message}", file=sys.stderr, flush=True)


def print_banner(title: str) -> None:
    print(f"\n=== {title} ===", flush=True)


def print_config_line(
    section: str, pairs: Iterable[Tuple[str, Any]], debug: bool = False
) -> None:
    """
    One config line such as
      [kmeans] K: 8  Runs: 3  Max iter: 20  Converge: 5  Seed: 0
    sent to debug_log() when debug is set, else to log().
    """
    line = f"[{section}] {format_pairs(pairs)}"
    (debug_log if debug else log)(line)


__all__ = [
    # durations
    "format_duration",
    "StageTimer",
    # work partitioning
    "default_workers",
    "split_rows_into_parts",
    # streams
    "enable_line_buffered_output",
    "captured_output",
    "replay_output",
    # formatting
    "format_value",
    "format_pairs",
    # logging
    "log",
    "debug_log",
    "error",
    "print_banner",
    "print_config_line",
]
