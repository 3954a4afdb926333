# exoquant/utils.py
from __future__ import annotations

"""
Shared utilities for exoquant.

Compact duration formatting, palette inspection helpers and print-based
debug logging.
"""

from typing import Any, Iterable, List, Tuple

import numpy as np

from .core_types import U8Buffer


#  Time / size formatting


def format_seconds_compact(seconds: float) -> str:
    """Human-friendly seconds: '<ms>ms', '<s>s', or 'Mm Ss'."""
    if seconds < 1.0:
        return f"{seconds * 1000.0:.1f}ms"
    if seconds < 60.0:
        return f"{seconds:.3f}s"
    minutes = int(seconds // 60)
    return f"{minutes}m {seconds - 60 * minutes:.1f}s"


# Palette helpers


def palette_rows_to_hex(palette: U8Buffer) -> List[str]:
    """Flat RGBA palette bytes to '#rrggbbaa' strings."""
    rows = np.asarray(palette, dtype=np.uint8).reshape(-1, 4)
    return [f"#{r:02x}{g:02x}{b:02x}{a:02x}" for r, g, b, a in rows.tolist()]


def index_usage(indices: U8Buffer, n_colours: int) -> List[Tuple[int, int]]:
    """(palette index, pixel count) pairs sorted by count descending."""
    counts = np.bincount(np.asarray(indices, dtype=np.int64), minlength=n_colours)
    order = sorted(range(counts.shape[0]), key=lambda i: (-int(counts[i]), i))
    return [(i, int(counts[i])) for i in order if counts[i] > 0]


# Logging


def print_config_line(section: str, pairs: Iterable[Tuple[str, Any]]) -> None:
    """
    Emit one debug config line, e.g.:
      [debug] [quantizer] Bits: 8  Transparency: on
    """
    shown: List[str] = []
    for name, value in pairs:
        if isinstance(value, bool):
            value = "on" if value else "off"
        elif isinstance(value, int):
            value = f"{value:,}"
        shown.append(f"{name}: {value}")
    debug_log(f"[{section}] {'  '.join(shown)}")


def debug_log(message: str) -> None:
    """Debug log line."""
    print(f"[debug] {message}", flush=True)


def warn(message: str) -> None:
    """Warning log line."""
    print(f"[warn] {message}", flush=True)


__all__ = [
    "format_seconds_compact",
    "palette_rows_to_hex",
    "index_usage",
    "print_config_line",
    "debug_log",
    "warn",
]
