# exoquant/__init__.py
"""
exoquant package.

Purpose:
  Reduce 32-bit RGBA images to an indexed palette of at most 256 colours,
  with optional 2x2 ordered or random dithering.

Public API:
  Quantizer      : feed / quantize / optimize_palette / get_palette /
                   set_palette / map_image / map_image_ordered / map_image_random.
  quantize_rgba  : one-shot pipeline returning (palette, indices).
  Histogram      : deduplicating colour histogram with per-colour caches.
  constants      : channel weights, dither offsets and other tunables.
  image_io       : Pillow adapters (image -> RGBA buffer, indices -> "P" image).
  EmptyHistogramError : raised when no pixels or palette are available yet.

Quick start:
  from exoquant import Quantizer
  q = Quantizer()
  q.feed(rgba_bytes)
  q.quantize(16)
  palette = q.get_palette(16)
  indices = q.map_image_ordered(width, height, rgba_bytes)
"""

__version__ = "0.7.0"

# Re-export namespaces for convenience.
from . import constants
from . import core_types
from . import colour_convert
from . import image_io
from . import utils

from .core_types import EmptyHistogramError, HistogramEntry
from .histogram import Histogram
from .mode import DitherMode, map_with_mode
from .nodes import ClusterNode
from .quantizer import Quantizer
from .run import quantize_rgba

__all__ = [
    "__version__",
    "constants",
    "core_types",
    "colour_convert",
    "image_io",
    "utils",
    "EmptyHistogramError",
    "HistogramEntry",
    "Histogram",
    "ClusterNode",
    "DitherMode",
    "map_with_mode",
    "Quantizer",
    "quantize_rgba",
]
