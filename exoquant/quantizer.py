# exoquant/quantizer.py
from __future__ import annotations

"""
Palette quantizer for 32-bit RGBA images.

Usage:
  q = Quantizer()                      # one instance per image
  q.feed(rgba_bytes)                   # any number of times
  q.quantize(256)                      # or quantize_hq(256)
  palette = q.get_palette(256)         # flat RGBA bytes, 4 per colour
  indices = q.map_image(n, rgba_bytes)
  indices = q.map_image_ordered(w, h, rgba_bytes)

Pipeline:
  feed        -> Histogram of unique colours
  quantize    -> split the widest cluster until the target count is reached
  optimize    -> reassign entries to their nearest mean and recompute
  map / read  -> nearest-colour lookups cached per unique colour
"""

import time
from typing import List, Optional

import numpy as np

from .colour_convert import colours_to_rgba, palette_rgba_to_colours, rgba_to_colours
from .constants import (
    DEFAULT_BITS_PER_CHANNEL,
    IMPLICIT_OPTIMIZE_PASSES,
    MAX_COLOURS,
)
from .core_types import (
    BufferLike,
    Colour,
    Colours,
    EmptyHistogramError,
    U8Buffer,
    as_pixel_rows,
    assert_bits_per_channel,
    clamp_value,
    pack_rgba,
)
from .dither import map_dithered, ordered_phases, random_phases
from .histogram import Histogram
from .nearest import nearest_colour_indices
from .nodes import ClusterNode, summarise_node
from .utils import debug_log, format_seconds_compact, print_config_line, warn


class Quantizer:
    """
    Variance-splitting colour quantizer with relaxation and 2x2 dithering.

    Args:
      bits_per_channel: 1..8, R/G/B precision used for deduplication and
        palette rounding (8 = full precision)
      transparency: premultiply R/G/B by alpha (on by default)
      debug: print progress lines
    """

    def __init__(
        self,
        bits_per_channel: int = DEFAULT_BITS_PER_CHANNEL,
        transparency: bool = True,
        *,
        debug: bool = False,
    ) -> None:
        self.bits_per_channel = assert_bits_per_channel(bits_per_channel)
        self.transparency = bool(transparency)
        self.debug = debug
        self.histogram = Histogram(self.transparency, self.bits_per_channel)
        self.nodes: List[ClusterNode] = [ClusterNode() for _ in range(MAX_COLOURS)]
        self.num_colours = 0
        self.optimized = False
        if debug:
            print_config_line(
                "quantizer",
                [
                    ("Bits", self.bits_per_channel),
                    ("Transparency", self.transparency),
                ],
            )

    # Configuration

    def no_transparency(self) -> None:
        """Switch premultiplied alpha off. Only allowed before the first feed."""
        if len(self.histogram):
            raise RuntimeError("transparency mode must be set before feeding pixels")
        self.transparency = False
        self.histogram.transparency = False

    # Histogram

    def feed(self, pixels: BufferLike) -> None:
        """Count every RGBA pixel of a flat byte buffer. Only allowed before quantize."""
        if self.num_colours > 0:
            raise RuntimeError("pixels must be fed before quantize or set_palette")
        rows = as_pixel_rows(pixels)
        n_new = self.histogram.feed(rows)
        if self.debug:
            debug_log(
                f"feed  pixels={rows.shape[0]:,}  new={n_new:,}  "
                f"unique={len(self.histogram):,}"
            )

    # Palette building

    def quantize(self, n_colours: int) -> None:
        """Grow the palette to `n_colours` (clamped to 1..256) clusters."""
        self._quantize(n_colours, high_quality=False)

    def quantize_hq(self, n_colours: int) -> None:
        """As quantize(), with one relaxation pass after every split."""
        self._quantize(n_colours, high_quality=True)

    def _quantize(self, n_colours: int, high_quality: bool) -> None:
        if self.histogram.is_empty:
            raise EmptyHistogramError("quantize called before any pixel was fed")
        target = clamp_value(int(n_colours), 1, MAX_COLOURS)
        started = time.perf_counter()

        if self.num_colours == 0:
            self._seed()

        while self.num_colours < target:
            besti = self._pick_split()
            if besti < 0:
                if self.debug:
                    warn(
                        f"only {self.num_colours} clusters can be formed "
                        f"({target} requested)"
                    )
                break
            self._split(besti, self.num_colours)
            self.num_colours += 1
            if high_quality:
                self.optimize_palette(1)

        self.optimized = False
        self.histogram.reset_caches()
        if self.debug:
            debug_log(
                f"quantize  colours={self.num_colours}  hq={high_quality}  "
                f"mean_err={self.mean_error():.3f}  "
                f"time={format_seconds_compact(time.perf_counter() - started)}"
            )

    def _seed(self) -> None:
        """Reset the cluster table and put every histogram entry in node 0."""
        for node in self.nodes:
            node.clear()
        root = self.nodes[0]
        root.members = self.histogram.traversal_order()
        self._summarise(root)
        self.num_colours = 1

    def _pick_split(self) -> int:
        """Splittable node with the largest vdif, lowest index on ties; -1 if none."""
        besti = -1
        beste = 0.0
        for j in range(self.num_colours):
            node = self.nodes[j]
            if node.can_split and (besti < 0 or node.vdif > beste):
                besti = j
                beste = node.vdif
        return besti

    def _split(self, besti: int, newi: int) -> None:
        """Move the members before the split point of `besti` into node `newi`."""
        parent = self.nodes[besti]
        child = self.nodes[newi]
        members, cut = parent.members, parent.split
        # both halves are re-collected back to front
        child.members = members[:cut][::-1].copy()
        parent.members = members[cut:][::-1].copy()
        self._summarise(parent)
        self._summarise(child)

    def _summarise(self, node: ClusterNode) -> None:
        summarise_node(node, self.histogram.colours, self.histogram.counts)

    # Relaxation

    def optimize_palette(self, iterations: int) -> None:
        """
        Lloyd-style refinement: reassign every histogram entry to its nearest
        cluster mean, then recompute every cluster. Total error never rises.
        """
        self._require_palette()
        self.optimized = True
        if len(self.histogram) == 0:
            return
        started = time.perf_counter()
        order = self.histogram.traversal_order()
        colours = self.histogram.colours[order]
        for _ in range(int(iterations)):
            nearest = nearest_colour_indices(colours, self._means())
            # entries collected per node, keeping traversal order within each node
            grouped = np.argsort(nearest, kind="stable")
            bounds = np.searchsorted(
                nearest[grouped], np.arange(self.num_colours + 1)
            )
            for i in range(self.num_colours):
                node = self.nodes[i]
                node.members = order[grouped[bounds[i] : bounds[i + 1]]]
                self._summarise(node)
        self.histogram.reset_caches()
        if self.debug:
            debug_log(
                f"optimize  passes={iterations}  mean_err={self.mean_error():.3f}  "
                f"time={format_seconds_compact(time.perf_counter() - started)}"
            )

    def _ensure_optimized(self) -> None:
        if not self.optimized:
            self.optimize_palette(IMPLICIT_OPTIMIZE_PASSES)

    # Search

    def _means(self) -> Colours:
        return np.stack([self.nodes[i].avg for i in range(self.num_colours)])

    def find_nearest_colour(self, colour: Colour) -> int:
        """Index of the active cluster mean closest to a weighted colour."""
        self._require_palette()
        query = np.asarray(colour, dtype=np.float64).reshape(1, 4)
        return int(nearest_colour_indices(query, self._means())[0])

    def mean_error(self) -> float:
        """Root-mean-square cluster error scaled to 0..256 units."""
        self._require_palette()
        n = sum(self.nodes[i].num for i in range(self.num_colours))
        err = sum(self.nodes[i].err for i in range(self.num_colours))
        if n == 0:
            return 0.0
        return float(np.sqrt(max(err, 0.0) / n) * 256.0)

    # Palette export / import

    def get_palette(self, n_colours: int) -> U8Buffer:
        """First min(n_colours, active) means as flat RGBA bytes."""
        self._require_palette()
        self._ensure_optimized()
        count = clamp_value(int(n_colours), 0, self.num_colours)
        if count == 0:
            return np.zeros((0,), dtype=np.uint8)
        means = np.stack([self.nodes[i].avg for i in range(count)])
        return colours_to_rgba(means, self.transparency, self.bits_per_channel)

    def set_palette(self, palette: BufferLike, n_colours: int) -> None:
        """
        Replace the cluster means with `n_colours` external RGBA entries so the
        search and dither machinery can run against a fixed palette.
        """
        if not 0 <= int(n_colours) <= MAX_COLOURS:
            raise ValueError(f"palette size must be in 0..{MAX_COLOURS}")
        rows = as_pixel_rows(palette, int(n_colours))
        means = palette_rgba_to_colours(rows)
        for i in range(rows.shape[0]):
            node = self.nodes[i]
            node.clear()
            node.avg = means[i].copy()
        self.num_colours = rows.shape[0]
        self.optimized = True
        self.histogram.reset_caches()

    # Mapping

    def map_image(self, n_pixels: int, pixels: BufferLike) -> U8Buffer:
        """Nearest palette index per pixel, cached per fed colour."""
        rows = as_pixel_rows(pixels, n_pixels)
        self._require_palette()
        self._ensure_optimized()
        started = time.perf_counter()
        if rows.shape[0] == 0:
            return np.zeros((0,), dtype=np.uint8)

        hist = self.histogram
        uniq_words, first_idx, inverse = np.unique(
            pack_rgba(rows), return_index=True, return_inverse=True
        )
        entry_ids = hist.find_many(uniq_words)
        known = entry_ids >= 0

        resolved = np.full(uniq_words.shape, -1, dtype=np.int64)
        resolved[known] = hist.pal_index[entry_ids[known]]
        todo = resolved < 0
        if np.any(todo):
            colours = rgba_to_colours(rows[first_idx[todo]], self.transparency)
            resolved[todo] = nearest_colour_indices(colours, self._means())
            store = todo & known
            hist.pal_index[entry_ids[store]] = resolved[store]

        out = resolved[inverse.reshape(-1)].astype(np.uint8)
        if self.debug:
            debug_log(
                f"map  pixels={rows.shape[0]:,}  unique={uniq_words.shape[0]:,}  "
                f"time={format_seconds_compact(time.perf_counter() - started)}"
            )
        return out

    def map_image_ordered(self, width: int, height: int, pixels: BufferLike) -> U8Buffer:
        """2x2 ordered dither: phase (x & 1) + 2 * (y & 1)."""
        if width < 0 or height < 0:
            raise ValueError("width and height must be non-negative")
        rows = as_pixel_rows(pixels, width * height)
        self._require_palette()
        self._ensure_optimized()
        return map_dithered(
            self.histogram, self._means(), rows, ordered_phases(width, height)
        )

    def map_image_random(
        self,
        n_pixels: int,
        pixels: BufferLike,
        rng: Optional[np.random.Generator] = None,
    ) -> U8Buffer:
        """Dither with an independent random phase per pixel."""
        rows = as_pixel_rows(pixels, n_pixels)
        self._require_palette()
        self._ensure_optimized()
        return map_dithered(
            self.histogram, self._means(), rows, random_phases(rows.shape[0], rng)
        )

    # Guards

    def _require_palette(self) -> None:
        if self.num_colours == 0:
            if self.histogram.is_empty:
                raise EmptyHistogramError(
                    "no pixels fed and no palette set; call feed() and quantize() first"
                )
            raise EmptyHistogramError("no palette yet; call quantize() first")


__all__ = ["Quantizer"]
