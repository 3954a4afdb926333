# exoquant/histogram.py
from __future__ import annotations

"""
Deduplicating pixel histogram.

Unique RGBA values are stored in an arena of parallel arrays and addressed by
integer entry id. Entries are found through a 16-bit mix hash of the packed,
untruncated RGBA word; each bucket holds a chain of entry ids compared by exact
key, so hash collisions are harmless.

Per entry:
  keys         uint32 packed input bytes
  colours      float64 [4] weighted (truncated, optionally premultiplied) colour
  counts       int64 occurrences
  pal_index    int32 resolved palette index, -1 when unresolved
  dither_scale float64 [4], -1 when uncomputed
  dither_index int32 [4], -1 when uncomputed
"""

from typing import Dict, List

import numpy as np
from numpy.typing import NDArray

from .colour_convert import rgba_to_colours
from .constants import HASH_SIZE, UNCOMPUTED, UNRESOLVED
from .core_types import Colours, EntryIds, HistogramEntry, U8Pixels, pack_rgba


def mix_hash(words: NDArray[np.uint32]) -> NDArray[np.int64]:
    """
    Bucket index for packed RGBA words.

    Five rounds of x -= rotr(x, 13) in 32-bit arithmetic, then the low
    HASH_BITS bits. Vectorised; accepts any shape.
    """
    x = np.asarray(words, dtype=np.uint32).astype(np.uint64)
    for _ in range(5):
        rot = ((x >> np.uint64(13)) | (x << np.uint64(19))) & np.uint64(0xFFFFFFFF)
        x = (x - rot) & np.uint64(0xFFFFFFFF)
    return (x & np.uint64(HASH_SIZE - 1)).astype(np.int64)


class Histogram:
    """Unique colours with counts and per-colour caches."""

    def __init__(self, transparency: bool = True, bits_per_channel: int = 8) -> None:
        self.transparency = transparency
        self.bits_per_channel = bits_per_channel
        self.keys: NDArray[np.uint32] = np.zeros((0,), dtype=np.uint32)
        self.colours: Colours = np.zeros((0, 4), dtype=np.float64)
        self.counts: NDArray[np.int64] = np.zeros((0,), dtype=np.int64)
        self.pal_index: NDArray[np.int32] = np.zeros((0,), dtype=np.int32)
        self.dither_scale: Colours = np.zeros((0, 4), dtype=np.float64)
        self.dither_index: NDArray[np.int32] = np.zeros((0, 4), dtype=np.int32)
        # bucket -> entry ids, oldest first
        self._buckets: Dict[int, List[int]] = {}
        self.total_pixels = 0

    def __len__(self) -> int:
        return int(self.keys.shape[0])

    @property
    def is_empty(self) -> bool:
        return self.total_pixels == 0

    # Feeding

    def feed(self, rows: U8Pixels) -> int:
        """
        Count (N, 4) RGBA rows. New colours are inserted in first-seen order.

        Returns the number of new unique entries.
        """
        if rows.shape[0] == 0:
            return 0
        words = pack_rgba(rows)
        uniq, first_idx, counts = np.unique(
            words, return_index=True, return_counts=True
        )
        order = np.argsort(first_idx, kind="stable")
        uniq, first_idx, counts = uniq[order], first_idx[order], counts[order]

        found = self.find_many(uniq)
        seen = found >= 0
        if np.any(seen):
            np.add.at(self.counts, found[seen], counts[seen].astype(np.int64))

        fresh = ~seen
        n_new = int(np.count_nonzero(fresh))
        if n_new:
            base = len(self)
            new_keys = uniq[fresh]
            new_rows = rows[first_idx[fresh]]
            self.keys = np.concatenate([self.keys, new_keys])
            self.colours = np.concatenate(
                [
                    self.colours,
                    rgba_to_colours(
                        new_rows, self.transparency, self.bits_per_channel
                    ),
                ]
            )
            self.counts = np.concatenate(
                [self.counts, counts[fresh].astype(np.int64)]
            )
            self.pal_index = np.concatenate(
                [self.pal_index, np.full((n_new,), UNRESOLVED, dtype=np.int32)]
            )
            self.dither_scale = np.concatenate(
                [self.dither_scale, np.full((n_new, 4), UNCOMPUTED, dtype=np.float64)]
            )
            self.dither_index = np.concatenate(
                [self.dither_index, np.full((n_new, 4), UNRESOLVED, dtype=np.int32)]
            )
            for offset, bucket in enumerate(mix_hash(new_keys).tolist()):
                self._buckets.setdefault(bucket, []).append(base + offset)

        self.total_pixels += int(rows.shape[0])
        return n_new

    # Lookup

    def find(self, word: int) -> int:
        """Entry id for one packed RGBA word, or -1 when the colour was never fed."""
        bucket = int(mix_hash(np.array([word], dtype=np.uint32))[0])
        for entry_id in reversed(self._buckets.get(bucket, ())):
            if int(self.keys[entry_id]) == int(word):
                return entry_id
        return -1

    def find_many(self, words: NDArray[np.uint32]) -> EntryIds:
        """Vectorised hashing with per-word chain walks. Returns ids, -1 for misses."""
        out = np.full((words.shape[0],), -1, dtype=np.int64)
        if not self._buckets:
            return out
        buckets = mix_hash(words).tolist()
        keys = self.keys
        for i, (word, bucket) in enumerate(zip(words.tolist(), buckets)):
            chain = self._buckets.get(bucket)
            if chain is None:
                continue
            for entry_id in reversed(chain):
                if int(keys[entry_id]) == word:
                    out[i] = entry_id
                    break
        return out

    def entry(self, entry_id: int) -> HistogramEntry:
        """Snapshot of one entry."""
        word = int(self.keys[entry_id])
        return HistogramEntry(
            key=(word & 0xFF, (word >> 8) & 0xFF, (word >> 16) & 0xFF, word >> 24),
            colour=self.colours[entry_id].copy(),
            count=int(self.counts[entry_id]),
            pal_index=int(self.pal_index[entry_id]),
            dither_scale=self.dither_scale[entry_id].copy(),
            dither_index=tuple(int(v) for v in self.dither_index[entry_id]),  # type: ignore[arg-type]
        )

    # Ordering / caches

    def traversal_order(self) -> EntryIds:
        """
        Entry ids in the order clusters collect them: buckets ascending with
        the newest entry of each chain first, the whole sequence reversed.
        """
        walk: List[int] = []
        for bucket in sorted(self._buckets):
            walk.extend(reversed(self._buckets[bucket]))
        walk.reverse()
        return np.array(walk, dtype=np.int64)

    def reset_caches(self) -> None:
        """Forget resolved and dithered indices; called when cluster means move."""
        self.pal_index.fill(UNRESOLVED)
        self.dither_scale.fill(UNCOMPUTED)
        self.dither_index.fill(UNRESOLVED)


__all__ = ["mix_hash", "Histogram"]
