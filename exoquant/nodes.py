# exoquant/nodes.py
from __future__ import annotations

"""
Cluster nodes and their statistics.

A node is one palette colour candidate: an ordered array of histogram entry
ids plus aggregate statistics and a precomputed split plan.

Functions:
  mean_pivot_order(keys) -> permutation
  summarise_node(node, colours, counts)

summarise_node orders the members along an approximate principal axis and
scans every prefix for the split that leaves the least total variance.
"""

from dataclasses import dataclass, field
from typing import List

import numpy as np
from numpy.typing import NDArray

from .core_types import Colour, Colours, EntryIds

# gains below this fraction of the node variance are rounding noise
SPLIT_GAIN_EPSILON = 1e-12


def _empty_ids() -> EntryIds:
    return np.zeros((0,), dtype=np.int64)


@dataclass
class ClusterNode:
    """One palette cluster."""

    avg: Colour = field(default_factory=lambda: np.zeros(4, dtype=np.float64))
    dir: Colour = field(default_factory=lambda: np.zeros(4, dtype=np.float64))
    vdif: float = 0.0  # variance removed by splitting at `split`
    err: float = 0.0  # total within-cluster variance
    num: int = 0  # pixels represented
    members: EntryIds = field(default_factory=_empty_ids)
    split: int = 0  # members[:split] | members[split:]

    @property
    def can_split(self) -> bool:
        return self.members.shape[0] >= 2 and self.vdif > 0.0

    def clear(self) -> None:
        self.members = _empty_ids()
        self.num = 0
        self.vdif = 0.0
        self.err = 0.0
        self.split = 0


def mean_pivot_order(keys: NDArray[np.float64]) -> NDArray[np.int64]:
    """
    Order positions by key using recursive partitioning around the mean.

    Each pass walks a run in order and pushes every element onto the front of
    a "low" (key < mean) or "high" group, so both groups come out reversed.
    A run shorter than 2 is kept as is; a run where one group is empty is
    emitted as the other group without further recursion. The result is only
    approximately sorted for ties and float noise, and it is the exact order
    later splits depend on.
    """
    n = int(keys.shape[0])
    if n < 2:
        return np.arange(n, dtype=np.int64)

    out: List[NDArray[np.int64]] = []
    stack: List[NDArray[np.int64]] = [np.arange(n, dtype=np.int64)]
    while stack:
        run = stack.pop()
        if run.shape[0] < 2:
            out.append(run)
            continue
        run_keys = keys[run]
        # left-to-right running sum, not pairwise
        mean = np.cumsum(run_keys)[-1] / run.shape[0]
        low_mask = run_keys < mean
        low = run[low_mask][::-1]
        high = run[~low_mask][::-1]
        if low.shape[0] == 0:
            out.append(high)
            continue
        if high.shape[0] == 0:
            out.append(low)
            continue
        # low is emitted first, so it goes on top
        stack.append(high)
        stack.append(low)
    return np.concatenate(out)


def _principal_direction(deviations: Colours) -> Colour:
    """
    Sum count-weighted deviations, flipping any that point against the running
    total. Returns the unit vector, or zeros for a degenerate cluster.
    """
    dr = dg = db = da = 0.0
    for r, g, b, a in deviations.tolist():
        if r * dr + g * dg + b * db + a * da < 0:
            r, g, b, a = -r, -g, -b, -a
        dr += r
        dg += g
        db += b
        da += a
    direction = np.array([dr, dg, db, da], dtype=np.float64)
    norm = float(np.sqrt(direction @ direction))
    if norm > 0.0:
        direction /= norm
    return direction


def summarise_node(
    node: ClusterNode, colours: Colours, counts: NDArray[np.int64]
) -> None:
    """
    Recompute count, mean, variance, axis and split plan for `node.members`.

    An empty node keeps its previous mean so it still has a position in the
    nearest-colour search.
    """
    members = node.members
    nums = counts[members].astype(np.float64)
    n = int(counts[members].sum())
    node.num = n
    if n == 0:
        node.vdif = 0.0
        node.err = 0.0
        node.split = 0
        return

    cols = colours[members]
    weighted = cols * nums[:, None]
    fsum = weighted.sum(axis=0)
    fsum2 = (cols * weighted).sum(axis=0)
    node.avg = fsum / n

    vc = fsum2 - fsum * node.avg
    v = float(vc.sum())
    node.err = v

    # one distinct colour: nothing to split, whatever the rounding noise in v
    if members.shape[0] < 2 or n < 2 or np.all(cols == cols[0]):
        node.dir = np.zeros(4, dtype=np.float64)
        node.vdif = 0.0
        node.split = 1
        return

    # coarse order on the widest channel (first max wins: R, G, B, A)
    channel = int(np.argmax(vc))
    order = mean_pivot_order(cols[:, channel])
    members, cols, nums = members[order], cols[order], nums[order]

    node.dir = _principal_direction((cols - node.avg) * nums[:, None])

    order = mean_pivot_order(cols @ node.dir)
    members, cols, nums = members[order], cols[order], nums[order]
    node.members = members

    # prefix scan, last prefix excluded so the right side is never empty
    weighted = cols * nums[:, None]
    left_n = np.cumsum(nums)[:-1]
    left_sum = np.cumsum(weighted, axis=0)[:-1]
    left_sum2 = np.cumsum(cols * weighted, axis=0)[:-1]
    right_n = n - left_n
    right_sum = fsum - left_sum
    right_sum2 = fsum2 - left_sum2

    left_var = left_sum2 - left_sum * left_sum / left_n[:, None]
    right_var = right_sum2 - right_sum * right_sum / right_n[:, None]
    new_var = left_var.sum(axis=1) + right_var.sum(axis=1)

    best = int(np.argmin(new_var))
    gain = v - float(new_var[best])
    if gain > SPLIT_GAIN_EPSILON * max(v, 1.0):
        node.split = best + 1
        node.vdif = gain
    else:
        node.split = 1
        node.vdif = 0.0


__all__ = ["ClusterNode", "mean_pivot_order", "summarise_node"]
