"""Greedy single-pass clustering of raw regions."""

from __future__ import annotations

import math

from candet.types import Region


def _distance(a: tuple[int, int], b: tuple[int, int]) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def merge_regions(regions: list[Region], distance: float = 50.0) -> list[Region]:
    """Cluster nearby rectangles into their unions.

    Each incoming rectangle is unioned into the first existing cluster whose
    top-left corner is closer than ``distance`` to its top-left corner, or
    whose bottom-right corner is closer than ``distance`` to its bottom-right
    corner. Cluster corners are those of the already-grown union. Without a
    match the rectangle starts a new cluster.

    This is one greedy pass, not a fixed point: two clusters that become close
    after later unions are never merged with each other.

    Args:
        regions: Raw rectangles, processed in the given order.
        distance: Corner distance threshold in pixels (exclusive).

    Returns:
        Merged rectangles in cluster creation order.
    """
    merged: list[Region] = []
    for region in regions:
        for i, cluster in enumerate(merged):
            if (
                _distance(cluster.tl, region.tl) < distance
                or _distance(cluster.br, region.br) < distance
            ):
                merged[i] = cluster.union(region)
                break
        else:
            merged.append(region)
    return merged
