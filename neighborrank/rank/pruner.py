"""Top-K selection over rank maps with deterministic tie-breaks."""

import heapq
from typing import Mapping

from .types import RankMap


def _rank_sort_key(item: tuple[str, float]) -> tuple[float, str]:
    return (-item[1], item[0])


def sort_rank_map(mapping: Mapping[str, float]) -> RankMap:
    """Order a mapping by descending score, ties by ascending vertex id."""
    return dict(sorted(mapping.items(), key=_rank_sort_key))


def top_k(mapping: Mapping[str, float], number: int) -> RankMap:
    """Keep the `number` highest scoring entries.

    Uses heap selection when the mapping is larger than `number`, so the
    cost is O(n log k) rather than a full sort.
    """
    if number <= 0 or not mapping:
        return {}
    if len(mapping) <= number:
        return sort_rank_map(mapping)
    return dict(heapq.nsmallest(number, mapping.items(), key=_rank_sort_key))
