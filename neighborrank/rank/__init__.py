"""Personalized multi-hop neighbor rank over property graphs."""

from typing import Any

__all__ = ["neighbor_rank", "neighbor_rank_json"]


def neighbor_rank(*args: Any, **kwargs: Any) -> dict:
    from .pipeline import neighbor_rank as _neighbor_rank

    return _neighbor_rank(*args, **kwargs)


def neighbor_rank_json(*args: Any, **kwargs: Any) -> str:
    from .pipeline import neighbor_rank_json as _neighbor_rank_json

    return _neighbor_rank_json(*args, **kwargs)
