"""Result limiting and wire serialization for rank results.

`limit` is applied according to a policy:

- ``each_hop``: every hop's map keeps its top `limit` entries.
- ``last_hop``: only the final hop's map is truncated.
- ``total``: entries are emitted hop by hop, in rank order, until `limit`
  entries have been emitted overall.
"""

import json
from itertools import islice
from typing import Sequence

from ..graph.schema import NO_LIMIT
from .types import RankMap


def _head(mapping: RankMap, count: int) -> RankMap:
    return dict(islice(mapping.items(), max(0, count)))


def assemble_ranks(
    ranks: Sequence[RankMap],
    limit: int = NO_LIMIT,
    *,
    policy: str = "each_hop",
) -> list[RankMap]:
    """Apply the result limit to per-hop rank maps (already rank-ordered)."""
    if limit == NO_LIMIT:
        return [dict(layer) for layer in ranks]

    if policy == "each_hop":
        return [_head(layer, limit) for layer in ranks]

    if policy == "last_hop":
        assembled = [dict(layer) for layer in ranks]
        if assembled:
            assembled[-1] = _head(assembled[-1], limit)
        return assembled

    if policy == "total":
        remaining = limit
        assembled = []
        for layer in ranks:
            kept = _head(layer, remaining)
            remaining -= len(kept)
            assembled.append(kept)
        return assembled

    raise ValueError(f"Unknown limit policy: {policy}")


def ranks_to_json(ranks: Sequence[RankMap]) -> str:
    """Serialize to the wire format: one object per hop, id -> score."""
    return json.dumps([dict(layer) for layer in ranks])
