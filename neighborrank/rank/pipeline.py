"""Neighbor-rank request orchestration: validate, propagate, assemble."""

import logging
import os
from typing import Any, Iterable, Iterator, Protocol

from ..graph.neo4j_storage import Neo4jStorage
from ..graph.schema import Direction, EdgeLabel, PropertyFilter
from .assembler import assemble_ranks, ranks_to_json
from .config import DEFAULT_RANK_CONFIG, RankConfig
from .engine import RankPropagationEngine
from .errors import InternalFault, RankError
from .validator import validate_request

log = logging.getLogger(__name__)


class RankStorage(Protocol):
    def has_vertex(self, vertex_id: str) -> bool: ...

    def edge_label(self, name: str) -> EdgeLabel | None: ...

    def iter_neighbors(
        self,
        vertex_id: str,
        direction: Direction,
        labels: Iterable[EdgeLabel] = (),
        properties: PropertyFilter = PropertyFilter(),
    ) -> Iterator[str]: ...

    def close(self) -> None: ...


def default_storage() -> Neo4jStorage:
    return Neo4jStorage(
        uri=os.environ.get("NEO4J_URI", "bolt://localhost:7687"),
        user=os.environ.get("NEO4J_USER", "neo4j"),
        password=os.environ.get("NEO4J_PASSWORD", "neo4j"),
        database=os.environ.get("NEO4J_DATABASE") or None,
    )


def neighbor_rank(
    payload: Any,
    *,
    storage: RankStorage | None = None,
    config: RankConfig = DEFAULT_RANK_CONFIG,
) -> dict:
    """Run a neighbor-rank request and return a structured payload.

    Raises:
        ValidationError: malformed request.
        ResolutionError: unknown source vertex or edge label.
        InternalFault: the store failed while validating or traversing.
    """
    if isinstance(payload, dict):
        log.debug(
            "Get neighbor rank from '%s' with steps '%s' and alpha '%s'",
            payload.get("source"),
            payload.get("steps"),
            payload.get("alpha"),
        )

    owned_storage = storage is None
    db = storage or default_storage()

    try:
        try:
            request = validate_request(payload, db, config=config)
            engine = RankPropagationEngine(db, request.alpha, config=config)
            outcome = engine.run_request(request)
        except RankError:
            raise
        except Exception as exc:
            log.exception("Graph store failure during neighbor rank")
            raise InternalFault(f"Graph store failure: {exc}") from exc

        ranks = assemble_ranks(outcome.ranks, request.limit, policy=config.limit_policy)
        return {
            "success": True,
            "source": request.source,
            "state": outcome.state.value,
            "hops": len(ranks),
            "steps": len(request.steps),
            "visited": outcome.visited,
            "ranks": ranks,
        }
    finally:
        if owned_storage:
            db.close()


def neighbor_rank_json(
    payload: Any,
    *,
    storage: RankStorage | None = None,
    config: RankConfig = DEFAULT_RANK_CONFIG,
) -> str:
    """Run a request and return only the JSON array wire response."""
    return ranks_to_json(
        neighbor_rank(payload, storage=storage, config=config)["ranks"]
    )
