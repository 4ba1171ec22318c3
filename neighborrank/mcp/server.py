"""Neighbor Rank MCP Server.

Exposes personalized multi-hop neighbor ranking as MCP tools.
"""

import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from ..graph.memory_storage import MemoryGraphStorage
from ..graph.neo4j_storage import Neo4jStorage
from ..rank.config import RankConfig
from ..rank.errors import InternalFault, RankError
from ..rank.pipeline import neighbor_rank as run_neighbor_rank

log = logging.getLogger(__name__)

mcp = FastMCP(
    "Neighbor Rank",
    instructions="""
Personalized multi-hop neighbor ranking over a property graph.

Use neighbor_rank with a request like:
  {"source": "v1", "alpha": 0.8,
   "steps": [{"direction": "OUT", "labels": ["KNOWS"], "degree": 100, "number": 20}]}
Each element of "ranks" is one hop: vertex id -> score, highest first.
Use list_edge_labels to discover the labels a step can filter on.
""",
)

storage: Neo4jStorage | MemoryGraphStorage | None = None
config: RankConfig = RankConfig()


def init_server(
    neo4j_uri: str = "bolt://localhost:7687",
    neo4j_user: str = "neo4j",
    neo4j_password: str = "neo4j",
    neo4j_database: str | None = None,
    graph_file: str | None = None,
    rank_config: RankConfig | None = None,
):
    """Initialize server with a graph store and engine defaults."""
    global storage, config
    if graph_file:
        storage = MemoryGraphStorage.from_file(graph_file)
    else:
        storage = Neo4jStorage(
            uri=neo4j_uri,
            user=neo4j_user,
            password=neo4j_password,
            database=neo4j_database,
        )
    config = rank_config or RankConfig.from_env()


def _require_storage() -> Neo4jStorage | MemoryGraphStorage:
    """Get storage or raise error."""
    if storage is None:
        raise RuntimeError("Server not initialized. Call init_server() first.")
    return storage


@mcp.tool()
def neighbor_rank(request: dict[str, Any]) -> dict:
    """Rank vertices reachable from a source vertex, hop by hop.

    Args:
        request: Rank request with "source" (vertex id), "alpha" (0..1),
            optional "steps" (direction/labels/properties/degree/number),
            "capacity" and "limit" (-1 for unbounded)

    Returns:
        Dict with "ranks" (one vertex->score mapping per hop) and the
        terminal traversal state
    """
    db = _require_storage()
    try:
        return run_neighbor_rank(request, storage=db, config=config)
    except RankError as exc:
        log.debug("Rejected neighbor rank request: %s", exc)
        return exc.to_response()


@mcp.tool()
def list_edge_labels() -> dict:
    """List the edge labels a step can filter on.

    Returns:
        Dict with label names
    """
    db = _require_storage()
    try:
        labels = [label.name for label in db.edge_labels()]
    except Exception as exc:
        log.exception("Listing edge labels failed")
        return InternalFault(f"list_edge_labels_failed: {exc}").to_response()
    return {"success": True, "count": len(labels), "labels": labels}


def main():
    """Run the MCP server (stdio transport)."""
    import asyncio
    import os

    init_server(
        neo4j_uri=os.environ.get("NEO4J_URI", "bolt://localhost:7687"),
        neo4j_user=os.environ.get("NEO4J_USER", "neo4j"),
        neo4j_password=os.environ.get("NEO4J_PASSWORD", "neo4j"),
        neo4j_database=os.environ.get("NEO4J_DATABASE") or None,
        graph_file=os.environ.get("NEIGHBOR_RANK_GRAPH_FILE") or None,
    )

    asyncio.run(mcp.run_stdio_async())


if __name__ == "__main__":
    main()
