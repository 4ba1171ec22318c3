"""Neo4j graph storage for neighbor-rank traversals.

Neighbor reads stream to the client: records are yielded as they arrive and
the query is abandoned once degree sampling stops. The server still matches
and sorts the full neighbor set of a vertex to keep the order stable.

Vertices are looked up by ``id`` under the ``Vertex`` label, which carries
the uniqueness constraint; graphs written by other tools must add that label.
"""

import logging
import re
from typing import Any, Iterable, Iterator, Mapping

from neo4j import GraphDatabase

from .schema import (
    Direction,
    EdgeLabel,
    PropertyFilter,
    iter_payload_edges,
    iter_payload_vertices,
)

log = logging.getLogger(__name__)

# Every loaded vertex carries this label so the id constraint covers it
BASE_LABEL = "Vertex"

_PATTERNS = {
    Direction.OUT: "(n)-[r]->(neighbor)",
    Direction.IN: "(n)<-[r]-(neighbor)",
    Direction.BOTH: "(n)-[r]-(neighbor)",
}


class Neo4jStorage:
    """Neo4j graph database wrapper exposing the neighbor-rank read contract."""

    def __init__(
        self,
        uri: str = "bolt://localhost:7687",
        user: str = "neo4j",
        password: str = "neo4j",
        database: str | None = None,
    ):
        self.driver = GraphDatabase.driver(uri, auth=(user, password))
        self.database = database

    def _session(self):
        return self.driver.session(database=self.database)

    def close(self):
        self.driver.close()

    def clear(self, force: bool = False):
        """Clear all nodes and relationships.

        Args:
            force: Must be True to execute destructive wipe.
        """
        if not force:
            raise RuntimeError("Refusing to clear database without force=True")
        with self._session() as session:
            session.run("MATCH (n) DETACH DELETE n")

    @staticmethod
    def _sanitize_label(label: str) -> str:
        """Sanitize label for Neo4j (no spaces, special chars)."""
        sanitized = re.sub(r"[^a-zA-Z0-9_]", "_", label)
        if sanitized and not sanitized[0].isalpha():
            sanitized = "N_" + sanitized
        return sanitized or "Unknown"

    def _create_indexes(self):
        with self._session() as session:
            session.run(
                f"CREATE CONSTRAINT IF NOT EXISTS FOR (n:{BASE_LABEL}) "
                "REQUIRE n.id IS UNIQUE"
            )

    def has_vertex(self, vertex_id: str) -> bool:
        with self._session() as session:
            record = session.run(
                f"MATCH (n:{BASE_LABEL} {{id: $id}}) RETURN count(n) > 0 AS found",
                id=vertex_id,
            ).single()
            return bool(record and record["found"])

    def _relationship_types(self) -> list[str]:
        with self._session() as session:
            result = session.run(
                "CALL db.relationshipTypes() YIELD relationshipType "
                "RETURN relationshipType ORDER BY relationshipType"
            )
            return [record["relationshipType"] for record in result]

    def edge_label(self, name: str) -> EdgeLabel | None:
        """Resolve a label name to an existing relationship type.

        Tries the name as given, then the sanitized upper-case form used
        when loading graphs.
        """
        known = set(self._relationship_types())
        for candidate in (name, self._sanitize_label(name).upper()):
            if candidate in known:
                return EdgeLabel(id=candidate, name=name)
        return None

    def edge_labels(self) -> list[EdgeLabel]:
        return [EdgeLabel(id=t, name=t) for t in self._relationship_types()]

    def iter_neighbors(
        self,
        vertex_id: str,
        direction: Direction,
        labels: Iterable[EdgeLabel] = (),
        properties: PropertyFilter = PropertyFilter(),
    ) -> Iterator[str]:
        """Yield adjacent vertex ids passing the label/property filters.

        Results are ordered by neighbor id so sampling is stable for a
        given snapshot.
        """
        conditions = []
        params: dict[str, Any] = {"id": vertex_id}

        label_ids = sorted(str(label.id) for label in labels)
        if label_ids:
            conditions.append("type(r) IN $types")
            params["types"] = label_ids

        for index, (name, expected) in enumerate(properties.conditions):
            conditions.append(f"r[$prop_name_{index}] = $prop_value_{index}")
            params[f"prop_name_{index}"] = name
            params[f"prop_value_{index}"] = expected

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        with self._session() as session:
            result = session.run(
                f"""
                MATCH (n:{BASE_LABEL} {{id: $id}})
                MATCH {_PATTERNS[direction]}
                {where_clause}
                RETURN neighbor.id AS neighbor_id
                ORDER BY neighbor_id
                """,
                **params,
            )
            for record in result:
                neighbor_id = record["neighbor_id"]
                if neighbor_id is not None:
                    yield str(neighbor_id)

    def load_graph(
        self, payload: Mapping[str, Any], clear_first: bool = False
    ) -> dict[str, int]:
        """Import a ``{"vertices": [...], "edges": [...]}`` payload."""
        vertices = list(iter_payload_vertices(payload))
        edges = list(iter_payload_edges(payload))

        def _import_tx(tx) -> dict[str, int]:
            vertex_count = 0
            edge_count = 0

            if clear_first:
                tx.run("MATCH (n) DETACH DELETE n")

            for vertex_id, label, properties in vertices:
                props = dict(properties)
                props["id"] = vertex_id
                tx.run(
                    f"""
                    MERGE (n:{BASE_LABEL} {{id: $vertex_id}})
                    SET n += $props
                    SET n:{self._sanitize_label(label)}
                    """,
                    vertex_id=vertex_id,
                    props=props,
                )
                vertex_count += 1

            for source, target, label, properties in edges:
                rel = self._sanitize_label(label).upper()
                result = tx.run(
                    f"""
                    MERGE (a:{BASE_LABEL} {{id: $source}})
                    MERGE (b:{BASE_LABEL} {{id: $target}})
                    CREATE (a)-[r:{rel}]->(b)
                    SET r += $props
                    RETURN count(r) AS written
                    """,
                    source=source,
                    target=target,
                    props=properties,
                )
                record = result.single()
                if record:
                    edge_count += int(record["written"])

            return {"vertices": vertex_count, "edges": edge_count}

        self._create_indexes()
        with self._session() as session:
            counts = session.execute_write(_import_tx)
        log.info(
            "Loaded %d vertices and %d edges into Neo4j",
            counts["vertices"],
            counts["edges"],
        )
        return counts
