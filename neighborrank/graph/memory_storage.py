"""In-memory property graph backed by NetworkX."""

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping

import networkx as nx
import yaml

from .schema import (
    Direction,
    EdgeLabel,
    PropertyFilter,
    iter_payload_edges,
    iter_payload_vertices,
)

log = logging.getLogger(__name__)


class MemoryGraphStorage:
    """Property graph held in a NetworkX MultiDiGraph.

    Edges keep their label id under the ``label`` attribute and their
    properties under ``properties``. Neighbor order follows edge insertion
    order, so iteration is stable for a given graph.
    """

    def __init__(self):
        self.graph = nx.MultiDiGraph()
        self._label_ids: dict[str, int] = {}

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "MemoryGraphStorage":
        """Build a graph from a ``{"vertices": [...], "edges": [...]}`` payload."""
        storage = cls()
        for vertex_id, label, properties in iter_payload_vertices(payload):
            storage.add_vertex(vertex_id, label=label, properties=properties)
        for source, target, label, properties in iter_payload_edges(payload):
            storage.add_edge(source, target, label, properties)
        log.debug(
            "Loaded in-memory graph: %d vertices, %d edges",
            storage.graph.number_of_nodes(),
            storage.graph.number_of_edges(),
        )
        return storage

    @classmethod
    def from_file(cls, path: str | Path) -> "MemoryGraphStorage":
        """Load a graph payload from a YAML or JSON file."""
        return cls.from_payload(read_graph_file(path))

    def add_vertex(
        self,
        vertex_id: str,
        label: str = "Vertex",
        properties: dict | None = None,
    ) -> None:
        self.graph.add_node(vertex_id, label=label, properties=dict(properties or {}))

    def add_edge(
        self,
        source: str,
        target: str,
        label: str,
        properties: dict | None = None,
    ) -> None:
        """Add a labelled edge, creating missing endpoints."""
        for vertex_id in (source, target):
            if not self.graph.has_node(vertex_id):
                self.add_vertex(vertex_id)
        label_id = self._label_ids.setdefault(label, len(self._label_ids) + 1)
        self.graph.add_edge(
            source, target, label=label_id, properties=dict(properties or {})
        )

    def has_vertex(self, vertex_id: str) -> bool:
        return self.graph.has_node(vertex_id)

    def edge_label(self, name: str) -> EdgeLabel | None:
        label_id = self._label_ids.get(name)
        if label_id is None:
            return None
        return EdgeLabel(id=label_id, name=name)

    def edge_labels(self) -> list[EdgeLabel]:
        return [
            EdgeLabel(id=label_id, name=name)
            for name, label_id in sorted(self._label_ids.items())
        ]

    def iter_neighbors(
        self,
        vertex_id: str,
        direction: Direction,
        labels: Iterable[EdgeLabel] = (),
        properties: PropertyFilter = PropertyFilter(),
    ) -> Iterator[str]:
        """Lazily yield adjacent vertex ids passing the label/property filters."""
        if not self.graph.has_node(vertex_id):
            return
        label_ids = {label.id for label in labels}

        if direction is Direction.OUT:
            edge_views = [self.graph.out_edges(vertex_id, data=True)]
            ends = [1]
        elif direction is Direction.IN:
            edge_views = [self.graph.in_edges(vertex_id, data=True)]
            ends = [0]
        else:
            edge_views = [
                self.graph.out_edges(vertex_id, data=True),
                self.graph.in_edges(vertex_id, data=True),
            ]
            ends = [1, 0]

        for view, end in zip(edge_views, ends):
            for edge in view:
                data = edge[2]
                if label_ids and data.get("label") not in label_ids:
                    continue
                if not properties.matches(data.get("properties")):
                    continue
                yield edge[end]

    def close(self) -> None:
        """Nothing to release; kept for storage interface parity."""


def read_graph_file(path: str | Path) -> dict[str, Any]:
    """Read a graph payload (YAML or JSON) from disk."""
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        payload = json.loads(text)
    else:
        payload = yaml.safe_load(text) or {}
    if not isinstance(payload, dict):
        raise ValueError(f"Graph file must contain a mapping: {path}")
    return payload
