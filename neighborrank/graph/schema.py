"""Graph schema definitions shared by the storage backends.

Defines traversal directions, edge labels, property filters and the
graph payload format used for bulk loading.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Hashable, Mapping

NO_LIMIT = -1


class Direction(Enum):
    """Edge direction followed from the expanding vertex."""

    OUT = "OUT"
    IN = "IN"
    BOTH = "BOTH"

    @classmethod
    def parse(cls, value: "str | Direction | None") -> "Direction":
        """Parse a direction name case-insensitively (None means OUT)."""
        if value is None:
            return cls.OUT
        if isinstance(value, Direction):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Direction must be a string, got {type(value).__name__}")
        try:
            return cls(value.strip().upper())
        except ValueError:
            valid = ", ".join(d.value for d in cls)
            raise ValueError(
                f"Invalid direction: {value!r}. Valid directions: {valid}"
            ) from None


@dataclass(frozen=True)
class EdgeLabel:
    """Edge label resolved against a concrete graph.

    `id` is the store's identifier for the label; `name` is what the
    caller asked for.
    """

    id: Hashable
    name: str


@dataclass(frozen=True)
class PropertyFilter:
    """Equality conditions on edge properties.

    An empty filter matches every edge.
    """

    conditions: tuple[tuple[str, Any], ...] = field(default_factory=tuple)

    @classmethod
    def from_mapping(cls, properties: Mapping[str, Any] | None) -> "PropertyFilter":
        if not properties:
            return cls()
        return cls(tuple(sorted(properties.items(), key=lambda item: item[0])))

    def __bool__(self) -> bool:
        return bool(self.conditions)

    def matches(self, properties: Mapping[str, Any] | None) -> bool:
        """Check an edge's properties against every condition."""
        if not self.conditions:
            return True
        if not properties:
            return False
        missing = object()
        for name, expected in self.conditions:
            if properties.get(name, missing) != expected:
                return False
        return True

    def as_dict(self) -> dict[str, Any]:
        return dict(self.conditions)


def normalize_vertex_id(value: Any) -> str | None:
    """Canonical string form of a vertex id, or None when unusable."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        cleaned = value.strip()
        return cleaned or None
    return None


def iter_payload_vertices(payload: Mapping[str, Any]):
    """Yield (vertex_id, label, properties) from a graph payload."""
    for vertex in payload.get("vertices") or []:
        if not isinstance(vertex, Mapping):
            continue
        vertex_id = normalize_vertex_id(vertex.get("id"))
        if vertex_id is None:
            continue
        label = vertex.get("label") or "Vertex"
        yield vertex_id, str(label), dict(vertex.get("properties") or {})


def iter_payload_edges(payload: Mapping[str, Any]):
    """Yield (source, target, label, properties) from a graph payload."""
    for edge in payload.get("edges") or []:
        if not isinstance(edge, Mapping):
            continue
        source = normalize_vertex_id(edge.get("source"))
        target = normalize_vertex_id(edge.get("target"))
        label = edge.get("label")
        if source is None or target is None or not label:
            continue
        yield source, target, str(label), dict(edge.get("properties") or {})
