"""Typed contracts for neighbor-rank traversals."""

from dataclasses import dataclass, field
from enum import Enum

from ..graph.schema import NO_LIMIT, Direction, EdgeLabel, PropertyFilter

# Vertex id -> score, ordered by descending score then ascending id
RankMap = dict[str, float]


class TraversalState(Enum):
    INIT = "init"
    EXPANDING = "expanding"
    COMPLETED = "completed"
    CAPACITY_EXCEEDED = "capacity_exceeded"


@dataclass(frozen=True)
class StepSpec:
    """One validated hop of a rank request."""

    direction: Direction = Direction.OUT
    labels: frozenset[EdgeLabel] = field(default_factory=frozenset)
    properties: PropertyFilter = field(default_factory=PropertyFilter)
    degree: int = NO_LIMIT
    number: int = 1000


@dataclass(frozen=True)
class RankRequest:
    source: str
    steps: tuple[StepSpec, ...]
    alpha: float
    capacity: int = NO_LIMIT
    limit: int = NO_LIMIT


@dataclass(frozen=True)
class RankOutcome:
    """Per-hop rank maps plus how the traversal ended."""

    ranks: tuple[RankMap, ...]
    state: TraversalState
    visited: int

    @property
    def capacity_exceeded(self) -> bool:
        return self.state is TraversalState.CAPACITY_EXCEEDED
