"""Hop-by-hop rank mass propagation from a single source vertex."""

from concurrent.futures import Executor, ThreadPoolExecutor
import logging
from typing import Iterable, Protocol, Sequence

from ..graph.schema import NO_LIMIT, Direction, EdgeLabel, PropertyFilter
from .assembler import assemble_ranks
from .capacity import CapacityGovernor
from .config import DEFAULT_RANK_CONFIG, RankConfig
from .pruner import top_k
from .types import RankMap, RankOutcome, RankRequest, StepSpec, TraversalState

log = logging.getLogger(__name__)


class GraphAccessor(Protocol):
    def iter_neighbors(
        self,
        vertex_id: str,
        direction: Direction,
        labels: Iterable[EdgeLabel] = (),
        properties: PropertyFilter = PropertyFilter(),
    ) -> Iterable[str]: ...


def sample_neighbors(neighbors: Iterable[str], degree: int = NO_LIMIT) -> list[str]:
    """Take up to `degree` distinct neighbors in first-seen order.

    Only as much of the sequence as needed is consumed; a generator is
    closed once the cap is reached.
    """
    iterator = iter(neighbors)
    sampled: list[str] = []
    seen: set[str] = set()
    try:
        for neighbor in iterator:
            if neighbor in seen:
                continue
            seen.add(neighbor)
            sampled.append(neighbor)
            if degree != NO_LIMIT and len(sampled) >= degree:
                break
    finally:
        close = getattr(iterator, "close", None)
        if close is not None:
            close()
    return sampled


class RankPropagationEngine:
    """Propagates a unit of rank mass outward along configured steps.

    Each hop splits `alpha * score` of every expanding vertex evenly across
    its sampled neighbors; the remaining `1 - alpha` decays. Sinks absorb
    their mass. The engine keeps no state between runs.
    """

    def __init__(
        self,
        accessor: GraphAccessor,
        alpha: float,
        *,
        config: RankConfig = DEFAULT_RANK_CONFIG,
    ):
        self.accessor = accessor
        self.alpha = alpha
        self.config = config

    def run(
        self,
        source: str,
        steps: Sequence[StepSpec],
        capacity: int = NO_LIMIT,
    ) -> RankOutcome:
        """Run every step and return the pruned rank map of each hop."""
        governor = CapacityGovernor(source, capacity)
        current: RankMap = {source: 1.0}
        ranks: list[RankMap] = []
        state = TraversalState.INIT

        executor = (
            ThreadPoolExecutor(max_workers=self.config.workers)
            if self.config.workers > 1
            else None
        )
        try:
            for hop, step in enumerate(steps):
                state = TraversalState.EXPANDING
                next_layer, exhausted = self._expand(current, step, governor, executor)
                pruned = top_k(next_layer, step.number)
                ranks.append(pruned)
                log.debug(
                    "Hop %d: %d candidates, kept %d, mass %.6f",
                    hop + 1,
                    len(next_layer),
                    len(pruned),
                    sum(pruned.values()),
                )

                if exhausted:
                    state = TraversalState.CAPACITY_EXCEEDED
                    log.info(
                        "Capacity %d exhausted at hop %d of %d",
                        capacity,
                        hop + 1,
                        len(steps),
                    )
                    break
                if not pruned:
                    log.debug("All mass absorbed at hop %d", hop + 1)
                    break
                current = pruned
        finally:
            if executor is not None:
                executor.shutdown(wait=True)

        if state is not TraversalState.CAPACITY_EXCEEDED:
            state = TraversalState.COMPLETED

        return RankOutcome(
            ranks=tuple(ranks), state=state, visited=governor.visited_count
        )

    def run_request(self, request: RankRequest) -> RankOutcome:
        return self.run(request.source, request.steps, request.capacity)

    def neighbor_rank(
        self,
        source: str,
        steps: Sequence[StepSpec],
        capacity: int = NO_LIMIT,
        limit: int = NO_LIMIT,
    ) -> list[RankMap]:
        """Run and apply the result limit under the configured policy."""
        outcome = self.run(source, steps, capacity)
        return assemble_ranks(outcome.ranks, limit, policy=self.config.limit_policy)

    def _sample(self, vertex_id: str, step: StepSpec) -> list[str]:
        neighbors = self.accessor.iter_neighbors(
            vertex_id, step.direction, step.labels, step.properties
        )
        return sample_neighbors(neighbors, step.degree)

    def _sample_batches(
        self,
        frontier: list[tuple[str, float]],
        step: StepSpec,
        executor: Executor | None,
    ):
        """Yield (vertex, score, sampled) in frontier order.

        With an executor, neighbor reads for up to `workers` vertices run
        concurrently; results are still yielded in frontier order.
        """
        if executor is None:
            for vertex_id, score in frontier:
                yield vertex_id, score, self._sample(vertex_id, step)
            return

        batch_size = self.config.workers
        for start in range(0, len(frontier), batch_size):
            batch = frontier[start : start + batch_size]
            samples = executor.map(
                lambda item: self._sample(item[0], step), batch
            )
            for (vertex_id, score), sampled in zip(batch, samples):
                yield vertex_id, score, sampled

    def _expand(
        self,
        current: RankMap,
        step: StepSpec,
        governor: CapacityGovernor,
        executor: Executor | None,
    ) -> tuple[dict[str, float], bool]:
        """Spread mass one hop; returns the raw next layer and exhaustion flag."""
        frontier = [(vertex_id, score) for vertex_id, score in current.items() if score]
        next_layer: dict[str, float] = {}

        samples = self._sample_batches(frontier, step, executor)
        for _vertex_id, score, sampled in samples:
            if not sampled:
                continue

            share = self.alpha * score / len(sampled)
            for neighbor in sampled:
                if not governor.try_admit(neighbor):
                    return next_layer, True
                next_layer[neighbor] = next_layer.get(neighbor, 0.0) + share

        return next_layer, False
