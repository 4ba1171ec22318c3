"""Global budget on distinct vertices visited during one traversal."""

import threading

from ..graph.schema import NO_LIMIT


class CapacityGovernor:
    """Counts distinct admitted vertices against a capacity.

    The source is admitted on construction and counts as one. Admission is
    guarded by a lock so concurrent expansions share one budget.
    """

    def __init__(self, source: str, capacity: int = NO_LIMIT):
        self.capacity = capacity
        self._visited: set[str] = {source}
        self._lock = threading.Lock()

    @property
    def unbounded(self) -> bool:
        return self.capacity == NO_LIMIT

    @property
    def visited_count(self) -> int:
        with self._lock:
            return len(self._visited)

    @property
    def exhausted(self) -> bool:
        if self.unbounded:
            return False
        with self._lock:
            return len(self._visited) >= self.capacity

    def is_visited(self, vertex_id: str) -> bool:
        with self._lock:
            return vertex_id in self._visited

    def try_admit(self, vertex_id: str) -> bool:
        """Admit a vertex, returning False once the budget is spent.

        Already visited vertices are admitted again without consuming budget.
        A refused admission leaves the state untouched.
        """
        with self._lock:
            if vertex_id in self._visited:
                return True
            if not self.unbounded and len(self._visited) >= self.capacity:
                return False
            self._visited.add(vertex_id)
            return True
