"""Configuration for neighbor-rank traversals."""

from dataclasses import dataclass
import os

LIMIT_POLICIES = ("each_hop", "last_hop", "total")


@dataclass(frozen=True)
class RankConfig:
    """Engine defaults applied when a request leaves a field unset."""

    default_degree: int = 10_000
    default_capacity: int = 10_000_000
    default_limit: int = 10
    max_number: int = 1000

    # Threads used to fetch neighbors within a hop
    workers: int = 1

    limit_policy: str = "each_hop"

    def __post_init__(self):
        if self.limit_policy not in LIMIT_POLICIES:
            raise ValueError(
                f"Unknown limit policy: {self.limit_policy}. "
                f"Valid policies: {list(LIMIT_POLICIES)}"
            )
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")

    def resolve_degree(self, degree: int | None) -> int:
        return self.default_degree if degree is None else degree

    def resolve_capacity(self, capacity: int | None) -> int:
        return self.default_capacity if capacity is None else capacity

    def resolve_limit(self, limit: int | None) -> int:
        return self.default_limit if limit is None else limit

    @classmethod
    def from_env(cls) -> "RankConfig":
        """Build a config from NEIGHBOR_RANK_* environment variables."""
        defaults = cls()
        return cls(
            default_degree=int(
                os.environ.get("NEIGHBOR_RANK_DEFAULT_DEGREE", defaults.default_degree)
            ),
            default_capacity=int(
                os.environ.get(
                    "NEIGHBOR_RANK_DEFAULT_CAPACITY", defaults.default_capacity
                )
            ),
            default_limit=int(
                os.environ.get("NEIGHBOR_RANK_DEFAULT_LIMIT", defaults.default_limit)
            ),
            workers=int(os.environ.get("NEIGHBOR_RANK_WORKERS", defaults.workers)),
            limit_policy=os.environ.get(
                "NEIGHBOR_RANK_LIMIT_POLICY", defaults.limit_policy
            )
            .strip()
            .lower(),
        )


DEFAULT_RANK_CONFIG = RankConfig()
