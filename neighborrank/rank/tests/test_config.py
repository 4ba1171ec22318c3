import pytest

from neighborrank.rank.config import DEFAULT_RANK_CONFIG, RankConfig


def test_defaults():
    assert DEFAULT_RANK_CONFIG.default_degree == 10_000
    assert DEFAULT_RANK_CONFIG.default_capacity == 10_000_000
    assert DEFAULT_RANK_CONFIG.default_limit == 10
    assert DEFAULT_RANK_CONFIG.max_number == 1000
    assert DEFAULT_RANK_CONFIG.limit_policy == "each_hop"


def test_resolve_helpers_only_fill_missing_values():
    config = RankConfig(default_degree=5, default_capacity=6, default_limit=7)

    assert config.resolve_degree(None) == 5
    assert config.resolve_degree(-1) == -1
    assert config.resolve_capacity(None) == 6
    assert config.resolve_limit(3) == 3


def test_from_env(monkeypatch):
    monkeypatch.setenv("NEIGHBOR_RANK_DEFAULT_DEGREE", "50")
    monkeypatch.setenv("NEIGHBOR_RANK_DEFAULT_CAPACITY", "-1")
    monkeypatch.setenv("NEIGHBOR_RANK_WORKERS", "3")
    monkeypatch.setenv("NEIGHBOR_RANK_LIMIT_POLICY", " Total ")
    monkeypatch.delenv("NEIGHBOR_RANK_DEFAULT_LIMIT", raising=False)

    config = RankConfig.from_env()

    assert config.default_degree == 50
    assert config.default_capacity == -1
    assert config.default_limit == 10
    assert config.workers == 3
    assert config.limit_policy == "total"


def test_invalid_policy_and_workers_rejected():
    with pytest.raises(ValueError, match="limit policy"):
        RankConfig(limit_policy="first_hop")
    with pytest.raises(ValueError, match="workers"):
        RankConfig(workers=0)
