"""Tests for MCP server tools."""

import pytest

from neighborrank.graph.memory_storage import MemoryGraphStorage
from neighborrank.mcp import server as mcp_server
from neighborrank.rank.config import RankConfig


@pytest.fixture
def graph():
    storage = MemoryGraphStorage()
    storage.add_edge("v1", "v2", "knows")
    storage.add_edge("v1", "v3", "knows")
    storage.add_edge("v2", "v3", "likes")
    return storage


class _BrokenStorage:
    """Fake storage whose reads fail."""

    def has_vertex(self, vertex_id):
        raise OSError("connection reset")

    def edge_label(self, name):
        return None

    def edge_labels(self):
        raise OSError("connection reset")

    def iter_neighbors(self, vertex_id, direction, labels=(), properties=None):
        return iter(())

    def close(self):
        pass


class TestNeighborRankTool:
    """Tests for the neighbor_rank MCP tool."""

    def test_returns_ranks(self, monkeypatch, graph):
        monkeypatch.setattr(mcp_server, "storage", graph)
        monkeypatch.setattr(mcp_server, "config", RankConfig())

        result = mcp_server.neighbor_rank({"source": "v1", "alpha": 0.8})

        assert result["success"] is True
        assert result["ranks"] == [
            {"v2": pytest.approx(0.4), "v3": pytest.approx(0.4)}
        ]

    def test_validation_error_is_client_error(self, monkeypatch, graph):
        monkeypatch.setattr(mcp_server, "storage", graph)

        result = mcp_server.neighbor_rank({"source": "v1", "alpha": 1.5})

        assert result["success"] is False
        assert result["error_type"] == "client"
        assert "alpha" in result["error"]

    def test_unknown_label_is_client_error(self, monkeypatch, graph):
        monkeypatch.setattr(mcp_server, "storage", graph)

        result = mcp_server.neighbor_rank(
            {"source": "v1", "alpha": 0.5, "steps": [{"labels": ["hates"]}]}
        )

        assert result["success"] is False
        assert result["error_type"] == "client"

    def test_store_failure_is_server_error(self, monkeypatch):
        monkeypatch.setattr(mcp_server, "storage", _BrokenStorage())

        result = mcp_server.neighbor_rank({"source": "v1", "alpha": 0.5})

        assert result["success"] is False
        assert result["error_type"] == "server"

    def test_requires_initialization(self, monkeypatch):
        monkeypatch.setattr(mcp_server, "storage", None)

        with pytest.raises(RuntimeError, match="not initialized"):
            mcp_server.neighbor_rank({"source": "v1", "alpha": 0.5})


def test_list_edge_labels(monkeypatch, graph):
    monkeypatch.setattr(mcp_server, "storage", graph)

    result = mcp_server.list_edge_labels()

    assert result == {"success": True, "count": 2, "labels": ["knows", "likes"]}


def test_list_edge_labels_store_failure_is_server_error(monkeypatch):
    monkeypatch.setattr(mcp_server, "storage", _BrokenStorage())

    result = mcp_server.list_edge_labels()

    assert result["success"] is False
    assert result["error_type"] == "server"
    assert "connection reset" in result["error"]


def test_init_server_with_graph_file(monkeypatch, tmp_path):
    path = tmp_path / "graph.yaml"
    path.write_text(
        "edges:\n  - {source: a, target: b, label: knows}\n", encoding="utf-8"
    )
    monkeypatch.setattr(mcp_server, "storage", None)
    monkeypatch.setattr(mcp_server, "config", RankConfig())

    mcp_server.init_server(
        graph_file=str(path), rank_config=RankConfig(default_limit=3)
    )

    assert isinstance(mcp_server.storage, MemoryGraphStorage)
    assert mcp_server.config.default_limit == 3
