import importlib

import pytest
from pydantic import ValidationError

from listcluster.config import (
    DEFAULT_P,
    EdgeOut,
    GraphRequest,
    GraphResponse,
    HealthResponse,
    RankedListIn,
)


def test_graph_request_defaults():
    req = GraphRequest(lists=[RankedListIn(label="a", members=["x", "y"])])
    assert req.p == DEFAULT_P
    assert req.concurrency is None
    assert req.min_similarity == 0.0


@pytest.mark.parametrize("p", [-0.1, 1.1])
def test_graph_request_rejects_out_of_range_p(p):
    with pytest.raises(ValidationError):
        GraphRequest(p=p, lists=[RankedListIn(label="a", members=["x"])])


def test_graph_request_requires_lists():
    with pytest.raises(ValidationError):
        GraphRequest(p=0.9, lists=[])


def test_ranked_list_requires_label():
    with pytest.raises(ValidationError):
        RankedListIn(label="", members=["x"])


def test_graph_response_structure():
    resp = GraphResponse(edges=[EdgeOut(source="a", target="b", similarity=0.5)])
    assert len(resp.edges) == 1
    assert resp.error is None


def test_health_response():
    health = HealthResponse(status="healthy")
    assert health.status == "healthy"


def _reload_config():
    import listcluster.config

    return importlib.reload(listcluster.config)


def test_concurrency_env_is_capped(monkeypatch):
    monkeypatch.setenv("LISTCLUSTER_CONCURRENCY", "500")
    try:
        cfg = _reload_config()
        assert cfg.DEFAULT_CONCURRENCY == cfg.MAX_CONCURRENCY
        monkeypatch.setenv("LISTCLUSTER_CONCURRENCY", "3")
        assert _reload_config().DEFAULT_CONCURRENCY == 3
    finally:
        monkeypatch.delenv("LISTCLUSTER_CONCURRENCY", raising=False)
        _reload_config()


def test_non_numeric_env_names_the_variable(monkeypatch):
    monkeypatch.setenv("LISTCLUSTER_TASK_BUFFER", "lots")
    try:
        with pytest.raises(ValueError, match="LISTCLUSTER_TASK_BUFFER"):
            _reload_config()
    finally:
        monkeypatch.delenv("LISTCLUSTER_TASK_BUFFER", raising=False)
        _reload_config()
