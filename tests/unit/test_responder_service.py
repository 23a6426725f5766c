"""
Unit tests for the responder service POST /invoke, with the runner injected instead of built from config.
"""

import pytest
from fastapi.testclient import TestClient

from commerce_router.agent import main as responder_main
from commerce_router.core.exceptions import InvocationError


@pytest.fixture
def client():
    # No context manager: lifespan (config + LLM construction) is not run.
    return TestClient(responder_main.app)


def _use_runner(monkeypatch, runner):
    monkeypatch.setattr(responder_main.app.state, "runner", runner, raising=False)
    monkeypatch.setattr(responder_main.app.state, "responder_name", "product-agent", raising=False)


class TestInvokeEndpoint:
    def test_success(self, client, monkeypatch):
        async def runner(query):
            return f"products for {query}"

        _use_runner(monkeypatch, runner)
        body = client.post("/invoke", json={"query": "shoes"}).json()
        assert body["status"] == "success"
        assert body["result"] == "products for shoes"
        assert body["latency_ms"] >= 0

    def test_runner_failure_is_reported_not_raised(self, client, monkeypatch):
        async def runner(query):
            raise InvocationError("product-agent failed: catalog down")

        _use_runner(monkeypatch, runner)
        r = client.post("/invoke", json={"query": "shoes"})
        assert r.status_code == 200
        assert r.json()["status"] == "failed"
        assert "catalog down" in r.json()["result"]

    def test_not_initialized(self, client, monkeypatch):
        _use_runner(monkeypatch, None)
        assert client.post("/invoke", json={"query": "shoes"}).status_code == 503
