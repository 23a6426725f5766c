"""
Unit tests for the session store helpers against a recording stand-in for an asyncpg connection.
"""

import json
import uuid
from datetime import datetime, timezone

import pytest

from commerce_router.core.contracts.orchestrator import (
    ChatMessage,
    DispatchReport,
    FinalAnswer,
    Intent,
    IntentDecision,
    PipelineRun,
    QueryEnvelope,
    ResponderOutcome,
    ResponderResults,
    ResponderRole,
)
from commerce_router.orchestrator.session import (
    append_turns,
    create_request,
    get_request,
    load_history,
    save_responder_outcomes,
    update_request_final,
)


class RecordingConnection:
    def __init__(self, fetchrow_result=None, fetch_result=None):
        self.fetchrow_result = fetchrow_result
        self.fetch_result = fetch_result or []
        self.executed = []

    async def fetchrow(self, sql, *args):
        self.executed.append((sql, args))
        return self.fetchrow_result

    async def fetch(self, sql, *args):
        self.executed.append((sql, args))
        return self.fetch_result

    async def execute(self, sql, *args):
        self.executed.append((sql, args))

    async def executemany(self, sql, rows):
        self.executed.append((sql, list(rows)))


def _run():
    return PipelineRun(
        envelope=QueryEnvelope(query="running tips and shoes"),
        decision=IntentDecision(
            intent=Intent.MIXED, product_query="shoes", content_query="running tips", confidence=0.8, reasoning="both"
        ),
        dispatch=DispatchReport(
            results=ResponderResults(product_result="Pegasus 41", content_result=""),
            outcomes=(
                ResponderOutcome(role=ResponderRole.PRODUCT, query="shoes", status="success", latency_ms=40),
                ResponderOutcome(role=ResponderRole.CONTENT, query="running tips", status="timeout", error="timed out"),
            ),
        ),
        answer=FinalAnswer(response="Pegasus 41", intent="mixed", sources=frozenset({"Product Catalog"})),
    )


class TestSessionStore:
    @pytest.mark.asyncio
    async def test_create_request_returns_id(self):
        rid = uuid.uuid4()
        conn = RecordingConnection(fetchrow_result={"id": rid})
        assert await create_request(conn, "chat-1", "shoes") == rid
        assert conn.executed[0][1] == ("chat-1", "shoes")

    @pytest.mark.asyncio
    async def test_update_request_final_records_decision_and_answer(self):
        conn = RecordingConnection()
        rid = uuid.uuid4()
        await update_request_final(conn, rid, "completed", _run())
        _, args = conn.executed[0]
        assert args == ("completed", "mixed", 0.8, "both", "Pegasus 41", json.dumps(["Product Catalog"]), None, rid)

    @pytest.mark.asyncio
    async def test_save_responder_outcomes_one_row_per_call(self):
        conn = RecordingConnection()
        rid = uuid.uuid4()
        await save_responder_outcomes(conn, rid, _run())
        rows = [args for _, args in conn.executed]
        assert rows == [
            (rid, "product", "shoes", "Pegasus 41", "success", 40, None),
            (rid, "content", "running tips", "", "timeout", None, "timed out"),
        ]

    @pytest.mark.asyncio
    async def test_load_history_maps_rows(self):
        conn = RecordingConnection(fetch_result=[{"role": "user", "content": "hi"}, {"role": "assistant", "content": "hello"}])
        history = await load_history(conn, "chat-1", limit=4)
        assert history == [ChatMessage(role="user", content="hi"), ChatMessage(role="assistant", content="hello")]
        assert conn.executed[0][1] == ("chat-1", 4)

    @pytest.mark.asyncio
    async def test_append_turns(self):
        conn = RecordingConnection()
        await append_turns(conn, "chat-1", [ChatMessage(role="user", content="q"), ChatMessage(role="assistant", content="a")])
        assert conn.executed[0][1] == [("chat-1", "user", "q"), ("chat-1", "assistant", "a")]

    @pytest.mark.asyncio
    async def test_get_request_decodes_sources(self):
        rid = uuid.uuid4()
        row = {
            "id": rid,
            "chat_id": None,
            "query": "shoes",
            "status": "completed",
            "intent": "product",
            "confidence": 0.9,
            "reasoning": "r",
            "final_answer": "Pegasus 41",
            "sources": '["Product Catalog"]',
            "error_message": None,
            "created_at": datetime(2025, 1, 1, tzinfo=timezone.utc),
        }
        out = await get_request(RecordingConnection(fetchrow_result=row), rid)
        assert out["id"] == str(rid)
        assert out["sources"] == ["Product Catalog"]
        assert out["created_at"].startswith("2025-01-01")

    @pytest.mark.asyncio
    async def test_get_request_missing(self):
        assert await get_request(RecordingConnection(), uuid.uuid4()) is None
