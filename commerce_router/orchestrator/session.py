"""Persist conversation memory and request traces in the app Postgres."""
from __future__ import annotations

import json
import uuid
from typing import Any, Sequence

import asyncpg

from commerce_router.core.contracts.orchestrator import ChatMessage, PipelineRun


async def create_request(conn: asyncpg.Connection, chat_id: str | None, query: str) -> uuid.UUID:
    row = await conn.fetchrow(
        """
        INSERT INTO app.requests (chat_id, query, status)
        VALUES ($1, $2, 'running')
        RETURNING id
        """,
        chat_id,
        query,
    )
    return row["id"]


async def update_request_final(
    conn: asyncpg.Connection,
    request_id: uuid.UUID,
    status: str,
    run: PipelineRun | None = None,
    error_message: str | None = None,
) -> None:
    decision = run.decision if run else None
    answer = run.answer if run else None
    await conn.execute(
        """
        UPDATE app.requests
        SET status = $1, intent = $2, confidence = $3, reasoning = $4,
            final_answer = $5, sources = $6::jsonb, error_message = $7, updated_at = now()
        WHERE id = $8
        """,
        status,
        decision.intent.value if decision else None,
        decision.confidence if decision else None,
        decision.reasoning if decision else None,
        answer.response if answer else None,
        json.dumps(sorted(answer.sources) if answer else []),
        error_message,
        request_id,
    )


async def save_responder_outcomes(conn: asyncpg.Connection, request_id: uuid.UUID, run: PipelineRun) -> None:
    results = run.dispatch.results
    for outcome in run.dispatch.outcomes:
        await conn.execute(
            """
            INSERT INTO app.responder_results (request_id, role, query, output, status, latency_ms, error_message)
            VALUES ($1, $2, $3, $4, $5, $6, $7)
            """,
            request_id,
            outcome.role.value,
            outcome.query,
            results.result_for(outcome.role) or "",
            outcome.status,
            outcome.latency_ms,
            outcome.error,
        )


async def get_request(conn: asyncpg.Connection, request_id: uuid.UUID) -> dict[str, Any] | None:
    """Load one request by id, or None."""
    row = await conn.fetchrow(
        """
        SELECT id, chat_id, query, status, intent, confidence, reasoning, final_answer, sources,
               error_message, created_at
        FROM app.requests WHERE id = $1
        """,
        request_id,
    )
    if not row:
        return None
    sources = row["sources"]
    if isinstance(sources, str):
        sources = json.loads(sources)
    return {
        "id": str(row["id"]),
        "chat_id": row["chat_id"],
        "query": row["query"],
        "status": row["status"],
        "intent": row["intent"],
        "confidence": row["confidence"],
        "reasoning": row["reasoning"],
        "final_answer": row["final_answer"],
        "sources": sources or [],
        "error_message": row["error_message"],
        "created_at": row["created_at"].isoformat() if row["created_at"] else None,
    }


async def get_responder_results(conn: asyncpg.Connection, request_id: uuid.UUID) -> list[dict[str, Any]]:
    rows = await conn.fetch(
        """
        SELECT role, query, output, status, latency_ms, error_message
        FROM app.responder_results WHERE request_id = $1 ORDER BY role
        """,
        request_id,
    )
    return [dict(r) for r in rows]


async def load_history(conn: asyncpg.Connection, chat_id: str, limit: int = 20) -> list[ChatMessage]:
    """Most recent `limit` turns of a chat, oldest first."""
    rows = await conn.fetch(
        """
        SELECT role, content FROM (
            SELECT id, role, content FROM app.messages
            WHERE chat_id = $1 ORDER BY id DESC LIMIT $2
        ) recent ORDER BY id
        """,
        chat_id,
        limit,
    )
    return [ChatMessage(role=r["role"], content=r["content"]) for r in rows]


async def append_turns(conn: asyncpg.Connection, chat_id: str, turns: Sequence[ChatMessage]) -> None:
    await conn.executemany(
        "INSERT INTO app.messages (chat_id, role, content) VALUES ($1, $2, $3)",
        [(chat_id, t.role, t.content) for t in turns],
    )
