"""Router FastAPI app: POST /query -> classify, dispatch, synthesize."""
from __future__ import annotations

import asyncio
import logging
import os
import uuid
from contextlib import asynccontextmanager
from typing import Any

import asyncpg
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(name)s] %(message)s", datefmt="%H:%M:%S")
log = logging.getLogger("router")

from commerce_router.core.config.env import DEFAULT_DB_URL_ENV, PROJECT_ROOT, get_app_db_url, load_default_env
from commerce_router.core.config.loader import load_router_config
from commerce_router.core.contracts.api import QueryRequest, QueryResponse
from commerce_router.core.contracts.orchestrator import ChatMessage, PipelineRun, QueryEnvelope
from commerce_router.core.exceptions import InvalidInputError
from commerce_router.data_access.factory import build_clients, close_clients
from commerce_router.orchestrator.deps import build_executor, build_responders
from commerce_router.orchestrator.pipeline import PipelineExecutor, validate_envelope
from commerce_router.orchestrator.session import (
    append_turns,
    create_request,
    get_request,
    get_responder_results,
    load_history,
    save_responder_outcomes,
    update_request_final,
)

DEFAULT_CONFIG_PATH = "config/domains/commerce.json"
HISTORY_LIMIT = 20

# asyncpg.InterfaceError is not a PostgresError; connect timeouts are asyncio.TimeoutError on 3.10
STORE_ERRORS = (OSError, asyncio.TimeoutError, asyncpg.PostgresError, asyncpg.InterfaceError)


def create_app(executor: PipelineExecutor | None = None, clients: dict[str, Any] | None = None) -> FastAPI:
    """Build the router app. Passing `executor` skips config loading (used by tests and embedders).

    `clients` are data access clients owned by the app and closed on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if executor is not None:
            app.state.executor = executor
            app.state.clients = dict(clients or {})
            app.state.db_url_env = DEFAULT_DB_URL_ENV
        else:
            load_default_env()
            config = load_router_config(os.environ.get("CONFIG_PATH", DEFAULT_CONFIG_PATH), project_root=PROJECT_ROOT)
            mode = os.environ.get("RESPONDER_MODE", "local")
            app.state.clients = build_clients(config, PROJECT_ROOT) if mode == "local" else {}
            responders = build_responders(config, mode=mode, clients=app.state.clients, project_root=PROJECT_ROOT)
            app.state.executor = build_executor(config, responders)
            app.state.db_url_env = config.session_store_env()
            log.info("Router ready: %s (responders=%s)", config.summary(), mode)
        if not _db_url():
            log.warning(
                "%s not set: conversation memory and request traces are not persisted",
                app.state.db_url_env or "session_store",
            )
        try:
            yield
        finally:
            await close_clients(app.state.clients)

    app = FastAPI(title="Commerce Router", lifespan=lifespan)
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    def _db_url() -> str | None:
        return get_app_db_url(connection_id=getattr(app.state, "db_url_env", DEFAULT_DB_URL_ENV))

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.post("/query", response_model=QueryResponse)
    async def query(req: QueryRequest):
        try:
            envelope = validate_envelope(QueryEnvelope(query=req.query, history=tuple(req.history)))
        except (InvalidInputError, ValidationError) as e:
            raise HTTPException(status_code=400, detail=str(e))

        url = _db_url()
        if url and req.chat_id and not envelope.history:
            history = await _with_conn(url, load_history, req.chat_id, HISTORY_LIMIT)
            if history:
                envelope = envelope.model_copy(update={"history": tuple(history)})
        request_id = (await _with_conn(url, create_request, req.chat_id, envelope.query) if url else None) or uuid.uuid4()

        try:
            run: PipelineRun = await app.state.executor.run_with_trace(envelope)
        except InvalidInputError as e:
            raise HTTPException(status_code=400, detail=str(e))

        if url:
            await _with_conn(url, save_responder_outcomes, request_id, run)
            await _with_conn(url, update_request_final, request_id, "completed", run)
            if req.chat_id:
                turns = [
                    ChatMessage(role="user", content=envelope.query),
                    ChatMessage(role="assistant", content=run.answer.response),
                ]
                await _with_conn(url, append_turns, req.chat_id, turns)

        return QueryResponse(
            request_id=str(request_id),
            status="completed",
            response=run.answer.response,
            intent=run.answer.intent,
            sources=sorted(run.answer.sources),
            confidence=run.decision.confidence,
        )

    @app.get("/history/{chat_id}")
    async def get_history(chat_id: str):
        url = _db_url()
        if not url:
            return []
        history = await _with_conn(url, load_history, chat_id, HISTORY_LIMIT) or []
        return [m.model_dump() for m in history]

    @app.get("/request/{request_id}")
    async def get_request_trace(request_id: str):
        """Return the stored trace for a request: request row plus per-responder results."""
        try:
            rid = uuid.UUID(request_id)
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid request_id")
        url = _db_url()
        if not url:
            raise HTTPException(status_code=503, detail="Session store not configured")
        try:
            conn = await asyncpg.connect(url)
        except STORE_ERRORS as e:
            log.error("Session store unavailable for request trace: %s", e)
            raise HTTPException(status_code=503, detail="Session store unavailable")
        try:
            req = await get_request(conn, rid)
            if not req:
                raise HTTPException(status_code=404, detail="Request not found")
            responder_results = await get_responder_results(conn, rid)
        finally:
            await conn.close()
        return {**req, "responder_results": responder_results}

    return app


async def _with_conn(url: str, fn, *args: Any) -> Any:
    """Run a session helper on a fresh connection. Storage errors are logged; the answer still goes out."""
    try:
        conn = await asyncpg.connect(url)
    except STORE_ERRORS as e:
        log.error("Session store unavailable for %s: %s", fn.__name__, e)
        return None
    try:
        return await fn(conn, *args)
    except STORE_ERRORS:
        log.exception("Session store %s failed", fn.__name__)
        return None
    finally:
        try:
            await conn.close()
        except STORE_ERRORS as e:
            log.warning("Closing session store connection failed: %s", e)


app = create_app()


if __name__ == "__main__":
    import uvicorn

    load_default_env()
    _cfg = load_router_config(os.environ.get("CONFIG_PATH", DEFAULT_CONFIG_PATH), project_root=PROJECT_ROOT)
    port = int(os.environ.get("PORT", str(_cfg.router.port)))
    uvicorn.run(app, host="0.0.0.0", port=port)
