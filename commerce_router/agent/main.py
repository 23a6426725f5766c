"""FastAPI app for a single responder. Run with: python -m commerce_router.agent.main --name product-agent --config-path config/domains/commerce.json"""
from __future__ import annotations

import argparse
import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(name)s] %(message)s", datefmt="%H:%M:%S")

from commerce_router.core.config.env import PROJECT_ROOT, load_default_env
from commerce_router.core.config.loader import load_router_config
from commerce_router.core.contracts.agent import AgentInvokeRequest, AgentInvokeResponse
from commerce_router.agent.deps import get_clients, get_responder_config, get_responder_runner
from commerce_router.data_access.factory import close_clients

DEFAULT_CONFIG_PATH = "config/domains/commerce.json"


@asynccontextmanager
async def lifespan(app: FastAPI):
    load_default_env()
    config_path = os.environ.get("CONFIG_PATH", DEFAULT_CONFIG_PATH)
    name = os.environ.get("RESPONDER_NAME", "product-agent")
    config = load_router_config(config_path, project_root=PROJECT_ROOT)
    responder_config = get_responder_config(config, name)
    clients = get_clients(config, PROJECT_ROOT)
    app.state.responder_name = name
    app.state.runner = get_responder_runner(responder_config, clients, config)
    try:
        yield
    finally:
        await close_clients(clients)


app = FastAPI(title="Commerce Router: Responder", lifespan=lifespan)


@app.get("/health")
def health():
    return {"status": "ok", "responder": getattr(app.state, "responder_name", None)}


@app.post("/invoke", response_model=AgentInvokeResponse)
async def invoke(req: AgentInvokeRequest):
    runner = getattr(app.state, "runner", None)
    if runner is None:
        raise HTTPException(status_code=503, detail="Responder not initialized")
    log = logging.getLogger(f"responder.{app.state.responder_name}")
    query_preview = (req.query[:120] + "…") if len(req.query) > 120 else req.query
    log.info("RECV: %s", query_preview)
    start = time.perf_counter()
    try:
        result = await runner(req.query)
        latency_ms = int((time.perf_counter() - start) * 1000)
        out_preview = (result[:120] + "…") if len(result) > 120 else result
        log.info("SEND: %s (%s ms)", out_preview, latency_ms)
        return AgentInvokeResponse(result=result, status="success", latency_ms=latency_ms)
    except Exception as e:
        latency_ms = int((time.perf_counter() - start) * 1000)
        log.warning("SEND (failed): %s (%s ms)", e, latency_ms)
        return AgentInvokeResponse(result=str(e), status="failed", latency_ms=latency_ms)


if __name__ == "__main__":
    import uvicorn

    parser = argparse.ArgumentParser()
    parser.add_argument("--name", default="product-agent")
    parser.add_argument("--config-path", default=DEFAULT_CONFIG_PATH)
    parser.add_argument("--port", type=int, default=None)
    args = parser.parse_args()
    os.environ["RESPONDER_NAME"] = args.name
    os.environ["CONFIG_PATH"] = args.config_path
    _cfg = load_router_config(args.config_path, project_root=PROJECT_ROOT)
    _responder = _cfg.get_responder_by_name(args.name)
    port = args.port or (_responder.port if _responder else 8001)
    uvicorn.run(app, host="0.0.0.0", port=port)
