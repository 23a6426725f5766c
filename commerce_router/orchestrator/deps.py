from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from commerce_router.core.config.models import RouterConfig
from commerce_router.core.contracts.capabilities import ModelCall, ResponderCall
from commerce_router.core.contracts.orchestrator import ResponderRole
from commerce_router.core.llm import ChatModelCall
from commerce_router.agent.worker import build_responder
from commerce_router.data_access.factory import build_clients
from commerce_router.orchestrator.classifier import IntentClassifier
from commerce_router.orchestrator.dispatcher import Dispatcher
from commerce_router.orchestrator.pipeline import PipelineExecutor
from commerce_router.orchestrator.responders import HttpResponder, LocalResponder
from commerce_router.orchestrator.synthesizer import Synthesizer

log = logging.getLogger("router")


def build_responders(
    config: RouterConfig,
    mode: str = "local",
    clients: dict[str, Any] | None = None,
    project_root: Path | None = None,
) -> dict[ResponderRole, ResponderCall]:
    """One ResponderCall per configured role: in-process ("local") or via responder services ("http")."""
    responders: dict[ResponderRole, ResponderCall] = {}
    if mode == "local" and clients is None:
        clients = build_clients(config, project_root)
    for rc in config.responders:
        if mode == "http":
            responders[rc.role] = HttpResponder(
                rc.name,
                config.get_responder_base_url(rc.name),
                timeout_s=config.router.responder_timeout_s or 120.0,
            )
        else:
            responders[rc.role] = LocalResponder(rc.name, build_responder(rc, clients or {}, config))
    for role in ResponderRole:
        if role not in responders:
            log.warning("No responder configured for role %s", role.value)
    return responders


def build_executor(
    config: RouterConfig,
    responders: dict[ResponderRole, ResponderCall],
    model: ModelCall | None = None,
) -> PipelineExecutor:
    model = model or ChatModelCall.from_settings(config.router.llm, name=config.router.name)
    return PipelineExecutor(
        classifier=IntentClassifier(model, history_window=config.router.history_window),
        dispatcher=Dispatcher(responders, timeout_s=config.router.responder_timeout_s),
        synthesizer=Synthesizer(model if config.router.synthesis_enabled else None),
    )
