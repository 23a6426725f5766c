from __future__ import annotations

from pathlib import Path
from typing import Any, Awaitable, Callable

from commerce_router.core.config.models import ResponderConfig, RouterConfig
from commerce_router.data_access.factory import build_clients
from commerce_router.agent.worker import build_responder


def get_responder_config(config: RouterConfig, name: str) -> ResponderConfig:
    responder = config.get_responder_by_name(name)
    if not responder:
        raise ValueError(f"Responder {name} not found in config")
    return responder


def get_clients(config: RouterConfig, project_root: Path | None = None) -> dict[str, Any]:
    return build_clients(config, project_root)


def get_responder_runner(
    responder_config: ResponderConfig, clients: dict[str, Any], config: RouterConfig
) -> Callable[[str], Awaitable[str]]:
    return build_responder(responder_config, clients, config)
