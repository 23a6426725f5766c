from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from commerce_router.core.config.env import load_env_from_path
from commerce_router.core.config.models import DataSourceConfig, RouterConfig
from commerce_router.data_access.mcp.client import McpClient
from commerce_router.data_access.vector.chroma import create_chroma_retriever

log = logging.getLogger("data_access")


def _build_mcp_client(ds: DataSourceConfig, env: dict[str, str]) -> McpClient | None:
    url = env.get(ds.connection_id)
    if not url:
        log.warning("Data source %s skipped: %s not set", ds.id, ds.connection_id)
        return None
    token = env.get(ds.auth_token_env) if ds.auth_token_env else None
    return McpClient(url=url, token=token, name=ds.id)


def build_clients(config: RouterConfig, project_root: Path | None = None) -> dict[str, Any]:
    """Build data access clients from config. Keys = data_sources[].id; unconfigured sources are skipped."""
    load_env_from_path(config.env_file_path, project_root)
    env = dict(os.environ)
    root = project_root or Path.cwd()
    clients: dict[str, Any] = {}

    for ds in config.data_sources:
        if ds.type == "mcp":
            client = _build_mcp_client(ds, env)
            if client is not None:
                clients[ds.id] = client
        elif ds.type == "vector_db" and ds.engine == "chroma":
            path = env.get(ds.connection_id, "")
            if not path:
                log.warning("Data source %s skipped: %s not set", ds.id, ds.connection_id)
                continue
            abs_path = Path(path) if Path(path).is_absolute() else (root / path).resolve()
            clients[ds.id] = create_chroma_retriever(
                persist_directory=abs_path,
                collection_name=ds.collection_name or "editorial",
            )
        else:
            log.warning("Data source %s has unsupported type %s/%s", ds.id, ds.type, ds.engine)

    return clients


async def close_clients(clients: dict[str, Any]) -> None:
    """Release clients that hold connections (MCP sessions keep an httpx client open)."""
    for source_id, client in clients.items():
        aclose = getattr(client, "aclose", None)
        if aclose is not None:
            await aclose()
            log.info("Closed %s client", source_id)
