from __future__ import annotations

import logging
from typing import Any

from commerce_router.core.config.models import RouterConfig
from commerce_router.tools.mcp.search import (
    SEARCH_CONTENT_DESCRIPTION,
    SEARCH_PRODUCTS_DESCRIPTION,
    create_mcp_search_tool,
)
from commerce_router.tools.vector.search import create_search_docs_tool

log = logging.getLogger("tools")

# tool name -> (data source id, description, default remote tool)
MCP_TOOLS = {
    "search_products": ("catalog", SEARCH_PRODUCTS_DESCRIPTION, "search_products"),
    "search_content": ("editorial", SEARCH_CONTENT_DESCRIPTION, "search_content"),
}


def get_tools(tool_names: list[str], clients: dict[str, Any], config: RouterConfig) -> list[Any]:
    """Build LangChain tools from tool_names, injecting clients. Tools whose client is missing are skipped."""
    result = []
    for name in tool_names:
        if name in MCP_TOOLS:
            source_id, description, default_remote = MCP_TOOLS[name]
            mcp = clients.get(source_id)
            if mcp is None:
                log.warning("Tool %s skipped: no %s client", name, source_id)
                continue
            ds = config.get_data_source(source_id)
            result.append(
                create_mcp_search_tool(
                    name=name,
                    description=description,
                    mcp=mcp,
                    remote_tool=(ds.remote_tool if ds and ds.remote_tool else default_remote),
                    base_arguments=ds.tool_arguments if ds else None,
                )
            )
        elif name == "search_docs":
            retriever = clients.get("docs")
            if retriever is None:
                log.warning("Tool search_docs skipped: no docs client")
                continue
            result.append(create_search_docs_tool(retriever))
        else:
            log.warning("Unknown tool %s", name)
    return result
