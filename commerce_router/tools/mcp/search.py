from __future__ import annotations

from typing import Any

from langchain_core.tools import StructuredTool

from commerce_router.data_access.mcp.client import McpClient

SEARCH_PRODUCTS_DESCRIPTION = (
    "Search the product catalog. Use this for products, pricing, availability, "
    "store locations and product comparisons."
)
SEARCH_CONTENT_DESCRIPTION = (
    "Search editorial content. Use this for inspiration, articles, tips, advice and galleries."
)


def create_mcp_search_tool(
    name: str,
    description: str,
    mcp: McpClient,
    remote_tool: str,
    base_arguments: dict[str, Any] | None = None,
) -> StructuredTool:
    """Create a LangChain tool that forwards a search to a remote MCP tool.

    Errors come back as text so the model can recover instead of the responder failing.
    """
    fixed = dict(base_arguments or {})

    async def _search(query: str, limit: int = 5) -> str:
        arguments = {**fixed, "query": query, "limit": int(limit)}
        try:
            text = await mcp.call_tool(remote_tool, arguments)
        except Exception as e:
            return f"Search failed: {e}"
        return text or "No results found."

    return StructuredTool.from_function(coroutine=_search, name=name, description=description)
