from __future__ import annotations

from typing import Any

from langchain_core.tools import StructuredTool


def create_search_docs_tool(retriever: Any) -> StructuredTool:
    """Create a LangChain tool that searches the local editorial collection via the given retriever."""

    async def search_docs(query: str, k: int = 5) -> str:
        try:
            docs = await retriever.ainvoke(query)
        except Exception as e:
            return f"Search failed: {e}"
        if not docs:
            return "No relevant articles found."
        parts = []
        for i, d in enumerate(docs[: int(k)], 1):
            content = d.page_content if hasattr(d, "page_content") else str(d)
            title = (getattr(d, "metadata", None) or {}).get("title")
            parts.append(f"[{i}] {title}: {content}" if title else f"[{i}] {content}")
        return "\n\n".join(parts)

    return StructuredTool.from_function(
        coroutine=search_docs,
        name="search_docs",
        description="Search locally indexed editorial articles and tips for relevant passages.",
    )
