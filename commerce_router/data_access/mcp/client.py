"""Minimal MCP client: JSON-RPC 2.0 over streamable HTTP, enough to call remote tools."""
from __future__ import annotations

import asyncio
import itertools
import json
import logging
from typing import Any

import httpx

from commerce_router.core.exceptions import InvocationError

log = logging.getLogger("mcp")

PROTOCOL_VERSION = "2025-03-26"
SESSION_HEADER = "Mcp-Session-Id"


def _parse_event_stream(body: str) -> list[dict[str, Any]]:
    messages = []
    data_lines: list[str] = []
    for line in body.splitlines() + [""]:
        if line.startswith("data:"):
            data_lines.append(line[5:].lstrip())
        elif not line.strip() and data_lines:
            try:
                messages.append(json.loads("\n".join(data_lines)))
            except json.JSONDecodeError:
                log.debug("Skipping non-JSON event: %s", data_lines[:1])
            data_lines = []
    return messages


def tool_result_text(result: dict[str, Any]) -> str:
    """Concatenate the text parts of an MCP tools/call result."""
    parts = []
    for item in result.get("content") or []:
        if isinstance(item, dict) and item.get("type") == "text":
            parts.append(str(item.get("text", "")))
    if not parts and result.get("structuredContent") is not None:
        parts.append(json.dumps(result["structuredContent"]))
    return "\n".join(parts)


class McpClient:
    def __init__(
        self,
        url: str,
        token: str | None = None,
        name: str = "mcp",
        timeout_s: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.url = url
        self.name = name
        self.token = token
        self.timeout_s = timeout_s
        self._client = client
        self._session_id: str | None = None
        self._initialized = False
        self._ids = itertools.count(1)
        self._init_lock = asyncio.Lock()

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json, text/event-stream", "Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if self._session_id:
            headers[SESSION_HEADER] = self._session_id
        return headers

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout_s)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _post(self, message: dict[str, Any]) -> httpx.Response:
        try:
            r = await self._http().post(self.url, json=message, headers=self._headers())
        except httpx.HTTPError as e:
            raise InvocationError(f"{self.name} MCP server unreachable: {e}") from e
        if r.status_code >= 400:
            raise InvocationError(f"{self.name} MCP server returned HTTP {r.status_code}: {r.text[:200]}")
        return r

    async def _rpc(self, method: str, params: dict[str, Any]) -> dict[str, Any]:
        request_id = next(self._ids)
        r = await self._post({"jsonrpc": "2.0", "id": request_id, "method": method, "params": params})
        if r.headers.get(SESSION_HEADER):
            self._session_id = r.headers[SESSION_HEADER]
        if r.headers.get("content-type", "").startswith("text/event-stream"):
            messages = _parse_event_stream(r.text)
        else:
            try:
                body = r.json()
            except ValueError as e:
                raise InvocationError(f"{self.name} MCP server returned invalid JSON: {e}") from e
            messages = body if isinstance(body, list) else [body]
        for msg in messages:
            if isinstance(msg, dict) and msg.get("id") == request_id:
                if "error" in msg:
                    err = msg["error"] or {}
                    raise InvocationError(f"{self.name} {method} error {err.get('code')}: {err.get('message')}")
                return msg.get("result") or {}
        raise InvocationError(f"{self.name} {method}: no response for request {request_id}")

    async def _ensure_initialized(self) -> None:
        if self._initialized:
            return
        async with self._init_lock:
            if self._initialized:
                return
            await self._rpc(
                "initialize",
                {
                    "protocolVersion": PROTOCOL_VERSION,
                    "capabilities": {},
                    "clientInfo": {"name": "commerce-router", "version": "0.1.0"},
                },
            )
            await self._post({"jsonrpc": "2.0", "method": "notifications/initialized"})
            self._initialized = True
            log.info("%s MCP session ready (%s)", self.name, self._session_id or "stateless")

    async def call_tool(self, tool_name: str, arguments: dict[str, Any]) -> str:
        await self._ensure_initialized()
        result = await self._rpc("tools/call", {"name": tool_name, "arguments": arguments})
        text = tool_result_text(result)
        if result.get("isError"):
            raise InvocationError(f"{self.name} tool {tool_name} failed: {text[:200]}")
        return text
