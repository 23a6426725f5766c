"""
Unit tests for McpClient: initialize handshake, session header, JSON and SSE responses, tool errors.
"""

import json

import httpx
import pytest

from commerce_router.core.exceptions import InvocationError
from commerce_router.data_access.mcp.client import McpClient, _parse_event_stream, tool_result_text


class _FakeServer:
    """Records JSON-RPC traffic and answers the way a streamable HTTP MCP server does."""

    def __init__(self, tool_result=None, sse=False, session_id="sess-1"):
        self.tool_result = tool_result or {"content": [{"type": "text", "text": "Pegasus 41 - $140"}]}
        self.sse = sse
        self.session_id = session_id
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.read())
        self.requests.append((body, dict(request.headers)))
        method = body.get("method")
        if "id" not in body:
            return httpx.Response(202)
        if method == "initialize":
            result = {"protocolVersion": "2025-03-26", "capabilities": {"tools": {}}}
            return httpx.Response(
                200, json={"jsonrpc": "2.0", "id": body["id"], "result": result}, headers={"Mcp-Session-Id": self.session_id}
            )
        result = self.tool_result
        message = {"jsonrpc": "2.0", "id": body["id"], "result": result}
        if self.sse:
            text = f"event: message\ndata: {json.dumps(message)}\n\n"
            return httpx.Response(200, text=text, headers={"content-type": "text/event-stream"})
        return httpx.Response(200, json=message)


def _mcp(server, token=None):
    return McpClient("http://mcp.test/mcp", token=token, name="catalog", client=httpx.AsyncClient(transport=httpx.MockTransport(server)))


# ── Handshake & calls ────────────────────────────────────────────────────────

class TestMcpClient:
    @pytest.mark.asyncio
    async def test_call_tool_performs_handshake_once(self):
        server = _FakeServer()
        mcp = _mcp(server, token="secret")
        assert await mcp.call_tool("searchSingleIndex", {"query": "shoes"}) == "Pegasus 41 - $140"
        await mcp.call_tool("searchSingleIndex", {"query": "socks"})
        await mcp.aclose()

        methods = [body.get("method") for body, _ in server.requests]
        assert methods == ["initialize", "notifications/initialized", "tools/call", "tools/call"]
        _, first_headers = server.requests[0]
        assert first_headers["authorization"] == "Bearer secret"
        assert "mcp-session-id" not in first_headers
        for _, headers in server.requests[1:]:
            assert headers["mcp-session-id"] == "sess-1"
        call_body, _ = server.requests[2]
        assert call_body["params"] == {"name": "searchSingleIndex", "arguments": {"query": "shoes"}}

    @pytest.mark.asyncio
    async def test_event_stream_response(self):
        mcp = _mcp(_FakeServer(sse=True))
        assert await mcp.call_tool("searchSingleIndex", {"query": "shoes"}) == "Pegasus 41 - $140"

    @pytest.mark.asyncio
    async def test_aclose_releases_lazily_created_http_client(self):
        mcp = McpClient("http://mcp.test/mcp")
        http = mcp._http()
        await mcp.aclose()
        assert http.is_closed
        assert mcp._client is None
        await mcp.aclose()

    @pytest.mark.asyncio
    async def test_tool_error_raises(self):
        server = _FakeServer(tool_result={"isError": True, "content": [{"type": "text", "text": "index missing"}]})
        with pytest.raises(InvocationError, match="index missing"):
            await _mcp(server).call_tool("searchSingleIndex", {})

    @pytest.mark.asyncio
    async def test_http_error_raises(self):
        mcp = _mcp(lambda request: httpx.Response(500, text="boom"))
        with pytest.raises(InvocationError, match="HTTP 500"):
            await mcp.call_tool("x", {})

    @pytest.mark.asyncio
    async def test_json_rpc_error_raises(self):
        def server(request):
            body = json.loads(request.read())
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "error": {"code": -32601, "message": "nope"}})

        with pytest.raises(InvocationError, match="-32601"):
            await _mcp(server).call_tool("x", {})


# ── Helpers ──────────────────────────────────────────────────────────────────

class TestMcpHelpers:
    def test_parse_event_stream_multiple_events(self):
        body = 'data: {"id": 1}\n\n: keepalive\n\ndata: {"id": 2}\n'
        assert _parse_event_stream(body) == [{"id": 1}, {"id": 2}]

    def test_tool_result_text_joins_text_parts(self):
        result = {"content": [{"type": "text", "text": "a"}, {"type": "image", "data": "..."}, {"type": "text", "text": "b"}]}
        assert tool_result_text(result) == "a\nb"

    def test_tool_result_text_structured_fallback(self):
        assert tool_result_text({"structuredContent": {"hits": []}}) == '{"hits": []}'
