"""ResponderCall implementations: in-process runners and remote responder services."""
from __future__ import annotations

import logging
from typing import Awaitable, Callable

import httpx

from commerce_router.core.contracts.agent import AgentInvokeRequest, AgentInvokeResponse
from commerce_router.core.exceptions import AgentUnavailable, InvocationError

log = logging.getLogger("responders")

ResponderRunner = Callable[[str], Awaitable[str]]


class LocalResponder:
    """Wraps an async runner built by commerce_router.agent.worker.build_responder."""

    def __init__(self, name: str, runner: ResponderRunner):
        self.name = name
        self.runner = runner

    async def answer(self, query: str) -> str:
        return await self.runner(query)


class HttpResponder:
    """Calls a responder service's POST /invoke."""

    def __init__(self, name: str, base_url: str, timeout_s: float = 120.0, client: httpx.AsyncClient | None = None):
        self.name = name
        self.url = f"{base_url.rstrip('/')}/invoke"
        self.timeout_s = timeout_s
        self._client = client

    async def answer(self, query: str) -> str:
        payload = AgentInvokeRequest(query=query).model_dump()
        try:
            if self._client is not None:
                r = await self._client.post(self.url, json=payload)
            else:
                async with httpx.AsyncClient(timeout=self.timeout_s) as client:
                    r = await client.post(self.url, json=payload)
        except httpx.HTTPError as e:
            raise AgentUnavailable(f"{self.name} unreachable at {self.url}: {e}") from e
        if r.status_code != 200:
            raise AgentUnavailable(f"{self.name} returned HTTP {r.status_code}: {r.text[:200]}")
        try:
            resp = AgentInvokeResponse.model_validate(r.json())
        except ValueError as e:
            raise InvocationError(f"{self.name} returned an invalid payload: {e}") from e
        if resp.status != "success":
            raise InvocationError(f"{self.name} failed: {resp.result}")
        return resp.result
