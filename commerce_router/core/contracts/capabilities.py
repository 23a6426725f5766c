"""Capabilities the pipeline consumes. Implementations are injected, never looked up globally."""
from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

from commerce_router.core.contracts.orchestrator import ChatMessage


@runtime_checkable
class ModelCall(Protocol):
    async def generate(self, messages: Sequence[ChatMessage]) -> str:
        """Return the model's text for `messages`; raise InvocationError on failure."""
        ...


@runtime_checkable
class ResponderCall(Protocol):
    async def answer(self, query: str) -> str:
        """Return the responder's text for `query`; raise InvocationError on failure."""
        ...
