"""LangChain chat model behind the ModelCall capability."""
from __future__ import annotations

import logging
from typing import Any, Sequence

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from commerce_router.core.config.models import ModelSettings
from commerce_router.core.contracts.orchestrator import ChatMessage
from commerce_router.core.exceptions import InvocationError

log = logging.getLogger("llm")


def build_chat_model(settings: ModelSettings) -> BaseChatModel:
    kwargs: dict[str, Any] = {"model": settings.model, "temperature": settings.temperature}
    if settings.max_tokens:
        kwargs["max_tokens"] = settings.max_tokens
    if settings.timeout_s:
        kwargs["timeout"] = settings.timeout_s
    return ChatOpenAI(**kwargs)


def to_langchain_messages(messages: Sequence[ChatMessage]) -> list[BaseMessage]:
    out: list[BaseMessage] = []
    for m in messages:
        if m.role == "system":
            out.append(SystemMessage(content=m.content))
        elif m.role == "assistant":
            out.append(AIMessage(content=m.content))
        else:
            out.append(HumanMessage(content=m.content))
    return out


def message_text(message: Any) -> str:
    """Plain text of a chat model reply; content-block lists are flattened to their text parts."""
    content = message.content if hasattr(message, "content") else message
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(str(block.get("text", "")))
        return "".join(parts)
    return str(content)


class ChatModelCall:
    """ModelCall over any LangChain chat model."""

    def __init__(self, llm: BaseChatModel, name: str = "model"):
        self.llm = llm
        self.name = name

    @classmethod
    def from_settings(cls, settings: ModelSettings, name: str = "model") -> "ChatModelCall":
        return cls(build_chat_model(settings), name=name)

    async def generate(self, messages: Sequence[ChatMessage]) -> str:
        try:
            out = await self.llm.ainvoke(to_langchain_messages(messages))
        except Exception as e:
            log.warning("%s call failed: %s", self.name, e)
            raise InvocationError(f"{self.name} call failed: {e}") from e
        return message_text(out)
