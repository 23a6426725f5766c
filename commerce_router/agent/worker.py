from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage, ToolMessage
from langchain_core.prompts import ChatPromptTemplate

from commerce_router.core.config.models import ResponderConfig, RouterConfig
from commerce_router.core.exceptions import InvocationError
from commerce_router.core.llm import build_chat_model, message_text
from commerce_router.agent.guardrails import apply_guardrails
from commerce_router.tools.registry import get_tools

FINAL_ANSWER_NUDGE = "Answer the original request now, using only the information gathered so far."


async def _invoke_simple_chain(llm: BaseChatModel, system_prompt: str, query: str) -> str:
    prompt = ChatPromptTemplate.from_messages([("system", "{system}"), ("human", "{input}")])
    out = await (prompt | llm).ainvoke({"system": system_prompt, "input": query})
    return message_text(out)


async def _invoke_with_tools(
    llm: BaseChatModel,
    tools: list[Any],
    system_prompt: str,
    query: str,
    max_rounds: int,
    log: logging.Logger,
) -> str:
    by_name = {t.name: t for t in tools}
    messages: list[BaseMessage] = [SystemMessage(content=system_prompt), HumanMessage(content=query)]
    bound = llm.bind_tools(tools)
    for _ in range(max_rounds):
        ai = await bound.ainvoke(messages)
        messages.append(ai)
        if not ai.tool_calls:
            return message_text(ai)
        for call in ai.tool_calls:
            t = by_name.get(call["name"])
            log.info("TOOL %s %s", call["name"], call.get("args"))
            content = await t.ainvoke(call.get("args") or {}) if t else f"Unknown tool {call['name']}"
            messages.append(ToolMessage(content=str(content), tool_call_id=call["id"]))
    # Out of tool rounds: force a plain answer.
    messages.append(HumanMessage(content=FINAL_ANSWER_NUDGE))
    ai = await llm.bind_tools(tools, tool_choice="none").ainvoke(messages)
    return message_text(ai)


def build_responder(
    responder_config: ResponderConfig,
    clients: dict[str, Any],
    router_config: RouterConfig,
    llm: BaseChatModel | None = None,
) -> Callable[[str], Awaitable[str]]:
    """Build the async runner for one responder role: tool-calling loop, then guardrails."""
    llm = llm or build_chat_model(responder_config.llm)
    tools = get_tools(responder_config.tool_names, clients, router_config)
    log = logging.getLogger(f"responder.{responder_config.name}")
    system_prompt = responder_config.system_prompt

    async def run_with_guardrails(query: str) -> str:
        try:
            if not tools:
                content = await _invoke_simple_chain(llm, system_prompt, query)
            else:
                try:
                    content = await _invoke_with_tools(
                        llm, tools, system_prompt, query, responder_config.max_tool_rounds, log
                    )
                except Exception as e:
                    # Fallback: no tool loop, just LLM
                    log.warning("Tool loop failed, answering without tools: %s", e)
                    content = await _invoke_simple_chain(llm, system_prompt, query)
        except Exception as e:
            raise InvocationError(f"{responder_config.name} failed: {e}") from e
        return apply_guardrails(content, responder_config.guardrails)

    return run_with_guardrails
