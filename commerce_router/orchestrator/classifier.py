"""Classify a user query as product, content or mixed intent and split it into per-responder sub-queries."""
from __future__ import annotations

import json
import logging
import math
from typing import Any, Literal, Sequence

from langchain_core.prompts import PromptTemplate
from pydantic import BaseModel

from commerce_router.core.contracts.capabilities import ModelCall
from commerce_router.core.contracts.orchestrator import ChatMessage, Intent, IntentDecision, QueryEnvelope

log = logging.getLogger("classifier")

DEFAULT_CONFIDENCE = 0.5
DEFAULT_REASONING = "No reasoning provided"
NO_JSON_REASONING = "No JSON object found in classifier output, defaulting to mixed"
INVALID_JSON_REASONING = "JSON parsing failed ({error}), defaulting to mixed"
MODEL_FAILURE_REASONING = "Intent model call failed ({error}), defaulting to mixed"

# Bounds for the brace scan over free model text
MAX_SCAN_CHARS = 20_000
MAX_SCAN_STARTS = 32

# Only {history} and {query} are variables; the JSON shape uses {{ }} for literal braces
CLASSIFY_TEMPLATE = """Analyze the following user query and classify the intent.
{history}
User Query: "{query}"

Classify the intent as one of:
- "product": User wants product information, pricing, availability, or store locations
- "content": User wants inspiration, tips, advice, articles, or editorial content
- "mixed": User wants both product information AND content/inspiration

Respond in JSON format only, no other text:
{{
  "intent": "product" | "content" | "mixed",
  "productQuery": "extracted product-related part of query (if applicable)",
  "contentQuery": "extracted content-related part of query (if applicable)",
  "confidence": 0.0-1.0,
  "reasoning": "brief explanation of classification"
}}"""

_PROMPT = PromptTemplate.from_template(CLASSIFY_TEMPLATE)


class JsonExtraction(BaseModel):
    """Tagged outcome of pulling a JSON object out of free model text."""

    status: Literal["parsed", "missing", "invalid"]
    payload: dict[str, Any] | None = None
    error: str | None = None


def find_json_object(text: str) -> str | None:
    """Return the first balanced {...} span in `text`, ignoring braces inside JSON strings.

    Only the first MAX_SCAN_CHARS characters and MAX_SCAN_STARTS opening braces are tried.
    """
    text = text[:MAX_SCAN_CHARS]
    start = text.find("{")
    attempts = 0
    while start != -1 and attempts < MAX_SCAN_STARTS:
        attempts += 1
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start : i + 1]
        start = text.find("{", start + 1)
    return None


def extract_json(text: str) -> JsonExtraction:
    candidate = find_json_object(text or "")
    if candidate is None:
        return JsonExtraction(status="missing")
    try:
        payload = json.loads(candidate)
    except json.JSONDecodeError as e:
        return JsonExtraction(status="invalid", error=str(e))
    if not isinstance(payload, dict):
        return JsonExtraction(status="invalid", error=f"expected an object, got {type(payload).__name__}")
    return JsonExtraction(status="parsed", payload=payload)


def fallback_decision(query: str, reasoning: str) -> IntentDecision:
    return IntentDecision(
        intent=Intent.MIXED,
        product_query=query,
        content_query=query,
        confidence=DEFAULT_CONFIDENCE,
        reasoning=reasoning,
    )


def _coerce_intent(raw: Any) -> Intent:
    if isinstance(raw, str):
        try:
            return Intent(raw.strip().lower())
        except ValueError:
            log.warning("Unknown intent %r, defaulting to mixed", raw)
    return Intent.MIXED


def _coerce_confidence(raw: Any) -> float:
    if isinstance(raw, bool) or raw is None:
        return DEFAULT_CONFIDENCE
    if isinstance(raw, int):
        # JSON ints are unbounded; clamp before float() can overflow
        return float(min(1, max(0, raw)))
    try:
        value = float(raw)
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_CONFIDENCE
    if math.isnan(value):
        return DEFAULT_CONFIDENCE
    return min(1.0, max(0.0, value))


def _text_field(payload: dict[str, Any], *keys: str) -> str | None:
    for key in keys:
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def decision_from_payload(payload: dict[str, Any], query: str) -> IntentDecision:
    """Apply per-field defaults to a decoded classifier object."""
    intent = _coerce_intent(payload.get("intent"))
    product_query = _text_field(payload, "productQuery", "product_query")
    content_query = _text_field(payload, "contentQuery", "content_query")
    if intent in (Intent.PRODUCT, Intent.MIXED) and not product_query:
        product_query = query
    if intent in (Intent.CONTENT, Intent.MIXED) and not content_query:
        content_query = query
    return IntentDecision(
        intent=intent,
        product_query=product_query,
        content_query=content_query,
        confidence=_coerce_confidence(payload.get("confidence")),
        reasoning=_text_field(payload, "reasoning") or DEFAULT_REASONING,
    )


def render_history(history: Sequence[ChatMessage], window: int) -> str:
    if window <= 0 or not history:
        return ""
    lines = []
    for m in list(history)[-window:]:
        content = m.content if len(m.content) <= 500 else m.content[:500] + "…"
        lines.append(f"{m.role.capitalize()}: {content}")
    return "\nConversation so far:\n" + "\n".join(lines) + "\n"


def build_classification_prompt(envelope: QueryEnvelope, history_window: int = 6) -> str:
    return _PROMPT.format(query=envelope.query, history=render_history(envelope.history, history_window))


class IntentClassifier:
    """Turns a query envelope into an IntentDecision. Never raises for model or parsing problems."""

    def __init__(self, model: ModelCall, history_window: int = 6):
        self.model = model
        self.history_window = history_window

    async def classify(self, envelope: QueryEnvelope) -> IntentDecision:
        query = envelope.query
        prompt = build_classification_prompt(envelope, self.history_window)
        try:
            text = await self.model.generate([ChatMessage(role="user", content=prompt)])
        except Exception as e:
            log.warning("Intent model failed: %s", e)
            return fallback_decision(query, MODEL_FAILURE_REASONING.format(error=e))

        extraction = extract_json(text)
        if extraction.status == "missing":
            log.warning("No JSON in classifier output: %s", _preview(text))
            return fallback_decision(query, NO_JSON_REASONING)
        if extraction.status == "invalid":
            log.warning("Invalid JSON in classifier output: %s", extraction.error)
            return fallback_decision(query, INVALID_JSON_REASONING.format(error=extraction.error))

        decision = decision_from_payload(extraction.payload or {}, query)
        log.info("INTENT %s (confidence %.2f): %s", decision.intent.value, decision.confidence, decision.reasoning)
        return decision


def _preview(text: str | None, max_len: int = 120) -> str:
    text = text or ""
    return (text[:max_len] + "…") if len(text) > max_len else text
