"""Synthesize the final answer from responder results, falling back to a deterministic merge."""
from __future__ import annotations

import logging

from langchain_core.prompts import PromptTemplate

from commerce_router.core.contracts.capabilities import ModelCall
from commerce_router.core.contracts.orchestrator import (
    ChatMessage,
    FinalAnswer,
    Intent,
    ResponderResults,
    ResponderRole,
)

log = logging.getLogger("synthesizer")

NO_RESULTS_RESPONSE = "I couldn't find relevant information for your query."
NO_PRODUCT_PLACEHOLDER = "No product information available."
NO_CONTENT_PLACEHOLDER = "No content information available."
CONTENT_HEADING = "## Inspiration & Tips"
PRODUCT_HEADING = "## Product Recommendations"
SECTION_DIVIDER = "\n\n---\n\n"

PROMPT = """You received responses from two specialized agents for the user's query: "{query}"

Product Agent Response:
{product_response}

Content Agent Response:
{content_response}

Please synthesize these into a single, cohesive response that:
1. Flows naturally and doesn't feel like two separate responses
2. Leads with the most relevant information based on the user's query
3. Clearly distinguishes between product recommendations and inspiration/tips
4. Is helpful and actionable

Provide a well-formatted response:"""

_PROMPT = PromptTemplate.from_template(PROMPT)


def build_synthesis_prompt(query: str, results: ResponderResults) -> str:
    return _PROMPT.format(
        query=query,
        product_response=results.product_result or NO_PRODUCT_PLACEHOLDER,
        content_response=results.content_result or NO_CONTENT_PLACEHOLDER,
    )


def concatenate_results(results: ResponderResults) -> str:
    """Deterministic merge: content section, then product section; fixed text when both are empty."""
    sections = []
    if results.content_result:
        sections.append(f"{CONTENT_HEADING}\n\n{results.content_result}")
    if results.product_result:
        sections.append(f"{PRODUCT_HEADING}\n\n{results.product_result}")
    return SECTION_DIVIDER.join(sections) or NO_RESULTS_RESPONSE


class Synthesizer:
    """Produces the FinalAnswer. `model=None` means no synthesis capability is available."""

    def __init__(self, model: ModelCall | None = None):
        self.model = model

    async def synthesize(self, query: str, intent: Intent | str, results: ResponderResults) -> FinalAnswer:
        intent_value = intent.value if isinstance(intent, Intent) else str(intent)

        # Single-intent answers skip the second model call.
        if intent_value == Intent.PRODUCT.value and results.product_result:
            return FinalAnswer(
                response=results.product_result,
                intent=intent_value,
                sources=frozenset({ResponderRole.PRODUCT.source_label}),
            )
        if intent_value == Intent.CONTENT.value and results.content_result:
            return FinalAnswer(
                response=results.content_result,
                intent=intent_value,
                sources=frozenset({ResponderRole.CONTENT.source_label}),
            )

        sources = results.sources()
        text = await self._model_synthesis(query, results)
        if text is None:
            text = concatenate_results(results)
        return FinalAnswer(response=text, intent=intent_value, sources=sources)

    async def _model_synthesis(self, query: str, results: ResponderResults) -> str | None:
        if self.model is None:
            log.info("No synthesis model, using deterministic merge")
            return None
        prompt = build_synthesis_prompt(query, results)
        try:
            text = await self.model.generate([ChatMessage(role="user", content=prompt)])
        except Exception as e:
            log.warning("Synthesis failed, using deterministic merge: %s", e)
            return None
        if not text or not text.strip():
            log.warning("Synthesis returned empty text, using deterministic merge")
            return None
        return text
