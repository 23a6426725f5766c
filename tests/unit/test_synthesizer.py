"""
Unit tests for Synthesizer: single-intent shortcut, model synthesis and the deterministic merge.
"""

import pytest

from commerce_router.core.contracts.orchestrator import (
    CONTENT_SOURCE,
    PRODUCT_SOURCE,
    Intent,
    ResponderResults,
)
from commerce_router.core.exceptions import InvocationError
from commerce_router.orchestrator.synthesizer import (
    CONTENT_HEADING,
    NO_CONTENT_PLACEHOLDER,
    NO_PRODUCT_PLACEHOLDER,
    NO_RESULTS_RESPONSE,
    PRODUCT_HEADING,
    Synthesizer,
    build_synthesis_prompt,
    concatenate_results,
)

QUERY = "running tips and shoe recommendations"
BOTH = ResponderResults(product_result="Pegasus 41 - $140", content_result="Start slow and warm up")


# ── Shortcut ─────────────────────────────────────────────────────────────────

class TestSingleIntentShortcut:
    @pytest.mark.asyncio
    async def test_product_result_returned_verbatim(self, scripted_model):
        model = scripted_model("should not be used")
        answer = await Synthesizer(model).synthesize(
            "trail shoes", Intent.PRODUCT, ResponderResults(product_result="Speedgoat 6 - $155")
        )
        assert answer.response == "Speedgoat 6 - $155"
        assert answer.intent == "product"
        assert answer.sources == frozenset({PRODUCT_SOURCE})
        assert model.calls == []

    @pytest.mark.asyncio
    async def test_content_result_returned_verbatim(self, scripted_model):
        model = scripted_model("should not be used")
        answer = await Synthesizer(model).synthesize(
            "stretch advice", "content", ResponderResults(content_result="Hold each stretch 30s")
        )
        assert answer.response == "Hold each stretch 30s"
        assert answer.sources == frozenset({CONTENT_SOURCE})
        assert model.calls == []


# ── Model synthesis ──────────────────────────────────────────────────────────

class TestModelSynthesis:
    @pytest.mark.asyncio
    async def test_mixed_uses_model_output(self, scripted_model):
        model = scripted_model("Start slow, and the Pegasus 41 is a great pick.")
        answer = await Synthesizer(model).synthesize(QUERY, Intent.MIXED, BOTH)
        assert answer.response == "Start slow, and the Pegasus 41 is a great pick."
        assert answer.intent == "mixed"
        assert answer.sources == frozenset({PRODUCT_SOURCE, CONTENT_SOURCE})
        assert len(model.calls) == 1
        prompt = model.calls[0][0].content
        assert "Pegasus 41 - $140" in prompt
        assert "Start slow and warm up" in prompt

    @pytest.mark.asyncio
    async def test_absent_slot_gets_placeholder_in_prompt(self, scripted_model):
        model = scripted_model("merged")
        await Synthesizer(model).synthesize(QUERY, Intent.MIXED, ResponderResults(product_result="", content_result="tips"))
        prompt = model.calls[0][0].content
        assert NO_PRODUCT_PLACEHOLDER in prompt
        assert NO_CONTENT_PLACEHOLDER not in prompt

    @pytest.mark.asyncio
    async def test_model_failure_falls_back_to_merge(self, scripted_model):
        model = scripted_model(InvocationError("rate limited"))
        answer = await Synthesizer(model).synthesize(QUERY, Intent.MIXED, BOTH)
        assert answer.response == concatenate_results(BOTH)
        assert answer.sources == frozenset({PRODUCT_SOURCE, CONTENT_SOURCE})

    @pytest.mark.asyncio
    async def test_blank_model_output_falls_back_to_merge(self, scripted_model):
        answer = await Synthesizer(scripted_model("  \n")).synthesize(QUERY, Intent.MIXED, BOTH)
        assert answer.response == concatenate_results(BOTH)

    @pytest.mark.asyncio
    async def test_product_intent_with_empty_result_is_not_shortcut(self, scripted_model):
        model = scripted_model("fallback synthesis")
        answer = await Synthesizer(model).synthesize("shoes", Intent.PRODUCT, ResponderResults(product_result=""))
        assert answer.response == "fallback synthesis"
        assert answer.intent == "product"
        assert answer.sources == frozenset()


# ── Deterministic merge ──────────────────────────────────────────────────────

class TestDeterministicMerge:
    @pytest.mark.asyncio
    async def test_both_empty_without_model(self):
        answer = await Synthesizer().synthesize(QUERY, Intent.MIXED, ResponderResults(product_result="", content_result=""))
        assert answer.response == "I couldn't find relevant information for your query."
        assert answer.response == NO_RESULTS_RESPONSE
        assert answer.sources == frozenset()

    @pytest.mark.asyncio
    async def test_content_only_has_single_section(self):
        answer = await Synthesizer().synthesize(
            QUERY, Intent.MIXED, ResponderResults(product_result="", content_result="Warm up first")
        )
        assert answer.response == f"{CONTENT_HEADING}\n\nWarm up first"
        assert PRODUCT_HEADING not in answer.response
        assert answer.sources == frozenset({CONTENT_SOURCE})

    def test_content_comes_before_products(self):
        merged = concatenate_results(BOTH)
        assert merged.index(CONTENT_HEADING) < merged.index(PRODUCT_HEADING)
        assert "\n\n---\n\n" in merged

    def test_prompt_embeds_query(self):
        assert f'"{QUERY}"' in build_synthesis_prompt(QUERY, BOTH)
