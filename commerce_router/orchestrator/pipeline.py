"""Run one query through classify -> dispatch -> synthesize as an explicit, forward-only state machine."""
from __future__ import annotations

import logging
import time

from commerce_router.core.contracts.orchestrator import (
    DispatchReport,
    FinalAnswer,
    IntentDecision,
    PipelineRun,
    PipelineState,
    QueryEnvelope,
    ResponderResults,
    ResponderRole,
    StateTransition,
)
from commerce_router.core.exceptions import InvalidInputError
from commerce_router.orchestrator.classifier import IntentClassifier, fallback_decision
from commerce_router.orchestrator.dispatcher import Dispatcher
from commerce_router.orchestrator.synthesizer import Synthesizer, concatenate_results

log = logging.getLogger("pipeline")

_NEXT_STATE = {
    None: PipelineState.STARTED,
    PipelineState.STARTED: PipelineState.CLASSIFIED,
    PipelineState.CLASSIFIED: PipelineState.DISPATCHED,
    PipelineState.DISPATCHED: PipelineState.SYNTHESIZED,
}


def validate_envelope(envelope: QueryEnvelope | str) -> QueryEnvelope:
    """Reject blank queries before the pipeline starts."""
    if isinstance(envelope, str):
        envelope = QueryEnvelope(query=envelope)
    if not isinstance(envelope.query, str) or not envelope.query.strip():
        raise InvalidInputError("query must be a non-empty string")
    return envelope


class _Trace:
    def __init__(self):
        self.start = time.perf_counter()
        self.transitions: list[StateTransition] = []

    @property
    def state(self) -> PipelineState | None:
        return self.transitions[-1].state if self.transitions else None

    def advance(self, state: PipelineState) -> None:
        expected = _NEXT_STATE.get(self.state)
        if state is not expected:
            raise RuntimeError(f"Illegal pipeline transition {self.state} -> {state}")
        elapsed_ms = int((time.perf_counter() - self.start) * 1000)
        self.transitions.append(StateTransition(state=state, elapsed_ms=elapsed_ms))


class PipelineExecutor:
    """Sequences the three stages. Once started, always ends in SYNTHESIZED with a non-empty response."""

    def __init__(self, classifier: IntentClassifier, dispatcher: Dispatcher, synthesizer: Synthesizer):
        self.classifier = classifier
        self.dispatcher = dispatcher
        self.synthesizer = synthesizer

    async def run(self, envelope: QueryEnvelope | str) -> FinalAnswer:
        return (await self.run_with_trace(envelope)).answer

    async def run_with_trace(self, envelope: QueryEnvelope | str) -> PipelineRun:
        envelope = validate_envelope(envelope)
        trace = _Trace()
        trace.advance(PipelineState.STARTED)
        log.info("QUERY: %s", (envelope.query[:200] + "…") if len(envelope.query) > 200 else envelope.query)

        decision = await self._classify(envelope)
        trace.advance(PipelineState.CLASSIFIED)

        report = await self._dispatch(decision)
        trace.advance(PipelineState.DISPATCHED)

        answer = await self._synthesize(envelope.query, decision, report.results)
        trace.advance(PipelineState.SYNTHESIZED)

        log.info(
            "ANSWER (%s, sources=%s, %s ms): %s",
            answer.intent,
            sorted(answer.sources),
            trace.transitions[-1].elapsed_ms,
            (answer.response[:300] + "…") if len(answer.response) > 300 else answer.response,
        )
        return PipelineRun(
            envelope=envelope,
            decision=decision,
            dispatch=report,
            answer=answer,
            transitions=tuple(trace.transitions),
        )

    async def _classify(self, envelope: QueryEnvelope) -> IntentDecision:
        try:
            return await self.classifier.classify(envelope)
        except Exception as e:
            log.exception("Classification stage raised")
            return fallback_decision(envelope.query, f"Classification stage raised ({e}), defaulting to mixed")

    async def _dispatch(self, decision: IntentDecision) -> DispatchReport:
        try:
            return await self.dispatcher.run(decision)
        except Exception:
            log.exception("Dispatch stage raised")
            slots = {f"{role.value}_result": "" for role in ResponderRole if decision.wants(role)}
            return DispatchReport(results=ResponderResults(**slots))

    async def _synthesize(self, query: str, decision: IntentDecision, results: ResponderResults) -> FinalAnswer:
        try:
            return await self.synthesizer.synthesize(query, decision.intent, results)
        except Exception:
            log.exception("Synthesis stage raised")
            return FinalAnswer(
                response=concatenate_results(results),
                intent=decision.intent.value,
                sources=results.sources(),
            )


async def run_pipeline(envelope: QueryEnvelope | str, executor: PipelineExecutor) -> FinalAnswer:
    """Public entry point. Raises only InvalidInputError."""
    return await executor.run(envelope)
