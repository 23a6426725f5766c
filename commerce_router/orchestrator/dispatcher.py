"""Dispatch an intent decision to the product and/or content responders and collect their results."""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Mapping

from commerce_router.core.contracts.capabilities import ResponderCall
from commerce_router.core.contracts.orchestrator import (
    DispatchReport,
    IntentDecision,
    ResponderOutcome,
    ResponderResults,
    ResponderRole,
)

log = logging.getLogger("dispatcher")


def _preview(text: str, max_len: int = 100) -> str:
    return (text[:max_len] + "…") if len(text) > max_len else text


class Dispatcher:
    """Fans a decision out to the wanted responders and joins on all of them.

    A failed, timed-out or empty responder call leaves "" in its slot; the sibling
    call always runs to completion.
    """

    def __init__(self, responders: Mapping[ResponderRole, ResponderCall], timeout_s: float | None = None):
        self.responders = dict(responders)
        self.timeout_s = timeout_s

    async def dispatch(self, decision: IntentDecision) -> ResponderResults:
        return (await self.run(decision)).results

    async def run(self, decision: IntentDecision) -> DispatchReport:
        roles = [role for role in ResponderRole if decision.wants(role)]
        if not roles:
            log.warning("No responder wanted for intent %s", decision.intent.value)
            return DispatchReport(results=ResponderResults())
        calls = [self._call(role, decision.query_for(role) or "") for role in roles]
        done = await asyncio.gather(*calls)
        slots = {f"{outcome.role.value}_result": text for outcome, text in done}
        return DispatchReport(results=ResponderResults(**slots), outcomes=tuple(o for o, _ in done))

    async def _call(self, role: ResponderRole, query: str) -> tuple[ResponderOutcome, str]:
        responder = self.responders.get(role)
        if responder is None:
            log.warning("← %s: no responder configured", role.value)
            return ResponderOutcome(role=role, query=query, status="failed", error="no responder configured"), ""
        log.info("→ %s: %s", role.value, _preview(query))
        start = time.perf_counter()
        try:
            text = await asyncio.wait_for(responder.answer(query), timeout=self.timeout_s)
        except asyncio.TimeoutError:
            latency_ms = int((time.perf_counter() - start) * 1000)
            log.warning("← %s: timed out after %ss (%s ms)", role.value, self.timeout_s, latency_ms)
            return ResponderOutcome(
                role=role, query=query, status="timeout", latency_ms=latency_ms, error=f"timed out after {self.timeout_s}s"
            ), ""
        except Exception as e:
            latency_ms = int((time.perf_counter() - start) * 1000)
            log.warning("← %s: failed %s (%s ms)", role.value, e, latency_ms)
            return ResponderOutcome(role=role, query=query, status="failed", latency_ms=latency_ms, error=str(e)), ""
        latency_ms = int((time.perf_counter() - start) * 1000)
        text = "" if text is None else str(text)
        if not text.strip():
            log.warning("← %s: empty result (%s ms)", role.value, latency_ms)
            return ResponderOutcome(role=role, query=query, status="empty", latency_ms=latency_ms), ""
        log.info("← %s: %s (%s ms)", role.value, _preview(text, 150), latency_ms)
        return ResponderOutcome(role=role, query=query, status="success", latency_ms=latency_ms), text
