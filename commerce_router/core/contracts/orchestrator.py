from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

PRODUCT_SOURCE = "Product Catalog"
CONTENT_SOURCE = "Editorial Content"


class Intent(str, Enum):
    PRODUCT = "product"
    CONTENT = "content"
    MIXED = "mixed"


class ResponderRole(str, Enum):
    PRODUCT = "product"
    CONTENT = "content"

    @property
    def source_label(self) -> str:
        return PRODUCT_SOURCE if self is ResponderRole.PRODUCT else CONTENT_SOURCE


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["system", "user", "assistant"]
    content: str


class QueryEnvelope(BaseModel):
    """Pipeline input. Emptiness of `query` is checked by the executor, not here."""

    model_config = ConfigDict(frozen=True)

    query: str
    history: tuple[ChatMessage, ...] = ()

    @field_validator("history")
    @classmethod
    def _conversation_turns_only(cls, v: tuple[ChatMessage, ...]) -> tuple[ChatMessage, ...]:
        for m in v:
            if m.role == "system":
                raise ValueError("history may only contain user and assistant turns")
        return v


class IntentDecision(BaseModel):
    model_config = ConfigDict(frozen=True)

    intent: Intent
    product_query: str | None = None
    content_query: str | None = None
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: str

    def query_for(self, role: ResponderRole) -> str | None:
        return self.product_query if role is ResponderRole.PRODUCT else self.content_query

    def wants(self, role: ResponderRole) -> bool:
        """True when `role` should be invoked for this decision."""
        if self.intent is not Intent.MIXED and self.intent.value != role.value:
            return False
        sub_query = self.query_for(role)
        return bool(sub_query and sub_query.strip())


class ResponderResults(BaseModel):
    """One slot per role. None = not requested, "" = requested but failed or empty."""

    model_config = ConfigDict(frozen=True)

    product_result: str | None = None
    content_result: str | None = None

    def result_for(self, role: ResponderRole) -> str | None:
        return self.product_result if role is ResponderRole.PRODUCT else self.content_result

    def sources(self) -> frozenset[str]:
        return frozenset(role.source_label for role in ResponderRole if self.result_for(role))


class ResponderOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: ResponderRole
    query: str
    status: Literal["success", "failed", "timeout", "empty"]
    latency_ms: int | None = None
    error: str | None = None


class DispatchReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    results: ResponderResults
    outcomes: tuple[ResponderOutcome, ...] = ()


class FinalAnswer(BaseModel):
    model_config = ConfigDict(frozen=True)

    response: str = Field(min_length=1)
    intent: str
    sources: frozenset[str] = frozenset()


class PipelineState(str, Enum):
    STARTED = "started"
    CLASSIFIED = "classified"
    DISPATCHED = "dispatched"
    SYNTHESIZED = "synthesized"


class StateTransition(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: PipelineState
    elapsed_ms: int


class PipelineRun(BaseModel):
    """Everything one invocation produced, in stage order."""

    model_config = ConfigDict(frozen=True)

    envelope: QueryEnvelope
    decision: IntentDecision
    dispatch: DispatchReport
    answer: FinalAnswer
    transitions: tuple[StateTransition, ...] = ()

    @property
    def state(self) -> PipelineState:
        return self.transitions[-1].state if self.transitions else PipelineState.STARTED
