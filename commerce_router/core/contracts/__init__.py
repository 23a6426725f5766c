from commerce_router.core.contracts.api import QueryRequest, QueryResponse
from commerce_router.core.contracts.orchestrator import (
    CONTENT_SOURCE,
    PRODUCT_SOURCE,
    ChatMessage,
    DispatchReport,
    FinalAnswer,
    Intent,
    IntentDecision,
    PipelineRun,
    PipelineState,
    QueryEnvelope,
    ResponderOutcome,
    ResponderResults,
    ResponderRole,
    StateTransition,
)
from commerce_router.core.contracts.agent import AgentInvokeRequest, AgentInvokeResponse
from commerce_router.core.contracts.capabilities import ModelCall, ResponderCall

__all__ = [
    "QueryRequest",
    "QueryResponse",
    "CONTENT_SOURCE",
    "PRODUCT_SOURCE",
    "ChatMessage",
    "DispatchReport",
    "FinalAnswer",
    "Intent",
    "IntentDecision",
    "PipelineRun",
    "PipelineState",
    "QueryEnvelope",
    "ResponderOutcome",
    "ResponderResults",
    "ResponderRole",
    "StateTransition",
    "AgentInvokeRequest",
    "AgentInvokeResponse",
    "ModelCall",
    "ResponderCall",
]
