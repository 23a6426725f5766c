from pydantic import BaseModel, Field

from commerce_router.core.contracts.orchestrator import ChatMessage


class QueryRequest(BaseModel):
    query: str
    chat_id: str | None = None
    history: list[ChatMessage] = Field(default_factory=list)


class QueryResponse(BaseModel):
    request_id: str
    status: str  # "completed" | "failed"
    response: str | None = None
    intent: str | None = None
    sources: list[str] = Field(default_factory=list)
    confidence: float | None = None
    error: str | None = None
