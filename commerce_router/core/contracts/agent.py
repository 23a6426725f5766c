from pydantic import BaseModel


class AgentInvokeRequest(BaseModel):
    query: str
    request_id: str | None = None


class AgentInvokeResponse(BaseModel):
    result: str
    status: str  # "success" | "failed"
    latency_ms: int | None = None
