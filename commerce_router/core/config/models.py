from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, model_validator

from commerce_router.core.contracts.orchestrator import ResponderRole


class ModelSettings(BaseModel):
    model: str = "gpt-4o-mini"
    temperature: float = 0.0
    max_tokens: int | None = None
    timeout_s: float | None = 60.0


class RouterSettings(BaseModel):
    name: str = "router"
    port: int = 8000
    llm: ModelSettings = Field(default_factory=ModelSettings)
    responder_timeout_s: float | None = 90.0  # None disables the per-call timeout
    history_window: int = Field(default=6, ge=0)
    synthesis_enabled: bool = True  # False forces the deterministic concatenation


class ResponderConfig(BaseModel):
    name: str
    role: ResponderRole
    port: int
    system_prompt: str
    llm: ModelSettings = Field(default_factory=ModelSettings)
    guardrails: list[str] = Field(default_factory=list)
    tool_names: list[str] = Field(default_factory=list)
    max_tool_rounds: int = Field(default=4, ge=1)


class DataSourceConfig(BaseModel):
    id: str
    type: str  # "mcp" | "vector_db"
    engine: str | None = None  # "chroma" for vector_db
    connection_id: str  # env var holding the URL (mcp) or persist directory (chroma)
    auth_token_env: str | None = None  # env var holding a bearer token (mcp)
    collection_name: str | None = None  # for chroma
    remote_tool: str | None = None  # tool to call on an mcp server
    tool_arguments: dict[str, Any] = Field(default_factory=dict)  # fixed arguments merged into each mcp call


class SessionStoreConfig(BaseModel):
    type: str  # "postgres"
    connection_id: str


class RouterConfig(BaseModel):
    domain_id: str
    domain_name: str
    env_file_path: str | None = None
    router: RouterSettings = Field(default_factory=RouterSettings)
    responders: list[ResponderConfig] = Field(default_factory=list)
    data_sources: list[DataSourceConfig] = Field(default_factory=list)
    session_store: SessionStoreConfig | None = None

    @model_validator(mode="after")
    def _one_responder_per_role(self) -> "RouterConfig":
        seen: set[ResponderRole] = set()
        for r in self.responders:
            if r.role in seen:
                raise ValueError(f"Duplicate responder for role {r.role.value}")
            seen.add(r.role)
        return self

    def get_responder_by_name(self, name: str) -> ResponderConfig | None:
        for r in self.responders:
            if r.name == name:
                return r
        return None

    def get_responder_for_role(self, role: ResponderRole) -> ResponderConfig | None:
        for r in self.responders:
            if r.role is role:
                return r
        return None

    def session_store_env(self) -> str | None:
        """Env var with the memory/trace store URL; None when no session store is configured."""
        return self.session_store.connection_id if self.session_store else None

    def get_data_source(self, source_id: str) -> DataSourceConfig | None:
        for ds in self.data_sources:
            if ds.id == source_id:
                return ds
        return None

    def get_responder_base_url(self, name: str, host: str = "127.0.0.1") -> str:
        responder = self.get_responder_by_name(name)
        if not responder:
            raise ValueError(f"Responder {name} not in config")
        return f"http://{host}:{responder.port}"

    def ports(self) -> list[int]:
        return [self.router.port] + [r.port for r in self.responders]

    def summary(self) -> dict[str, Any]:
        return {
            "domain_id": self.domain_id,
            "responders": {r.role.value: r.name for r in self.responders},
            "data_sources": [ds.id for ds in self.data_sources],
        }
