from commerce_router.core.config.loader import load_router_config
from commerce_router.core.config.models import RouterConfig, ResponderConfig, DataSourceConfig, SessionStoreConfig
from commerce_router.core.exceptions import (
    CommerceRouterError,
    ConfigError,
    InvalidInputError,
    InvocationError,
    AgentUnavailable,
)

__all__ = [
    "load_router_config",
    "RouterConfig",
    "ResponderConfig",
    "DataSourceConfig",
    "SessionStoreConfig",
    "CommerceRouterError",
    "ConfigError",
    "InvalidInputError",
    "InvocationError",
    "AgentUnavailable",
]
