from commerce_router.core.config.loader import load_router_config
from commerce_router.core.config.models import (
    DataSourceConfig,
    ModelSettings,
    ResponderConfig,
    RouterConfig,
    RouterSettings,
    SessionStoreConfig,
)
from commerce_router.core.config.env import get_app_db_url, get_env_vars, load_default_env

__all__ = [
    "load_router_config",
    "DataSourceConfig",
    "ModelSettings",
    "ResponderConfig",
    "RouterConfig",
    "RouterSettings",
    "SessionStoreConfig",
    "get_app_db_url",
    "get_env_vars",
    "load_default_env",
]
