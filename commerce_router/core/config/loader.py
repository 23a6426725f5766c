import json
from pathlib import Path

from pydantic import ValidationError

from commerce_router.core.config.env import load_env_from_path
from commerce_router.core.config.models import RouterConfig
from commerce_router.core.exceptions import ConfigError


def load_router_config(config_path: str | Path, project_root: Path | None = None) -> RouterConfig:
    root = project_root or Path.cwd()
    path = Path(config_path)
    if not path.is_absolute():
        path = root / path
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e
    try:
        config = RouterConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config schema in {path}: {e}") from e
    load_env_from_path(config.env_file_path, root)
    return config
