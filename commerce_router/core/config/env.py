import os
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent.parent
DEFAULT_ENV_FILES = ("config/env/.env", ".env")
DEFAULT_DB_URL_ENV = "POSTGRES_APP_URL"


def load_env_from_path(env_file_path: str | None, project_root: Path | None = None) -> None:
    if not env_file_path:
        return
    root = project_root or Path.cwd()
    path = root / env_file_path
    if path.exists():
        load_dotenv(path, override=False)


def load_default_env(project_root: Path | None = None) -> Path | None:
    """Load the first existing default .env file; never overrides variables already set."""
    root = project_root or PROJECT_ROOT
    for rel in DEFAULT_ENV_FILES:
        path = root / rel
        if path.exists():
            load_dotenv(path, override=False)
            return path
    return None


def get_env_vars(env_file_path: str | None = None, project_root: Path | None = None) -> dict[str, str]:
    load_env_from_path(env_file_path, project_root)
    return dict(os.environ)


def get_app_db_url(env: dict[str, str] | None = None, connection_id: str | None = DEFAULT_DB_URL_ENV) -> str | None:
    """asyncpg-style URL for the memory/trace store, or None when persistence is not configured.

    `connection_id` names the env var holding the URL (session_store.connection_id in the domain config).
    """
    if not connection_id:
        return None
    env = os.environ if env is None else env
    url = env.get(connection_id)
    if not url:
        return None
    return url.replace("postgresql+asyncpg://", "postgresql://")
