#!/usr/bin/env python3
"""Apply SQL migrations in migrations/versions/ against the session store URL (session_store.connection_id, default POSTGRES_APP_URL)."""
import asyncio
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

import asyncpg

from commerce_router.core.config.env import DEFAULT_DB_URL_ENV, get_app_db_url, load_default_env
from commerce_router.core.config.loader import load_router_config

DEFAULT_CONFIG_PATH = "config/domains/commerce.json"


def split_statements(sql: str) -> list[str]:
    lines = [line for line in sql.split("\n") if not line.strip().startswith("--")]
    return [stmt.strip() + ";" for stmt in "\n".join(lines).split(";") if stmt.strip()]


async def run_migrations(url: str) -> None:
    conn = await asyncpg.connect(url)
    try:
        for sql_path in sorted((ROOT / "migrations" / "versions").glob("*.sql")):
            async with conn.transaction():
                for stmt in split_statements(sql_path.read_text(encoding="utf-8")):
                    await conn.execute(stmt)
            print(f"Migration {sql_path.name} applied successfully.")
    finally:
        await conn.close()


def main():
    load_default_env(ROOT)
    config = load_router_config(os.environ.get("CONFIG_PATH", DEFAULT_CONFIG_PATH), project_root=ROOT)
    env_var = config.session_store_env() or DEFAULT_DB_URL_ENV
    url = get_app_db_url(connection_id=env_var)
    if not url:
        print(f"{env_var} not set. Set it in config/env/.env or .env")
        sys.exit(1)
    asyncio.run(run_migrations(url))


if __name__ == "__main__":
    main()
