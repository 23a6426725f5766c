"""
Unit tests for the domain config loader and env helpers.
"""

import json
import os
from pathlib import Path

import pytest

from commerce_router.core.config import load_router_config
from commerce_router.core.config.env import get_app_db_url, load_env_from_path
from commerce_router.core.contracts.orchestrator import ResponderRole
from commerce_router.core.exceptions import ConfigError

PROJECT_ROOT = Path(__file__).resolve().parents[2]
COMMERCE_CONFIG = "config/domains/commerce.json"


def _minimal(**overrides):
    data = {
        "domain_id": "test",
        "domain_name": "Test",
        "responders": [
            {"name": "p", "role": "product", "port": 9001, "system_prompt": "products"},
            {"name": "c", "role": "content", "port": 9002, "system_prompt": "content"},
        ],
    }
    data.update(overrides)
    return data


# ── Loader ───────────────────────────────────────────────────────────────────

class TestLoadRouterConfig:
    def test_shipped_commerce_config_loads(self):
        config = load_router_config(COMMERCE_CONFIG, PROJECT_ROOT)
        assert config.domain_id == "commerce"
        assert config.get_responder_for_role(ResponderRole.PRODUCT).name == "product-agent"
        assert config.get_responder_for_role(ResponderRole.CONTENT).name == "content-agent"
        assert config.get_data_source("catalog").remote_tool == "searchSingleIndex"
        assert config.router.history_window == 6
        assert config.session_store_env() == "POSTGRES_APP_URL"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_router_config("nope.json", tmp_path)

    def test_invalid_json(self, tmp_path):
        (tmp_path / "bad.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid JSON"):
            load_router_config("bad.json", tmp_path)

    def test_schema_violation(self, tmp_path):
        (tmp_path / "bad.json").write_text(json.dumps({"domain_id": "x"}), encoding="utf-8")
        with pytest.raises(ConfigError, match="schema"):
            load_router_config("bad.json", tmp_path)

    def test_duplicate_role_rejected(self, tmp_path):
        data = _minimal()
        data["responders"][1]["role"] = "product"
        (tmp_path / "dup.json").write_text(json.dumps(data), encoding="utf-8")
        with pytest.raises(ConfigError, match="Duplicate responder"):
            load_router_config("dup.json", tmp_path)

    def test_defaults_and_lookups(self, tmp_path):
        (tmp_path / "ok.json").write_text(json.dumps(_minimal()), encoding="utf-8")
        config = load_router_config(str(tmp_path / "ok.json"))
        assert config.router.llm.model == "gpt-4o-mini"
        assert config.router.synthesis_enabled is True
        assert config.get_responder_base_url("c") == "http://127.0.0.1:9002"
        assert config.get_responder_by_name("missing") is None
        assert config.session_store_env() is None
        with pytest.raises(ValueError):
            config.get_responder_base_url("missing")

    def test_env_file_is_loaded_without_overriding(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ROUTER_TEST_KEEP", "from-process")
        monkeypatch.delenv("ROUTER_TEST_NEW", raising=False)
        (tmp_path / ".env").write_text("ROUTER_TEST_KEEP=from-file\nROUTER_TEST_NEW=loaded\n", encoding="utf-8")
        (tmp_path / "ok.json").write_text(json.dumps(_minimal(env_file_path=".env")), encoding="utf-8")
        load_router_config("ok.json", tmp_path)
        assert os.environ["ROUTER_TEST_KEEP"] == "from-process"
        assert os.environ["ROUTER_TEST_NEW"] == "loaded"


# ── Env ──────────────────────────────────────────────────────────────────────

class TestEnvHelpers:
    def test_app_db_url_absent(self):
        assert get_app_db_url({}) is None

    def test_app_db_url_strips_driver(self):
        url = get_app_db_url({"POSTGRES_APP_URL": "postgresql+asyncpg://u:p@db:5432/app"})
        assert url == "postgresql://u:p@db:5432/app"

    def test_app_db_url_reads_configured_env_var(self):
        env = {"POSTGRES_APP_URL": "postgresql://default", "COMMERCE_DB_URL": "postgresql://custom"}
        assert get_app_db_url(env, connection_id="COMMERCE_DB_URL") == "postgresql://custom"
        assert get_app_db_url(env, connection_id=None) is None

    def test_missing_env_file_is_ignored(self, tmp_path):
        load_env_from_path("does/not/exist.env", tmp_path)
