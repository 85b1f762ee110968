"""Unit tests for Settings and the YAML config loader."""

from __future__ import annotations

from pathlib import Path

import pytest

from grantdesk.config.loader import _deep_merge, load_config
from grantdesk.config.settings import GEMINI_OPENAI_BASE_URL, Settings


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ("GEMINI_API_KEY", "SUPABASE_URL", "SUPABASE_ANON_KEY", "ANALYSIS_MODELS"):
            monkeypatch.delenv(name, raising=False)
        settings = Settings(_env_file=None)

        assert settings.llm_base_url == GEMINI_OPENAI_BASE_URL
        assert settings.analysis_models == ["gemini-2.5-flash", "gemini-1.5-flash"]
        assert settings.chunk_size == 1000
        assert settings.chunk_overlap == 200
        assert settings.retrieval_top_k == 3
        assert settings.rate_limit_max_attempts == 3
        assert settings.rate_limit_backoff_s == 2.0
        assert not settings.is_remote_store_configured()
        assert settings.get_available_models() == []

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GEMINI_API_KEY", "env-key")
        monkeypatch.setenv("ANALYSIS_MODELS", '["model-a"]')
        monkeypatch.setenv("CHUNK_SIZE", "500")
        settings = Settings(_env_file=None)

        assert settings.gemini_api_key == "env-key"
        assert settings.get_available_models() == ["model-a"]
        assert settings.chunk_size == 500

    def test_embedding_key_falls_back(self) -> None:
        settings = Settings(_env_file=None, gemini_api_key="main")
        assert settings.effective_embedding_api_key == "main"
        settings = Settings(_env_file=None, gemini_api_key="main", gemini_embedding_api_key="embed")
        assert settings.effective_embedding_api_key == "embed"

    def test_remote_store_needs_url_and_key(self) -> None:
        assert not Settings(_env_file=None, supabase_url="https://x.supabase.co").is_remote_store_configured()
        assert Settings(
            _env_file=None, supabase_url="https://x.supabase.co", supabase_anon_key="k"
        ).is_remote_store_configured()


class TestLoadConfig:
    def test_yaml_merged_with_settings(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(
            "app:\n  version: 9.9.9\n  cors_origins: ['http://localhost:5173']\n"
            "logging:\n  json: true\n",
            encoding="utf-8",
        )
        settings = Settings(_env_file=None, app_port=9000, gemini_api_key="secret")

        config = load_config(str(path), settings=settings)

        assert config["app"]["version"] == "9.9.9"
        assert config["app"]["cors_origins"] == ["http://localhost:5173"]
        assert config["app"]["port"] == 9000
        assert config["logging"]["json"] is True
        assert config["logging"]["level"] == "INFO"
        assert "secret" not in str(config)

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        config = load_config(str(tmp_path / "absent.yaml"), settings=Settings(_env_file=None))
        assert config["ingestion"]["chunk_size"] == 1000


class TestDeepMerge:
    def test_nested_merge(self) -> None:
        base = {"a": {"x": 1, "y": 2}, "b": 1}
        _deep_merge(base, {"a": {"y": 3, "z": 4}, "c": 5})
        assert base == {"a": {"x": 1, "y": 3, "z": 4}, "b": 1, "c": 5}

    def test_scalar_replaces_dict(self) -> None:
        base = {"a": {"x": 1}}
        _deep_merge(base, {"a": 2})
        assert base == {"a": 2}
