"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ──────────────────────────────────────────
#
#   1. config/config.yaml  - static defaults checked into the repo
#   2. .env file           - local developer overrides (not committed)
#   3. Environment vars    - set at deploy time
#
# load_config() reads the YAML first, then deep-merges the values
# resolved by Settings on top, so anything set in the environment wins.
# Secrets are reported only as "configured" booleans, never copied into
# the merged dict.
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path

import yaml

from grantdesk.config.settings import Settings


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge the environment-based Settings over it.

    Args:
        path: Path to the YAML configuration file.  A missing file is
            treated as empty.
        settings: Pre-built settings; constructed from the environment
            when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "llm": {
            "base_url": settings.llm_base_url,
            "analysis_models": settings.analysis_models,
            "available_models": settings.get_available_models(),
            "timeout_s": settings.llm_timeout_s,
        },
        "embedding": {
            "model": settings.embedding_model,
            "dimension": settings.embedding_dimension,
            "configured": bool(settings.effective_embedding_api_key),
        },
        "retry": {
            "max_attempts": settings.rate_limit_max_attempts,
            "backoff_s": settings.rate_limit_backoff_s,
        },
        "store": {
            "remote_configured": settings.is_remote_store_configured(),
            "timeout_s": settings.supabase_timeout_s,
        },
        "ingestion": {
            "chunk_size": settings.chunk_size,
            "chunk_overlap": settings.chunk_overlap,
            "timeout_s": settings.ingestion_timeout_s,
            "max_upload_bytes": settings.max_upload_bytes,
            "upload_retention_s": settings.upload_retention_s,
        },
        "retrieval": {
            "top_k": settings.retrieval_top_k,
            "fallback_chars": settings.retrieval_fallback_chars,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
