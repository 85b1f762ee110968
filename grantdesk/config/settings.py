"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# Values come from (highest priority first):
#
#   1. Environment variables - e.g. GEMINI_API_KEY=...
#   2. .env file in the working directory
#   3. The defaults below
#
# Field `gemini_api_key` maps to env var `GEMINI_API_KEY`.  List fields
# such as `analysis_models` take JSON in the environment:
#   ANALYSIS_MODELS='["gemini-2.5-flash", "gemini-1.5-flash"]'
#
# An empty string means "not configured": with no SUPABASE_URL the app
# runs entirely on the in-memory store.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Gemini exposes an OpenAI-compatible endpoint, so the openai SDK talks to
# it directly.  Point LLM_BASE_URL elsewhere to use any compatible server.
GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


class Settings(BaseSettings):
    """GrantDesk application settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Text models (analysis + chat answers) ===
    gemini_api_key: str = ""
    llm_base_url: str = GEMINI_OPENAI_BASE_URL
    # Priority order: the first model that answers wins.
    analysis_models: list[str] = Field(
        default_factory=lambda: ["gemini-2.5-flash", "gemini-1.5-flash"]
    )
    llm_timeout_s: float = 60.0

    # === Embeddings ===
    # Falls back to gemini_api_key when empty.
    gemini_embedding_api_key: str = ""
    embedding_model: str = "text-embedding-004"
    embedding_dimension: int = 768

    # === Rate-limit retry (shared by embeddings and text models) ===
    rate_limit_max_attempts: int = 3
    rate_limit_backoff_s: float = 2.0

    # === Remote store (Supabase PostgREST) ===
    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_timeout_s: float = 10.0

    # === Ingestion / retrieval ===
    chunk_size: int = 1000
    chunk_overlap: int = 200
    retrieval_top_k: int = 3
    retrieval_fallback_chars: int = 4000
    ingestion_timeout_s: float = 300.0
    max_upload_bytes: int = 20 * 1024 * 1024
    query_cache_ttl_s: int = 3600
    # Upload ids and their progress are forgotten after this long.
    upload_retention_s: int = 3600
    max_tracked_uploads: int = 1000

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    @property
    def effective_embedding_api_key(self) -> str:
        return self.gemini_embedding_api_key or self.gemini_api_key

    def is_remote_store_configured(self) -> bool:
        """Return ``True`` when both the Supabase URL and key are set."""
        return bool(self.supabase_url and self.supabase_anon_key)

    def get_available_models(self) -> list[str]:
        """Return the configured analysis models, or none without an API key."""
        if not self.gemini_api_key:
            return []
        return [model for model in self.analysis_models if model]
