"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# pydantic-settings reads configuration from TWO sources (in priority order):
#
#   1. **Environment variables**: e.g., CACHE_TTL_SECONDS=600
#   2. **.env file**: key=value lines in the project root .env file
#
# Field name `cache_ttl_seconds` maps to env var `CACHE_TTL_SECONDS`.
# Defaults below apply when neither source sets a value.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Knowledge search application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Cache ===
    # "sqlite" (durable, default) or "memory" (process-local).
    cache_backend: str = "sqlite"
    cache_db_path: str = "data/search_cache.db"
    cache_ttl_seconds: int = 3600
    cache_max_size: int = 1000  # memory backend only

    # === Upstream providers ===
    http_timeout_seconds: float = 15.0
    # Wall-clock limit for the whole provider fan-out; 0 disables it.
    search_timeout_seconds: float = 30.0
    stackexchange_api_url: str = "https://api.stackexchange.com/2.3/search/advanced"
    stackexchange_site: str = "stackoverflow"
    reddit_search_url: str = "https://www.reddit.com/search.json"
    reddit_result_limit: int = 10
    reddit_user_agent: str = "KnowledgeBaseApp/1.0.0"

    # === Email delivery ===
    smtp_enabled: bool = False
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: SecretStr | None = None
    smtp_use_tls: bool = False  # implicit TLS (port 465)
    smtp_starttls: bool = True
    smtp_from_email: str = ""
    smtp_from_name: str = "Knowledge Base Search"

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 5000
    app_env: str = "development"
    log_level: str = "INFO"
    cors_allowed_origins: str = "*"  # comma-separated

    def get_cors_origins(self) -> list[str]:
        """Return the configured CORS origins as a list."""
        return [origin.strip() for origin in self.cors_allowed_origins.split(",") if origin.strip()]

    def get_search_timeout(self) -> float | None:
        """Return the fan-out timeout in seconds, or ``None`` when disabled."""
        return self.search_timeout_seconds if self.search_timeout_seconds > 0 else None
