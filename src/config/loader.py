"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ──────────────────────────────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. config/config.yaml : Static defaults checked into the repo
#   2. .env file          : Local developer overrides (not committed)
#   3. Environment vars   : Set at deploy time
#
# load_config() reads the YAML file first, then deep-merges the values
# resolved by Settings on top.
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path

import yaml

from src.config.settings import Settings


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Environment variables (via Settings) override YAML values where keys overlap.

    Args:
        path: Path to the YAML configuration file.
        settings: Pre-built settings; a fresh ``Settings()`` is read if omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
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
        "cache": {
            "backend": settings.cache_backend,
            "db_path": settings.cache_db_path,
            "ttl_seconds": settings.cache_ttl_seconds,
            "max_size": settings.cache_max_size,
        },
        "providers": {
            "http_timeout_seconds": settings.http_timeout_seconds,
            "search_timeout_seconds": settings.search_timeout_seconds,
            "stackoverflow": {
                "api_url": settings.stackexchange_api_url,
                "site": settings.stackexchange_site,
            },
            "reddit": {
                "search_url": settings.reddit_search_url,
                "limit": settings.reddit_result_limit,
                "user_agent": settings.reddit_user_agent,
            },
        },
        "email": {
            "enabled": settings.smtp_enabled,
            "host": settings.smtp_host,
            "port": settings.smtp_port,
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
