"""
Application configuration with environment variable support.
"""
from __future__ import annotations

from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings


PLACEHOLDER_KEYS = {"your_api_key_here"}


class Settings(BaseSettings):
    NEWS_API_KEY: str = ""
    GNEWS_API_KEY: str = ""
    CURRENTS_API_KEY: str = ""
    NEWSDATA_API_KEY: str = ""
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o-mini"
    REQUEST_TIMEOUT_SECONDS: float = 10.0
    SEARCH_DEBOUNCE_SECONDS: float = 0.3
    HISTORY_LIMIT: int = 100
    STATE_DIR: str = str(Path.home() / ".techpulse")
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    CORS_ALLOW_ORIGINS: List[str] = ["*"]
    PORT: int = 8000


settings = Settings(_env_file=".env", _env_file_encoding="utf-8")


def has_credential(value: str | None) -> bool:
    """Return True when an API key is present and not a template placeholder."""
    if not value:
        return False
    value = value.strip()
    return bool(value) and value not in PLACEHOLDER_KEYS


# Aggregation Settings
REQUEST_TIMEOUT_SECONDS: float = settings.REQUEST_TIMEOUT_SECONDS
SEARCH_DEBOUNCE_SECONDS: float = settings.SEARCH_DEBOUNCE_SECONDS

# Derived-state Settings
HISTORY_LIMIT: int = settings.HISTORY_LIMIT
STATE_KEY = "techpulse_state"

# HTTP Client Configuration
USER_AGENT = "techpulse/0.1"
HTTP_HEADERS = {"User-Agent": USER_AGENT, "Accept": "application/json"}

# CORS Configuration
CORS_ALLOW_ORIGINS: list[str] = settings.CORS_ALLOW_ORIGINS

# Logging Configuration
LOG_LEVEL: str = settings.LOG_LEVEL
LOG_FORMAT: str = settings.LOG_FORMAT
