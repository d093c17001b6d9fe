"""Application configuration."""

import os
from uuid import UUID

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    openai_api_key: str
    openai_model: str = "gpt-5.2"
    openai_reasoning_effort: str | None = None
    openai_store: bool = False
    extraction_proxy_url: str | None = None
    extraction_timeout_seconds: float = 30.0
    history_limit: int = 10
    recent_entries_limit: int = 10
    session_ttl_seconds: int = 3600
    allowed_user_ids: str | None = None
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_allowed_user_ids(raw: str | None) -> set[UUID] | None:
    """Parse allowed user ids from env."""
    if raw is None:
        return None
    cleaned = raw.strip()
    if cleaned in {"", "*"}:
        return None
    ids: set[UUID] = set()
    for chunk in cleaned.split(","):
        value = chunk.strip()
        if not value:
            continue
        try:
            ids.add(UUID(value))
        except ValueError:
            continue
    return ids or None
