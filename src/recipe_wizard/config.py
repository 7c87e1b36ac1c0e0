"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    openai_api_key: str
    openai_model: str = "gpt-5.2"
    openai_reasoning_effort: str | None = "low"
    openai_store: bool = False
    openai_image_model: str = "gpt-image-1"
    image_bucket: str = "recipe-images"
    community_page_size: int = 8
    community_debounce_seconds: float = 0.4
    thumbnail_max_width: int = 300
    history_stash_ttl_seconds: int = 600
    client_state_ttl_seconds: int = 86400
    client_state_max_entries: int = 10000
    public_base_url: str = "http://localhost:3000"
    allowed_origins: str | None = None
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_allowed_origins(raw: str | None) -> list[str]:
    """Parse CORS origins from env."""
    if raw is None:
        return []
    cleaned = raw.strip()
    if cleaned == "*":
        return ["*"]
    origins: list[str] = []
    for chunk in cleaned.split(","):
        value = chunk.strip().rstrip("/")
        if not value:
            continue
        if value.startswith(("http://", "https://")):
            origins.append(value)
    return origins
