"""Application configuration."""

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str | None = None
    supabase_service_key: str | None = None
    proxy_base_url: str | None = None
    device_id: str = "local-device"
    storage_backend: str = "local"
    storage_path: Path = Path(".neonest/storage.json")
    remote_timeout_seconds: float = 5.0
    history_limit: int = 200
    history_max_age_days: int = 30
    feedback_history_limit: int = 20
    app_version: str = "NeoNEST v1.0"
    log_level: str = "INFO"
    cors_allowed_origins: str = "*"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def remote_enabled(self) -> bool:
        """True when Supabase credentials are configured."""
        return bool(self.supabase_url and self.supabase_service_key)


def parse_allowed_origins(raw: str | None) -> list[str]:
    """Parse allowed CORS origins from env."""
    if raw is None:
        return ["*"]
    cleaned = raw.strip()
    if cleaned in {"", "*"}:
        return ["*"]
    origins = [chunk.strip() for chunk in cleaned.split(",") if chunk.strip()]
    return origins or ["*"]
