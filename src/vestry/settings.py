"""Global settings loaded from environment variables via pydantic-settings."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="VESTRY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_dir: str = "./data/logs"
    proxy_url: str = ""
    http_timeout: float = 10.0
    max_workers: int = 4
    # Secrets (must be env vars)
    contentful_access_token: str = ""
    zoom_room_passcode: str = ""
