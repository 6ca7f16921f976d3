"""YAML config loading; secrets come from the environment via Settings."""

from __future__ import annotations

from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from vestry.settings import Settings


class ContentfulConfig(BaseModel):
    host: str = "https://cdn.contentful.com"
    space: str = ""
    environment: str = "master"
    page_size: int = 100
    include: int = 2


class PatreonConfig(BaseModel):
    api_base: str = "https://www.patreon.com/api/oauth2/api"
    campaign_id: str | None = None
    campaign_url: str | None = None


class NotificationConfig(BaseModel):
    namespace: str = "vestry"
    stage: str = "dev"


class AppConfig(BaseModel):
    contentful: ContentfulConfig = ContentfulConfig()
    patreon: PatreonConfig = PatreonConfig()
    notifications: NotificationConfig = NotificationConfig()
    settings: Settings = Field(default_factory=Settings)


def load_config(config_path: str = "config.yaml") -> AppConfig:
    """Load config from YAML file; Settings read the environment (and .env)."""
    load_dotenv()

    data: dict = {}
    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            data = yaml.safe_load(f) or {}

    data.pop("settings", None)
    return AppConfig(**data)
