"""Tests for YAML config and environment settings."""

from __future__ import annotations

from vestry.config import AppConfig, load_config
from vestry.settings import Settings


class TestLoadConfig:
    def test_missing_file_uses_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        cfg = load_config(str(tmp_path / "absent.yaml"))

        assert isinstance(cfg, AppConfig)
        assert cfg.contentful.environment == "master"
        assert cfg.contentful.page_size == 100
        assert cfg.notifications.namespace == "vestry"

    def test_reads_yaml(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        path = tmp_path / "config.yaml"
        path.write_text(
            "contentful:\n"
            "  space: space1\n"
            "  page_size: 25\n"
            "patreon:\n"
            "  campaign_url: https://www.patreon.com/example\n"
            "notifications:\n"
            "  stage: prod\n"
        )

        cfg = load_config(str(path))

        assert cfg.contentful.space == "space1"
        assert cfg.contentful.page_size == 25
        assert cfg.patreon.campaign_url == "https://www.patreon.com/example"
        assert cfg.patreon.campaign_id is None
        assert cfg.notifications.stage == "prod"

    def test_secrets_not_read_from_yaml(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("VESTRY_CONTENTFUL_ACCESS_TOKEN", raising=False)
        path = tmp_path / "config.yaml"
        path.write_text("settings:\n  contentful_access_token: leaked\n")

        cfg = load_config(str(path))

        assert cfg.settings.contentful_access_token == ""

    def test_empty_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        path = tmp_path / "config.yaml"
        path.write_text("")

        assert load_config(str(path)).contentful.include == 2


class TestSettings:
    def test_environment(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("VESTRY_MAX_WORKERS", "8")
        monkeypatch.setenv("VESTRY_ZOOM_ROOM_PASSCODE", "4321")

        settings = Settings()

        assert settings.max_workers == 8
        assert settings.zoom_room_passcode == "4321"

    def test_dotenv_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("VESTRY_HTTP_TIMEOUT", raising=False)
        (tmp_path / ".env").write_text("VESTRY_HTTP_TIMEOUT=2.5\n")

        assert Settings().http_timeout == 2.5
