"""Tests for the CLI commands against a mocked gateway."""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from vestry.cli import cli
from vestry.content_types import CollectionKind, ContentType
from vestry.errors import PatreonAuthError, UpstreamError
from vestry.filtering import FilteredResponse
from vestry.gateway import Feed
from vestry.models import Collection, Entry, PledgeRecord, Tier
from vestry.pledge import Pledge


@pytest.fixture
def gateway():
    with patch("vestry.cli.setup_logging", return_value=MagicMock()), patch("vestry.cli.Gateway") as gateway_cls:
        mock_gateway = MagicMock()
        gateway_cls.from_config.return_value = mock_gateway
        yield mock_gateway


def _invoke(tmp_path, *args: str):
    return CliRunner().invoke(cli, ["--config", str(tmp_path / "missing.yaml"), *args])


class TestPledgeCommand:
    def test_prints_summary(self, gateway, tmp_path):
        gateway.resolve_pledge.return_value = Pledge(
            record=PledgeRecord(id="pl1"),
            tier=Tier(id="t1", title="Gold", can_access_meditations=True),
        )

        result = _invoke(tmp_path, "pledge", "--token", "abc")

        assert result.exit_code == 0
        summary = json.loads(result.output)
        assert summary["isPatron"] is True
        assert summary["tier"] == {"id": "t1", "title": "Gold"}
        assert summary["canAccessMeditations"] is True
        gateway.resolve_pledge.assert_called_once_with("abc")
        gateway.close.assert_called_once()

    def test_token_from_environment(self, gateway, tmp_path, monkeypatch):
        monkeypatch.setenv("VESTRY_PATREON_TOKEN", "from-env")
        gateway.resolve_pledge.return_value = Pledge.anonymous()

        result = _invoke(tmp_path, "pledge")

        assert result.exit_code == 0
        gateway.resolve_pledge.assert_called_once_with("from-env")

    def test_rejected_token(self, gateway, tmp_path):
        gateway.resolve_pledge.side_effect = PatreonAuthError(401)

        result = _invoke(tmp_path, "pledge", "--token", "expired")

        assert result.exit_code == 2
        assert "Re-connect Patreon" in result.output


class TestFilterCommand:
    def test_prints_filtered_data(self, gateway, tmp_path):
        gateway.filter_content.return_value = FilteredResponse(data={"items": []})

        result = _invoke(tmp_path, "filter", "/entries", "--param", "content_type=meditation", "--param", "limit=5")

        assert result.exit_code == 0
        assert json.loads(result.output) == {"items": []}
        gateway.filter_content.assert_called_once_with("/entries", {"content_type": "meditation", "limit": "5"}, None)

    def test_not_found(self, gateway, tmp_path):
        gateway.filter_content.return_value = FilteredResponse(data=None, found=False, dropped=("ep1",))

        result = _invoke(tmp_path, "filter", "/entries/ep1")

        assert result.exit_code == 1
        assert "Entry not found." in result.output

    def test_malformed_param(self, gateway, tmp_path):
        result = _invoke(tmp_path, "filter", "/entries", "--param", "nonsense")

        assert result.exit_code == 2
        gateway.filter_content.assert_not_called()

    def test_upstream_error(self, gateway, tmp_path):
        gateway.filter_content.side_effect = UpstreamError("contentful", "HTTP 500 for /entries", status_code=500)

        result = _invoke(tmp_path, "filter", "/entries")

        assert result.exit_code == 2
        assert "Upstream error" in result.output


class TestFeedCommand:
    def test_lists_entries(self, gateway, tmp_path):
        gateway.feed.return_value = Feed(
            collection=Collection(id="p1", kind=CollectionKind.PODCAST, title="Gold Show"),
            accessible=True,
            entries=(
                Entry(id="ep2", content_type=ContentType.PODCAST_EPISODE, fields={"title": "Two", "patronsOnly": True}),
                Entry(id="ep1", content_type=ContentType.PODCAST_EPISODE, fields={"title": "One", "patronsOnly": False}),
            ),
        )

        result = _invoke(tmp_path, "feed", "p1", "--token", "abc")

        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0] == "=== Gold Show ==="
        assert "ep2  Two  [patrons only]" in lines[1]
        assert "ep1  One  [open]" in lines[2]
        gateway.feed.assert_called_once_with("p1", CollectionKind.PODCAST, "abc")

    def test_empty_feed(self, gateway, tmp_path):
        gateway.feed.return_value = Feed(
            collection=Collection(id="cat1", kind=CollectionKind.MEDITATION_CATEGORY, title="Evening"),
            accessible=True,
        )

        result = _invoke(tmp_path, "feed", "cat1", "--kind", "meditationCategory")

        assert result.exit_code == 0
        assert "No entries." in result.output

    def test_requires_pledge(self, gateway, tmp_path):
        gateway.feed.return_value = Feed(
            collection=Collection(id="p1", kind=CollectionKind.PODCAST, minimum_pledge_dollars=5),
            accessible=False,
        )

        result = _invoke(tmp_path, "feed", "p1")

        assert result.exit_code == 1
        assert "requires a pledge" in result.output

    def test_not_found(self, gateway, tmp_path):
        gateway.feed.return_value = Feed(collection=None)

        result = _invoke(tmp_path, "feed", "p404")

        assert result.exit_code == 1
        assert "No podcast collection p404." in result.output


class TestTopicCommand:
    def test_episode_of_gated_podcast(self, gateway, tmp_path):
        gateway.contentful.fetch_entry.return_value = Entry(
            id="ep1",
            content_type=ContentType.PODCAST_EPISODE,
            fields={"podcast": {"sys": {"type": "Link", "linkType": "Entry", "id": "p1"}}},
        )
        gateway.fetch_collections.return_value = {
            "p1": Collection(id="p1", kind=CollectionKind.PODCAST, minimum_pledge_dollars=5),
        }

        result = _invoke(tmp_path, "topic", "ep1")

        assert result.exit_code == 0
        assert result.output.strip() == "new-patron-podcast-vestry-dev"
        gateway.fetch_collections.assert_called_once_with(["p1"])

    def test_entry_not_found(self, gateway, tmp_path):
        gateway.contentful.fetch_entry.return_value = None

        result = _invoke(tmp_path, "topic", "ghost")

        assert result.exit_code == 1

    def test_episode_with_missing_podcast(self, gateway, tmp_path):
        gateway.contentful.fetch_entry.return_value = Entry(
            id="ep1",
            content_type=ContentType.PODCAST_EPISODE,
            fields={"podcast": {"sys": {"type": "Link", "linkType": "Entry", "id": "ghost"}}},
        )
        gateway.fetch_collections.return_value = {}

        result = _invoke(tmp_path, "topic", "ep1")

        assert result.exit_code == 1
        assert "Entry ep1 not found." in result.output
        assert "new-public-media" not in result.output
