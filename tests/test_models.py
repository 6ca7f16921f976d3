"""Tests for typed projections of Contentful and Patreon payloads."""

from __future__ import annotations

import pytest

from vestry.content_types import CollectionKind, ContentType
from vestry.errors import ContractViolationError
from vestry.models import Collection, Entry, EntryPage, Link, MembershipSnapshot, Tier


def _raw_entry(entry_id: str, content_type: str | None, **fields):
    sys = {"id": entry_id, "type": "Entry"}
    if content_type is not None:
        sys["contentType"] = {"sys": {"type": "Link", "linkType": "ContentType", "id": content_type}}
    return {"sys": sys, "fields": fields}


def _link(entry_id: str):
    return {"sys": {"type": "Link", "linkType": "Entry", "id": entry_id}}


def _patreon_payload(pledges):
    """Patreon current_user document; pledges are (pledge_id, reward_id, campaign_id, campaign_url)."""
    included = []
    for pledge_id, reward_id, campaign_id, campaign_url in pledges:
        included.append({
            "type": "pledge",
            "id": pledge_id,
            "attributes": {"amount_cents": 500},
            "relationships": {"reward": {"data": {"type": "reward", "id": reward_id}}},
        })
        included.append({
            "type": "reward",
            "id": reward_id,
            "attributes": {"title": f"Reward {reward_id}"},
            "relationships": {"campaign": {"data": {"type": "campaign", "id": campaign_id}}},
        })
        included.append({"type": "campaign", "id": campaign_id, "attributes": {"url": campaign_url}})
    return {
        "data": {
            "type": "user",
            "id": "user-1",
            "relationships": {"pledges": {"data": [{"type": "pledge", "id": p[0]} for p in pledges]}},
        },
        "included": included,
    }


class TestEntry:
    def test_parses_sys_and_fields(self):
        entry = Entry.from_contentful(_raw_entry("ep1", "podcastEpisode", title="Episode 1", podcast=_link("p1")))

        assert entry.id == "ep1"
        assert entry.content_type == ContentType.PODCAST_EPISODE
        assert entry.title == "Episode 1"
        assert entry.parent_link == Link(id="p1")

    def test_unknown_content_type_is_generic(self):
        entry = Entry.from_contentful(_raw_entry("c1", "contributor", name="Someone"))
        assert entry.content_type == ContentType.GENERIC
        assert entry.parent_link is None

    def test_asset_is_generic(self):
        asset = {"sys": {"id": "a1", "type": "Asset"}, "fields": {"file": {"url": "//images/a.png"}}}
        assert Entry.from_contentful(asset).content_type == ContentType.GENERIC

    def test_missing_id_rejected(self):
        with pytest.raises(ValueError):
            Entry.from_contentful({"sys": {}, "fields": {}})

    def test_round_trip_keeps_envelope(self):
        raw = _raw_entry("m1", "meditation", title="Breathe")
        raw["metadata"] = {"tags": []}
        assert Entry.from_contentful(raw).to_contentful() == raw

    def test_parent_link_per_kind(self):
        meditation = Entry.from_contentful(_raw_entry("m1", "meditation", category=_link("cat1")))
        item = Entry.from_contentful(_raw_entry("l1", "liturgyItem", liturgy=_link("lit1")))
        assert meditation.parent_link.id == "cat1"
        assert item.parent_link.id == "lit1"

    def test_flags(self):
        entry = Entry.from_contentful(_raw_entry("m1", "meditation", isFreePreview=True, mediaUrl="https://x/a.mp3"))
        assert entry.is_free_preview
        assert entry.has_media
        assert entry.patrons_only is None


class TestCollection:
    def test_podcast_with_threshold(self):
        entry = Entry.from_contentful(_raw_entry("p1", "podcast", title="Patron Show", minimumPledgeDollars=5))
        collection = Collection.from_entry(entry)
        assert collection.kind == CollectionKind.PODCAST
        assert collection.minimum_pledge_dollars == 5
        assert not collection.is_public

    def test_podcast_without_threshold_is_public(self):
        entry = Entry.from_contentful(_raw_entry("p1", "podcast", title="Public Show"))
        assert Collection.from_entry(entry).is_public

    def test_non_collection_entry_rejected(self):
        entry = Entry.from_contentful(_raw_entry("ep1", "podcastEpisode"))
        with pytest.raises(ContractViolationError):
            Collection.from_entry(entry)


class TestTier:
    def test_flags_and_podcasts(self):
        tier_entry = Entry.from_contentful(
            _raw_entry(
                "t1",
                "tier",
                title="Gold",
                patreonId=1234,
                canAccessMeditations=True,
                adFreeListening=True,
                podcasts=[_link("p1"), _link("p2")],
            )
        )
        included = [Entry.from_contentful(_raw_entry("p1", "podcast", title="Show One"))]

        tier = Tier.from_entry(tier_entry, included)

        assert tier.patreon_id == "1234"
        assert tier.can_access_meditations
        assert not tier.can_access_liturgies
        assert tier.ad_free_listening
        assert tier.podcast_ids == ("p1", "p2")
        # Only included podcasts have a summary
        assert [p.id for p in tier.podcasts] == ["p1"]
        assert tier.podcasts[0].title == "Show One"


class TestMembershipSnapshot:
    def test_flattens_pledges(self):
        payload = _patreon_payload([("pl1", "r1", "c1", "https://www.patreon.com/example")])

        snapshot = MembershipSnapshot.from_jsonapi(payload)

        assert snapshot.user_id == "user-1"
        assert len(snapshot.pledges) == 1
        record = snapshot.pledges[0]
        assert record.reward_id == "r1"
        assert record.reward_title == "Reward r1"
        assert record.campaign_id == "c1"
        assert record.campaign_url == "https://www.patreon.com/example"
        assert record.amount_cents == 500

    def test_no_pledges(self):
        payload = {"data": {"type": "user", "id": "u2", "relationships": {}}}
        assert MembershipSnapshot.from_jsonapi(payload).pledges == ()

    def test_missing_user_rejected(self):
        with pytest.raises(ValueError):
            MembershipSnapshot.from_jsonapi({"data": None})


class TestEntryPage:
    def test_full_page_has_more(self):
        raw = {"items": [_raw_entry(str(i), "meditation") for i in range(2)], "skip": 0, "limit": 2, "total": 5}
        page = EntryPage.from_contentful(raw)
        assert page.has_more
        assert page.next_offset == 2

    def test_short_page_is_last(self):
        raw = {"items": [_raw_entry("1", "meditation")], "skip": 4, "limit": 2, "total": 5}
        page = EntryPage.from_contentful(raw)
        assert not page.has_more

    def test_includes_entries_and_assets(self):
        raw = {
            "items": [],
            "includes": {
                "Entry": [_raw_entry("p1", "podcast")],
                "Asset": [{"sys": {"id": "a1", "type": "Asset"}, "fields": {}}],
            },
        }
        page = EntryPage.from_contentful(raw)
        assert [e.id for e in page.includes] == ["p1", "a1"]
