"""Typed projections of Contentful and Patreon payloads.

Raw JSON is parsed into these models once, at the point it enters the
gateway. Access decisions only ever look at the typed attributes; the raw
envelope of an entry is carried along untouched so filtered entries can be
handed back to clients in the shape Contentful produced them.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

from vestry.content_types import COLLECTION_CONTENT_TYPES, PARENT_FIELDS, CollectionKind, ContentType
from vestry.errors import ContractViolationError
from vestry.utils.jsonapi import JsonApiDocument

# Fields holding the playable media of an entry
MEDIA_FIELDS = ("media", "mediaUrl")


class Link(BaseModel):
    """A Contentful link (`{"sys": {"type": "Link", "linkType": ..., "id": ...}}`)."""

    model_config = ConfigDict(frozen=True)

    id: str
    link_type: str = "Entry"

    @classmethod
    def from_contentful(cls, value: Any) -> Link | None:
        if not isinstance(value, dict):
            return None
        sys = value.get("sys") or {}
        if not sys.get("id"):
            return None
        return cls(id=sys["id"], link_type=sys.get("linkType") or sys.get("type") or "Entry")


class Entry(BaseModel):
    """A single Contentful entry or asset."""

    model_config = ConfigDict(frozen=True)

    id: str
    content_type: ContentType
    fields: dict[str, Any] = {}
    # Everything except "fields", passed through verbatim (sys, metadata, ...)
    envelope: dict[str, Any] = {}

    @classmethod
    def from_contentful(cls, raw: dict[str, Any]) -> Entry:
        sys = raw.get("sys") or {}
        entry_id = sys.get("id")
        if not entry_id:
            raise ValueError("Contentful item has no sys.id")
        content_type_id = (sys.get("contentType") or {}).get("sys", {}).get("id")
        return cls(
            id=entry_id,
            content_type=ContentType.parse(content_type_id),
            fields=dict(raw.get("fields") or {}),
            envelope={k: v for k, v in raw.items() if k != "fields"},
        )

    def to_contentful(self) -> dict[str, Any]:
        return {**self.envelope, "fields": dict(self.fields)}

    def link(self, field: str) -> Link | None:
        return Link.from_contentful(self.fields.get(field))

    @property
    def title(self) -> str | None:
        return self.fields.get("title")

    @property
    def parent_link(self) -> Link | None:
        """Link to the podcast, meditation category or liturgy this entry belongs to."""
        field = PARENT_FIELDS.get(self.content_type)
        return self.link(field) if field else None

    @property
    def is_free_preview(self) -> bool:
        return bool(self.fields.get("isFreePreview"))

    @property
    def patrons_only(self) -> bool | None:
        return self.fields.get("patronsOnly")

    @property
    def has_media(self) -> bool:
        return any(field in self.fields for field in MEDIA_FIELDS)


class Collection(BaseModel):
    """A podcast, meditation category or liturgy, or one of the uncategorized pseudo-collections."""

    model_config = ConfigDict(frozen=True)

    id: str
    kind: CollectionKind
    title: str | None = None
    # Podcasts only; None means the podcast is public
    minimum_pledge_dollars: float | None = None

    @classmethod
    def from_entry(cls, entry: Entry) -> Collection:
        kind = COLLECTION_CONTENT_TYPES.get(entry.content_type)
        if kind is None:
            raise ContractViolationError(f"{entry.content_type} entry {entry.id} is not a collection")
        return cls(
            id=entry.id,
            kind=kind,
            title=entry.title,
            minimum_pledge_dollars=entry.fields.get("minimumPledgeDollars"),
        )

    @property
    def is_public(self) -> bool:
        return self.minimum_pledge_dollars is None


class PodcastSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str | None = None


class Tier(BaseModel):
    """Membership level definition stored in Contentful, keyed by Patreon reward id."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str | None = None
    patreon_id: str | None = None
    can_access_meditations: bool = False
    can_access_liturgies: bool = False
    ad_free_listening: bool = False
    podcast_ids: tuple[str, ...] = ()
    # Titles of the granted podcasts, when Contentful included them
    podcasts: tuple[PodcastSummary, ...] = ()

    @classmethod
    def from_entry(cls, entry: Entry, included: list[Entry] | None = None) -> Tier:
        links = [Link.from_contentful(value) for value in entry.fields.get("podcasts") or []]
        podcast_ids = tuple(link.id for link in links if link is not None)
        included_by_id = {item.id: item for item in included or [] if item.content_type == ContentType.PODCAST}
        podcasts = tuple(
            PodcastSummary(id=pid, title=included_by_id[pid].title)
            for pid in podcast_ids
            if pid in included_by_id
        )
        patreon_id = entry.fields.get("patreonId")
        return cls(
            id=entry.id,
            title=entry.title,
            patreon_id=str(patreon_id) if patreon_id is not None else None,
            can_access_meditations=bool(entry.fields.get("canAccessMeditations")),
            can_access_liturgies=bool(entry.fields.get("canAccessLiturgies")),
            ad_free_listening=bool(entry.fields.get("adFreeListening")),
            podcast_ids=podcast_ids,
            podcasts=podcasts,
        )


class PledgeRecord(BaseModel):
    """One of a Patreon user's pledges, flattened with its reward and campaign."""

    model_config = ConfigDict(frozen=True)

    id: str
    amount_cents: int | None = None
    reward_id: str | None = None
    reward_title: str | None = None
    campaign_id: str | None = None
    campaign_url: str | None = None


class MembershipSnapshot(BaseModel):
    """Patreon `current_user?include=pledges` response for the requesting user."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    pledges: tuple[PledgeRecord, ...] = ()
    raw: dict[str, Any] = {}

    @classmethod
    def from_jsonapi(cls, payload: dict[str, Any]) -> MembershipSnapshot:
        doc = JsonApiDocument(payload)
        user = doc.primary
        if not isinstance(user, dict) or "id" not in user:
            raise ValueError("Patreon payload has no user resource")

        pledges = []
        for pledge in doc.related(user, "pledges"):
            reward = doc.related_one(pledge, "reward")
            campaign = doc.related_one(reward, "campaign") if reward else None
            pledges.append(
                PledgeRecord(
                    id=str(pledge["id"]),
                    amount_cents=pledge.get("attributes", {}).get("amount_cents"),
                    reward_id=str(reward["id"]) if reward else None,
                    reward_title=reward.get("attributes", {}).get("title") if reward else None,
                    campaign_id=str(campaign["id"]) if campaign else None,
                    campaign_url=campaign.get("attributes", {}).get("url") if campaign else None,
                )
            )
        return cls(user_id=str(user["id"]), pledges=tuple(pledges), raw=payload)


class EntryPage(BaseModel):
    """One page of a Contentful collection response."""

    model_config = ConfigDict(frozen=True)

    items: tuple[Entry, ...] = ()
    includes: tuple[Entry, ...] = ()
    total: int | None = None
    skip: int = 0
    limit: int = 100

    @classmethod
    def from_contentful(cls, raw: dict[str, Any]) -> EntryPage:
        includes = raw.get("includes") or {}
        return cls(
            items=tuple(Entry.from_contentful(item) for item in raw.get("items") or []),
            includes=tuple(
                Entry.from_contentful(item)
                for item in (includes.get("Entry") or []) + (includes.get("Asset") or [])
            ),
            total=raw.get("total"),
            skip=raw.get("skip") or 0,
            limit=raw.get("limit") or 100,
        )

    @property
    def has_more(self) -> bool:
        """A full page means there may be another one; a short page is the last."""
        return len(self.items) >= self.limit > 0

    @property
    def next_offset(self) -> int:
        return self.skip + len(self.items)
