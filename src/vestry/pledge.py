"""Pledge resolution: turn a Patreon membership snapshot into access capabilities."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict

from vestry.models import MembershipSnapshot, PledgeRecord, PodcastSummary, Tier

TierLookup = Callable[[str], Tier | None]
SecretFetcher = Callable[[], str | None]


class Pledge(BaseModel):
    """Resolved membership state of one requesting user, scoped to our campaign.

    An anonymous caller, a user without a pledge to the campaign, and a patron
    whose reward has no tier definition all get a valid Pledge; they simply
    have no entitlements.
    """

    model_config = ConfigDict(frozen=True)

    record: PledgeRecord | None = None
    tier: Tier | None = None
    snapshot: MembershipSnapshot | None = None
    zoom_room_passcode: str | None = None

    @classmethod
    def anonymous(cls) -> Pledge:
        return cls()

    @property
    def is_patron(self) -> bool:
        return self.record is not None

    @property
    def accessible_podcasts(self) -> frozenset[str]:
        if self.tier is None:
            return frozenset()
        return frozenset(self.tier.podcast_ids)

    @property
    def can_access_meditations(self) -> bool:
        return self.tier is not None and self.tier.can_access_meditations

    @property
    def can_access_liturgies(self) -> bool:
        return self.tier is not None and self.tier.can_access_liturgies

    @property
    def can_listen_ad_free(self) -> bool:
        return self.tier is not None and self.tier.ad_free_listening

    def podcasts(self) -> list[PodcastSummary]:
        if self.tier is None:
            return []
        return list(self.tier.podcasts)

    def summary(self) -> dict[str, Any]:
        """JSON-ready view served to the app."""
        return {
            "isPatron": self.is_patron,
            "tier": {"id": self.tier.id, "title": self.tier.title} if self.tier else None,
            "podcasts": [podcast.model_dump() for podcast in self.podcasts()],
            "canAccessMeditations": self.can_access_meditations,
            "canAccessLiturgies": self.can_access_liturgies,
            "canListenAdFree": self.can_listen_ad_free,
            "zoomRoomPasscode": self.zoom_room_passcode,
        }


def _normalize_campaign_url(url: str | None) -> str | None:
    if not url:
        return None
    return url.strip().rstrip("/").lower()


def find_campaign_pledge(
    pledges: Iterable[PledgeRecord],
    *,
    campaign_id: str | None = None,
    campaign_url: str | None = None,
) -> PledgeRecord | None:
    """Return the first pledge made to our campaign, matched by id or URL."""
    wanted_url = _normalize_campaign_url(campaign_url)
    for record in pledges:
        if campaign_id and record.campaign_id == str(campaign_id):
            return record
        if wanted_url and _normalize_campaign_url(record.campaign_url) == wanted_url:
            return record
    return None


def resolve_pledge(
    snapshot: MembershipSnapshot | None,
    *,
    lookup_tier: TierLookup,
    log: structlog.stdlib.BoundLogger,
    campaign_id: str | None = None,
    campaign_url: str | None = None,
    fetch_secret: SecretFetcher | None = None,
) -> Pledge:
    """Build the Pledge for a membership snapshot.

    Absent snapshots and snapshots without a pledge to our campaign resolve to
    an entitlement-free Pledge. Errors from *lookup_tier* propagate; a failing
    *fetch_secret* is logged and the passcode left out.
    """
    if snapshot is None:
        log.debug("pledge.anonymous")
        return Pledge.anonymous()

    record = find_campaign_pledge(snapshot.pledges, campaign_id=campaign_id, campaign_url=campaign_url)
    if record is None:
        log.info("pledge.no_campaign_pledge", user_id=snapshot.user_id, pledges=len(snapshot.pledges))
        return Pledge(snapshot=snapshot)

    tier = lookup_tier(record.reward_id) if record.reward_id else None
    if tier is None:
        log.warning("pledge.tier_not_found", user_id=snapshot.user_id, reward_id=record.reward_id)
        return Pledge(record=record, snapshot=snapshot)

    passcode = None
    if fetch_secret is not None:
        try:
            passcode = fetch_secret()
        except Exception:
            log.exception("pledge.secret_fetch_failed", user_id=snapshot.user_id)

    log.info("pledge.resolved", user_id=snapshot.user_id, tier=tier.id, podcasts=len(tier.podcast_ids))
    return Pledge(record=record, tier=tier, snapshot=snapshot, zoom_room_passcode=passcode)
