"""Access predicates: pure decisions over a Pledge and typed content. No I/O."""

from __future__ import annotations

from collections.abc import Mapping

from vestry.content_types import CollectionKind, ContentType
from vestry.errors import ContractViolationError, MissingCollectionError
from vestry.models import Collection, Entry
from vestry.pledge import Pledge

_MEDITATION_KINDS = frozenset({
    ContentType.MEDITATION,
    ContentType.MEDITATION_CATEGORY,
    CollectionKind.UNCATEGORIZED_MEDITATIONS,
})
_LITURGY_KINDS = frozenset({
    ContentType.LITURGY_ITEM,
    ContentType.LITURGY,
    CollectionKind.UNCATEGORIZED_LITURGY_ITEMS,
})


def has_entitlement(pledge: Pledge | None, kind: ContentType | CollectionKind) -> bool:
    """Tier flag check for meditation and liturgy content.

    Raises ContractViolationError for any other kind.
    """
    pledge = pledge or Pledge.anonymous()
    if kind in _MEDITATION_KINDS:
        return pledge.can_access_meditations
    if kind in _LITURGY_KINDS:
        return pledge.can_access_liturgies
    raise ContractViolationError(f"no entitlement is defined for {kind!r}")


def can_access_podcast(pledge: Pledge | None, podcast: Collection) -> bool:
    """Public podcasts are open to everyone; others need the tier's allow-list."""
    if podcast.kind != CollectionKind.PODCAST:
        raise ContractViolationError(f"{podcast.kind!r} collection {podcast.id} is not a podcast")
    if podcast.is_public:
        return True
    return pledge is not None and podcast.id in pledge.accessible_podcasts


def can_access(pledge: Pledge | None, entry: Entry, collections_by_id: Mapping[str, Collection]) -> bool:
    """Whether the pledge grants access to the entry.

    Raises MissingCollectionError when an episode's podcast is not in
    *collections_by_id*; such an episode must never be shown.
    """
    if entry.content_type == ContentType.PODCAST_EPISODE:
        link = entry.parent_link
        podcast = collections_by_id.get(link.id) if link else None
        if podcast is None or podcast.kind != CollectionKind.PODCAST:
            raise MissingCollectionError(entry.id, link.id if link else None)
        return can_access_podcast(pledge, podcast)

    if entry.content_type in (ContentType.MEDITATION, ContentType.LITURGY_ITEM):
        return has_entitlement(pledge, entry.content_type)

    return True
