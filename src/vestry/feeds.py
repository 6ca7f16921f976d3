"""Feed-level access and collection resolution."""

from __future__ import annotations

import concurrent.futures
from collections.abc import Callable, Mapping

import structlog

from vestry.access import can_access_podcast, has_entitlement
from vestry.content_types import UNCATEGORIZED_KINDS, CollectionKind, ContentType
from vestry.models import Collection, Entry, EntryPage
from vestry.pledge import Pledge

# (skip, limit) -> page
PageFetcher = Callable[[int, int], EntryPage]

_UNCATEGORIZED = {
    ContentType.MEDITATION: CollectionKind.UNCATEGORIZED_MEDITATIONS,
    ContentType.LITURGY_ITEM: CollectionKind.UNCATEGORIZED_LITURGY_ITEMS,
}


def uncategorized_collection(kind: CollectionKind) -> Collection:
    """Pseudo-collection for meditations or liturgy items that have no parent."""
    if kind not in UNCATEGORIZED_KINDS:
        raise ValueError(f"{kind!r} is not an uncategorized collection kind")
    return Collection(id=kind.value, kind=kind, title="Uncategorized")


def can_access_feed(collection: Collection, pledge: Pledge | None) -> bool:
    if collection.kind == CollectionKind.PODCAST:
        return can_access_podcast(pledge, collection)
    return has_entitlement(pledge, collection.kind)


def check_feed_access(collection: Collection, pledge: Pledge | None, log: structlog.stdlib.BoundLogger) -> bool:
    """Feed-level gate, checked before any of the feed's entries are fetched."""
    allowed = can_access_feed(collection, pledge)
    log.info("feeds.access_checked", collection_id=collection.id, kind=collection.kind, allowed=allowed)
    return allowed


def resolve_parent_collection(entry: Entry, collections_by_id: Mapping[str, Collection]) -> Collection | None:
    """Collection an entry belongs to.

    Meditations and liturgy items without a parent belong to the matching
    uncategorized pseudo-collection. Returns None when the parent is unknown.
    """
    link = entry.parent_link
    if link is None:
        kind = _UNCATEGORIZED.get(entry.content_type)
        return uncategorized_collection(kind) if kind else None
    return collections_by_id.get(link.id)


def fetch_all_entries(
    fetch_page: PageFetcher,
    *,
    page_size: int,
    log: structlog.stdlib.BoundLogger,
    max_workers: int = 4,
) -> tuple[list[Entry], list[Entry]]:
    """Fetch every page of a query. Returns (items, includes).

    Pages the first response's ``total`` announces are fetched in parallel;
    fetching then continues one page at a time until a short page.
    """
    first = fetch_page(0, page_size)
    log.info("feeds.page_fetched", skip=0, count=len(first.items), total=first.total)
    pages = [first]

    if first.has_more and first.total is not None:
        offsets = list(range(first.next_offset, first.total, first.limit))
        if offsets:
            with concurrent.futures.ThreadPoolExecutor(max_workers=min(max_workers, len(offsets))) as executor:
                pages.extend(executor.map(lambda skip: fetch_page(skip, first.limit), offsets))
            log.info("feeds.pages_fetched", pages=len(offsets))

    last = pages[-1]
    while last.has_more:
        last = fetch_page(last.next_offset, last.limit)
        log.info("feeds.page_fetched", skip=last.skip, count=len(last.items))
        pages.append(last)

    items: list[Entry] = []
    includes: dict[str, Entry] = {}
    for page in pages:
        items.extend(page.items)
        for included in page.includes:
            includes.setdefault(included.id, included)
    return items, list(includes.values())
