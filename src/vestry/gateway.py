"""Request-scoped orchestration between the app, Contentful and Patreon.

The HTTP, RSS and notification layers talk to a Gateway: it resolves the
caller's Pledge from their Patreon token, fetches content, and hands back
filtered content. Nothing here is cached beyond a single call.
"""

from __future__ import annotations

import concurrent.futures
from collections.abc import Iterable
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict

from vestry.clients.contentful import ContentfulClient
from vestry.clients.patreon import PatreonClient
from vestry.config import AppConfig
from vestry.content_types import (
    COLLECTION_CONTENT_TYPES,
    MEMBER_CONTENT_TYPES,
    PARENT_FIELDS,
    UNCATEGORIZED_KINDS,
    CollectionKind,
    ContentType,
)
from vestry.feeds import check_feed_access, fetch_all_entries, uncategorized_collection
from vestry.filtering import FilteredResponse, collections_from_entries, filter_entries, filter_response
from vestry.models import Collection, Entry
from vestry.pledge import Pledge, SecretFetcher, resolve_pledge


class Feed(BaseModel):
    """Entries of one collection as the requesting user may see them."""

    model_config = ConfigDict(frozen=True)

    collection: Collection | None
    accessible: bool = False
    entries: tuple[Entry, ...] = ()

    @property
    def found(self) -> bool:
        return self.collection is not None


def _missing_podcast_ids(raw: dict[str, Any]) -> list[str]:
    """Podcasts linked from episodes in *raw* that the response does not itself contain."""
    documents = list(raw.get("items") or []) if "items" in raw else [raw]
    documents += (raw.get("includes") or {}).get("Entry") or []
    entries = [Entry.from_contentful(doc) for doc in documents if (doc.get("sys") or {}).get("id")]
    present = {entry.id for entry in entries}
    missing = []
    for entry in entries:
        link = entry.parent_link if entry.content_type == ContentType.PODCAST_EPISODE else None
        if link and link.id not in present and link.id not in missing:
            missing.append(link.id)
    return missing


class Gateway:
    def __init__(
        self,
        *,
        config: AppConfig,
        contentful: ContentfulClient,
        patreon: PatreonClient,
        log: structlog.stdlib.BoundLogger,
        fetch_secret: SecretFetcher | None = None,
    ) -> None:
        self.config = config
        self.contentful = contentful
        self.patreon = patreon
        self.log = log
        self.fetch_secret = fetch_secret
        if not (config.patreon.campaign_id or config.patreon.campaign_url):
            # No pledge can match; every caller resolves as a non-patron
            log.warning("gateway.campaign_not_configured")

    @classmethod
    def from_config(cls, config: AppConfig, log: structlog.stdlib.BoundLogger) -> Gateway:
        settings = config.settings
        proxy_url = settings.proxy_url or None
        contentful = ContentfulClient(
            config.contentful,
            access_token=settings.contentful_access_token,
            log=log,
            timeout=settings.http_timeout,
            proxy_url=proxy_url,
        )
        patreon = PatreonClient(config.patreon, log=log, timeout=settings.http_timeout, proxy_url=proxy_url)
        return cls(
            config=config,
            contentful=contentful,
            patreon=patreon,
            log=log,
            fetch_secret=lambda: settings.zoom_room_passcode or None,
        )

    def close(self) -> None:
        self.contentful.close()
        self.patreon.close()

    def __enter__(self) -> Gateway:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def resolve_pledge(self, token: str | None) -> Pledge:
        snapshot = self.patreon.fetch_membership_snapshot(token)
        return resolve_pledge(
            snapshot,
            lookup_tier=self.contentful.lookup_tier_by_reward_id,
            campaign_id=self.config.patreon.campaign_id,
            campaign_url=self.config.patreon.campaign_url,
            fetch_secret=self.fetch_secret,
            log=self.log,
        )

    def fetch_collections(self, collection_ids: Iterable[str]) -> dict[str, Collection]:
        """Collections by id; unpublished or deleted ones are absent."""
        entries = self.contentful.fetch_entries_by_id(list(collection_ids))
        return collections_from_entries(entries)

    def filter_content(
        self,
        path: str,
        params: dict[str, Any] | None,
        token: str | None,
    ) -> FilteredResponse:
        """Fetch a Contentful CDN path and filter it for the token's pledge.

        The pledge and the content are fetched concurrently.
        """
        with concurrent.futures.ThreadPoolExecutor(max_workers=2) as executor:
            pledge_future = executor.submit(self.resolve_pledge, token)
            content_future = executor.submit(self.contentful.get, path, params)
            raw = content_future.result()
            pledge = pledge_future.result()

        missing = _missing_podcast_ids(raw)
        extra = self.fetch_collections(missing) if missing else {}
        return filter_response(raw, pledge, self.log, collections_by_id=extra)

    def _fetch_collection(self, collection_id: str, kind: CollectionKind) -> Collection | None:
        if kind in UNCATEGORIZED_KINDS:
            return uncategorized_collection(kind)
        entry = self.contentful.fetch_entry(collection_id)
        if entry is None or COLLECTION_CONTENT_TYPES.get(entry.content_type) != kind:
            self.log.info("gateway.collection_not_found", collection_id=collection_id, kind=kind)
            return None
        return Collection.from_entry(entry)

    def _feed_query(self, collection: Collection) -> dict[str, Any]:
        member_type = MEMBER_CONTENT_TYPES[collection.kind]
        parent_field = PARENT_FIELDS[member_type]
        query: dict[str, Any] = {"content_type": member_type.value, "order": "-fields.publishedAt"}
        if collection.kind in UNCATEGORIZED_KINDS:
            query[f"fields.{parent_field}[exists]"] = "false"
        else:
            query[f"fields.{parent_field}.sys.id"] = collection.id
        return query

    def feed(self, collection_id: str, kind: CollectionKind, token: str | None) -> Feed:
        """Every entry of a collection, newest first, filtered for the token's pledge.

        Access to the feed as a whole is checked before any entry is fetched.
        """
        with concurrent.futures.ThreadPoolExecutor(max_workers=2) as executor:
            pledge_future = executor.submit(self.resolve_pledge, token)
            collection_future = executor.submit(self._fetch_collection, collection_id, kind)
            collection = collection_future.result()
            pledge = pledge_future.result()

        if collection is None:
            return Feed(collection=None)
        if not check_feed_access(collection, pledge, self.log):
            return Feed(collection=collection, accessible=False)

        query = self._feed_query(collection)
        items, includes = fetch_all_entries(
            lambda skip, limit: self.contentful.fetch_entries(query, skip=skip, limit=limit),
            page_size=self.config.contentful.page_size,
            log=self.log,
            max_workers=self.config.settings.max_workers,
        )
        collections = collections_from_entries(includes)
        collections[collection.id] = collection
        entries = filter_entries(items, pledge, collections, self.log)
        self.log.info("gateway.feed_built", collection_id=collection.id, entries=len(entries), fetched=len(items))
        return Feed(collection=collection, accessible=True, entries=tuple(entries))
