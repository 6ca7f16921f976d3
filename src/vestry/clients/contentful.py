"""Contentful Content Delivery API client."""

from __future__ import annotations

import re
from typing import Any

import httpx
import structlog

from vestry.config import ContentfulConfig
from vestry.content_types import ContentType
from vestry.errors import UpstreamError
from vestry.models import Entry, EntryPage, Tier
from vestry.utils.http import create_http_client, get_json

_SPACE_PREFIX = re.compile(r"^/?spaces/[^/]+")
_ENVIRONMENT_PREFIX = re.compile(r"^/?environments/[^/]+")


def content_path(path: str) -> str:
    """Strip any client-supplied space/environment prefix from a CDN path.

    The app may send ``/spaces/<id>/environments/<id>/entries``; the gateway
    always answers from its own configured space and environment.
    """
    path = _SPACE_PREFIX.sub("", path.strip())
    path = _ENVIRONMENT_PREFIX.sub("", path)
    return "/" + path.lstrip("/")


class ContentfulClient:
    """Read-only access to one Contentful space and environment."""

    def __init__(
        self,
        config: ContentfulConfig,
        *,
        access_token: str,
        log: structlog.stdlib.BoundLogger,
        client: httpx.Client | None = None,
        timeout: float = 10.0,
        proxy_url: str | None = None,
    ) -> None:
        self.config = config
        self.log = log
        self._client = client or create_http_client(
            proxy_url=proxy_url,
            timeout=timeout,
            headers={"Authorization": f"Bearer {access_token}"},
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> ContentfulClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _url(self, path: str) -> str:
        base = f"{self.config.host.rstrip('/')}/spaces/{self.config.space}/environments/{self.config.environment}"
        return base + content_path(path)

    def get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Fetch any CDN path, returning the raw JSON body."""
        url = self._url(path)
        try:
            return get_json(self._client, url, params=params)
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            self.log.warning("contentful.request_failed", path=path, status=status)
            raise UpstreamError("contentful", f"HTTP {status} for {path}", status_code=status) from exc
        except httpx.TransportError as exc:
            self.log.warning("contentful.unreachable", path=path, error=str(exc))
            raise UpstreamError("contentful", str(exc)) from exc

    def fetch_entry(self, entry_id: str) -> Entry | None:
        """Fetch a single entry; None if it does not exist or is unpublished."""
        try:
            raw = self.get(f"/entries/{entry_id}")
        except UpstreamError as exc:
            if exc.status_code == 404:
                return None
            raise
        return Entry.from_contentful(raw)

    def fetch_entries(self, query: dict[str, Any], *, skip: int = 0, limit: int | None = None) -> EntryPage:
        params = {
            "include": self.config.include,
            **query,
            "skip": skip,
            "limit": limit or self.config.page_size,
        }
        return EntryPage.from_contentful(self.get("/entries", params))

    def fetch_entries_by_id(self, entry_ids: list[str]) -> list[Entry]:
        """Fetch published entries by id. Unknown ids are silently absent from the result."""
        if not entry_ids:
            return []
        page = self.fetch_entries({"sys.id[in]": ",".join(sorted(set(entry_ids))), "include": 0}, limit=len(entry_ids))
        return list(page.items)

    def lookup_tier_by_reward_id(self, reward_id: str) -> Tier | None:
        """Tier definition for a Patreon reward, with its podcasts included."""
        page = self.fetch_entries(
            {"content_type": ContentType.TIER.value, "fields.patreonId": reward_id, "include": 1},
            limit=1,
        )
        if not page.items:
            return None
        return Tier.from_entry(page.items[0], list(page.includes))
