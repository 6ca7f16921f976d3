"""Shared httpx client factory and retrying JSON fetch."""

from __future__ import annotations

from typing import Any

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
)

USER_AGENT = "vestry/0.1 (content gateway)"

RETRY_STATUSES = frozenset({429, 502, 503, 504})


def create_http_client(
    *,
    proxy_url: str | None = None,
    user_agent: str = USER_AGENT,
    timeout: float = 10.0,
    headers: dict[str, str] | None = None,
) -> httpx.Client:
    """Create an httpx.Client with our User-Agent, a bounded timeout and optional proxy."""
    all_headers = {"User-Agent": user_agent}
    all_headers.update(headers or {})
    return httpx.Client(
        headers=all_headers,
        timeout=timeout,
        proxy=proxy_url,
    )


def _should_retry(retry_state) -> bool:
    exc = retry_state.outcome.exception()
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in RETRY_STATUSES
    return isinstance(exc, httpx.TransportError)


@retry(
    retry=_should_retry,
    stop=stop_after_attempt(4),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=8),
    reraise=True,
)
def get_json(
    client: httpx.Client,
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> Any:
    """GET a JSON document, retrying rate limits, gateway errors and transport failures."""
    resp = client.get(url, params=params, headers=headers)
    resp.raise_for_status()
    return resp.json()
