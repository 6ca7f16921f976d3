"""Patreon API client for the requesting user's membership."""

from __future__ import annotations

import httpx
import structlog

from vestry.config import PatreonConfig
from vestry.errors import PatreonAuthError, UpstreamError
from vestry.models import MembershipSnapshot
from vestry.utils.http import create_http_client, get_json


class PatreonClient:
    """Fetches membership snapshots with a user's OAuth access token."""

    def __init__(
        self,
        config: PatreonConfig,
        *,
        log: structlog.stdlib.BoundLogger,
        client: httpx.Client | None = None,
        timeout: float = 10.0,
        proxy_url: str | None = None,
    ) -> None:
        self.config = config
        self.log = log
        self._client = client or create_http_client(proxy_url=proxy_url, timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> PatreonClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def fetch_membership_snapshot(self, token: str | None) -> MembershipSnapshot | None:
        """Current user with pledges, or None for an anonymous caller.

        Raises PatreonAuthError when the token is rejected, UpstreamError when
        Patreon is unavailable or rate-limited. Any other client error means
        no pledge.
        """
        if not token:
            return None

        url = f"{self.config.api_base.rstrip('/')}/current_user"
        try:
            payload = get_json(
                self._client,
                url,
                params={"include": "pledges"},
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            if status in (401, 403):
                self.log.info("patreon.token_rejected", status=status)
                raise PatreonAuthError(status) from exc
            if 400 <= status < 500 and status != 429:
                self.log.warning("patreon.membership_unavailable", status=status)
                return None
            self.log.warning("patreon.request_failed", status=status)
            raise UpstreamError("patreon", f"HTTP {status}", status_code=status) from exc
        except httpx.TransportError as exc:
            self.log.warning("patreon.unreachable", error=str(exc))
            raise UpstreamError("patreon", str(exc)) from exc

        try:
            return MembershipSnapshot.from_jsonapi(payload)
        except (ValueError, TypeError, KeyError, AttributeError):
            # Unusable user data means no pledge, not a failed request
            self.log.warning("patreon.unusable_payload", exc_info=True)
            return None
