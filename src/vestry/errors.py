"""Exception hierarchy for the gateway."""

from __future__ import annotations


class VestryError(Exception):
    """Base class for all gateway errors."""


class UpstreamError(VestryError):
    """Contentful or Patreon could not be reached, or answered with an error."""

    def __init__(self, service: str, message: str, status_code: int | None = None) -> None:
        super().__init__(f"{service}: {message}")
        self.service = service
        self.status_code = status_code


class PatreonAuthError(UpstreamError):
    """Patreon rejected the credential. The caller may refresh it and retry."""

    def __init__(self, status_code: int) -> None:
        super().__init__("patreon", "credential rejected", status_code=status_code)


class DataIntegrityError(VestryError):
    """Content references data that cannot be resolved."""


class MissingCollectionError(DataIntegrityError):
    """A gated entry links to a parent collection that is unpublished or deleted."""

    def __init__(self, entry_id: str, collection_id: str | None) -> None:
        super().__init__(f"entry {entry_id} references missing collection {collection_id}")
        self.entry_id = entry_id
        self.collection_id = collection_id


class ContractViolationError(VestryError):
    """A content or collection kind reached a dispatch that has no case for it."""
