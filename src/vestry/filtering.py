"""Entry filtering: redact what the viewer's pledge does not grant."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict

from vestry.access import can_access
from vestry.content_types import COLLECTION_CONTENT_TYPES, GATED_CONTENT_TYPES
from vestry.errors import MissingCollectionError
from vestry.models import MEDIA_FIELDS, Collection, Entry
from vestry.pledge import Pledge


class FilteredResponse(BaseModel):
    """Result of filtering a Contentful response.

    ``found`` is False only for a single-entry response whose entry had to be
    dropped; ``data`` is then None and callers should answer "not found".
    """

    model_config = ConfigDict(frozen=True)

    data: dict[str, Any] | None
    found: bool = True
    dropped: tuple[str, ...] = ()


def collections_from_entries(entries: Iterable[Entry]) -> dict[str, Collection]:
    """Index every podcast, meditation category and liturgy among *entries* by id."""
    return {
        entry.id: Collection.from_entry(entry)
        for entry in entries
        if entry.content_type in COLLECTION_CONTENT_TYPES
    }


def _with_fields(entry: Entry, fields: dict[str, Any]) -> Entry:
    return entry.model_copy(update={"fields": fields})


def filter_entry(
    entry: Entry,
    pledge: Pledge | None,
    collections_by_id: Mapping[str, Collection],
    log: structlog.stdlib.BoundLogger,
) -> Entry | None:
    """Return the entry as the viewer may see it, or None if it must be hidden.

    Gated entries get ``patronsOnly``; when access is denied and the entry is
    not a free preview its media fields are removed. Episodes whose podcast
    cannot be resolved are dropped for everyone.
    """
    if entry.content_type not in GATED_CONTENT_TYPES:
        return entry

    try:
        allowed = can_access(pledge, entry, collections_by_id)
    except MissingCollectionError as exc:
        log.warning("filter.missing_collection", entry_id=exc.entry_id, collection_id=exc.collection_id)
        return None

    if allowed:
        return _with_fields(entry, {**entry.fields, "patronsOnly": False})

    if entry.is_free_preview:
        return _with_fields(entry, {**entry.fields, "patronsOnly": True})

    fields = {key: value for key, value in entry.fields.items() if key not in MEDIA_FIELDS}
    fields["patronsOnly"] = True
    return _with_fields(entry, fields)


def filter_entries(
    entries: Iterable[Entry],
    pledge: Pledge | None,
    collections_by_id: Mapping[str, Collection],
    log: structlog.stdlib.BoundLogger,
) -> list[Entry]:
    """Filter each entry, dropping hidden ones. Order is preserved."""
    kept = []
    for entry in entries:
        filtered = filter_entry(entry, pledge, collections_by_id, log)
        if filtered is not None:
            kept.append(filtered)
    return kept


def _is_collection_response(raw: dict[str, Any]) -> bool:
    return (raw.get("sys") or {}).get("type") == "Array" or "items" in raw


def filter_response(
    raw: dict[str, Any],
    pledge: Pledge | None,
    log: structlog.stdlib.BoundLogger,
    *,
    collections_by_id: Mapping[str, Collection] | None = None,
) -> FilteredResponse:
    """Filter a raw Contentful CDN response (entry collection or single entry).

    Collections referenced by the response are looked up among its own items
    and ``includes``; *collections_by_id* supplies any fetched separately.
    """
    known = dict(collections_by_id or {})

    if _is_collection_response(raw):
        items = [Entry.from_contentful(item) for item in raw.get("items") or []]
        includes = raw.get("includes") or {}
        included_entries = [Entry.from_contentful(item) for item in includes.get("Entry") or []]
        known.update(collections_from_entries(items + included_entries))

        kept_items = filter_entries(items, pledge, known, log)
        kept_included = filter_entries(included_entries, pledge, known, log)
        kept_ids = {entry.id for entry in kept_items} | {entry.id for entry in kept_included}
        dropped = tuple(entry.id for entry in items + included_entries if entry.id not in kept_ids)

        data = {**raw, "items": [entry.to_contentful() for entry in kept_items]}
        if "Entry" in includes:
            data["includes"] = {**includes, "Entry": [entry.to_contentful() for entry in kept_included]}
        if dropped:
            log.info("filter.dropped_entries", count=len(dropped))
        return FilteredResponse(data=data, dropped=dropped)

    if not (raw.get("sys") or {}).get("id"):
        return FilteredResponse(data=raw)

    entry = Entry.from_contentful(raw)
    known.update(collections_from_entries([entry]))
    filtered = filter_entry(entry, pledge, known, log)
    if filtered is None:
        return FilteredResponse(data=None, found=False, dropped=(entry.id,))
    return FilteredResponse(data=filtered.to_contentful())
