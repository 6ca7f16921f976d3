"""Minimal JSON:API document index for Patreon API payloads."""

from __future__ import annotations

from typing import Any


def _as_list(value: Any) -> list[dict]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


class JsonApiDocument:
    """Resolves relationship references against a document's data and included resources."""

    def __init__(self, payload: dict[str, Any]) -> None:
        self.payload = payload
        self._index: dict[tuple[str, str], dict] = {}
        for resource in _as_list(payload.get("data")) + _as_list(payload.get("included")):
            if "type" in resource and "id" in resource:
                self._index[(resource["type"], str(resource["id"]))] = resource

    @property
    def primary(self) -> Any:
        return self.payload.get("data")

    def find(self, resource_type: str, resource_id: str) -> dict | None:
        return self._index.get((resource_type, str(resource_id)))

    def related(self, resource: dict, name: str) -> list[dict]:
        """Resolve a to-many relationship. References missing from the document are skipped."""
        data = resource.get("relationships", {}).get(name, {}).get("data")
        resolved = []
        for ref in _as_list(data):
            target = self.find(ref.get("type", ""), ref.get("id", ""))
            if target is not None:
                resolved.append(target)
        return resolved

    def related_one(self, resource: dict, name: str) -> dict | None:
        related = self.related(resource, name)
        return related[0] if related else None
