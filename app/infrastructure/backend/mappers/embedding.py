"""Helpers for rows carrying PostgREST embedded relations."""

from typing import Any


def unwrap_embedded(value: Any) -> dict[str, Any] | None:
    """Return an embedded relation as a single object.

    A to-one embed can arrive as an object or as a one-element list,
    depending on how the backend infers the relationship.
    """
    if isinstance(value, list):
        return value[0] if value else None
    if isinstance(value, dict):
        return value
    return None


def full_name(person: dict[str, Any] | None) -> str | None:
    """``"name lastname"`` of an embedded person, or None."""
    if not person:
        return None
    parts = [person.get("name") or "", person.get("lastname") or ""]
    joined = " ".join(part for part in parts if part)
    return joined or None
