"""Key/value tag conversion and diffing."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any


def to_key_value_list(tags: Mapping[str, str], *, key: str = "key", value: str = "value") -> list[dict[str, str]]:
    """Convert a tag map into the list-of-pairs form some APIs expect."""
    return [{key: k, value: v} for k, v in sorted(tags.items())]


def from_key_value_list(
    items: Iterable[Mapping[str, Any]] | None,
    *,
    key: str = "key",
    value: str = "value",
) -> dict[str, str]:
    """Convert a list of tag pairs into a tag map."""
    return {item[key]: item.get(value, "") for item in items or []}


def diff_tags(old: Mapping[str, str], new: Mapping[str, str]) -> tuple[dict[str, str], list[str]]:
    """Return (tags to set, tag keys to remove) to move from old to new."""
    to_set = {k: v for k, v in new.items() if old.get(k) != v}
    to_remove = sorted(k for k in old if k not in new)
    return to_set, to_remove
