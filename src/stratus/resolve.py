"""Resolver: substitute ${...} references to recorded outputs."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from typing import Any

logger = logging.getLogger(__name__)

_REF_PATTERN = re.compile(r"\$\$\{|\$\{\s*([^{}]+?)\s*\}")
_WHOLE_REF = re.compile(r"\$\{\s*([^{}]+?)\s*\}")


class Resolver:
    """Resolve ${a.b.c} references against a lookup table.

    Path segments index into mappings by key, into sequences by position,
    and fall back to attribute access for anything else.
    """

    def __init__(self, references: Mapping[str, Any] | None = None) -> None:
        self._references = references or {}

    def lookup(self, ref: str) -> Any:
        current: Any = self._references

        for part in ref.split("."):
            if isinstance(current, Mapping) and part in current:
                current = current[part]
            elif isinstance(current, Sequence) and not isinstance(current, str) and part.isdigit():
                index = int(part)
                if index >= len(current):
                    raise ValueError(f"undefined reference '{ref}'")
                current = current[index]
            elif not isinstance(current, Mapping) and hasattr(current, part):
                current = getattr(current, part)
            else:
                raise ValueError(f"undefined reference '{ref}'")

        return current

    def resolve_value(self, value: str) -> Any:
        """Resolve one string.

        A string that is exactly one reference yields the referenced object
        unchanged; references embedded in text are stringified. ``$${`` is a
        literal ``${``.
        """
        if "${" not in value:
            return value

        whole = _WHOLE_REF.fullmatch(value)
        if whole:
            return self.lookup(whole.group(1))

        def _substitute(match: re.Match) -> str:  # type: ignore[type-arg]
            if match.group(0) == "$${":
                return "${"
            return str(self.lookup(match.group(1)))

        return _REF_PATTERN.sub(_substitute, value)

    def resolve(self, data: Any) -> Any:
        """Recursively resolve every string inside dicts and lists."""
        if isinstance(data, dict):
            return {k: self.resolve(v) for k, v in data.items()}
        if isinstance(data, list):
            return [self.resolve(item) for item in data]
        if isinstance(data, str):
            return self.resolve_value(data)
        return data
