"""Specification ABC and custom spec registration."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Self

from .context import Context

_spec_registry: dict[str, type] = {}


def spec(name: str):
    """Register a Specification class under a block type name."""

    def decorator(cls):
        _spec_registry[name] = cls
        return cls

    return decorator


class Specification[P](ABC):
    """Base class for anything a strategy can reconcile."""

    @abstractmethod
    def equals(self, ctx: Context[P]) -> bool:
        """Current state matches desired state."""

    def exists(self, ctx: Context[P]) -> bool:
        """Resource exists (defaults to equals)."""
        return self.equals(ctx)

    @abstractmethod
    def apply(self, ctx: Context[P]) -> None:
        """Create or update resource."""

    @abstractmethod
    def remove(self, ctx: Context[P]) -> None:
        """Delete resource."""

    def bind(self, ctx: Context[P]) -> Self:
        """Return a copy with references resolved against the context (no-op by default)."""
        return self

    def observed(self) -> dict | None:
        """State seen by the last read, for recording as an output."""
        return None
