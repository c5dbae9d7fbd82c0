"""SpecOp strategies."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from .context import Context
from .spec import Specification

if TYPE_CHECKING:
    from .resource import DataSource

logger = logging.getLogger(__name__)


def _type_name(obj: Any) -> str:
    return getattr(obj, "type_name", None) or type(obj).__name__


class SpecOp[P](ABC):
    """Wraps a Specification with conditional execution logic."""

    def __init__(self, spec: Specification[P], label: str | None = None) -> None:
        self.spec = spec
        self.label = label

    @property
    def display(self) -> str:
        name = type(self.spec).__name__
        return f"{name} '{self.label}'" if self.label else name

    def _record(self, ctx: Context[P], spec: Specification[P]) -> None:
        if self.label is None:
            return
        state = spec.observed()
        if state is not None:
            ctx.record(_type_name(spec), self.label, state)

    def refresh(self, ctx: Context[P]) -> bool:
        """Read current state and record it; returns whether the resource exists."""
        spec = self.spec.bind(ctx)
        found = spec.exists(ctx)
        self._record(ctx, spec)
        return found

    @abstractmethod
    def __call__(self, ctx: Context[P]) -> None: ...


class Present[P](SpecOp[P]):
    """Apply only if resource doesn't exist."""

    def __call__(self, ctx: Context[P]) -> None:
        spec = self.spec.bind(ctx)
        if spec.exists(ctx):
            logger.debug("Skipping %s; already exists", self.display)
        elif ctx.dry_run:
            logger.info("[DRY RUN] Would apply %s", self.display)
        else:
            logger.info("Applying %s", self.display)
            spec.apply(ctx)
        self._record(ctx, spec)


class Ensure[P](SpecOp[P]):
    """Apply if current state doesn't match."""

    def __call__(self, ctx: Context[P]) -> None:
        spec = self.spec.bind(ctx)
        if spec.equals(ctx):
            logger.debug("Skipping %s; up to date", self.display)
        elif ctx.dry_run:
            logger.info("[DRY RUN] Would apply %s", self.display)
        else:
            logger.info("Applying %s", self.display)
            spec.apply(ctx)
        self._record(ctx, spec)


class Absent[P](SpecOp[P]):
    """Remove if resource exists."""

    def __call__(self, ctx: Context[P]) -> None:
        spec = self.spec.bind(ctx)
        if spec.exists(ctx):
            if ctx.dry_run:
                logger.info("[DRY RUN] Would remove %s", self.display)
            else:
                logger.info("Removing %s", self.display)
                spec.remove(ctx)
        else:
            logger.debug("Skipping removal of %s; not present", self.display)


class Read[P](SpecOp[P]):
    """Read a data source and record its attributes; runs in dry-run mode too."""

    def __init__(self, spec: DataSource, label: str | None = None) -> None:
        super().__init__(spec, label)  # type: ignore[arg-type]

    def refresh(self, ctx: Context[P]) -> bool:
        self(ctx)
        return True

    def __call__(self, ctx: Context[P]) -> None:
        source = self.spec.bind(ctx)
        logger.debug("Reading %s", self.display)
        state = source.read(ctx)  # type: ignore[attr-defined]
        if self.label is not None:
            ctx.record(_type_name(source), self.label, state, data=True)
