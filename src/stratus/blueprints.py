"""Blueprint model: a named, ordered collection of spec operations."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

from pydantic import BaseModel, Field

from .context import Context
from .specop import Absent, Read, SpecOp

logger = logging.getLogger(__name__)


class Blueprint(BaseModel):
    """A named collection of spec operations, executed in order."""

    model_config = {"arbitrary_types_allowed": True}

    name: str
    description: str = ""
    ops: list[SpecOp[Any]] = Field(default_factory=list)

    def __iter__(self) -> Iterator[SpecOp[Any]]:  # type: ignore[override]
        return iter(self.ops)

    @property
    def data_sources(self) -> list[SpecOp[Any]]:
        return [op for op in self.ops if isinstance(op, Read)]

    @property
    def managed(self) -> list[SpecOp[Any]]:
        """Operations that own a resource and are undone on destroy."""
        return [op for op in self.ops if not isinstance(op, (Read, Absent))]

    def build(self, ctx: Context) -> None:
        """Execute all operations in this blueprint."""
        logger.debug(
            "Building blueprint '%s' (%d ops, %d data sources)",
            self.name,
            len(self.ops),
            len(self.data_sources),
        )
        for op in self.ops:
            op(ctx)

    def refresh(self, ctx: Context) -> list[SpecOp[Any]]:
        """Record current state for every operation.

        Returns the managed operations that refreshed cleanly; an operation
        whose references can't be resolved is logged and left out.
        """
        logger.debug("Refreshing blueprint '%s'", self.name)
        refreshed: list[SpecOp[Any]] = []
        for op in self.ops:
            try:
                op.refresh(ctx)
            except ValueError as exc:
                logger.warning("Skipping %s; %s", op.display, exc)
                continue
            if not isinstance(op, (Read, Absent)):
                refreshed.append(op)
        return refreshed
