"""Project base model: the top-level build target."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field

from .blueprints import Blueprint
from .config import ProviderConfig
from .conns import AWSClient
from .context import Context
from .schema import Block
from .specop import Absent, SpecOp

logger = logging.getLogger(__name__)


class Project(BaseModel):
    """Base model that apps subclass with domain-specific fields."""

    model_config = {"arbitrary_types_allowed": True}

    name: str
    description: str = ""
    provider: Block[ProviderConfig] = Field(default_factory=ProviderConfig)
    blueprints: list[Blueprint] = Field(default_factory=list)

    def context(self, *, aws: AWSClient | None = None, **kwargs: Any) -> Context:
        """Create a build context; kwargs are passed to Context."""
        return Context(target=self, aws=aws or AWSClient(self.provider), **kwargs)

    def ops(self) -> list[SpecOp[Any]]:
        return [op for blueprint in self.blueprints for op in blueprint]

    def build(self, **kwargs: Any) -> Context:
        """Build all blueprints in order and return the context holding their outputs."""
        ctx = self.context(**kwargs)
        logger.info("Building project '%s'", self.name)
        for blueprint in self.blueprints:
            blueprint.build(ctx)
        return ctx

    def destroy(self, **kwargs: Any) -> Context:
        """Remove every managed resource, in reverse declaration order.

        All operations are refreshed first so references between resources
        resolve during removal.
        """
        ctx = self.context(**kwargs)
        logger.info("Destroying project '%s'", self.name)

        managed = [op for blueprint in self.blueprints for op in blueprint.refresh(ctx)]
        for op in reversed(managed):
            Absent(op.spec, op.label)(ctx)

        return ctx
