"""Runtime execution context for the build pipeline."""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .conns import AWSClient

logger = logging.getLogger(__name__)


class Context[P]:
    """Runtime state passed through the build chain."""

    def __init__(
        self,
        target: P,
        *,
        dry_run: bool = False,
        aws: AWSClient | None = None,
        outputs: dict[str, Any] | None = None,
    ) -> None:
        self.target = target
        self.dry_run = dry_run
        self.aws = aws
        self.outputs: dict[str, Any] = outputs if outputs is not None else {}

    @property
    def client(self) -> AWSClient:
        """The AWS client factory; raises if the context was built without one."""
        if self.aws is None:
            raise RuntimeError("context has no AWS client configured")
        return self.aws

    def conn(self, service: str, region: str | None = None) -> Any:
        """Return the API client for a service package."""
        return self.client.client(service, region)

    def record(self, type_name: str, label: str, state: dict[str, Any], *, data: bool = False) -> None:
        """Store observed state so later operations can reference it."""
        root = self.outputs.setdefault("data", {}) if data else self.outputs
        logger.debug("Recording %s%s.%s", "data." if data else "", type_name, label)
        root.setdefault(type_name, {})[label] = state

    def references(self) -> dict[str, Any]:
        """Return the lookup table for ${...} references."""
        return {"env": dict(os.environ), **self.outputs}
