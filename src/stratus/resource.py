"""Resource and data source base models.

A resource adapter declares its configuration as pydantic fields and
implements a handful of hooks against the remote API:

* ``identify`` - locate the remote identifier from the configured attributes
* ``find_by_id`` - read the remote object and flatten it into a state dict
* ``create`` / ``update`` / ``delete`` - mutate the remote object

The base class turns those hooks into the Specification protocol
(``exists``/``equals``/``apply``/``remove``) used by the strategies.
"""

from __future__ import annotations

import logging
from abc import abstractmethod
from datetime import timedelta
from typing import Any, ClassVar, Self

from botocore.exceptions import ClientError
from pydantic import BaseModel, ConfigDict, PrivateAttr, field_validator

from .context import Context
from .errors import NotFoundError, ResourceError
from .resolve import Resolver
from .retry import retry_when_new_resource_not_found
from .schema import Block, Timeouts, is_force_new, keep_unresolved, write_only_fields
from .spec import Specification

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = timedelta(minutes=20)


def _block_differs(want: Any, have: Any) -> bool:
    """Compare a configured block against observed state, ignoring unset keys."""
    if isinstance(want, dict):
        if not isinstance(have, dict):
            return True
        return any(_block_differs(v, have.get(k)) for k, v in want.items())
    if isinstance(want, list):
        if not isinstance(have, list) or len(want) != len(have):
            return True
        return any(_block_differs(w, h) for w, h in zip(want, have, strict=True))
    return want != have


def _is_block(value: Any) -> bool:
    if isinstance(value, BaseModel):
        return True
    return isinstance(value, list) and bool(value) and isinstance(value[0], BaseModel)


class _Model(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type_name: ClassVar[str] = ""
    display_name: ClassVar[str] = ""

    defer_unresolved = field_validator("*", mode="wrap")(keep_unresolved)

    def bind(self, ctx: Context) -> Self:
        """Return a copy with ${...} references resolved against recorded outputs."""
        data = self.model_dump(exclude_unset=True, warnings=False)
        resolved = Resolver(ctx.references()).resolve(data)
        if resolved == data:
            return self
        return type(self).model_validate(resolved)


class Resource(_Model, Specification["Project"]):
    """Base class for managed remote resources."""

    default_timeouts: ClassVar[Timeouts] = Timeouts()

    timeouts: Block[Timeouts | None] = None

    _state: dict[str, Any] | None = PrivateAttr(default=None)
    _refreshed: bool = PrivateAttr(default=False)

    # -- Adapter hooks --

    @abstractmethod
    def identify(self, ctx: Context) -> str:
        """Return the remote identifier for the configured resource; raise NotFoundError."""

    @abstractmethod
    def find_by_id(self, ctx: Context, identifier: str) -> dict[str, Any]:
        """Read the remote object and return its flattened state; raise NotFoundError."""

    @abstractmethod
    def create(self, ctx: Context) -> str:
        """Create the remote object and return its identifier."""

    def update(self, ctx: Context, state: dict[str, Any], changes: dict[str, Any]) -> None:
        raise ResourceError(f"updating {self.display_name} ({state.get('id')}): in-place update not supported")

    @abstractmethod
    def delete(self, ctx: Context, state: dict[str, Any]) -> None:
        """Delete the remote object described by state."""

    # -- Helpers --

    def timeout(self, operation: str) -> float:
        """Return the timeout in seconds for 'create', 'update' or 'delete'."""
        timeouts = (self.timeouts or Timeouts()).merged(self.default_timeouts)
        value = getattr(timeouts, operation) or _DEFAULT_TIMEOUT
        return value.total_seconds()

    def desired(self) -> dict[str, Any]:
        """Return configured attributes in state form."""
        exclude = {"timeouts"} | write_only_fields(type(self))
        return self.model_dump(exclude=exclude, exclude_none=True)

    def diff(self, state: dict[str, Any]) -> dict[str, tuple[Any, Any]]:
        """Return {attribute: (observed, desired)} for attributes that drifted."""
        changes: dict[str, tuple[Any, Any]] = {}
        for name, want in self.desired().items():
            have = state.get(name)
            if _is_block(getattr(self, name)):
                changed = _block_differs(want, have)
            else:
                changed = want != have
            if changed:
                changes[name] = (have, want)
        return changes

    def observed(self) -> dict[str, Any] | None:
        return self._state

    # -- Lifecycle --

    def read(self, ctx: Context) -> dict[str, Any] | None:
        """Return the observed state, or None if the resource does not exist."""
        identifier = None
        try:
            identifier = self.identify(ctx)
            return self.find_by_id(ctx, identifier)
        except NotFoundError as exc:
            logger.debug("%s not found: %s", self.display_name, exc)
            return None
        except ClientError as err:
            where = f" ({identifier})" if identifier else ""
            raise ResourceError(f"reading {self.display_name}{where}: {err}") from err

    def refresh(self, ctx: Context) -> dict[str, Any] | None:
        previous = self._state
        self._state = self.read(ctx)
        self._refreshed = True
        if previous is not None and self._state is None:
            logger.warning("%s (%s) not found, removing from state", self.display_name, previous.get("id"))
        return self._state

    def import_state(self, ctx: Context, identifier: str) -> dict[str, Any]:
        """Adopt an existing remote object by identifier."""
        logger.info("Importing %s (%s)", self.display_name, identifier)
        self._state = self.find_by_id(ctx, identifier)
        self._refreshed = True
        return self._state

    def _current(self, ctx: Context) -> dict[str, Any] | None:
        if self._refreshed:
            return self._state
        return self.refresh(ctx)

    def exists(self, ctx: Context) -> bool:
        return self.refresh(ctx) is not None

    def equals(self, ctx: Context) -> bool:
        state = self.refresh(ctx)
        if state is None:
            return False
        changes = self.diff(state)
        for name, (have, want) in changes.items():
            logger.debug("%s (%s): %s changed: %r -> %r", self.display_name, state.get("id"), name, have, want)
        return not changes

    def _create(self, ctx: Context) -> str:
        identifier = self.create(ctx)
        logger.info("Created %s (%s)", self.display_name, identifier)
        return identifier

    def apply(self, ctx: Context) -> None:
        state = self._current(ctx)
        is_new = False

        if state is None:
            identifier = self._create(ctx)
            is_new = True
        else:
            identifier = state["id"]
            changes = self.diff(state)
            replace = sorted(name for name in changes if is_force_new(type(self), name))
            if replace:
                logger.info(
                    "Replacing %s (%s); changed: %s",
                    self.display_name,
                    identifier,
                    ", ".join(replace),
                )
                self.delete(ctx, state)
                identifier = self._create(ctx)
                is_new = True
            elif changes:
                logger.info("Updating %s (%s)", self.display_name, identifier)
                self.update(ctx, state, {name: want for name, (_, want) in changes.items()})

        try:
            self._state = retry_when_new_resource_not_found(
                lambda: self.find_by_id(ctx, identifier),
                is_new_resource=is_new,
            )
        except (ClientError, NotFoundError) as err:
            raise ResourceError(f"reading {self.display_name} ({identifier}): {err}") from err
        self._refreshed = True

    def remove(self, ctx: Context) -> None:
        state = self._current(ctx)
        if state is None:
            return
        logger.debug("Deleting %s: %s", self.display_name, state.get("id"))
        self.delete(ctx, state)
        self._state = None


class DataSource(_Model):
    """Base class for read-only lookups."""

    @abstractmethod
    def read(self, ctx: Context) -> dict[str, Any]:
        """Look up the remote object and return its attributes; raise NotFoundError."""
