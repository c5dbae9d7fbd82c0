"""Schema helpers layered on pydantic for resource and data source models."""

from __future__ import annotations

import re
from datetime import timedelta
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidatorFunctionWrapHandler, field_validator

FORCE_NEW = "force_new"
WRITE_ONLY = "write_only"

_DURATION_PATTERN = re.compile(r"(\d+(?:\.\d+)?)(h|m|s)")
_REGION_PATTERN = re.compile(r"^[a-z]{2}(?:-[a-z]+)+-\d{1,2}$")
_ARN_PATTERN = re.compile(r"^arn:[\w-]+:[\w-]+:[\w-]*:\d{0,12}:.+$")

_DURATION_UNITS = {"h": 3600.0, "m": 60.0, "s": 1.0}


def force_new(default: Any = ..., **kwargs: Any) -> Any:
    """Declare a field whose change requires replacing the remote resource."""
    return Field(default, json_schema_extra={FORCE_NEW: True}, **kwargs)


def write_only(default: Any = None, **kwargs: Any) -> Any:
    """Declare a field sent to the API but never returned by it."""
    return Field(default, json_schema_extra={WRITE_ONLY: True}, **kwargs)


def _has_flag(model: type[BaseModel], field_name: str, flag: str) -> bool:
    field = model.model_fields.get(field_name)
    if field is None or not isinstance(field.json_schema_extra, dict):
        return False
    return bool(field.json_schema_extra.get(flag))


def is_force_new(model: type[BaseModel], field_name: str) -> bool:
    """Return True if the named field was declared with force_new()."""
    return _has_flag(model, field_name, FORCE_NEW)


def write_only_fields(model: type[BaseModel]) -> set[str]:
    return {name for name in model.model_fields if _has_flag(model, name, WRITE_ONLY)}


def is_unresolved(value: Any) -> bool:
    """Return True if the value still holds a ${...} reference."""
    return isinstance(value, str) and "${" in value


def keep_unresolved(value: Any, handler: ValidatorFunctionWrapHandler) -> Any:
    """Defer validation of values that still hold ${...} references until bind."""
    if is_unresolved(value):
        return value
    return handler(value)


def _unwrap_block(value: Any) -> Any:
    """HCL decodes nested blocks as lists; unwrap single-item blocks."""
    if isinstance(value, list):
        if len(value) == 0:
            return None
        if len(value) > 1:
            raise ValueError(f"expected at most 1 block, got {len(value)}")
        return value[0]
    return value


type Block[T] = Annotated[T, BeforeValidator(_unwrap_block)]


def parse_duration(value: str | int | float | timedelta) -> timedelta:
    """Parse a duration like '20m', '1h30m' or '45s' into a timedelta."""
    if isinstance(value, timedelta):
        return value
    if isinstance(value, (int, float)):
        return timedelta(seconds=value)

    text = value.strip()
    pos = 0
    seconds = 0.0
    for match in _DURATION_PATTERN.finditer(text):
        if match.start() != pos:
            break
        seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()

    if pos == 0 or pos != len(text):
        raise ValueError(f"invalid duration: '{value}'")
    return timedelta(seconds=seconds)


Duration = Annotated[timedelta, BeforeValidator(parse_duration)]


class Timeouts(BaseModel):
    """Per-operation timeouts; unset values fall back to the resource defaults."""

    model_config = ConfigDict(extra="forbid")

    create: Duration | None = None
    update: Duration | None = None
    delete: Duration | None = None

    def merged(self, defaults: Timeouts) -> Timeouts:
        return Timeouts(
            create=self.create or defaults.create,
            update=self.update or defaults.update,
            delete=self.delete or defaults.delete,
        )


def valid_region_name(value: str | None) -> str | None:
    if value is None or is_unresolved(value):
        return value
    if not _REGION_PATTERN.match(value):
        raise ValueError(f"'{value}' is not a valid region name")
    return value


def valid_arn(value: str | None) -> str | None:
    if value is None or is_unresolved(value):
        return value
    if not _ARN_PATTERN.match(value):
        raise ValueError(f"'{value}' is not a valid ARN")
    return value


class Schema(BaseModel):
    """Base model for nested configuration blocks."""

    model_config = ConfigDict(extra="forbid")

    @field_validator("*", mode="before")
    @classmethod
    def empty_string_is_unset(cls, value: Any) -> Any:
        if value == "":
            return None
        return value

    defer_unresolved = field_validator("*", mode="wrap")(keep_unresolved)
