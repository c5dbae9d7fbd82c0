"""Error types and helpers for classifying remote API failures."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from botocore.exceptions import ClientError


class NotFoundError(Exception):
    """The requested remote resource does not exist."""

    def __init__(
        self,
        message: str = "couldn't find resource",
        *,
        last_error: BaseException | None = None,
        last_request: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.last_error = last_error
        self.last_request = last_request

    def __str__(self) -> str:
        if self.last_error is not None:
            return f"{self.message}: {self.last_error}"
        return self.message


class EmptyResultError(NotFoundError):
    """A lookup returned no results."""

    def __init__(self, last_request: Any = None) -> None:
        super().__init__("empty result", last_request=last_request)


class TooManyResultsError(NotFoundError):
    """A lookup expected to match a single result matched several."""

    def __init__(self, count: int, last_request: Any = None) -> None:
        super().__init__(f"too many results: wanted 1, got {count}", last_request=last_request)
        self.count = count


class UnexpectedStateError(Exception):
    """A polled resource reported a state outside the pending and target sets."""

    def __init__(self, state: str, expected: Sequence[str], last_error: BaseException | None = None) -> None:
        super().__init__(f"unexpected state '{state}', wanted target '{', '.join(expected)}'")
        self.state = state
        self.expected = list(expected)
        self.last_error = last_error


class WaitTimeoutError(TimeoutError):
    """A poll loop ran out of time before reaching the target state."""

    def __init__(
        self,
        state: str,
        expected: Sequence[str],
        timeout: float,
        last_error: BaseException | None = None,
    ) -> None:
        msg = f"timeout while waiting for state to become '{', '.join(expected)}'"
        msg += f" (last state: '{state}', timeout: {timeout:g}s)"
        if last_error is not None:
            msg += f": {last_error}"
        super().__init__(msg)
        self.state = state
        self.expected = list(expected)
        self.timeout = timeout
        self.last_error = last_error


class ResourceError(Exception):
    """A resource operation failed; the message names the action and the resource."""


def not_found(err: BaseException | None) -> bool:
    """Return True if the error means the resource does not exist."""
    return isinstance(err, NotFoundError)


def error_code(err: BaseException | None) -> str:
    """Return the AWS error code carried by a botocore ClientError, or ''."""
    if isinstance(err, ClientError):
        return err.response.get("Error", {}).get("Code", "")
    return ""


def error_code_equals(err: BaseException | None, *codes: str) -> bool:
    """Return True if the error is a ClientError with one of the given codes."""
    code = error_code(err)
    return bool(code) and code in codes


def error_message_contains(err: BaseException | None, code: str, fragment: str) -> bool:
    """Return True if the error has the given code and its message contains the fragment."""
    if not error_code_equals(err, code):
        return False
    message = err.response.get("Error", {}).get("Message", "")  # type: ignore[union-attr]
    return fragment in message


def assert_single_result[T](items: Sequence[T], last_request: Any = None) -> T:
    """Return the only item, raising a NotFoundError subclass otherwise."""
    if not items:
        raise EmptyResultError(last_request)
    if len(items) > 1:
        raise TooManyResultsError(len(items), last_request)
    return items[0]
