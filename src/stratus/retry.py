"""Polling helpers that drive asynchronous remote operations to completion."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any

from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    before_sleep_log,
    retry_if_exception,
    retry_if_exception_type,
    stop_before_delay,
    wait_exponential,
    wait_fixed,
)
from tenacity.nap import sleep

from .errors import NotFoundError, UnexpectedStateError, WaitTimeoutError, not_found

logger = logging.getLogger(__name__)

StateRefreshFunc = Callable[[], tuple[Any, str]]

_INITIAL_WAIT = 0.1
_MAX_WAIT = 10.0


class _StillWaiting(Exception):
    """Raised by a refresh that hasn't settled on a target state yet."""


class StateChangeConf:
    """Poll a refresh function until the observed state reaches one of the targets.

    The refresh function returns ``(result, state)``. A ``None`` result means
    the resource was not found: with an empty target that counts as success,
    otherwise it is tolerated ``not_found_checks`` times before giving up.
    """

    def __init__(
        self,
        *,
        pending: Sequence[str],
        target: Sequence[str],
        refresh: StateRefreshFunc,
        timeout: float,
        delay: float = 0.0,
        min_timeout: float = 0.0,
        poll_interval: float = 0.0,
        not_found_checks: int = 20,
        continuous_target_occurence: int = 1,
    ) -> None:
        self.pending = list(pending)
        self.target = list(target)
        self.refresh = refresh
        self.timeout = timeout
        self.delay = delay
        self.min_timeout = min_timeout
        self.poll_interval = poll_interval
        self.not_found_checks = not_found_checks
        self.continuous_target_occurence = max(continuous_target_occurence, 1)

    def _wait(self) -> wait_fixed | wait_exponential:
        if self.poll_interval > 0:
            return wait_fixed(self.poll_interval)
        return wait_exponential(multiplier=_INITIAL_WAIT, min=self.min_timeout, max=_MAX_WAIT)

    def wait_for_state(self) -> Any:
        """Block until a target state is reached, returning the last result."""
        if self.delay > 0:
            sleep(self.delay)

        last_state = ""
        target_occurence = 0
        not_found_tick = 0

        def attempt() -> Any:
            nonlocal last_state, target_occurence, not_found_tick
            result, state = self.refresh()

            if result is None:
                if not self.target:
                    target_occurence += 1
                    if target_occurence >= self.continuous_target_occurence:
                        return None
                else:
                    not_found_tick += 1
                    if not_found_tick > self.not_found_checks:
                        raise NotFoundError(f"couldn't find resource ({not_found_tick - 1} retries)")
            else:
                not_found_tick = 0
                last_state = state

                if state in self.target:
                    target_occurence += 1
                    if target_occurence >= self.continuous_target_occurence:
                        return result
                elif state in self.pending:
                    target_occurence = 0
                else:
                    raise UnexpectedStateError(state, self.target)

            raise _StillWaiting(state)

        def log_wait(retry_state: RetryCallState) -> None:
            logger.debug(
                "Waiting %.1fs for state '%s' (current: '%s')",
                retry_state.upcoming_sleep,
                self.target,
                last_state,
            )

        retrying = Retrying(
            retry=retry_if_exception_type(_StillWaiting),
            stop=stop_before_delay(self.timeout),
            wait=self._wait(),
            sleep=sleep,
            before_sleep=log_wait,
        )
        try:
            return retrying(attempt)
        except RetryError as err:
            raise WaitTimeoutError(last_state, self.target, self.timeout) from err


def retry_when[T](
    fn: Callable[[], T],
    predicate: Callable[[BaseException], bool],
    *,
    timeout: float,
    interval: float = 5.0,
) -> T:
    """Call fn, retrying while the raised error satisfies predicate and time remains."""
    retrying = Retrying(
        retry=retry_if_exception(predicate),
        stop=stop_before_delay(timeout),
        wait=wait_fixed(interval),
        sleep=sleep,
        reraise=True,
        before_sleep=before_sleep_log(logger, logging.DEBUG),
    )
    return retrying(fn)


def retry_when_new_resource_not_found[T](
    fn: Callable[[], T],
    *,
    is_new_resource: bool,
    timeout: float = 120.0,
) -> T:
    """Retry a lookup on NotFoundError while a freshly created resource propagates."""
    if not is_new_resource:
        return fn()
    return retry_when(fn, not_found, timeout=timeout, interval=2.0)
