"""Bounded retry and polling for flaky operations."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from run_reporter.errors import ConfigurationError, PredicateTimeoutError

log = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, kw_only=True)
class RetryPolicy:
    """Attempt budget and fixed delay between attempts.

    ``max_attempts`` includes the first attempt. ``success_predicate`` is used
    by ``poll_until`` when no predicate is passed explicitly.
    """

    max_attempts: int = 3
    delay_ms: int = 1000
    success_predicate: Callable[[Any], bool] | None = None

    def __post_init__(self) -> None:
        """Validate the policy."""
        if self.max_attempts <= 0:
            raise ConfigurationError(
                f"max_attempts must be positive, got {self.max_attempts}"
            )
        if self.delay_ms < 0:
            raise ConfigurationError(
                f"delay_ms must not be negative, got {self.delay_ms}"
            )

    @property
    def delay(self) -> float:
        """Delay between attempts in seconds."""
        return self.delay_ms / 1000


async def retry_operation(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
) -> T:
    """Call ``operation`` until it returns without raising.

    Args:
        operation: Async callable to attempt
        policy: Attempt budget and delay (default: 3 attempts, 1s apart)

    Returns:
        The first successful result

    Raises:
        Exception: The exception raised by the last attempt

    """
    policy = policy or RetryPolicy()
    attempt = 1

    while True:
        try:
            return await operation()
        except Exception as e:
            if attempt >= policy.max_attempts:
                raise
            log.debug("Attempt %d/%d failed: %s", attempt, policy.max_attempts, e)
        await asyncio.sleep(policy.delay)
        attempt += 1


async def poll_until(
    operation: Callable[[], Awaitable[T]],
    predicate: Callable[[T], bool] | None = None,
    policy: RetryPolicy | None = None,
) -> T:
    """Call ``operation`` until ``predicate`` accepts its result.

    Only a rejected result counts as a retry: an exception raised by
    ``operation`` ends the poll immediately.

    Args:
        operation: Async callable producing the value to check
        predicate: Condition over the result (default: the policy's
            ``success_predicate``)
        policy: Attempt budget and delay (default: 3 attempts, 1s apart)

    Returns:
        The first result accepted by the predicate

    Raises:
        ConfigurationError: If no predicate is available
        PredicateTimeoutError: If no result is accepted within the budget

    """
    policy = policy or RetryPolicy()
    check = predicate or policy.success_predicate
    if check is None:
        raise ConfigurationError("poll_until requires a predicate")

    last_result: T | None = None
    for attempt in range(1, policy.max_attempts + 1):
        last_result = await operation()
        if check(last_result):
            return last_result
        log.debug("Condition not met on attempt %d/%d", attempt, policy.max_attempts)
        if attempt < policy.max_attempts:
            await asyncio.sleep(policy.delay)

    raise PredicateTimeoutError(policy.max_attempts, last_result)
