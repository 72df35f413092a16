"""Bounded polling with a fixed delay.

Repeats a status check until a predicate accepts the snapshot or the attempt
budget runs out. The delay function is injectable so callers and tests are
not tied to wall-clock time.

Example:
    >>> config = PollConfig(max_attempts=60, interval_seconds=5.0)
    >>> job = await poll_until(
    ...     lambda: client.get_status(task_id),
    ...     lambda job: job.status is JobStatus.COMPLETED,
    ...     config,
    ...     retryable_exceptions=(TransportError,),
    ... )
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

from docling_ocr.config.constants import POLL_INTERVAL_SECONDS, POLL_MAX_ATTEMPTS

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


@dataclass
class PollConfig:
    """Configuration for polling.

    Attributes:
        max_attempts: Maximum number of checks (including the first)
        interval_seconds: Fixed delay between checks
    """

    max_attempts: int = POLL_MAX_ATTEMPTS
    interval_seconds: float = POLL_INTERVAL_SECONDS

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        if self.interval_seconds < 0:
            raise ValueError(f"interval_seconds must not be negative, got {self.interval_seconds}")


async def poll_until(
    check: Callable[[], Awaitable[T]],
    is_done: Callable[[T], bool],
    config: PollConfig,
    *,
    retryable_exceptions: Tuple[Type[Exception], ...] = (),
    should_retry: Optional[Callable[[Exception], bool]] = None,
    sleep: Sleep = asyncio.sleep,
) -> Optional[T]:
    """Call `check` until `is_done` accepts its result.

    Errors listed in `retryable_exceptions` (and accepted by `should_retry`,
    when given) are logged and retried; they are re-raised on the final
    attempt. Any other error propagates immediately.

    Args:
        check: Coroutine factory returning a fresh snapshot per call
        is_done: Predicate marking a terminal snapshot
        config: Attempt budget and delay
        retryable_exceptions: Exception types that count as transient
        should_retry: Extra filter applied to retryable exceptions
        sleep: Delay coroutine, `asyncio.sleep` by default

    Returns:
        The first snapshot accepted by `is_done`, or None when the budget
        is exhausted.
    """
    for attempt in range(config.max_attempts):
        is_last = attempt == config.max_attempts - 1
        try:
            snapshot = await check()
        except retryable_exceptions as e:
            if is_last or (should_retry is not None and not should_retry(e)):
                raise

            logger.warning(
                f"Polling attempt {attempt + 1}/{config.max_attempts} failed: "
                f"{type(e).__name__}: {e}. Retrying in {config.interval_seconds:.2f}s...",
                extra={
                    "attempt": attempt + 1,
                    "max_attempts": config.max_attempts,
                },
            )
            await sleep(config.interval_seconds)
            continue

        if is_done(snapshot):
            return snapshot

        if not is_last:
            await sleep(config.interval_seconds)

    return None
