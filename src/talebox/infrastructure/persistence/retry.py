# Hey future me - this is the fix for "database is locked" during checkpoints!
#
# Locally the progress table lives in SQLite, which allows ONE writer at a time.
# Timed checkpoints, seek checkpoints and the library toggles can collide.
# Lock errors are TEMPORARY - waiting and retrying almost always works.
#
# USAGE:
#   @with_db_retry(max_attempts=3)
#   async def save_progress(...):
#       ...
"""Database retry utilities for handling transient lock errors."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import ParamSpec, TypeVar

from sqlalchemy.exc import OperationalError

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


def is_lock_error(error: OperationalError) -> bool:
    """True for lock/busy errors, the only ones worth retrying."""
    message = str(error).lower()
    return "locked" in message or "busy" in message


def with_db_retry(
    max_attempts: int = 3,
    initial_delay: float = 0.1,
    max_delay: float = 2.0,
    backoff_factor: float = 2.0,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Decorator for retrying async database operations on lock errors.

    The backoff is exponential: 0.1s → 0.2s → 0.4s (capped at max_delay).
    Other OperationalErrors (connection refused, bad schema) are raised immediately.

    Args:
        max_attempts: Maximum attempts including the first one
        initial_delay: Initial delay in seconds
        max_delay: Maximum delay cap in seconds
        backoff_factor: Multiply delay by this each retry
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            delay = initial_delay
            start_time = time.monotonic()

            for attempt in range(1, max_attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except OperationalError as e:
                    if not is_lock_error(e) or attempt == max_attempts:
                        if attempt > 1:
                            logger.error(
                                "Database locked after %d attempts (%.0fms total), giving up: %s",
                                attempt,
                                (time.monotonic() - start_time) * 1000,
                                func.__qualname__,
                            )
                        raise

                    logger.warning(
                        "Database locked (attempt %d/%d), retrying in %.1fs: %s",
                        attempt,
                        max_attempts,
                        delay,
                        func.__qualname__,
                    )
                    await asyncio.sleep(delay)
                    delay = min(delay * backoff_factor, max_delay)

            raise AssertionError("unreachable")  # pragma: no cover

        return wrapper

    return decorator
