from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryExhaustedError(Exception):
    def __init__(self, attempts: int, errors: list[BaseException]) -> None:
        last = errors[-1] if errors else None
        super().__init__(f"Operation failed after {attempts} attempts: {last}")
        self.attempts = attempts
        self.errors = errors

    @property
    def last_error(self) -> BaseException | None:
        return self.errors[-1] if self.errors else None


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    attempts: int,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    delay_seconds: float = 0.0,
    description: str = "operation",
) -> T:
    """
    Run `operation` up to `attempts` times and return the first successful result.

    Failures matching `retry_on` are collected; anything else propagates at once.
    Cancellation is never retried.
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    errors: list[BaseException] = []
    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except retry_on as e:
            errors.append(e)
            logger.warning(
                "Attempt failed. operation=%s attempt=%d/%d error=%s",
                description,
                attempt,
                attempts,
                e,
            )
        if attempt < attempts and delay_seconds > 0:
            await asyncio.sleep(delay_seconds)

    raise RetryExhaustedError(attempts, errors)
