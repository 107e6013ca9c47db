from __future__ import annotations

import asyncio
import random
import time
from typing import Awaitable, Callable, Iterable, Type, TypeVar

from telemetry.logging_utils import get_logger

T = TypeVar("T")

logger = get_logger(__name__)


def _compute_backoff(attempt: int, base_delay: float, factor: float, jitter: float) -> float:
    delay = base_delay * (factor ** attempt)
    if jitter:
        delay += random.uniform(0, jitter)
    return delay


def retry_with_backoff(
    fn: Callable[[], T],
    *,
    retries: int = 3,
    base_delay: float = 0.25,
    factor: float = 2.0,
    jitter: float = 0.1,
    retry_exceptions: Iterable[Type[BaseException]] = (Exception,),
    label: str = "call",
) -> T:
    """Call ``fn`` up to ``retries`` times, sleeping with exponential backoff between attempts."""
    retry_on = tuple(retry_exceptions)
    attempt = 0
    while True:
        try:
            return fn()
        except retry_on as exc:
            if attempt >= retries - 1:
                raise
            delay = _compute_backoff(attempt, base_delay, factor, jitter)
            logger.warning("retrying", extra={"label": label, "attempt": attempt + 1, "delay": round(delay, 3), "error": str(exc)[:200]})
            time.sleep(delay)
            attempt += 1


async def retry_async_with_backoff(
    fn: Callable[[], Awaitable[T]],
    *,
    retries: int = 3,
    base_delay: float = 0.25,
    factor: float = 2.0,
    jitter: float = 0.1,
    retry_exceptions: Iterable[Type[BaseException]] = (Exception,),
    label: str = "call",
) -> T:
    retry_on = tuple(retry_exceptions)
    attempt = 0
    while True:
        try:
            return await fn()
        except retry_on as exc:
            if attempt >= retries - 1:
                raise
            delay = _compute_backoff(attempt, base_delay, factor, jitter)
            logger.warning("retrying", extra={"label": label, "attempt": attempt + 1, "delay": round(delay, 3), "error": str(exc)[:200]})
            await asyncio.sleep(delay)
            attempt += 1
