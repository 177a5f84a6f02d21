from __future__ import annotations

"""Bounded retry with exponential backoff for idempotent remote calls."""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from text_generator.rag.errors import RemoteCallError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def retry_remote(
    operation: Callable[[], Awaitable[T]],
    *,
    attempts: int,
    backoff: float,
    stage: str,
    request_id: str | None = None,
) -> T:
    """Run `operation`, retrying only on RemoteCallError.

    Waits `backoff * 2**n` seconds before retry n+1. Other errors surface on
    the first failure.
    """
    attempts = max(1, attempts)
    for attempt in range(1, attempts):
        try:
            return await operation()
        except RemoteCallError as exc:
            delay = backoff * (2 ** (attempt - 1))
            logger.warning(
                "remote_call_retry",
                extra={
                    "request_id": request_id,
                    "stage": stage,
                    "attempt": attempt,
                    "delay_seconds": delay,
                    "detail": str(exc),
                },
            )
            if delay > 0:
                await asyncio.sleep(delay)
    return await operation()
