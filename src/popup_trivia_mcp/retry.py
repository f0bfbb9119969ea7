"""Backoff for the Gemini generate call.

Only failures the Gemini API marks as transient are retried: rate limits
(429 / RESOURCE_EXHAUSTED), overload and gateway errors (5xx /
UNAVAILABLE / DEADLINE_EXCEEDED) and transport timeouts. A 4xx verdict
on the request itself fails immediately. Once the attempts run out the
error propagates to ``generate_verdict``, which turns it into a
``GenerationError``; the orchestrator never retries on its own.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

import httpx
from google.genai import errors as genai_errors

from .config import ServerConfig, get_config

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TRANSIENT_CODES = frozenset({408, 429, 500, 502, 503, 504})
_TRANSIENT_STATUSES = frozenset({"RESOURCE_EXHAUSTED", "UNAVAILABLE", "DEADLINE_EXCEEDED", "INTERNAL"})


def is_transient(exc: BaseException) -> bool:
    """True for Gemini API and transport failures worth another attempt."""
    if isinstance(exc, genai_errors.APIError):
        return exc.code in _TRANSIENT_CODES or (exc.status or "").upper() in _TRANSIENT_STATUSES
    return isinstance(exc, (httpx.TimeoutException, httpx.NetworkError, TimeoutError))


def backoff_delay(attempt: int, cfg: ServerConfig) -> float:
    """Seconds to wait after failed attempt number *attempt* (0-based)."""
    jitter = random.uniform(0, cfg.retry_base_delay)
    return min(cfg.retry_base_delay * 2 ** attempt + jitter, cfg.retry_max_delay)


async def with_retry(coro_factory: Callable[[], Awaitable[T]], *, label: str = "generate_content") -> T:
    """Await ``coro_factory()``, retrying transient Gemini failures.

    Args:
        coro_factory: Builds a fresh coroutine per attempt.
        label: Name used in the retry log line.

    Raises:
        The first non-transient error, or the last transient one once
        ``retry_max_attempts`` is used up.
    """
    cfg = get_config()
    attempt = 0
    while True:
        try:
            return await coro_factory()
        except Exception as exc:
            attempt += 1
            if not is_transient(exc) or attempt >= cfg.retry_max_attempts:
                raise
            delay = backoff_delay(attempt - 1, cfg)
            logger.warning(
                "%s failed (%s), attempt %d/%d, next in %.1fs",
                label, exc, attempt, cfg.retry_max_attempts, delay,
            )
            await asyncio.sleep(delay)
