"""Retry classification and backoff for provider calls."""

from __future__ import annotations

import random

from reagent.errors import ProviderTransientError


def is_retryable(error: BaseException) -> bool:
    """Rate limits, timeouts and dropped connections are worth retrying."""
    return isinstance(error, (ProviderTransientError, TimeoutError, ConnectionError))


def backoff_delay(
    attempt: int,
    base_delay: float,
    *,
    jitter: float = 0.5,
    max_delay: float = 30.0,
) -> float:
    """
    Exponential backoff with uniform jitter.

    ``min(base_delay * 2**attempt + uniform(0, jitter), max_delay)``

    Args:
        attempt: 0-based index of the attempt that just failed.
        base_delay: Seconds for the first retry.
        jitter: Upper bound of the random component.
        max_delay: Cap applied after jitter.
    """
    delay = base_delay * (2**attempt)
    if jitter > 0:
        delay += random.uniform(0.0, jitter)
    return min(delay, max_delay)
