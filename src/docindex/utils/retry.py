"""Capped exponential backoff for external service calls."""

import logging
import time
from typing import Callable, TypeVar

from docindex.errors import ApiError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def backoff_delays(retries: int, base: float, cap: float) -> list[float]:
    """Sleep durations between ``retries`` attempts: base, 2*base, 4*base... capped."""
    return [min(base * (2**attempt), cap) for attempt in range(max(retries - 1, 0))]


def call_with_retry(
    call: Callable[[], T],
    *,
    retries: int,
    base: float,
    cap: float,
    what: str,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run ``call`` until it succeeds or ``retries`` attempts are used.

    Only retryable :class:`ApiError` kinds (network errors, 5xx and 429)
    are retried. The error of the last attempt is re-raised with
    ``attempts`` set.
    """
    delays = backoff_delays(retries, base, cap)
    attempt = 0
    while True:
        attempt += 1
        try:
            return call()
        except ApiError as e:
            e.attempts = attempt
            if not e.retryable or attempt >= retries:
                logger.debug(f"{what} failed after {attempt} attempt(s): {e}")
                raise
            delay = delays[attempt - 1]
            logger.warning(f"{what} failed (attempt {attempt}/{retries}): {e}; retrying in {delay:.2f}s")
            sleep(delay)
