"""
creative_validator/preview/retry.py

Generic bounded retry for storage reads that may lag behind writes.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _is_missing(result: object) -> bool:
    return result is None


def retry(
    fn: Callable[[], T],
    *,
    attempts: int,
    delay_seconds: float,
    should_retry: Callable[[T], bool] = _is_missing,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call ``fn`` up to ``attempts`` times, sleeping a fixed delay between calls.

    Returns the first result for which ``should_retry`` is false, or the last
    result once the budget is exhausted. Exceptions raised by ``fn`` propagate.
    """

    if attempts < 1:
        raise ValueError("attempts must be at least 1.")

    result = fn()
    for attempt in range(2, attempts + 1):
        if not should_retry(result):
            return result
        logger.debug("Retrying read attempt=%s/%s wait_seconds=%.3f", attempt, attempts, delay_seconds)
        sleep(delay_seconds)
        result = fn()
    return result
