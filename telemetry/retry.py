from __future__ import annotations

import random
import time
from typing import Callable, Iterable, Optional, Type, TypeVar

T = TypeVar("T")

RetryHook = Callable[[int, BaseException, float], None]


def compute_backoff(attempt: int, base_delay: float, factor: float, jitter: float = 0.0) -> float:
    """Delay before the retry that follows 0-based ``attempt``."""
    delay = base_delay * (factor ** attempt)
    if jitter:
        delay += random.uniform(0, jitter)
    return delay


def retry_with_backoff(
    fn: Callable[[], T],
    *,
    retries: int = 3,
    base_delay: float = 0.5,
    factor: float = 2.0,
    jitter: float = 0.1,
    retry_exceptions: Iterable[Type[BaseException]] = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
    on_retry: Optional[RetryHook] = None,
) -> T:
    """Call ``fn`` up to ``retries`` times, sleeping between failed attempts.

    Exceptions outside ``retry_exceptions`` propagate on the first occurrence.
    The last retryable exception is re-raised once the attempts are used up;
    there is no sleep after the final attempt.
    """
    if retries < 1:
        raise ValueError("retries must be at least 1")
    catchable = tuple(retry_exceptions)
    for attempt in range(retries):
        try:
            return fn()
        except catchable as exc:
            if attempt >= retries - 1:
                raise
            delay = compute_backoff(attempt, base_delay, factor, jitter)
            if on_retry is not None:
                on_retry(attempt + 1, exc, delay)
            sleep(delay)
    raise AssertionError("unreachable")
