# utils/retry.py

import functools
import logging
import time
from typing import Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def retry_call(
        func: Callable[[], T],
        *,
        is_retryable: Callable[[BaseException], bool],
        max_attempts: int = 3,
        base_delay: float = 0.0,
        sleep: Callable[[float], None] = time.sleep,
        label: Optional[str] = None,
) -> T:
    """
    Call `func` until it succeeds or `max_attempts` is exhausted.

    Args:
        func: Zero-argument callable to run.
        is_retryable: Predicate deciding whether an exception is transient.
            Non-retryable exceptions propagate immediately.
        max_attempts: Total number of attempts (first call included).
        base_delay: Base delay in seconds; attempt N waits base_delay * 2**N.
        sleep: Sleep function, injectable for tests.
        label: Name used in log messages.

    Returns:
        Function result or raises the last retryable exception.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")
    name = label or getattr(func, "__name__", "call")

    for attempt in range(max_attempts):
        try:
            return func()
        except Exception as e:
            if not is_retryable(e):
                raise
            if attempt + 1 >= max_attempts:
                logger.error(
                    f"{name}: all {max_attempts} attempts failed. "
                    f"Last error: {e!r}"
                )
                raise
            delay = base_delay * (2 ** attempt)
            logger.warning(
                f"{name}: attempt {attempt + 1} failed: {e!r}. "
                f"Retrying in {delay:.2f} seconds..."
            )
            if delay:
                sleep(delay)
    raise AssertionError("unreachable")


def retrying(
        *,
        is_retryable: Callable[[BaseException], bool],
        max_attempts: int = 3,
        base_delay: float = 0.0,
        sleep: Callable[[float], None] = time.sleep,
):
    """Decorator form of `retry_call`."""

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            return retry_call(
                lambda: func(*args, **kwargs),
                is_retryable=is_retryable,
                max_attempts=max_attempts,
                base_delay=base_delay,
                sleep=sleep,
                label=func.__name__,
            )

        return wrapper

    return decorator
