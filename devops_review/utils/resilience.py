"""
Retry utilities for provider SDK calls.

Retries are opt-in: the default of a single attempt reproduces the
no-retry behaviour, and errors classified as permanent are raised on the
first failure regardless of the configured attempt count.
"""

import asyncio
import logging
from functools import wraps
from typing import Awaitable, Callable, Optional, ParamSpec, TypeVar

logger = logging.getLogger(__name__)

P = ParamSpec('P')
T = TypeVar('T')


def retry_with_backoff(
    max_retries: int = 1,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    exceptions: tuple = (Exception,),
    is_permanent: Optional[Callable[[BaseException], bool]] = None,
):
    """
    Decorator for retrying coroutine functions with exponential backoff.

    Args:
        max_retries: Total number of attempts (1 disables retrying)
        base_delay: Initial delay in seconds between retries
        max_delay: Maximum delay in seconds between retries
        exponential_base: Base for exponential backoff calculation
        exceptions: Exception types that trigger a retry
        is_permanent: Predicate marking errors that must not be retried

    Example:
        @retry_with_backoff(max_retries=3, base_delay=1.0)
        async def fetch_data():
            return await asyncio.to_thread(client.get_data)
    """
    attempts = max(1, max_retries)

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            for attempt in range(attempts):
                try:
                    result = await func(*args, **kwargs)

                    if attempt > 0:
                        logger.info(
                            f"{func.__name__} succeeded on attempt {attempt + 1}/{attempts}"
                        )

                    return result

                except exceptions as e:
                    if is_permanent is not None and is_permanent(e):
                        raise

                    if attempt == attempts - 1:
                        if attempts > 1:
                            logger.error(f"{func.__name__} failed after {attempts} attempts: {e}")
                        raise

                    delay = min(base_delay * (exponential_base ** attempt), max_delay)

                    logger.warning(
                        f"{func.__name__} failed on attempt {attempt + 1}/{attempts}: {e}. "
                        f"Retrying in {delay:.1f}s..."
                    )

                    await asyncio.sleep(delay)

        return wrapper

    return decorator
