"""Retry decorator for GitHub API rate limits.

Rate limited calls wait for the delay GitHub asks for (the exception's
``retry_after``, the ``retry-after`` header or the ``x-ratelimit-reset``
timestamp) and fall back to exponential backoff when no hint is present.
Any other error propagates immediately.
"""

import asyncio
import functools
import inspect
import time
from typing import Any, Callable, TypeVar

import structlog
from githubkit.exception import PrimaryRateLimitExceeded, RequestFailed, SecondaryRateLimitExceeded

logger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def is_rate_limit_error(exc: BaseException) -> bool:
    """Whether the exception is a GitHub rate limit response."""
    if isinstance(exc, (PrimaryRateLimitExceeded, SecondaryRateLimitExceeded)):
        return True
    if isinstance(exc, RequestFailed):
        return exc.response.status_code in (403, 429)
    return False


def rate_limit_wait_time(exc: BaseException, fallback: float) -> float:
    """Seconds to wait before retrying, as hinted by GitHub."""
    retry_after = getattr(exc, "retry_after", None)
    if retry_after:
        return retry_after.total_seconds()

    response = getattr(exc, "response", None)
    headers = getattr(response, "headers", None) or {}

    header_retry_after = headers.get("retry-after")
    if header_retry_after:
        try:
            return float(header_retry_after)
        except ValueError:
            logger.warning("Invalid retry-after header value", retry_after=header_retry_after)

    reset = headers.get("x-ratelimit-reset")
    if reset:
        try:
            remaining = int(reset) - int(time.time())
        except ValueError:
            logger.warning("Invalid x-ratelimit-reset header value", rate_limit_reset=reset)
        else:
            if remaining > 0:
                return remaining + 1
    return fallback


def retry_on_rate_limit(
    max_retries: int = 100,
    initial_delay: float = 10.0,
    max_delay: float = 300.0,
    exponential_base: float = 2.0,
) -> Callable[[F], F]:
    """Decorator retrying async GitHub calls that hit a rate limit.

    Args:
        max_retries: Maximum number of retry attempts
        initial_delay: Backoff delay in seconds when GitHub gives no hint
        max_delay: Cap on any single wait, in seconds
        exponential_base: Multiplier applied to the backoff delay per attempt

    Returns:
        Decorated function with retry logic
    """

    def decorator(func: F) -> F:
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"Function {func.__name__} decorated with @retry_on_rate_limit must be async.")

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            delay = initial_delay
            attempt = 0
            while True:
                try:
                    return await func(*args, **kwargs)
                except Exception as exc:
                    if not is_rate_limit_error(exc):
                        raise
                    if attempt >= max_retries:
                        logger.error("Max retries reached for GitHub rate limit error", function=func.__name__, attempt=attempt + 1)
                        raise
                    wait_time = min(rate_limit_wait_time(exc, delay), max_delay)
                    logger.warning(
                        "GitHub rate limit exceeded, retrying",
                        function=func.__name__,
                        attempt=attempt + 1,
                        max_retries=max_retries,
                        wait_time=wait_time,
                    )
                    await asyncio.sleep(wait_time)
                    delay = min(delay * exponential_base, max_delay)
                    attempt += 1

        return wrapper  # type: ignore

    return decorator
