"""Retry with backoff for calls to the GitHub contents API.

Failures are classified as retryable (transport problems, rate limits,
timeouts, server errors) or fatal (bad token, missing path). Retryable
failures are re-attempted with linear or exponential backoff; everything
else, and the last failure once attempts run out, is re-raised unchanged.

Example:
    policy = RetryPolicy(max_attempts=3, base_delay=1.0)
    content = await with_retry(lambda: client.get_content(path), policy)
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from functools import wraps
from typing import Awaitable, Callable, Optional, TypeVar

import httpx

from repo_archive.lib.config_manager import config
from repo_archive.lib.errors import ArchiveStoreError, TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Status codes worth another attempt, beyond 5xx
RETRYABLE_STATUSES = frozenset({403, 408, 429})
# Status codes where retrying cannot help
FATAL_STATUSES = frozenset({401, 404})

# Connection-level exceptions, retried without a status code
NETWORK_EXCEPTIONS = (
    ConnectionError,
    TimeoutError,
    httpx.TransportError,
    TransportError,
)


class BackoffMode(str, Enum):
    """Delay growth between attempts."""

    LINEAR = "linear"
    EXPONENTIAL = "exponential"


@dataclass
class RetryPolicy:
    """How often and how patiently to retry one operation.

    Attributes:
        max_attempts: Total attempts including the first one (>= 1)
        base_delay: Delay unit in seconds
        backoff: Linear (base * n) or exponential (base * 2^(n-1))
        on_retry: Called with (attempt, error) before each wait
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    backoff: BackoffMode = BackoffMode.EXPONENTIAL
    on_retry: Optional[Callable[[int, Exception], None]] = None

    def __post_init__(self):
        """Validate policy."""
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        self.backoff = BackoffMode(self.backoff)

    @classmethod
    def from_config(
        cls, on_retry: Optional[Callable[[int, Exception], None]] = None
    ) -> "RetryPolicy":
        """Build the default policy from RETRY_* configuration."""
        return cls(
            max_attempts=config.get("RETRY_MAX_ATTEMPTS"),
            base_delay=config.get("RETRY_BASE_DELAY"),
            backoff=BackoffMode(config.get("RETRY_BACKOFF")),
            on_retry=on_retry,
        )


def calculate_delay(attempt: int, base_delay: float, backoff: BackoffMode) -> float:
    """Delay before the retry that follows failed attempt number ``attempt``."""
    if BackoffMode(backoff) is BackoffMode.EXPONENTIAL:
        return base_delay * (2 ** (attempt - 1))
    return base_delay * attempt


def _status_of(error: BaseException) -> Optional[int]:
    for attr in ("status", "status_code"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
    response = getattr(error, "response", None)
    value = getattr(response, "status_code", None)
    return value if isinstance(value, int) else None


def is_network_error(error: BaseException) -> bool:
    """Check whether an error looks like a connection-level failure."""
    if isinstance(error, NETWORK_EXCEPTIONS):
        return True
    message = str(error).lower()
    return (
        "fetch" in message
        or "network" in message
        or type(error).__name__ == "NetworkError"
    )


def is_retryable_error(error: BaseException) -> bool:
    """Decide whether another attempt could succeed."""
    if isinstance(error, ArchiveStoreError) and error.retryable is not None:
        return error.retryable

    status = _status_of(error)
    if status is not None:
        if status >= 500 or status in RETRYABLE_STATUSES:
            return True
        if status in FATAL_STATUSES:
            return False

    return is_network_error(error)


async def with_retry(
    operation: Callable[[], Awaitable[T]], policy: Optional[RetryPolicy] = None
) -> T:
    """Await ``operation`` until it succeeds, fails fatally, or runs out of attempts.

    Args:
        operation: Zero-argument coroutine function; called once per attempt
        policy: Retry policy (defaults to RetryPolicy())

    Returns:
        Whatever ``operation`` returned, untouched

    Raises:
        The original exception of the last attempt
    """
    policy = policy or RetryPolicy()
    name = getattr(operation, "__name__", "operation")

    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as e:
            if not is_retryable_error(e):
                logger.debug(f"{name} failed with non-retryable error: {e}")
                raise
            if attempt >= policy.max_attempts:
                logger.warning(f"{name} failed after {attempt} attempts: {e}")
                raise

            if policy.on_retry is not None:
                policy.on_retry(attempt, e)

            delay = max(0.0, calculate_delay(attempt, policy.base_delay, policy.backoff))
            logger.info(
                f"{name} attempt {attempt} failed: {e}. Retrying in {delay:.1f}s..."
            )
            await asyncio.sleep(delay)
            attempt += 1


def retry_on_failure_async(policy: Optional[RetryPolicy] = None) -> Callable:
    """Decorator form of ``with_retry`` for coroutine functions.

    Example:
        @retry_on_failure_async(RetryPolicy(max_attempts=5))
        async def fetch_listing(path: str) -> DirectoryListing:
            return await client.get_content(path)
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            @wraps(func)
            async def attempt() -> T:
                return await func(*args, **kwargs)

            return await with_retry(attempt, policy)

        return wrapper

    return decorator
