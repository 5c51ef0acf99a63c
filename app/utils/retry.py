"""
Retry helpers for outbound API calls.

Exponential backoff with jitter for transient failures (connection drops,
timeouts, rate limits, overloaded upstreams). Anything else fails on the
first attempt.

Usage:
    async with RetryContext(max_attempts=2, retryable_exceptions=(MyError,)) as ctx:
        result = await ctx.execute(call, prompt)
    log.info(ctx.stats.to_dict())
"""
import asyncio
import inspect
import random
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Tuple, Type
from app.utils.logger import log

# HTTP statuses that mean "try again later"
RETRYABLE_STATUS_CODES: Tuple[int, ...] = (408, 429, 500, 502, 503, 504, 529)

DEFAULT_RETRYABLE_EXCEPTIONS: Tuple[Type[BaseException], ...] = (
    ConnectionError,
    TimeoutError,
    asyncio.TimeoutError,
)

_TRANSIENT_MESSAGES = (
    "rate limit",
    "too many requests",
    "overloaded",
    "timed out",
    "timeout",
    "connection reset",
    "connection refused",
    "connection failed",
)


@dataclass
class RetryStats:
    """Outcome of one retried operation"""
    attempts: int = 0
    delays: List[float] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    success: bool = False

    @property
    def total_delay_seconds(self) -> float:
        return sum(self.delays)

    @property
    def last_error(self) -> Optional[str]:
        return self.errors[-1] if self.errors else None

    def record_failure(self, error: Exception, delay: float = 0.0):
        self.attempts += 1
        self.errors.append(f"{type(error).__name__}: {error}")
        if delay:
            self.delays.append(delay)

    def record_success(self):
        self.attempts += 1
        self.success = True

    def to_dict(self) -> dict:
        return {
            "attempts": self.attempts,
            "total_delay_seconds": round(self.total_delay_seconds, 2),
            "success": self.success,
            "last_error": self.last_error,
            "errors": self.errors[:5],
        }


def calculate_backoff(
    attempt: int,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = True
) -> float:
    """
    Delay before the next attempt.

    Args:
        attempt: The attempt that just failed (1-indexed)
        base_delay: Delay after the first failure
        max_delay: Upper bound before jitter
        exponential_base: Growth factor per attempt
        jitter: Add up to 25% random spread

    Returns:
        Delay in seconds
    """
    delay = min(base_delay * (exponential_base ** (attempt - 1)), max_delay)
    if jitter:
        delay += delay * random.uniform(0, 0.25)
    return delay


def is_retryable_error(
    error: BaseException,
    retryable_exceptions: Tuple[Type[BaseException], ...] = DEFAULT_RETRYABLE_EXCEPTIONS,
    retryable_status_codes: Tuple[int, ...] = RETRYABLE_STATUS_CODES
) -> bool:
    """
    True if the error looks transient.

    Checks, in order: exception type, an HTTP `status_code` attribute (API
    client errors carry one), then the message text.
    """
    if isinstance(error, retryable_exceptions):
        return True

    status_code = getattr(error, "status_code", None)
    if isinstance(status_code, int):
        return status_code in retryable_status_codes

    message = str(error).lower()
    return any(marker in message for marker in _TRANSIENT_MESSAGES)


class RetryContext:
    """
    Runs a call with bounded retries and keeps RetryStats for logging.

    `sleep` is injectable so callers (and tests) can avoid real waits.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        exponential_base: float = 2.0,
        retryable_exceptions: Tuple[Type[BaseException], ...] = DEFAULT_RETRYABLE_EXCEPTIONS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.max_attempts = max(1, max_attempts)
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.retryable_exceptions = retryable_exceptions
        self.stats = RetryStats()
        self._sleep = sleep

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None and self.stats.attempts > 1:
            log.info(f"Succeeded after {self.stats.attempts} attempts: {self.stats.to_dict()}")

    async def execute(self, func: Callable, *args, **kwargs):
        """Call func (sync or async) until it succeeds or retries run out; re-raises the last error"""
        for attempt in range(1, self.max_attempts + 1):
            try:
                result = func(*args, **kwargs)
                if inspect.isawaitable(result):
                    result = await result
            except Exception as e:
                final = attempt == self.max_attempts
                if final or not is_retryable_error(e, self.retryable_exceptions):
                    self.stats.record_failure(e)
                    raise

                delay = calculate_backoff(
                    attempt,
                    base_delay=self.base_delay,
                    max_delay=self.max_delay,
                    exponential_base=self.exponential_base
                )
                self.stats.record_failure(e, delay)
                log.warning(f"Attempt {attempt}/{self.max_attempts} failed: {e}. Retrying in {delay:.1f}s...")
                await self._sleep(delay)
            else:
                self.stats.record_success()
                return result
