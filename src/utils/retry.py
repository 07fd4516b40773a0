"""
Retry logic with exponential backoff.

Used by the outbox dispatcher so a transient webhook failure does not burn
a whole delivery attempt.
"""

import logging
import asyncio
import random
from typing import Callable, Type, Tuple, Any

logger = logging.getLogger(__name__)


class RetryExhausted(Exception):
    """Raised when all retry attempts are exhausted."""
    pass


def backoff_delay(
    attempt: int,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = False,
) -> float:
    """Delay before retry number `attempt` (0-based)."""
    delay = min(base_delay * (exponential_base ** attempt), max_delay)
    if jitter:
        # Spread retries out to avoid a thundering herd
        delay = delay * (0.5 + random.random())
    return delay


async def retry_with_backoff(
    func: Callable,
    *args,
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = True,
    retry_on: Tuple[Type[Exception], ...] = (Exception,),
    skip_on: Tuple[Type[Exception], ...] = (),
    **kwargs
) -> Any:
    """
    Execute a function with exponential backoff retry logic.

    Args:
        func: Async (or sync) function to execute
        max_retries: Maximum number of retry attempts
        base_delay: Initial delay in seconds
        max_delay: Maximum delay in seconds
        exponential_base: Base for exponential calculation
        jitter: Add random jitter to delays
        retry_on: Exception types to retry on
        skip_on: Exception types to never retry (raised immediately)

    Returns:
        Result of func execution

    Raises:
        RetryExhausted: If all retries are exhausted
    """
    name = getattr(func, "__name__", repr(func))

    for attempt in range(max_retries + 1):
        try:
            if asyncio.iscoroutinefunction(func):
                result = await func(*args, **kwargs)
            else:
                result = func(*args, **kwargs)

            if attempt > 0:
                logger.info(f"✅ Retry successful on attempt {attempt + 1}/{max_retries + 1} for {name}")
            return result

        except skip_on as e:
            logger.warning(f"❌ Skipping retry for {name}: {type(e).__name__}: {e}")
            raise

        except retry_on as e:
            if attempt == max_retries:
                logger.error(f"❌ All {max_retries + 1} retry attempts exhausted for {name}")
                raise RetryExhausted(
                    f"Failed after {max_retries + 1} attempts: {type(e).__name__}: {e}"
                ) from e

            delay = backoff_delay(attempt, base_delay, max_delay, exponential_base, jitter)
            logger.warning(
                f"⚠️  Retry attempt {attempt + 1}/{max_retries + 1} for {name} "
                f"after {type(e).__name__}: {e}. Retrying in {delay:.2f}s..."
            )
            await asyncio.sleep(delay)

    raise RetryExhausted(f"Failed after {max_retries + 1} attempts")


# Retry timing for outgoing webhooks (Slack, Discord)
WEBHOOK_RETRY = {
    "max_retries": 2,
    "base_delay": 1.0,
    "max_delay": 15.0,
}
