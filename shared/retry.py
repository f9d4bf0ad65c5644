"""
Retry mechanism for resilient operations.
"""

import asyncio
import random
from typing import Any, Optional, Callable, Awaitable

from shared.logging import get_logger


class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(self,
                 max_attempts: int = 3,
                 base_delay: float = 1.0,
                 max_delay: float = 60.0,
                 exponential_base: float = 2.0,
                 jitter: bool = True,
                 backoff_strategy: str = "exponential",
                 retry_if: Optional[Callable[[Exception], bool]] = None):
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter
        self.backoff_strategy = backoff_strategy
        self.retry_if = retry_if


class RetryError(Exception):
    """Exception raised when all retry attempts are exhausted."""
    def __init__(self, message: str, last_exception: Exception, attempts: int):
        super().__init__(message)
        self.last_exception = last_exception
        self.attempts = attempts


async def call_with_retry(func: Callable[..., Awaitable[Any]],
                          *args,
                          exceptions: tuple = (Exception,),
                          config: Optional[RetryConfig] = None,
                          sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
                          **kwargs) -> Any:
    """Await ``func`` until it succeeds or the attempts run out.

    Exceptions outside ``exceptions``, or rejected by ``config.retry_if``,
    propagate untouched on the first occurrence. Running out of attempts
    raises :class:`RetryError` chained to the last failure.
    """
    if config is None:
        config = RetryConfig()

    name = getattr(func, "__name__", "call")
    logger = get_logger(f"retry.{name}")

    for attempt in range(1, config.max_attempts + 1):
        try:
            logger.debug(
                "Retry attempt",
                attempt=attempt,
                max_attempts=config.max_attempts,
                function=name
            )

            result = await func(*args, **kwargs)

            if attempt > 1:
                logger.info(
                    "Retry succeeded",
                    attempt=attempt,
                    function=name
                )

            return result

        except exceptions as e:
            if config.retry_if is not None and not config.retry_if(e):
                raise

            if attempt == config.max_attempts:
                logger.warning(
                    "All retry attempts exhausted",
                    attempt=attempt,
                    max_attempts=config.max_attempts,
                    function=name,
                    error=str(e)
                )
                raise RetryError(
                    f"Function {name} failed after {config.max_attempts} attempts",
                    last_exception=e,
                    attempts=config.max_attempts
                ) from e

            delay = calculate_delay(attempt, config)

            logger.info(
                "Retry attempt failed, waiting before next attempt",
                attempt=attempt,
                delay=delay,
                function=name,
                error=str(e)
            )

            await sleep(delay)

    raise RetryError(
        f"Function {name} was never attempted",
        last_exception=Exception("max_attempts must be at least 1"),
        attempts=0
    )


def calculate_delay(attempt: int, config: RetryConfig) -> float:
    """Calculate delay after the given (1-based) failed attempt."""
    if config.backoff_strategy == "exponential":
        delay = config.base_delay * (config.exponential_base ** (attempt - 1))
    elif config.backoff_strategy == "linear":
        delay = config.base_delay * attempt
    else:
        delay = config.base_delay

    # Apply max delay cap
    delay = min(delay, config.max_delay)

    if config.jitter:
        jitter_amount = delay * 0.1  # 10% jitter
        delay += random.uniform(-jitter_amount, jitter_amount)

    return max(0.0, delay)
