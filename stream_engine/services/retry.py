"""Retry logic for transient generation failures."""

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar, Union

from stream_engine.core.config import settings
from stream_engine.core.exceptions import TransientGenerationFailure

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def retry_with_backoff(
    func: Callable[[], Union[T, Awaitable[T]]],
    max_retries: Optional[int] = None,
    delay: Optional[float] = None,
    backoff_multiplier: Optional[float] = None,
    exceptions: Tuple[Type[BaseException], ...] = (TransientGenerationFailure,),
) -> T:
    """
    Call func, retrying with exponential backoff on the given exceptions.

    Args:
        func: Sync or async callable without arguments.
        max_retries: Retries after the first attempt.
        delay: Initial delay in seconds.
        backoff_multiplier: Multiplier applied to the delay after each failure.
        exceptions: Exceptions that trigger a retry. Others propagate at once.

    Returns:
        Result of the first successful call.

    Raises:
        The last exception if every attempt fails.
    """
    max_retries = settings.max_retries if max_retries is None else max_retries
    delay = settings.retry_delay_seconds if delay is None else delay
    backoff_multiplier = (
        settings.retry_backoff_multiplier if backoff_multiplier is None else backoff_multiplier)

    attempt = 0
    while True:
        try:
            if inspect.iscoroutinefunction(func):
                return await func()
            return func()
        except exceptions as e:
            if attempt >= max_retries:
                logger.error(
                    f"All {max_retries + 1} attempts failed. Last error: {str(e)}")
                raise
            wait_time = delay * (backoff_multiplier ** attempt)
            attempt += 1
            logger.warning(
                f"Attempt {attempt}/{max_retries + 1} failed: {str(e)}. "
                f"Retrying in {wait_time:.2f}s..."
            )
            await asyncio.sleep(wait_time)
