"""
Bounded retry with exponential backoff for RagaBot
Shared by every stream resolution strategy
"""
import asyncio
import logging
import random
from functools import wraps
from typing import Awaitable, Callable, Tuple, Type

logger = logging.getLogger('music')


def backoff_delay(attempt: int, base_delay: float, jitter: float = 1.0) -> float:
    """Delay before retry number `attempt` (1-based)"""
    return base_delay * 2 ** (attempt - 1) + random.uniform(0, jitter)


async def retry_async(func: Callable[..., Awaitable], *args, attempts: int = 3, base_delay: float = 1.0,
                      jitter: float = 1.0, retry_on: Tuple[Type[BaseException], ...] = (Exception,),
                      sleep: Callable[[float], Awaitable] = asyncio.sleep, **kwargs):
    """Await func(*args, **kwargs), retrying failures up to `attempts` calls in total"""
    for attempt in range(1, attempts + 1):
        try:
            return await func(*args, **kwargs)
        except retry_on as e:
            if attempt == attempts:
                logger.warning(f"{getattr(func, '__name__', func)} failed after {attempts} attempts: {e}")
                raise
            delay = backoff_delay(attempt, base_delay, jitter)
            logger.info(f"Retry {attempt}/{attempts - 1} for {getattr(func, '__name__', func)} "
                        f"in {delay:.2f}s due to: {e}")
            await sleep(delay)


def retry_with_backoff(attempts: int = 3, base_delay: float = 1.0, jitter: float = 1.0,
                       retry_on: Tuple[Type[BaseException], ...] = (Exception,)):
    """Decorator form of retry_async"""
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            return await retry_async(func, *args, attempts=attempts, base_delay=base_delay,
                                     jitter=jitter, retry_on=retry_on, **kwargs)
        return wrapper
    return decorator
