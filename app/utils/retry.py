"""
RETRY UTILITY
=============

Awaits a coroutine factory and, if it raises, retries a few times with
exponential backoff. Each attempt can be bounded by a timeout. Used around
every model call so a slow or briefly unreachable Ollama server doesn't
immediately fail the request.

Example:
  text = await with_retry(lambda: chain.ainvoke(messages), max_retries=3,
                          initial_delay=1.0, timeout=30.0)
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar


logger = logging.getLogger("LangChat")

# Type variable: with_retry returns whatever the awaited call returns.
T = TypeVar("T")


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    initial_delay: float = 1.0,
    timeout: Optional[float] = None,
    should_retry: Callable[[Exception], bool] = None,
) -> T:
    """
    Await fn(). If it raises (or exceeds timeout seconds), wait initial_delay seconds
    and try again; delay doubles each retry. After max_retries attempts (including
    the first), re-raise the last exception. should_retry can veto a retry for a
    given exception, in which case it is re-raised immediately.
    """
    delay = initial_delay
    attempts = max(1, max_retries)

    for attempt in range(attempts):
        try:
            if timeout:
                return await asyncio.wait_for(fn(), timeout=timeout)
            return await fn()
        except Exception as e:
            if attempt == attempts - 1:
                raise
            if should_retry is not None and not should_retry(e):
                raise
            logger.warning(
                "Attempt %s/%s failed (%s). Retrying in %.1fs: %r",
                attempt + 1,
                attempts,
                fn.__name__ if hasattr(fn, "__name__") else "call",
                delay,
                e,
            )
            await asyncio.sleep(delay)
            delay *= 2  # Exponential backoff: 1s, 2s, 4s, ...

    raise RuntimeError("with_retry exhausted without result")
