"""
Retry decorator for store connector calls.

Only transient failures should be listed in ``exceptions``; a rejected query
will fail the same way every time.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from functools import wraps
from typing import Any, Callable, Iterator, Optional, Tuple, Type, TypeVar, cast

from config import settings

log = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _delays(attempts: int, delay: float, backoff: float) -> Iterator[float]:
    """Sleep before each retry; one fewer than attempts."""
    for _ in range(max(attempts, 1) - 1):
        yield delay
        delay *= backoff


def retry(
    *,
    attempts: Optional[int] = None,
    delay: Optional[float] = None,
    backoff: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
) -> Callable[[F], F]:
    def decorator(func: F) -> F:
        def _policy() -> Tuple[int, float]:
            n = attempts if attempts is not None else settings.store_retry_attempts
            d = delay if delay is not None else settings.store_retry_delay
            return n, d

        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                n, d = _policy()
                for pause in _delays(n, d, backoff):
                    try:
                        return await func(*args, **kwargs)
                    except exceptions as exc:
                        log.debug("%s failed, retrying in %.2fs: %s", func.__qualname__, pause, exc)
                    await asyncio.sleep(pause)
                return await func(*args, **kwargs)

            return cast(F, async_wrapper)

        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            n, d = _policy()
            for pause in _delays(n, d, backoff):
                try:
                    return func(*args, **kwargs)
                except exceptions as exc:
                    log.debug("%s failed, retrying in %.2fs: %s", func.__qualname__, pause, exc)
                time.sleep(pause)
            return func(*args, **kwargs)

        return cast(F, sync_wrapper)

    return decorator
