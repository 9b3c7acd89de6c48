"""
Retry decorator for store operations that fail with a retryable store error.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import logging
from functools import wraps
from typing import Any, Callable, Optional, Tuple, Type, TypeVar, cast

from config import settings
from engine.exceptions import StoreUnavailableError

log = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def retry(
    *,
    attempts: Optional[int] = None,
    delay: Optional[float] = None,
    backoff: Optional[float] = None,
    exceptions: Tuple[Type[Exception], ...] = (StoreUnavailableError,),
) -> Callable[[F], F]:
    def decorator(func: F) -> F:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            max_attempts = max(1, attempts if attempts is not None else settings.store_retry_attempts)
            _delay = delay if delay is not None else settings.store_retry_delay_seconds
            factor = backoff if backoff is not None else settings.store_retry_backoff
            _attempt = 0
            while True:
                try:
                    return await func(*args, **kwargs)
                except exceptions as exc:
                    _attempt += 1
                    if _attempt >= max_attempts:
                        raise
                    log.debug("%s failed (attempt %d/%d): %s", func.__name__, _attempt, max_attempts, exc)
                    await asyncio.sleep(_delay)
                    _delay *= factor

        return cast(F, wrapper)

    return decorator
