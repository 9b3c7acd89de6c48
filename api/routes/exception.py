"""
Centralized exception handling decorator for API route functions.

The :func:`handle_exceptions` decorator wraps an endpoint handler and converts
engine errors into :class:`fastapi.HTTPException` responses.  HTTPExceptions
raised by the handler are propagated untouched.  Engine errors map to a status
code by type (bad input 400, unfittable data 422, store outage 503) and every
other exception becomes a ``500`` with the exception message as the detail.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import inspect
import logging
from functools import wraps
from typing import Any, Callable, Tuple, Type, TypeVar, cast

from fastapi import HTTPException

from engine.exceptions import (
    InsufficientDataError,
    InvalidInputError,
    InvalidYearError,
    SingularModelError,
    StoreError,
    UnsupportedVehicleClassError,
)

log = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

# first match wins
_STATUS_BY_ERROR: Tuple[Tuple[Type[Exception], int], ...] = (
    (InvalidInputError, 400),
    (UnsupportedVehicleClassError, 400),
    (InvalidYearError, 400),
    (InsufficientDataError, 422),
    (SingularModelError, 422),
    (StoreError, 503),
)


def status_for(exc: Exception) -> int:
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return code
    return 500


def _translate(exc: Exception) -> HTTPException:
    code = status_for(exc)
    if code == 500:
        log.exception("Unhandled error in route")
    return HTTPException(status_code=code, detail=str(exc))


def handle_exceptions(func: F) -> F:
    """Decorator that converts uncaught exceptions to HTTP errors.

    Works with both regular and async functions.
    """

    if inspect.iscoroutinefunction(func):
        @wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return await func(*args, **kwargs)
            except HTTPException:
                raise
            except Exception as exc:
                raise _translate(exc) from exc

        return cast(F, async_wrapper)

    @wraps(func)
    def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except HTTPException:
            raise
        except Exception as exc:
            raise _translate(exc) from exc

    return cast(F, sync_wrapper)
