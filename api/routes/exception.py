"""
Centralized exception handling decorator for API route functions.

The :func:`handle_exceptions` decorator wraps an endpoint handler and converts
uncaught exceptions into :class:`fastapi.HTTPException` responses.
HTTPExceptions raised by the handler are propagated untouched. Engine and
store errors map to a status by type:

* unknown domain, class, store or rule: ``404``
* malformed names, queries, paths or constraints: ``400``
* request or store timeouts: ``504``
* other store failures: ``502``
* anything else, including configuration errors: ``500``

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

from datasources.exceptions import DataSourceError, InvalidQuery, QueryTimeout
from engine.errors import NotFoundError, RequestTimeout, StoreErrors, ValidationError

log = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

_STATUS: Tuple[Tuple[Type[Exception], int], ...] = (
    (NotFoundError, 404),
    (ValidationError, 400),
    (InvalidQuery, 400),
    (RequestTimeout, 504),
    (QueryTimeout, 504),
    (StoreErrors, 502),
    (DataSourceError, 502),
)


def status_for(exc: Exception) -> int:
    for kind, code in _STATUS:
        if isinstance(exc, kind):
            return code
    return 500


def to_http(exc: Exception) -> HTTPException:
    code = status_for(exc)
    if code >= 500:
        log.error("request failed: %s: %s", type(exc).__name__, exc)
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
                raise to_http(exc) from exc

        return cast(F, async_wrapper)

    @wraps(func)
    def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except HTTPException:
            raise
        except Exception as exc:
            raise to_http(exc) from exc

    return cast(F, sync_wrapper)
