"""
VideoTube Backend — Request Executor
=====================================

What:  `async_handler` wraps a route handler so that any exception raised
       while handling becomes a uniform JSON error response.
Why:   Handlers stay free of try/except boilerplate, and a failing handler
       can never escape to the server as an unhandled error.
How:   The wrapper awaits the inner handler (sync handlers run in the
       threadpool). On success the result passes through untouched. On
       failure it returns:

           status: the error's declared status_code (4xx/5xx), else 500
           body:   {"success": false, "message": <message>}

       Errors that declare a status code (ApiError, HTTPException) expose
       their message. Anything else is unexpected and gets the safe default
       message; its traceback goes to the server log only.

Usage:
    @router.get("/videos/{video_id}")
    @async_handler
    async def get_video(video_id: UUID, db: AsyncSession = Depends(get_db_session)):
        ...

`functools.wraps` keeps the inner signature visible to FastAPI, so
dependency injection and response models behave as if unwrapped.
"""

import functools
import inspect
import logging
from typing import Any, Callable, Dict, Optional

from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from videotube.exceptions import DEFAULT_ERROR_MESSAGE, ApiError
from videotube.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


def _declared_status(exc: BaseException) -> Optional[int]:
    code = getattr(exc, "status_code", None)
    if isinstance(code, int) and not isinstance(code, bool) and 400 <= code <= 599:
        return code
    return None


def error_response(exc: BaseException) -> JSONResponse:
    """Build the client-facing error response for any exception."""
    status = _declared_status(exc)
    rid = request_id_var.get("")

    content: Dict[str, Any] = {"success": False, "message": DEFAULT_ERROR_MESSAGE}

    if isinstance(exc, ApiError):
        content["message"] = exc.message or DEFAULT_ERROR_MESSAGE
        if exc.errors:
            content["errors"] = exc.errors
    elif isinstance(exc, StarletteHTTPException):
        if isinstance(exc.detail, str) and exc.detail:
            content["message"] = exc.detail
    elif status is not None:
        content["message"] = str(exc) or DEFAULT_ERROR_MESSAGE

    if status is None:
        status = 500

    if isinstance(exc, ApiError) or isinstance(exc, StarletteHTTPException):
        log_level = logging.ERROR if status >= 500 else logging.WARNING
        logger.log(log_level, "[%s] %s %d: %s", rid, type(exc).__name__, status, content["message"])
    else:
        logger.error("[%s] Unexpected error: %s", rid, exc, exc_info=exc)

    headers = getattr(exc, "headers", None) if isinstance(exc, StarletteHTTPException) else None
    return JSONResponse(status_code=status, content=content, headers=headers)


def async_handler(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Wrap `fn` so failures become `{"success": false, ...}` responses."""

    is_coroutine = inspect.iscoroutinefunction(fn)

    @functools.wraps(fn)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            if is_coroutine:
                return await fn(*args, **kwargs)
            return await run_in_threadpool(fn, *args, **kwargs)
        except Exception as exc:
            return error_response(exc)

    return wrapper
