"""
VideoTube Backend — Request Body Size Limit
============================================

What:  Rejects JSON and URL-encoded request bodies larger than
       `settings.max_body_size` (16 KiB) with 413.
How:   Pure ASGI middleware (not BaseHTTPMiddleware) so it can watch the
       body stream:
       1. A declared Content-Length over the limit is answered with 413
          before the app, and therefore any handler, is called.
       2. Bodies without Content-Length (chunked) are counted as they are
          received; crossing the limit raises a 413 HTTPException from
          `receive()`, which surfaces through the normal error handlers.
       Bodies are never truncated.

Which bodies are limited follows how FastAPI decides to parse them:
    (no Content-Type)                    parsed as JSON
    application/json, application/*+json parsed as JSON
    application/x-www-form-urlencoded    parsed as a form
"""

import logging

from fastapi import HTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from videotube.exceptions import PayloadTooLargeError
from videotube.executor import error_response

logger = logging.getLogger(__name__)


def is_limited_content_type(content_type: str) -> bool:
    """True when FastAPI would parse a body of this media type as JSON or a form."""
    media_type = content_type.split(";", 1)[0].strip().lower()
    if not media_type:
        return True
    maintype, _, subtype = media_type.partition("/")
    if maintype != "application":
        return False
    return subtype == "json" or subtype.endswith("+json") or subtype == "x-www-form-urlencoded"


class BodySizeLimitMiddleware:
    def __init__(self, app: ASGIApp, max_body_size: int):
        self.app = app
        self.max_body_size = max_body_size

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = {k.lower(): v for k, v in scope.get("headers", [])}
        content_type = headers.get(b"content-type", b"").decode("latin-1")
        if not is_limited_content_type(content_type):
            await self.app(scope, receive, send)
            return

        content_length = headers.get(b"content-length")
        if content_length is not None:
            try:
                declared = int(content_length)
            except ValueError:
                declared = -1
            if declared > self.max_body_size:
                logger.warning(
                    "Rejected %s %s: body of %d bytes exceeds %d",
                    scope.get("method"), scope.get("path"), declared, self.max_body_size,
                )
                response = error_response(PayloadTooLargeError(self.max_body_size))
                await response(scope, receive, send)
                return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_size:
                    # FastAPI re-raises HTTPException from body parsing unchanged
                    raise HTTPException(
                        status_code=413,
                        detail=PayloadTooLargeError(self.max_body_size).message,
                    )
            return message

        await self.app(scope, limited_receive, send)

