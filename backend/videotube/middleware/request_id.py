"""
VideoTube Backend — Request ID Middleware
==========================================

What:  Assigns an ID to each request and echoes it in `X-Request-ID`.
Why:   Every log line of one request (access log, executor errors) carries
       the same ID, and clients can quote it in bug reports.
How:   Reuses a client-supplied `X-Request-ID` or generates a short UUID,
       stores it in a ContextVar and on `request.state`.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]
        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers["X-Request-ID"] = rid
        return response
