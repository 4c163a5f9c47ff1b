"""
Kafiza Backend — Request ID Middleware
========================================

What:  Gives every request a correlation ID and echoes it as X-Request-ID.
How:   A client-supplied X-Request-ID is reused; otherwise a short UUID is
       generated. The ID lives in a ContextVar so loggers and exception
       handlers can read it without touching the request object.
Who:   Outermost application middleware; the error envelope's `requestId`
       comes from here.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def new_request_id() -> str:
    return uuid.uuid4().hex[:12]


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assigns the request ID before any other middleware runs."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # Cap client-supplied IDs so they cannot bloat every log line
        rid = (request.headers.get(REQUEST_ID_HEADER) or new_request_id())[:64]
        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
