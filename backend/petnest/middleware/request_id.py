"""
PetNest Backend — Request ID Middleware
=========================================

What:  Tags each request with a short correlation ID.
How:   Reuses the client's X-Request-ID header when sent, otherwise
       generates one; exposes it through a ContextVar (for loggers and
       exception handlers) and echoes it in the response header.

Error bodies include the same ID as `request_id`, so a user reporting a
failed adoption can quote it and support can find the matching log lines.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

MAX_CLIENT_ID_LENGTH = 64


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID", "")[:MAX_CLIENT_ID_LENGTH]
        if not rid:
            rid = uuid.uuid4().hex[:8]

        # Not reset afterwards: the outermost 500 handler still reads it
        request_id_var.set(rid)
        request.state.request_id = rid
        response = await call_next(request)

        response.headers["X-Request-ID"] = rid
        return response
