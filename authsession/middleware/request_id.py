"""Request ID middleware for request tracing."""

import re
from uuid import uuid4

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Give every request an ID and bind it to the structlog context.

    A client or proxy supplied ``X-Request-ID`` is kept when it looks like an
    opaque identifier; anything else is replaced by a fresh UUID so arbitrary
    header content never reaches the logs.
    """

    HEADER_NAME = "X-Request-ID"
    ALLOWED_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        incoming = request.headers.get(self.HEADER_NAME, "")
        request_id = incoming if self.ALLOWED_ID.match(incoming) else str(uuid4())

        request.state.request_id = request_id
        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        response.headers[self.HEADER_NAME] = request_id
        return response
