"""Security headers middleware."""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from authsession.config import settings


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Add hardening headers to every response.

    The service only serves JSON, so the default policy forbids loading any
    content at all. Token-bearing responses must never be cached, which is
    why ``Cache-Control: no-store`` is applied everywhere.
    """

    BASE_HEADERS = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Referrer-Policy": "no-referrer",
        "Cache-Control": "no-store",
        "Pragma": "no-cache",
        "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
    }

    API_CSP = "default-src 'none'; frame-ancestors 'none'; base-uri 'none'"

    # Swagger UI and ReDoc pull scripts and styles from a CDN
    DOCS_CSP = (
        "default-src 'self'; "
        "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
        "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
        "img-src 'self' data: https://fastapi.tiangolo.com; "
        "frame-ancestors 'none'"
    )
    DOCS_PATHS = {"/docs", "/redoc"}

    HSTS = "max-age=31536000; includeSubDomains"

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)

        response.headers.update(self.BASE_HEADERS)

        if settings.debug and request.url.path in self.DOCS_PATHS:
            response.headers["Content-Security-Policy"] = self.DOCS_CSP
        else:
            response.headers["Content-Security-Policy"] = self.API_CSP

        if settings.is_production:
            response.headers["Strict-Transport-Security"] = self.HSTS

        return response
