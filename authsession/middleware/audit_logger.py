"""Structured logging setup, request audit middleware and auth event helpers."""

import logging
import time
from typing import Optional

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from authsession.config import settings

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer() if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        getattr(logging, settings.log_level.upper(), logging.INFO)
    ),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


def get_client_ip(request: Request) -> str:
    """Get the client IP address, honouring proxy headers."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return request.client.host if request.client else "unknown"


class AuditLogMiddleware(BaseHTTPMiddleware):
    """
    Log one line when a request starts and one when it completes.

    Only method, path, client and outcome are recorded. Bodies, headers and
    query strings are never logged, so passwords, bearer tokens and the
    refresh token cookie cannot end up in the logs; for auth routes the
    presence of the refresh cookie is noted as a boolean.
    """

    QUIET_PATHS = {"/health", "/health/ready", "/health/live"}

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.QUIET_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        context = {
            "method": request.method,
            "path": request.url.path,
            "client_ip": get_client_ip(request),
            "user_agent": request.headers.get("User-Agent", "unknown"),
        }
        if "/auth/" in request.url.path:
            context["has_refresh_cookie"] = settings.refresh_cookie_name in request.cookies

        logger.info("request_started", **context)

        response = await call_next(request)

        status_code = response.status_code
        if status_code >= 500:
            log = logger.error
        elif status_code >= 400:
            log = logger.warning
        else:
            log = logger.info

        log(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
            # Set by get_current_account as a plain string
            user_id=getattr(request.state, "user_id", None),
        )
        return response


def log_auth_event(
    event: str,
    user_id: Optional[str] = None,
    username: Optional[str] = None,
    success: bool = True,
    reason: Optional[str] = None,
    ip_address: Optional[str] = None,
    request_id: Optional[str] = None,
) -> None:
    """
    Log an authentication event (register, login, refresh, logout).

    Failed attempts only record a two character username prefix.
    """
    context = {
        "event_type": "auth",
        "auth_action": event,
        "success": success,
        "user_id": user_id,
        "ip_address": ip_address,
        "request_id": request_id,
    }

    if success:
        logger.info("auth_event", username=username, **context)
        return

    if username:
        context["username_prefix"] = username[:2] + "***"
    logger.warning("auth_event", reason=reason, **context)


def log_security_event(
    event: str,
    user_id: Optional[str] = None,
    reason: Optional[str] = None,
    ip_address: Optional[str] = None,
    request_id: Optional[str] = None,
) -> None:
    """Log a security event such as detected refresh token reuse."""
    logger.warning(
        "security_event",
        event_type="security",
        security_action=event,
        user_id=user_id,
        reason=reason,
        ip_address=ip_address,
        request_id=request_id,
    )
