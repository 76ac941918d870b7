"""Middleware components for the application."""

from authsession.middleware.audit_logger import AuditLogMiddleware
from authsession.middleware.request_id import RequestIDMiddleware
from authsession.middleware.security_headers import SecurityHeadersMiddleware

__all__ = [
    "AuditLogMiddleware",
    "RequestIDMiddleware",
    "SecurityHeadersMiddleware",
]
