"""Pydantic schemas for request/response validation."""

from authsession.schemas.account import (
    AccountCredentials,
    AccountCreate,
    AccountResponse,
    AccountSummary,
)
from authsession.schemas.auth import (
    LoginRequest,
    RegisterRequest,
    TokenResponse,
)
from authsession.schemas.common import (
    ErrorBody,
    ErrorResponse,
    HealthResponse,
)

__all__ = [
    # Auth
    "LoginRequest",
    "RegisterRequest",
    "TokenResponse",
    # Account
    "AccountCredentials",
    "AccountCreate",
    "AccountResponse",
    "AccountSummary",
    # Common
    "ErrorBody",
    "ErrorResponse",
    "HealthResponse",
]
