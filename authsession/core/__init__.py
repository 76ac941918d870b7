"""Core security and utility modules."""

from authsession.core.exceptions import (
    AccountNotFoundError,
    APIException,
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    RefreshTokenReuseError,
    SessionExpiredError,
    ValidationError,
)
from authsession.core.permissions import ensure_role, is_role_allowed
from authsession.core.security import (
    TokenCodec,
    TokenExpiredError,
    TokenInvalidError,
    TokenPair,
    hash_password,
    verify_password,
)

__all__ = [
    # Security
    "hash_password",
    "verify_password",
    "TokenCodec",
    "TokenPair",
    "TokenExpiredError",
    "TokenInvalidError",
    # Permissions
    "is_role_allowed",
    "ensure_role",
    # Exceptions
    "APIException",
    "AuthenticationError",
    "SessionExpiredError",
    "AuthorizationError",
    "RefreshTokenReuseError",
    "NotFoundError",
    "AccountNotFoundError",
    "ValidationError",
]
