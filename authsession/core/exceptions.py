"""Custom exception classes for the application."""

from typing import Any, Optional

from fastapi import HTTPException, status


class APIException(HTTPException):
    """Base API exception with standardized error format."""

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: Optional[list[dict[str, Any]]] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        self.code = code
        self.error_message = message
        self.details = details
        # Set by routes whose failures must also drop the refresh cookie
        self.clear_refresh_cookie = False

        # Build the error response
        error_body = {
            "error": {
                "code": code,
                "message": message,
            }
        }
        if details:
            error_body["error"]["details"] = details

        super().__init__(
            status_code=status_code,
            detail=error_body,
            headers=headers,
        )


class AuthenticationError(APIException):
    """Authentication failed exception."""

    def __init__(
        self,
        message: str = "Authentication failed",
        code: str = "AUTHENTICATION_ERROR",
        details: Optional[list[dict[str, Any]]] = None,
    ):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            code=code,
            message=message,
            details=details,
            headers={"WWW-Authenticate": "Bearer"},
        )


class SessionExpiredError(AuthenticationError):
    """Refresh token is authentic but past its expiry; the session is over."""

    def __init__(
        self,
        message: str = "Session expired, please log in again",
        code: str = "SESSION_EXPIRED",
    ):
        super().__init__(
            message=message,
            code=code,
            details=[{"expired": True}],
        )


class AuthorizationError(APIException):
    """Authorization failed exception."""

    def __init__(
        self,
        message: str = "You don't have permission to perform this action",
        code: str = "AUTHORIZATION_ERROR",
        details: Optional[list[dict[str, Any]]] = None,
    ):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            code=code,
            message=message,
            details=details,
        )


class RefreshTokenReuseError(AuthorizationError):
    """
    An authentic refresh token that is no longer the live one was presented.

    The account's session has already been terminated when this is raised.
    """

    def __init__(
        self,
        message: str = "Refresh token reuse detected, session terminated",
        code: str = "REFRESH_TOKEN_REUSE",
        account_id: Optional[str] = None,
    ):
        self.account_id = account_id
        super().__init__(
            message=message,
            code=code,
            details=[{"reuse_detected": True}],
        )


class NotFoundError(APIException):
    """Resource not found exception."""

    def __init__(
        self,
        resource: str = "Resource",
        message: Optional[str] = None,
        code: str = "NOT_FOUND",
    ):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            code=code,
            message=message or f"{resource} not found",
        )


class AccountNotFoundError(NotFoundError):
    """The subject of an authentic token no longer resolves to an account."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(
            resource="Account",
            message=message,
            code="ACCOUNT_NOT_FOUND",
        )


class ValidationError(APIException):
    """Validation error exception."""

    def __init__(
        self,
        message: str = "Validation failed",
        details: Optional[list[dict[str, Any]]] = None,
        code: str = "VALIDATION_ERROR",
    ):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            code=code,
            message=message,
            details=details,
        )


class ServiceUnavailableError(APIException):
    """A backing service needed to complete the request is unreachable."""

    def __init__(
        self,
        message: str = "Service temporarily unavailable, please retry",
        code: str = "SERVICE_UNAVAILABLE",
    ):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            code=code,
            message=message,
            headers={"Retry-After": "5"},
        )


class RateLimitError(APIException):
    """Rate limit exceeded exception."""

    def __init__(
        self,
        message: str = "Too many requests",
        retry_after: int = 60,
        code: str = "RATE_LIMIT_EXCEEDED",
    ):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            code=code,
            message=message,
            headers={"Retry-After": str(retry_after)},
        )
