"""Authentication API endpoints."""

from typing import Annotated

import redis.asyncio as redis
import structlog
from fastapi import APIRouter, Depends, Request, Response, status
from redis.exceptions import RedisError

from authsession.api.cookies import clear_refresh_cookie, read_refresh_cookie, set_refresh_cookie
from authsession.api.deps import Codec, CurrentAccount, DbSession, RedisClient
from authsession.config import settings
from authsession.core.exceptions import (
    APIException,
    AuthenticationError,
    RateLimitError,
    RefreshTokenReuseError,
)
from authsession.middleware.audit_logger import (
    get_client_ip,
    log_auth_event,
    log_security_event,
)
from authsession.redis import RateLimiter, get_redis
from authsession.schemas.account import AccountResponse, AccountSummary
from authsession.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from authsession.schemas.common import ErrorResponse
from authsession.services.session import IssuedSession, SessionManager

logger = structlog.get_logger()

router = APIRouter()

REFRESH_ERRORS = {
    401: {"model": ErrorResponse, "description": "Missing, invalid or expired refresh token"},
    403: {"model": ErrorResponse, "description": "Refresh token reuse, session terminated"},
    404: {"model": ErrorResponse, "description": "Account no longer exists"},
}


async def check_login_rate_limit(
    request: Request,
    redis_client: Annotated[redis.Redis | None, Depends(get_redis)],
) -> None:
    """Check rate limit for login attempts."""
    # Skip rate limiting if Redis is not available
    if redis_client is None:
        return

    rate_limiter = RateLimiter(redis_client)

    try:
        is_allowed, _, retry_after = await rate_limiter.is_allowed(
            key=f"login:{get_client_ip(request)}",
            max_requests=settings.login_rate_limit_per_minute,
            window_seconds=60,
        )
    except RedisError as exc:
        logger.warning("login_rate_limit_unavailable", error=str(exc))
        return

    if not is_allowed:
        raise RateLimitError(
            message="Too many login attempts. Please try again later.",
            retry_after=retry_after,
        )


def _issue(response: Response, issued: IssuedSession) -> TokenResponse:
    """Put the refresh token in its cookie and the access token in the body."""
    set_refresh_cookie(response, issued.tokens.refresh_token)
    return TokenResponse(
        access_token=issued.tokens.access_token,
        expires_in=issued.tokens.access_expires_in,
        account=AccountSummary.model_validate(issued.account),
    )


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
    description="Create a new account and open its first session.",
)
async def register(
    data: RegisterRequest,
    request: Request,
    response: Response,
    db: DbSession,
    redis_client: RedisClient,
    codec: Codec,
) -> TokenResponse:
    """Register a new account and return tokens."""
    manager = SessionManager(db, redis_client, codec)
    issued = await manager.register(data)

    log_auth_event(
        "register",
        user_id=str(issued.account.id),
        username=issued.account.username,
        ip_address=get_client_ip(request),
        request_id=getattr(request.state, "request_id", None),
    )
    return _issue(response, issued)


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Login to get tokens",
    responses={
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
        429: {"model": ErrorResponse, "description": "Too many login attempts"},
    },
    description=(
        "Authenticate with username/email and password. The access token is "
        "returned in the body, the refresh token in an HTTP-only cookie. "
        "Any previous session of the account ends."
    ),
    dependencies=[Depends(check_login_rate_limit)],
)
async def login(
    data: LoginRequest,
    request: Request,
    response: Response,
    db: DbSession,
    redis_client: RedisClient,
    codec: Codec,
) -> TokenResponse:
    """Login and return access token, setting the refresh token cookie."""
    manager = SessionManager(db, redis_client, codec)
    ip_address = get_client_ip(request)
    request_id = getattr(request.state, "request_id", None)

    try:
        issued = await manager.authenticate(data.username, data.password)
    except AuthenticationError as exc:
        log_auth_event(
            "login",
            username=data.username,
            success=False,
            reason=exc.error_message,
            ip_address=ip_address,
            request_id=request_id,
        )
        raise

    log_auth_event(
        "login",
        user_id=str(issued.account.id),
        username=issued.account.username,
        ip_address=ip_address,
        request_id=request_id,
    )
    return _issue(response, issued)


@router.post(
    "/refresh",
    response_model=TokenResponse,
    summary="Rotate the refresh token",
    responses=REFRESH_ERRORS,
    description=(
        "Exchange the refresh token cookie for a new access token and a new "
        "refresh token. The presented refresh token can not be used again; "
        "presenting it again ends the session."
    ),
)
async def refresh(
    request: Request,
    response: Response,
    db: DbSession,
    redis_client: RedisClient,
    codec: Codec,
) -> TokenResponse:
    """Rotate the refresh token and issue a new access token."""
    manager = SessionManager(db, redis_client, codec)
    ip_address = get_client_ip(request)
    request_id = getattr(request.state, "request_id", None)

    try:
        issued = await manager.refresh(read_refresh_cookie(request))
    except RefreshTokenReuseError as exc:
        log_security_event(
            "refresh_token_reuse",
            user_id=exc.account_id,
            reason="Superseded refresh token presented, session terminated",
            ip_address=ip_address,
            request_id=request_id,
        )
        exc.clear_refresh_cookie = True
        raise
    except APIException as exc:
        log_auth_event(
            "refresh",
            success=False,
            reason=exc.code,
            ip_address=ip_address,
            request_id=request_id,
        )
        exc.clear_refresh_cookie = True
        raise

    log_auth_event(
        "refresh",
        user_id=str(issued.account.id),
        username=issued.account.username,
        ip_address=ip_address,
        request_id=request_id,
    )
    return _issue(response, issued)


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Logout current session",
    description=(
        "End the session of the refresh token cookie and clear the cookie. "
        "Always succeeds, even without a valid cookie."
    ),
)
async def logout(
    request: Request,
    db: DbSession,
    redis_client: RedisClient,
    codec: Codec,
) -> Response:
    """Logout and clear the refresh token cookie."""
    manager = SessionManager(db, redis_client, codec)
    account_id = await manager.logout(read_refresh_cookie(request))

    log_auth_event(
        "logout",
        user_id=str(account_id) if account_id else None,
        ip_address=get_client_ip(request),
        request_id=getattr(request.state, "request_id", None),
    )

    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    clear_refresh_cookie(response)
    return response


@router.get(
    "/me",
    response_model=AccountResponse,
    summary="Get current account profile",
    responses={401: {"model": ErrorResponse}},
    description="Get the profile of the account named by the bearer access token.",
)
async def get_me(current_account: CurrentAccount) -> AccountResponse:
    """Get current account profile."""
    return AccountResponse.model_validate(current_account)
