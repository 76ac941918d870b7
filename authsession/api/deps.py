"""API dependencies for authentication and authorization."""

from typing import Annotated, Optional

import redis.asyncio as redis
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from authsession.core.exceptions import AuthenticationError
from authsession.core.permissions import ensure_role
from authsession.core.security import (
    TokenCodec,
    TokenExpiredError,
    TokenInvalidError,
    get_token_codec,
)
from authsession.database import get_db
from authsession.models.account import Account, AccountRole
from authsession.redis import get_redis
from authsession.services.account import AccountService
from authsession.utils.validators import validate_uuid

# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


async def get_current_account(
    request: Request,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
    codec: Annotated[TokenCodec, Depends(get_token_codec)],
) -> Account:
    """
    Get the current authenticated account from the bearer access token.

    Access tokens are stateless: they are checked by signature and expiry
    only, then resolved to the account they name.

    Raises:
        AuthenticationError: If authentication fails
    """
    if not credentials:
        raise AuthenticationError(message="Authentication required")

    try:
        subject_id = codec.verify_access(credentials.credentials)
    except TokenExpiredError:
        raise AuthenticationError(message="Access token expired", code="TOKEN_EXPIRED")
    except TokenInvalidError:
        raise AuthenticationError(message="Invalid token")

    account_id = validate_uuid(subject_id)
    if account_id is None:
        raise AuthenticationError(message="Invalid account ID in token")

    account = await AccountService(db).get_by_id(account_id)

    if not account:
        raise AuthenticationError(message="Account not found")

    if not account.is_active:
        raise AuthenticationError(message="Account is deactivated")

    # Store account ID in request state for logging
    request.state.user_id = str(account.id)

    return account


def require_role(*roles: AccountRole):
    """
    Dependency to require specific roles.

    Usage:
        @router.get("/admin", dependencies=[Depends(require_role(AccountRole.ADMIN))])
        async def admin_only(...):
            ...
    """

    async def role_checker(
        current_account: Annotated[Account, Depends(get_current_account)],
    ) -> Account:
        ensure_role(current_account.role, roles)
        return current_account

    return role_checker


# Type aliases for common dependencies
CurrentAccount = Annotated[Account, Depends(get_current_account)]
AdminAccount = Annotated[Account, Depends(require_role(AccountRole.ADMIN))]
DbSession = Annotated[AsyncSession, Depends(get_db)]
RedisClient = Annotated[Optional[redis.Redis], Depends(get_redis)]
Codec = Annotated[TokenCodec, Depends(get_token_codec)]
