"""Administrator account endpoints."""

import uuid

from fastapi import APIRouter, Request, Response, status

from authsession.api.deps import AdminAccount, Codec, DbSession, RedisClient
from authsession.middleware.audit_logger import get_client_ip, log_security_event
from authsession.schemas.account import AccountCreate, AccountResponse
from authsession.schemas.common import ErrorResponse
from authsession.services.account import AccountService
from authsession.services.session import SessionManager

router = APIRouter(
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Administrator role required"},
    },
)


@router.post(
    "",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
    description="Create an account with any role. Administrators only.",
)
async def create_account(
    data: AccountCreate,
    db: DbSession,
    admin: AdminAccount,
) -> AccountResponse:
    """Create an account without opening a session for it."""
    account = await AccountService(db).create(data)
    await db.commit()
    return AccountResponse.model_validate(account)


@router.post(
    "/{account_id}/revoke-session",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="End an account's session",
    description=(
        "Clear the account's refresh token so its next refresh fails. "
        "Access tokens already issued stay valid until they expire."
    ),
    responses={404: {"model": ErrorResponse, "description": "Account not found"}},
)
async def revoke_session(
    account_id: uuid.UUID,
    request: Request,
    db: DbSession,
    redis_client: RedisClient,
    codec: Codec,
    admin: AdminAccount,
) -> Response:
    """Revoke the refresh token of an account."""
    manager = SessionManager(db, redis_client, codec)
    await manager.revoke(account_id)

    log_security_event(
        "session_revoked",
        user_id=str(account_id),
        reason=f"Revoked by administrator {admin.id}",
        ip_address=get_client_ip(request),
        request_id=getattr(request.state, "request_id", None),
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
