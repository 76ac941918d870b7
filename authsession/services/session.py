"""Session manager handling login, refresh token rotation and logout."""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import redis.asyncio as redis
import structlog
from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession

from authsession.core.exceptions import (
    AccountNotFoundError,
    AuthenticationError,
    RefreshTokenReuseError,
    SessionExpiredError,
)
from authsession.core.security import (
    TokenCodec,
    TokenError,
    TokenExpiredError,
    TokenInvalidError,
    TokenPair,
    get_token_codec,
    hash_password,
    needs_rehash,
    verify_password,
)
from authsession.models.account import Account, AccountRole
from authsession.redis import AccountLock
from authsession.schemas.account import AccountCreate, AccountCredentials
from authsession.services.account import AccountService
from authsession.services.refresh_store import RefreshTokenStore
from authsession.utils.validators import validate_uuid

logger = structlog.get_logger()


@dataclass(frozen=True)
class IssuedSession:
    """Account together with the token pair just issued for it."""

    account: Account
    tokens: TokenPair


class SessionManager:
    """
    Service for the session lifecycle of an account.

    Each account has at most one live refresh token, whose digest sits in the
    account's single slot. Logging in overwrites the slot, every successful
    refresh rotates it, and presenting an authentic refresh token that does
    not match the slot is treated as token theft: the slot is cleared and the
    whole session ends.

    Every path that changes the slot commits before returning or raising, so
    a failed call never leaves a half-updated slot behind.
    """

    def __init__(
        self,
        db: AsyncSession,
        redis_client: Optional[redis.Redis] = None,
        codec: Optional[TokenCodec] = None,
    ):
        self.db = db
        self.accounts = AccountService(db)
        self.store = RefreshTokenStore(db)
        self.codec = codec or get_token_codec()
        self.account_lock = AccountLock(redis_client)

    async def register(self, data: AccountCredentials) -> IssuedSession:
        """
        Create a plain user account and open its first session.

        Any role carried by ``data`` is ignored.

        Raises:
            ValidationError: If username or email already exists
        """
        account = await self.accounts.create(
            AccountCreate(
                **data.model_dump(include={"username", "email", "password"}),
                role=AccountRole.USER,
            )
        )
        return await self.login(account)

    async def authenticate(self, login_name: str, password: str) -> IssuedSession:
        """
        Verify credentials and open a session.

        Args:
            login_name: Username or email
            password: Password

        Returns:
            The account and its new token pair

        Raises:
            AuthenticationError: If credentials are invalid or the account is inactive
        """
        account = await self.accounts.find_by_login_name(login_name)

        if not account or not verify_password(password, account.password_hash):
            raise AuthenticationError(message="Invalid credentials")

        if not account.is_active:
            raise AuthenticationError(message="Account is deactivated")

        # Check if password needs rehashing
        if needs_rehash(account.password_hash):
            account.password_hash = hash_password(password)

        account.last_login = datetime.now(timezone.utc)
        await self.accounts.save(account)

        return await self.login(account)

    async def login(self, account: Account) -> IssuedSession:
        """
        Open a session for an already authenticated account.

        Any previous session of the account ends: its refresh token digest is
        overwritten by the new one.
        """
        tokens = self.codec.issue_pair(str(account.id), account.role)

        async with self.account_lock.hold(str(account.id)):
            if not await self.store.set(account.id, tokens.refresh_token):
                raise AccountNotFoundError()
            await self.db.commit()

        return IssuedSession(account=account, tokens=tokens)

    async def refresh(self, refresh_token: Optional[str]) -> IssuedSession:
        """
        Rotate a refresh token.

        Args:
            refresh_token: Refresh token presented by the client

        Returns:
            The account and a new token pair; the presented token is spent

        Raises:
            AuthenticationError: No token, a forged or malformed token, or an inactive account
            SessionExpiredError: Authentic token past its expiry (slot cleared)
            AccountNotFoundError: Token subject no longer exists
            RefreshTokenReuseError: Authentic token that is not the live one (slot cleared)
        """
        if not refresh_token:
            raise AuthenticationError(message="No refresh token provided")

        try:
            subject_id = self.codec.verify_refresh(refresh_token)
        except TokenExpiredError as exc:
            await self._end_session(validate_uuid(exc.subject_id))
            raise SessionExpiredError()
        except TokenInvalidError:
            raise AuthenticationError(message="Invalid refresh token")

        account_id = validate_uuid(subject_id)
        if account_id is None:
            raise AuthenticationError(message="Invalid refresh token")

        async with self.account_lock.hold(str(account_id)):
            account = await self.accounts.get_by_id(account_id)
            if account is None:
                raise AccountNotFoundError()

            if not await self.store.check(account.id, refresh_token):
                # Authentic but not the live token: end the account session
                await self.store.clear(account.id)
                await self.db.commit()
                raise RefreshTokenReuseError(account_id=str(account.id))

            if not account.is_active:
                await self.store.clear(account.id)
                await self.db.commit()
                raise AuthenticationError(message="Account is deactivated")

            tokens = self.codec.issue_pair(str(account.id), account.role)
            await self.store.set(account.id, tokens.refresh_token)
            await self.db.commit()

        return IssuedSession(account=account, tokens=tokens)

    async def logout(self, refresh_token: Optional[str]) -> Optional[uuid.UUID]:
        """
        End the session a refresh token belongs to.

        Best effort and idempotent: a missing, malformed, forged or expired
        token is not an error and leaves the store untouched. A Redis failure
        while taking the account lock does not fail the logout either; the
        slot is then cleared without the lock.

        Returns:
            ID of the account whose session was ended, if any
        """
        if not refresh_token:
            return None

        try:
            subject_id = self.codec.verify_refresh(refresh_token)
        except TokenError:
            return None

        account_id = validate_uuid(subject_id)
        if account_id is None:
            return None

        try:
            await self._end_session(account_id)
        except RedisError as exc:
            logger.warning(
                "account_lock_unavailable",
                action="logout",
                user_id=str(account_id),
                error=str(exc),
                error_type=type(exc).__name__,
            )
            await self.store.clear(account_id)
            await self.db.commit()
        return account_id

    async def revoke(self, account_id: uuid.UUID) -> None:
        """
        End an account's session on behalf of an administrator.

        Raises:
            AccountNotFoundError: If the account does not exist
        """
        async with self.account_lock.hold(str(account_id)):
            if not await self.store.clear(account_id):
                raise AccountNotFoundError()
            await self.db.commit()

    async def _end_session(self, account_id: Optional[uuid.UUID]) -> None:
        """Clear an account's refresh token slot and commit."""
        if account_id is None:
            return

        async with self.account_lock.hold(str(account_id)):
            await self.store.clear(account_id)
            await self.db.commit()
