"""Account service: the account lookup and update collaborator."""

import uuid
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from authsession.core.exceptions import ValidationError
from authsession.core.security import hash_password
from authsession.models.account import Account
from authsession.schemas.account import AccountCreate


class AccountService:
    """
    Service for account operations.

    Every read here is an ordinary read: the refresh token digest column is
    deferred on the model and is never loaded by these queries.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, account_id: uuid.UUID) -> Optional[Account]:
        """Get account by ID."""
        result = await self.db.execute(
            select(Account).where(Account.id == account_id)
        )
        return result.scalar_one_or_none()

    async def get_by_username(self, username: str) -> Optional[Account]:
        """Get account by username."""
        result = await self.db.execute(
            select(Account).where(Account.username == username)
        )
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[Account]:
        """Get account by email (case-insensitive)."""
        result = await self.db.execute(
            select(Account).where(func.lower(Account.email) == email.lower())
        )
        return result.scalar_one_or_none()

    async def find_by_login_name(self, login_name: str) -> Optional[Account]:
        """Get account by username or email."""
        result = await self.db.execute(
            select(Account).where(
                or_(
                    Account.username == login_name,
                    func.lower(Account.email) == login_name.lower(),
                )
            )
        )
        return result.scalar_one_or_none()

    async def create(self, data: AccountCreate) -> Account:
        """
        Create a new account.

        Args:
            data: Account creation data

        Returns:
            Created account

        Raises:
            ValidationError: If username or email already exists
        """
        if await self.get_by_username(data.username):
            raise ValidationError(
                message="Username already exists",
                details=[{"field": "username", "message": "This username is already taken"}],
            )

        if await self.get_by_email(data.email):
            raise ValidationError(
                message="Email already exists",
                details=[{"field": "email", "message": "This email is already registered"}],
            )

        account = Account(
            username=data.username,
            email=data.email.lower(),
            password_hash=hash_password(data.password),
            role=data.role,
        )

        self.db.add(account)
        return await self.save(account)

    async def save(self, account: Account) -> Account:
        """Flush pending changes of an account and reload its column values."""
        self.db.add(account)
        await self.db.flush()
        await self.db.refresh(account)
        return account
