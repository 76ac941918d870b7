"""Single-slot refresh token store backed by the account record."""

import hashlib
import hmac
import uuid
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from authsession.models.account import Account


def digest_token(token: str) -> str:
    """
    One-way digest of a refresh token.

    A fast SHA-256 digest is enough here: refresh tokens already carry high
    entropy and a bounded lifetime, unlike passwords.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class RefreshTokenStore:
    """
    Per-account store holding the digest of the one live refresh token.

    The slot lives in the deferred ``Account.refresh_token_hash`` column.
    Writes are single UPDATE statements executed without synchronising ORM
    objects, so the digest never leaks onto accounts fetched by ordinary
    read paths. Statements are flushed in the caller's transaction; the
    caller decides when to commit.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def set(self, account_id: uuid.UUID, token: str) -> bool:
        """
        Overwrite the account's slot with the digest of ``token``.

        Returns:
            True if the account exists and was updated
        """
        return await self._write(account_id, digest_token(token))

    async def check(self, account_id: uuid.UUID, token: str) -> bool:
        """
        Check ``token`` against the stored digest.

        Returns:
            True on an exact match, False on mismatch, empty slot or
            unknown account
        """
        stored = await self.get_digest(account_id)
        if not stored:
            return False
        return hmac.compare_digest(stored, digest_token(token))

    async def clear(self, account_id: uuid.UUID) -> bool:
        """Empty the account's slot."""
        return await self._write(account_id, None)

    async def get_digest(self, account_id: uuid.UUID) -> Optional[str]:
        """Explicit internal lookup of the stored digest."""
        result = await self.db.execute(
            select(Account.refresh_token_hash).where(Account.id == account_id)
        )
        return result.scalar_one_or_none()

    async def _write(self, account_id: uuid.UUID, value: Optional[str]) -> bool:
        result = await self.db.execute(
            update(Account)
            .where(Account.id == account_id)
            .values(refresh_token_hash=value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0
