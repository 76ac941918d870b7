"""SQLAlchemy models for the auth session service."""

from authsession.models.account import Account, AccountRole

__all__ = [
    "Account",
    "AccountRole",
]
