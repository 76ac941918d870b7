"""Service layer for business logic."""

from authsession.services.account import AccountService
from authsession.services.refresh_store import RefreshTokenStore
from authsession.services.session import IssuedSession, SessionManager

__all__ = [
    "AccountService",
    "RefreshTokenStore",
    "SessionManager",
    "IssuedSession",
]
