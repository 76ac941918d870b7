"""Refresh token cookie transport."""

from typing import Optional

from starlette.requests import Request
from starlette.responses import Response

from authsession.config import settings


def set_refresh_cookie(response: Response, refresh_token: str) -> None:
    """Attach the refresh token as an HTTP-only, same-site cookie."""
    response.set_cookie(
        key=settings.refresh_cookie_name,
        value=refresh_token,
        max_age=settings.refresh_token_lifetime_seconds,
        path=settings.refresh_cookie_path,
        secure=settings.cookie_secure,
        httponly=True,
        samesite=settings.refresh_cookie_samesite,
    )


def clear_refresh_cookie(response: Response) -> None:
    """Tell the client to drop its refresh token cookie."""
    response.delete_cookie(
        key=settings.refresh_cookie_name,
        path=settings.refresh_cookie_path,
        secure=settings.cookie_secure,
        httponly=True,
        samesite=settings.refresh_cookie_samesite,
    )


def read_refresh_cookie(request: Request) -> Optional[str]:
    """Read the refresh token cookie, treating an empty value as absent."""
    return request.cookies.get(settings.refresh_cookie_name) or None
