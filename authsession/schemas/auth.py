"""Authentication schemas."""

from pydantic import BaseModel, Field

from authsession.schemas.account import AccountCredentials, AccountSummary


class LoginRequest(BaseModel):
    """Login request schema."""

    username: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Username or email",
    )
    password: str = Field(..., min_length=1, max_length=128)


class RegisterRequest(AccountCredentials):
    """
    Self-registration request.

    There is no role field: registered accounts are always plain users.
    """


class TokenResponse(BaseModel):
    """
    Token response schema.

    The refresh token is never part of the body; it travels in an HTTP-only
    cookie set on the same response.
    """

    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Access token expiry in seconds")
    account: AccountSummary
