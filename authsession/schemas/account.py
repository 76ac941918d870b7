"""Account schemas for request/response validation."""

import re
import uuid
from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from authsession.models.account import AccountRole
from authsession.schemas.common import BaseSchema


def validate_password_complexity(v: str) -> str:
    """Validate password complexity requirements."""
    if not re.search(r"[A-Z]", v):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", v):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r"\d", v):
        raise ValueError("Password must contain at least one digit")
    if not re.search(r"[!@#$%^&*(),.?\":{}|<>]", v):
        raise ValueError("Password must contain at least one special character")
    return v


class AccountBase(BaseSchema):
    """Base account schema."""

    username: str = Field(
        ...,
        min_length=3,
        max_length=50,
        pattern=r"^[a-zA-Z0-9_-]+$",
        description="Username (alphanumeric, underscores, and hyphens only)",
    )
    email: EmailStr = Field(..., description="Valid email address")


class AccountCredentials(AccountBase):
    """Username, email and a password meeting the complexity rules."""

    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="Password (min 8 chars, must include uppercase, lowercase, digit, and special char)",
    )

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        return validate_password_complexity(v)


class AccountCreate(AccountCredentials):
    """
    Schema for creating an account with a chosen role.

    Only used on administrator and seeding paths; self-registration goes
    through ``RegisterRequest``, which has no role.
    """

    role: AccountRole = Field(
        default=AccountRole.USER,
        description="Account role",
    )


class AccountResponse(BaseSchema):
    """
    Account profile returned to clients.

    Credential material (password hash, refresh token digest) is never part
    of this schema.
    """

    id: uuid.UUID
    username: str
    email: str
    role: AccountRole
    is_active: bool
    created_at: datetime
    last_login: Optional[datetime] = None


class AccountSummary(BaseSchema):
    """Minimal account summary embedded in token responses."""

    id: uuid.UUID
    username: str
    email: str
    role: AccountRole
