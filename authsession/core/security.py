"""Security utilities: password hashing and signed token handling."""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from jose import JWTError, jwt

from authsession.config import settings
from authsession.models.account import AccountRole

# Initialize Argon2 password hasher with secure defaults
password_hasher = PasswordHasher(
    time_cost=3,  # Number of iterations
    memory_cost=65536,  # 64 MB
    parallelism=4,  # Number of parallel threads
    hash_len=32,  # Length of the hash in bytes
    salt_len=16,  # Length of the salt in bytes
)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def hash_password(password: str) -> str:
    """
    Hash a password using Argon2id.

    Args:
        password: Plain text password

    Returns:
        Hashed password string
    """
    return password_hasher.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    """
    Verify a password against a hash.

    Args:
        password: Plain text password to verify
        hashed_password: Hashed password to compare against

    Returns:
        True if password matches, False otherwise
    """
    try:
        password_hasher.verify(hashed_password, password)
        return True
    except (VerificationError, InvalidHashError):
        return False


def needs_rehash(hashed_password: str) -> bool:
    """Check if a password hash was produced with outdated Argon2 parameters."""
    return password_hasher.check_needs_rehash(hashed_password)


class TokenError(Exception):
    """Base class for token verification failures."""


class TokenInvalidError(TokenError):
    """Token is malformed, forged, signed with the wrong key or of the wrong type."""


class TokenExpiredError(TokenError):
    """Token signature is valid but its lifetime is over."""

    def __init__(self, subject_id: str):
        super().__init__(f"Token for subject {subject_id} has expired")
        self.subject_id = subject_id


@dataclass(frozen=True)
class TokenPair:
    """Freshly minted access/refresh token pair."""

    access_token: str
    refresh_token: str
    access_expires_in: int
    refresh_expires_in: int


def utc_now() -> datetime:
    """Current wall-clock time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class TokenCodec:
    """
    Issues and verifies signed, expiring JWTs.

    Access and refresh tokens are signed with distinct secrets so that a leak
    of one key cannot be used to forge the other kind of token. Expiry is
    evaluated against the codec clock after the signature has been checked,
    which lets callers tell an expired token apart from a forged one.
    """

    def __init__(
        self,
        access_secret: Optional[str] = None,
        refresh_secret: Optional[str] = None,
        algorithm: Optional[str] = None,
        access_lifetime: Optional[timedelta] = None,
        refresh_lifetime: Optional[timedelta] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.access_secret = access_secret or settings.access_token_secret
        self.refresh_secret = refresh_secret or settings.refresh_token_secret
        if self.access_secret == self.refresh_secret:
            raise ValueError("Access and refresh tokens must use different secrets")

        self.algorithm = algorithm or settings.jwt_algorithm
        self.access_lifetime = access_lifetime or timedelta(
            minutes=settings.access_token_expire_minutes
        )
        self.refresh_lifetime = refresh_lifetime or timedelta(
            days=settings.refresh_token_expire_days
        )
        self.clock = clock

    def issue_access(self, subject_id: str, role: Optional[AccountRole] = None) -> str:
        """
        Create a signed access token.

        Args:
            subject_id: Account ID to encode in the token
            role: Account role, carried for the authorization layer

        Returns:
            Encoded JWT access token
        """
        claims: dict[str, Any] = {}
        if role is not None:
            claims["role"] = role.value
        return self._encode(
            subject_id,
            ACCESS_TOKEN_TYPE,
            self.access_lifetime,
            self.access_secret,
            claims,
        )

    def issue_refresh(self, subject_id: str) -> str:
        """
        Create a signed refresh token.

        Args:
            subject_id: Account ID to encode in the token

        Returns:
            Encoded JWT refresh token
        """
        return self._encode(
            subject_id,
            REFRESH_TOKEN_TYPE,
            self.refresh_lifetime,
            self.refresh_secret,
        )

    def issue_pair(self, subject_id: str, role: Optional[AccountRole] = None) -> TokenPair:
        """Mint a new access token together with a new refresh token."""
        return TokenPair(
            access_token=self.issue_access(subject_id, role),
            refresh_token=self.issue_refresh(subject_id),
            access_expires_in=int(self.access_lifetime.total_seconds()),
            refresh_expires_in=int(self.refresh_lifetime.total_seconds()),
        )

    def verify_access(self, token: str) -> str:
        """
        Verify an access token.

        Returns:
            Subject (account) ID

        Raises:
            TokenExpiredError: Signature is valid but the token has expired
            TokenInvalidError: Token is malformed, forged or not an access token
        """
        return self._decode(token, ACCESS_TOKEN_TYPE, self.access_secret)["sub"]

    def verify_refresh(self, token: str) -> str:
        """
        Verify a refresh token.

        Returns:
            Subject (account) ID

        Raises:
            TokenExpiredError: Signature is valid but the token has expired
            TokenInvalidError: Token is malformed, forged or not a refresh token
        """
        return self._decode(token, REFRESH_TOKEN_TYPE, self.refresh_secret)["sub"]

    def decode_access(self, token: str) -> dict[str, Any]:
        """Verify an access token and return all of its claims."""
        return self._decode(token, ACCESS_TOKEN_TYPE, self.access_secret)

    def _encode(
        self,
        subject_id: str,
        token_type: str,
        lifetime: timedelta,
        secret: str,
        extra_claims: Optional[dict[str, Any]] = None,
    ) -> str:
        issued_at = int(self.clock().timestamp())
        payload = {
            "sub": str(subject_id),
            "type": token_type,
            "iat": issued_at,
            "exp": issued_at + int(lifetime.total_seconds()),
            "jti": str(uuid.uuid4()),
        }
        if extra_claims:
            payload.update(extra_claims)

        return jwt.encode(payload, secret, algorithm=self.algorithm)

    def _decode(self, token: str, token_type: str, secret: str) -> dict[str, Any]:
        if not token:
            raise TokenInvalidError("No token provided")

        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                # Expiry is checked below against the codec clock
                options={
                    "verify_exp": False,
                    "require_exp": True,
                    "require_iat": True,
                    "require_sub": True,
                },
            )
        except JWTError as exc:
            raise TokenInvalidError(str(exc)) from exc

        if payload.get("type") != token_type:
            raise TokenInvalidError("Invalid token type")

        subject_id = payload.get("sub")
        expires_at = payload.get("exp")
        if not isinstance(subject_id, str) or not subject_id:
            raise TokenInvalidError("Invalid token subject")
        if not isinstance(expires_at, int):
            raise TokenInvalidError("Invalid token expiry")

        if int(self.clock().timestamp()) >= expires_at:
            raise TokenExpiredError(subject_id)

        return payload


def get_token_codec() -> TokenCodec:
    """Build a token codec from application settings."""
    return TokenCodec()
