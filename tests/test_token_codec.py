"""Tests for signed token issuance and verification."""

import uuid
from datetime import timedelta

import pytest
from jose import jwt

from authsession.config import settings
from authsession.core.security import (
    TokenCodec,
    TokenExpiredError,
    TokenInvalidError,
)
from authsession.models.account import AccountRole
from tests.conftest import FrozenClock


@pytest.fixture
def subject_id() -> str:
    return str(uuid.uuid4())


class TestIssue:
    """Tests for token issuance."""

    def test_access_token_claims(self, codec: TokenCodec, clock: FrozenClock, subject_id: str):
        """Access tokens carry subject, role, type and a 15 minute lifetime."""
        token = codec.issue_access(subject_id, AccountRole.ADMIN)
        claims = jwt.get_unverified_claims(token)

        assert claims["sub"] == subject_id
        assert claims["role"] == "admin"
        assert claims["type"] == "access"
        assert claims["iat"] == int(clock.now.timestamp())
        assert claims["exp"] - claims["iat"] == 15 * 60
        assert claims["jti"]

    def test_refresh_token_claims(self, codec: TokenCodec, subject_id: str):
        """Refresh tokens carry subject, type and a 7 day lifetime."""
        token = codec.issue_refresh(subject_id)
        claims = jwt.get_unverified_claims(token)

        assert claims["sub"] == subject_id
        assert claims["type"] == "refresh"
        assert "role" not in claims
        assert claims["exp"] - claims["iat"] == 7 * 24 * 60 * 60

    def test_tokens_issued_in_same_second_differ(self, codec: TokenCodec, subject_id: str):
        """Two refresh tokens minted at the same instant are still distinct."""
        assert codec.issue_refresh(subject_id) != codec.issue_refresh(subject_id)

    def test_issue_pair(self, codec: TokenCodec, subject_id: str):
        """A pair holds one token of each kind plus their lifetimes."""
        pair = codec.issue_pair(subject_id, AccountRole.USER)

        assert codec.verify_access(pair.access_token) == subject_id
        assert codec.verify_refresh(pair.refresh_token) == subject_id
        assert pair.access_expires_in == 15 * 60
        assert pair.refresh_expires_in == 7 * 24 * 60 * 60

    def test_shared_secret_rejected(self):
        """Access and refresh tokens may not share a signing key."""
        with pytest.raises(ValueError):
            TokenCodec(access_secret="same-secret", refresh_secret="same-secret")


class TestVerifyExpiry:
    """Tests for expiry handling."""

    def test_access_token_valid_before_expiry(
        self, codec: TokenCodec, clock: FrozenClock, subject_id: str
    ):
        """An access token issued 14:59 ago is accepted."""
        token = codec.issue_access(subject_id)
        clock.advance(minutes=14, seconds=59)

        assert codec.verify_access(token) == subject_id

    def test_access_token_rejected_after_expiry(
        self, codec: TokenCodec, clock: FrozenClock, subject_id: str
    ):
        """An access token issued 15:01 ago is rejected as expired."""
        token = codec.issue_access(subject_id)
        clock.advance(minutes=15, seconds=1)

        with pytest.raises(TokenExpiredError) as exc_info:
            codec.verify_access(token)
        assert exc_info.value.subject_id == subject_id

    def test_refresh_token_expiry(self, codec: TokenCodec, clock: FrozenClock, subject_id: str):
        """A refresh token lives for seven days."""
        token = codec.issue_refresh(subject_id)

        clock.advance(days=6, hours=23, minutes=59)
        assert codec.verify_refresh(token) == subject_id

        clock.advance(minutes=2)
        with pytest.raises(TokenExpiredError):
            codec.verify_refresh(token)

    def test_expiry_uses_verifier_clock(self, subject_id: str):
        """Expiry is judged by the verifying side's clock, not the issuer's."""
        issuer_clock = FrozenClock()
        issuer = TokenCodec(clock=issuer_clock)
        token = issuer.issue_access(subject_id)

        verifier_clock = FrozenClock(issuer_clock.now + timedelta(hours=1))
        verifier = TokenCodec(clock=verifier_clock)

        with pytest.raises(TokenExpiredError):
            verifier.verify_access(token)

    def test_custom_lifetime(self, clock: FrozenClock, subject_id: str):
        """Lifetimes can be overridden."""
        codec = TokenCodec(access_lifetime=timedelta(seconds=30), clock=clock)
        token = codec.issue_access(subject_id)

        clock.advance(seconds=31)
        with pytest.raises(TokenExpiredError):
            codec.verify_access(token)


class TestVerifyInvalid:
    """Tests for forged, malformed and misused tokens."""

    def test_garbage_token(self, codec: TokenCodec):
        with pytest.raises(TokenInvalidError):
            codec.verify_refresh("not.a.valid.jwt")

    def test_empty_token(self, codec: TokenCodec):
        with pytest.raises(TokenInvalidError):
            codec.verify_access("")

    def test_tampered_payload(self, codec: TokenCodec, subject_id: str):
        """Changing the payload invalidates the signature."""
        token = codec.issue_refresh(subject_id)
        header, payload, signature = token.split(".")
        forged_payload = jwt.encode(
            {"sub": str(uuid.uuid4()), "type": "refresh", "iat": 0, "exp": 9999999999},
            "irrelevant",
        ).split(".")[1]

        with pytest.raises(TokenInvalidError):
            codec.verify_refresh(".".join([header, forged_payload, signature]))

    def test_wrong_key(self, codec: TokenCodec, clock: FrozenClock, subject_id: str):
        """A token signed with another key is invalid, not expired."""
        other = TokenCodec(
            access_secret="other-access-secret",
            refresh_secret="other-refresh-secret",
            clock=clock,
        )
        token = other.issue_refresh(subject_id)

        with pytest.raises(TokenInvalidError):
            codec.verify_refresh(token)

    def test_forged_expired_token_is_invalid(
        self, codec: TokenCodec, clock: FrozenClock, subject_id: str
    ):
        """An expired token with a bad signature is reported as invalid."""
        other = TokenCodec(
            access_secret="other-access-secret",
            refresh_secret="other-refresh-secret",
            clock=clock,
        )
        token = other.issue_refresh(subject_id)
        clock.advance(days=8)

        with pytest.raises(TokenInvalidError):
            codec.verify_refresh(token)

    def test_access_token_is_not_a_refresh_token(self, codec: TokenCodec, subject_id: str):
        """Key separation: an access token never verifies as a refresh token."""
        token = codec.issue_access(subject_id)

        with pytest.raises(TokenInvalidError):
            codec.verify_refresh(token)

    def test_refresh_token_is_not_an_access_token(self, codec: TokenCodec, subject_id: str):
        token = codec.issue_refresh(subject_id)

        with pytest.raises(TokenInvalidError):
            codec.verify_access(token)

    def test_wrong_type_claim_with_right_key(self, codec: TokenCodec, subject_id: str):
        """A token signed with the refresh key but typed as access is invalid."""
        token = jwt.encode(
            {"sub": subject_id, "type": "access", "iat": 0, "exp": 9999999999},
            settings.refresh_token_secret,
            algorithm=settings.jwt_algorithm,
        )

        with pytest.raises(TokenInvalidError):
            codec.verify_refresh(token)

    def test_missing_subject(self, codec: TokenCodec, clock: FrozenClock):
        now = int(clock.now.timestamp())
        token = jwt.encode(
            {"type": "refresh", "iat": now, "exp": now + 60},
            settings.refresh_token_secret,
            algorithm=settings.jwt_algorithm,
        )

        with pytest.raises(TokenInvalidError):
            codec.verify_refresh(token)

    def test_missing_expiry(self, codec: TokenCodec, clock: FrozenClock, subject_id: str):
        token = jwt.encode(
            {"sub": subject_id, "type": "refresh", "iat": int(clock.now.timestamp())},
            settings.refresh_token_secret,
            algorithm=settings.jwt_algorithm,
        )

        with pytest.raises(TokenInvalidError):
            codec.verify_refresh(token)

    def test_unsigned_token_rejected(self, codec: TokenCodec, clock: FrozenClock, subject_id: str):
        """The "none" algorithm is never accepted."""
        now = int(clock.now.timestamp())
        header = jwt.encode(
            {"sub": subject_id, "type": "refresh", "iat": now, "exp": now + 60},
            settings.refresh_token_secret,
            algorithm=settings.jwt_algorithm,
        ).split(".")[1]
        token = f"eyJhbGciOiJub25lIiwidHlwIjoiSldUIn0.{header}."

        with pytest.raises(TokenInvalidError):
            codec.verify_refresh(token)
