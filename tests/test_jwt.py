"""
Tests for session tokens and password hashing.
"""

from datetime import timedelta

import jwt as pyjwt
import pytest

from inmemorial.auth.jwt import (
    TokenExpiredError,
    TokenInvalidError,
    decode_token,
    hash_password,
    issue_token,
    verify_password,
)
from inmemorial.core.errors import InvalidToken, ValidationError
from inmemorial.core.utils import utc_now


# =============================================================================
# Passwords
# =============================================================================


class TestPasswordHashing:
    def test_hash_is_not_plaintext(self):
        hashed = hash_password("hunter2hunter2")

        assert hashed != "hunter2hunter2"
        assert hashed.startswith("$2")

    def test_verify_roundtrip(self):
        hashed = hash_password("hunter2hunter2")

        assert verify_password("hunter2hunter2", hashed)
        assert not verify_password("hunter3hunter3", hashed)

    def test_same_password_different_salts(self):
        assert hash_password("same-password") != hash_password("same-password")

    def test_missing_hash_never_matches(self):
        # Passwordless accounts have no hash
        assert not verify_password("anything", None)
        assert not verify_password("anything", "")

    def test_missing_candidate_never_matches(self):
        hashed = hash_password("hunter2hunter2")
        assert not verify_password(None, hashed)
        assert not verify_password("", hashed)

    def test_malformed_hash_does_not_raise(self):
        assert not verify_password("hunter2hunter2", "not-a-bcrypt-hash")

    def test_empty_password_rejected(self):
        with pytest.raises(ValidationError):
            hash_password("")

    def test_over_long_password_rejected(self):
        with pytest.raises(ValidationError):
            hash_password("x" * 73)


# =============================================================================
# Session tokens
# =============================================================================


class TestSessionTokens:
    def test_issue_and_decode(self, settings):
        token = issue_token("user_abc", settings)
        payload = decode_token(token, settings)

        assert payload.sub == "user_abc"
        assert payload.type == "access"
        assert payload.exp > payload.iat
        assert payload.jti

    def test_expiry_follows_settings(self, settings):
        payload = decode_token(issue_token("user_abc", settings), settings)

        lifetime = payload.exp - payload.iat
        assert abs(lifetime - timedelta(days=settings.jwt_expire_days)) < timedelta(seconds=5)

    def test_tokens_are_unique(self, settings):
        assert issue_token("user_abc", settings) != issue_token("user_abc", settings)

    def test_wrong_secret_rejected(self, settings):
        token = issue_token("user_abc", settings)
        other = settings.model_copy(update={"jwt_secret_key": "another-secret-that-is-long-enough-1234"})

        with pytest.raises(TokenInvalidError):
            decode_token(token, other)

    def test_garbage_rejected(self, settings):
        with pytest.raises(TokenInvalidError):
            decode_token("not.a.token", settings)

    def test_expired_token(self, settings):
        now = utc_now()
        token = pyjwt.encode(
            {
                "sub": "user_abc",
                "iat": now - timedelta(days=8),
                "exp": now - timedelta(days=1),
                "type": "access",
            },
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )

        with pytest.raises(TokenExpiredError):
            decode_token(token, settings)

    def test_missing_subject_rejected(self, settings):
        now = utc_now()
        token = pyjwt.encode(
            {"iat": now, "exp": now + timedelta(hours=1), "type": "access"},
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )

        with pytest.raises(TokenInvalidError):
            decode_token(token, settings)

    def test_wrong_token_type_rejected(self, settings):
        now = utc_now()
        token = pyjwt.encode(
            {"sub": "user_abc", "iat": now, "exp": now + timedelta(hours=1), "type": "refresh"},
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )

        with pytest.raises(TokenInvalidError):
            decode_token(token, settings)

    def test_errors_are_401(self):
        assert issubclass(TokenExpiredError, InvalidToken)
        assert TokenInvalidError().status_code == 401
