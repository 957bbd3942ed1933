# =============================================================================
# JWT Session Tokens + Password Hashing
# =============================================================================
#
# This module provides:
#   - Session token creation (signed, expiring, no revocation list)
#   - Session token decoding (pure - no user lookup, no status check)
#   - bcrypt password hashing
#
# Single-purpose tokens (email verification, magic link, password reset)
# are NOT JWTs; they are opaque random secrets stored on the user record.
#
# =============================================================================

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import logging

import bcrypt
import jwt
from pydantic import BaseModel

from inmemorial.config import Settings, get_settings
from inmemorial.core.errors import InvalidToken, ValidationError
from inmemorial.core.utils import generate_id, utc_now

logger = logging.getLogger(__name__)

TOKEN_TYPE = "access"

# bcrypt only looks at the first 72 bytes; longer input is rejected outright.
BCRYPT_MAX_BYTES = 72
BCRYPT_ROUNDS = 10


# =============================================================================
# Models
# =============================================================================

class TokenPayload(BaseModel):
    """JWT token payload."""
    sub: str  # user_id
    exp: datetime
    iat: datetime
    type: str
    jti: str  # unique token ID


# =============================================================================
# Password Hashing
# =============================================================================

def hash_password(password: str) -> str:
    """Hash a password with bcrypt. Returns the modular-crypt string."""
    encoded = password.encode("utf-8")
    if not encoded:
        raise ValidationError("Password is required")
    if len(encoded) > BCRYPT_MAX_BYTES:
        raise ValidationError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str | None, password_hash: str | None) -> bool:
    """
    One-way comparison of a candidate password against a stored hash.

    A missing hash (passwordless account) or missing candidate never matches.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash or over-long candidate
        return False


# =============================================================================
# Token Creation
# =============================================================================

def issue_token(user_id: str, settings: Settings | None = None) -> str:
    """Create a signed session token for a user."""
    settings = settings or get_settings()
    now = utc_now()
    expire = now + timedelta(days=settings.jwt_expire_days)

    payload = {
        "sub": user_id,
        "exp": expire,
        "iat": now,
        "type": TOKEN_TYPE,
        "jti": generate_id("tok"),
    }

    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


# =============================================================================
# Token Validation
# =============================================================================

class TokenExpiredError(InvalidToken):
    """Token has expired."""
    default_message = "Token has expired"


class TokenInvalidError(InvalidToken):
    """Token is invalid or malformed."""
    default_message = "Invalid token"


def decode_token(token: str, settings: Settings | None = None) -> TokenPayload:
    """
    Decode and validate a session token.

    Only checks the signature, expiry and claims. Whether the user still
    exists or is allowed in is the caller's business.

    Raises:
        TokenExpiredError: Token has expired
        TokenInvalidError: Bad signature, malformed, or wrong token type
    """
    settings = settings or get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "iat", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenExpiredError()
    except jwt.InvalidTokenError as e:
        raise TokenInvalidError(f"Invalid token: {e}")

    if payload.get("type") != TOKEN_TYPE:
        raise TokenInvalidError(f"Expected {TOKEN_TYPE} token, got {payload.get('type')}")

    return TokenPayload(
        sub=payload["sub"],
        exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        iat=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
        type=payload["type"],
        jti=payload.get("jti", ""),
    )
