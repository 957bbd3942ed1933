"""
Error taxonomy.

Every failure a caller can see is one of these. Services raise them;
the API layer turns them into JSON responses using ``status_code`` and
``code``. None of them are retried.
"""

from __future__ import annotations


class InMemorialError(Exception):
    """Base exception for user-visible failures."""

    status_code: int = 400
    code: str = "error"
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(InMemorialError):
    """Missing or malformed required fields."""
    code = "validation_error"
    default_message = "Missing required fields"


class DuplicateEmail(InMemorialError):
    code = "duplicate_email"
    default_message = "User already exists"


class InvalidCredentials(InMemorialError):
    status_code = 401
    code = "invalid_credentials"
    default_message = "Invalid credentials"


class EmailNotVerified(InMemorialError):
    status_code = 401
    code = "email_not_verified"
    default_message = "Please verify your email first"


class Unauthenticated(InMemorialError):
    status_code = 401
    code = "unauthenticated"
    default_message = "Not authorized"


class InvalidToken(Unauthenticated):
    """Bearer session token could not be decoded."""
    code = "invalid_token"
    default_message = "Not authorized, token failed"


class AccountInactive(InMemorialError):
    status_code = 401
    code = "account_inactive"
    default_message = "Account is not active"


class Forbidden(InMemorialError):
    status_code = 403
    code = "forbidden"
    default_message = "Insufficient permissions"


class NotFound(InMemorialError):
    status_code = 404
    code = "not_found"
    default_message = "Not found"


class InvalidOrExpiredToken(InMemorialError):
    """Single-purpose token (verification, magic link, reset) rejected."""
    code = "invalid_or_expired_token"
    default_message = "Invalid or expired token"


class UsesExceeded(InMemorialError):
    code = "uses_exceeded"
    default_message = "Magic link has been used too many times"


class QuotaExceeded(InMemorialError):
    code = "quota_exceeded"
    default_message = "Quota exceeded"
