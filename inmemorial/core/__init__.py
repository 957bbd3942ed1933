"""
Core module - data models, errors and shared helpers.

This module contains:
- models: Users, memorials and their content aggregates
- errors: The application error taxonomy (each maps to an HTTP status)
- utils: Id, token and slug generation
"""

from inmemorial.core.models import (
    User,
    UserRole,
    AccountStatus,
    UserResponse,
    NotificationPreferences,
    Memorial,
    MemorialStatus,
    Manager,
    ManagerPermissions,
    ShareChannel,
    Tribute,
    TributeStatus,
)

from inmemorial.core.errors import (
    InMemorialError,
    ValidationError,
    DuplicateEmail,
    InvalidCredentials,
    EmailNotVerified,
    Unauthenticated,
    InvalidToken,
    AccountInactive,
    Forbidden,
    NotFound,
    InvalidOrExpiredToken,
    UsesExceeded,
    QuotaExceeded,
)

from inmemorial.core.utils import (
    generate_id,
    generate_secret_token,
    generate_slug,
    normalize_email,
    utc_now,
)

__all__ = [
    # Models
    "User",
    "UserRole",
    "AccountStatus",
    "UserResponse",
    "NotificationPreferences",
    "Memorial",
    "MemorialStatus",
    "Manager",
    "ManagerPermissions",
    "ShareChannel",
    "Tribute",
    "TributeStatus",
    # Errors
    "InMemorialError",
    "ValidationError",
    "DuplicateEmail",
    "InvalidCredentials",
    "EmailNotVerified",
    "Unauthenticated",
    "InvalidToken",
    "AccountInactive",
    "Forbidden",
    "NotFound",
    "InvalidOrExpiredToken",
    "UsesExceeded",
    "QuotaExceeded",
    # Utils
    "generate_id",
    "generate_secret_token",
    "generate_slug",
    "normalize_email",
    "utc_now",
]
