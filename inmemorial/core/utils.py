"""
Shared utility functions for the memorial platform.

This module contains common utilities used across the codebase.
"""

from __future__ import annotations

import secrets
import string
import uuid
from datetime import datetime, timezone


SLUG_ALPHABET = string.ascii_lowercase + string.digits


def generate_id(prefix: str = "") -> str:
    """
    Generate a unique ID with optional prefix.

    Args:
        prefix: Optional prefix (e.g., "user", "mem")

    Returns:
        A unique ID like "mem_a1b2c3d4e5f6"
    """
    uid = uuid.uuid4().hex[:12]
    return f"{prefix}_{uid}" if prefix else uid


def generate_secret_token() -> str:
    """Opaque bearer secret (64 hex chars) for email-delivered links."""
    return secrets.token_hex(32)


def generate_slug(length: int = 8) -> str:
    """Random lowercase alphanumeric slug. Uniqueness is the caller's job."""
    return "".join(secrets.choice(SLUG_ALPHABET) for _ in range(length))


def normalize_email(email: str) -> str:
    return email.strip().lower()


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)
