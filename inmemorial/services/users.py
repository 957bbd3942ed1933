"""
User service - credentials, account lifecycle, and the magic-link protocol.

All single-purpose tokens (email verification, magic link, password
reset, email change) are opaque random secrets stored on the user record
and looked up by exact equality. Session tokens come from auth.jwt.

Notification emails are best-effort: a failed send is logged by the
email service and never fails the operation that triggered it.
"""

from __future__ import annotations

from datetime import datetime, timedelta
import logging
from typing import Any

from inmemorial.auth.jwt import hash_password, issue_token, verify_password
from inmemorial.config import Settings, get_settings
from inmemorial.core.errors import (
    DuplicateEmail,
    EmailNotVerified,
    InvalidCredentials,
    InvalidOrExpiredToken,
    NotFound,
    UsesExceeded,
    ValidationError,
)
from inmemorial.core.models import AccountStatus, User
from inmemorial.core.utils import generate_secret_token, normalize_email, utc_now
from inmemorial.integrations.email import EmailService
from inmemorial.storage import Collections, MetadataStorage

logger = logging.getLogger(__name__)


class UserService:
    """Reads and writes User documents and runs the auth flows."""

    def __init__(
        self,
        storage: MetadataStorage,
        email: EmailService | None = None,
        settings: Settings | None = None,
    ):
        self.storage = storage
        self.settings = settings or get_settings()
        self.email = email or EmailService(settings=self.settings)

    # =========================================================================
    # Persistence helpers
    # =========================================================================

    async def get(self, user_id: str) -> User | None:
        doc = await self.storage.get(Collections.USERS, user_id)
        return User.model_validate(doc) if doc else None

    async def get_by_email(self, email: str, active_only: bool = False) -> User | None:
        filters: dict[str, Any] = {"email": normalize_email(email)}
        if active_only:
            filters["account_status"] = AccountStatus.ACTIVE.value
        doc = await self.storage.find_one(Collections.USERS, filters)
        return User.model_validate(doc) if doc else None

    async def save(self, user: User) -> User:
        user.touch()
        await self.storage.save(Collections.USERS, user.id, user.model_dump(mode="json"))
        return user

    async def _find_by_token(self, field: str, token: str | None, **extra: Any) -> User | None:
        # An empty token would match every user whose field is unset
        if not token:
            return None
        doc = await self.storage.find_one(Collections.USERS, {field: token, **extra})
        return User.model_validate(doc) if doc else None

    @staticmethod
    def _in_future(moment: datetime | None) -> bool:
        return moment is not None and moment > utc_now()

    # =========================================================================
    # Registration & email verification
    # =========================================================================

    async def register(
        self,
        email: str,
        name: str,
        password: str | None = None,
    ) -> tuple[User, str]:
        """
        Create an unverified account.

        Returns the user and the email verification token.
        """
        email = normalize_email(email or "")
        name = (name or "").strip()
        if not email or not name:
            raise ValidationError("Email and name are required")

        if await self.get_by_email(email):
            raise DuplicateEmail()

        token = generate_secret_token()
        user = User(
            email=email,
            name=name,
            password_hash=hash_password(password) if password else None,
            email_verification_token=token,
            memorial_slots=self.settings.default_memorial_slots,
        )
        await self.save(user)
        logger.info(f"Registered user {user.id} ({'password' if password else 'passwordless'})")

        await self.email.send_verification(user.email, user.name, token)
        return user, token

    async def verify_email(self, token: str) -> tuple[User, str]:
        """Consume a verification token. Verification doubles as login."""
        user = await self._find_by_token("email_verification_token", token)
        if not user:
            raise InvalidOrExpiredToken("Invalid verification token")

        user.email_verified = True
        user.email_verification_token = None
        await self.save(user)
        logger.info(f"Email verified for user {user.id}")

        return user, issue_token(user.id, self.settings)

    # =========================================================================
    # Password login
    # =========================================================================

    async def login(self, email: str, password: str) -> tuple[User, str]:
        user = await self.get_by_email(email, active_only=True)
        if not user:
            raise InvalidCredentials()

        if not user.email_verified:
            raise EmailNotVerified()

        if not user.has_password:
            raise InvalidCredentials(
                "This account uses passwordless login. Please request a magic link."
            )

        if not verify_password(password, user.password_hash):
            raise InvalidCredentials()

        user.last_login = utc_now()
        await self.save(user)
        logger.info(f"Password login for user {user.id}")

        return user, issue_token(user.id, self.settings)

    async def change_password(
        self,
        user: User,
        current_password: str | None,
        new_password: str,
    ) -> None:
        """
        Change password. Passwordless accounts may set one without
        providing a current password.
        """
        user = await self.get(user.id) or user
        if user.has_password and not verify_password(current_password, user.password_hash):
            raise InvalidCredentials("Current password is incorrect")

        user.password_hash = hash_password(new_password)
        await self.save(user)
        logger.info(f"Password changed for user {user.id}")

    # =========================================================================
    # Magic link
    # =========================================================================

    async def request_magic_link(self, email: str) -> str | None:
        """
        Issue a fresh magic link for an active account.

        Any previous link for the user stops working. Returns the token,
        or None if no active account matched; callers must not let that
        difference reach the client.
        """
        user = await self.get_by_email(email, active_only=True)
        if not user:
            logger.info("Magic link requested for unknown or inactive email")
            return None

        token = generate_secret_token()
        expires_minutes = self.settings.magic_link_expire_minutes
        user.magic_link_token = token
        user.magic_link_expires = utc_now() + timedelta(minutes=expires_minutes)
        user.magic_link_uses = 0
        await self.save(user)
        logger.info(f"Magic link issued for user {user.id}")

        await self.email.send_magic_link(
            user.email,
            user.name,
            token,
            expires_minutes=expires_minutes,
            max_uses=self.settings.magic_link_max_uses,
        )
        return token

    async def consume_magic_link(self, token: str) -> tuple[User, str]:
        """
        Log in with a magic link.

        A link works up to magic_link_max_uses times within its window;
        the use that reaches the limit clears it.
        """
        user = await self._find_by_token(
            "magic_link_token",
            token,
            account_status=AccountStatus.ACTIVE.value,
        )
        if not user or not self._in_future(user.magic_link_expires):
            raise InvalidOrExpiredToken("Invalid or expired magic link")

        max_uses = self.settings.magic_link_max_uses
        if user.magic_link_uses >= max_uses:
            raise UsesExceeded()

        user.magic_link_uses += 1
        if user.magic_link_uses >= max_uses:
            user.magic_link_token = None
            user.magic_link_expires = None
        user.last_login = utc_now()
        await self.save(user)
        logger.info(f"Magic link login for user {user.id} (use {user.magic_link_uses}/{max_uses})")

        return user, issue_token(user.id, self.settings)

    # =========================================================================
    # Password reset
    # =========================================================================

    async def request_password_reset(self, email: str) -> str | None:
        """Returns the reset token, or None if no active account matched."""
        user = await self.get_by_email(email, active_only=True)
        if not user:
            return None

        token = generate_secret_token()
        expires_minutes = self.settings.password_reset_expire_minutes
        user.password_reset_token = token
        user.password_reset_expires = utc_now() + timedelta(minutes=expires_minutes)
        await self.save(user)

        await self.email.send_password_reset(
            user.email, user.name, token, expires_minutes=expires_minutes
        )
        return token

    async def reset_password(self, token: str, new_password: str) -> User:
        user = await self._find_by_token("password_reset_token", token)
        if not user or not self._in_future(user.password_reset_expires):
            raise InvalidOrExpiredToken("Invalid or expired reset token")

        user.password_hash = hash_password(new_password)
        user.password_reset_token = None
        user.password_reset_expires = None
        await self.save(user)
        logger.info(f"Password reset for user {user.id}")
        return user

    # =========================================================================
    # Email change
    # =========================================================================

    async def request_email_change(self, user: User, new_email: str) -> str:
        new_email = normalize_email(new_email or "")
        if not new_email:
            raise ValidationError("New email is required")
        if await self.get_by_email(new_email):
            raise DuplicateEmail("Email already in use")

        user = await self.get(user.id) or user
        token = generate_secret_token()
        user.email_change_token = token
        user.email_change_new_email = new_email
        user.email_change_expires = utc_now() + timedelta(
            minutes=self.settings.email_change_expire_minutes
        )
        await self.save(user)

        await self.email.send_email_change_confirmation(user.email, user.name, new_email, token)
        return token

    async def confirm_email_change(self, token: str) -> User:
        user = await self._find_by_token("email_change_token", token)
        if not user or not self._in_future(user.email_change_expires):
            raise InvalidOrExpiredToken("Invalid or expired confirmation token")

        new_email = user.email_change_new_email or ""
        # Someone may have registered the address since the request
        if await self.get_by_email(new_email):
            raise DuplicateEmail("Email already in use")

        old_email = user.email
        user.email = new_email
        user.email_change_token = None
        user.email_change_new_email = None
        user.email_change_expires = None
        await self.save(user)
        logger.info(f"Email changed for user {user.id}: {old_email} -> {new_email}")
        return user

    # =========================================================================
    # Account lifecycle (admin)
    # =========================================================================

    async def soft_delete_user(self, user_id: str) -> User:
        user = await self.get(user_id)
        if not user:
            raise NotFound("User not found")
        user.soft_delete()
        await self.save(user)
        logger.info(f"User {user.id} soft-deleted")
        return user

    async def restore_user(self, user_id: str) -> User:
        user = await self.get(user_id)
        if not user:
            raise NotFound("User not found")
        user.restore()
        await self.save(user)
        logger.info(f"User {user.id} restored")
        return user
