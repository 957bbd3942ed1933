"""
Auth context - the "who is asking" for each request.

Resolving a bearer token is three separate steps so each can be
tested on its own:

    1. decode_token()         - signature / expiry / claims (auth.jwt)
    2. load_user()            - the user still exists
    3. check_account_status() - the account is allowed in

authenticate() runs all three; authenticate_optional() runs the same
steps but turns any failure into "anonymous".
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING

from inmemorial.auth.capabilities import Permission
from inmemorial.auth.jwt import decode_token
from inmemorial.config import Settings
from inmemorial.core.errors import (
    AccountInactive,
    Forbidden,
    InMemorialError,
    Unauthenticated,
)
from inmemorial.core.models import User, UserRole

if TYPE_CHECKING:
    from inmemorial.services.users import UserService

logger = logging.getLogger(__name__)


@dataclass
class AuthContext:
    """
    Authorization context for a request.

    Usage in routes:
        async def my_route(ctx: AuthContext = Depends(require_auth)):
            print(f"User {ctx.user_id} is here")
            if ctx.can("manage_users"):
                # do something
    """

    user: User | None = None

    @property
    def user_id(self) -> str | None:
        return self.user.id if self.user else None

    @property
    def is_authenticated(self) -> bool:
        """Is there a logged-in user?"""
        return self.user is not None

    @property
    def is_anonymous(self) -> bool:
        return self.user is None

    @property
    def is_admin(self) -> bool:
        return self.user is not None and self.user.role == UserRole.ADMIN

    def can(self, permission: Permission | str) -> bool:
        """Platform permission check (admins hold everything)."""
        if self.user is None:
            return False
        if isinstance(permission, Permission):
            permission = permission.value
        return self.user.has_permission(permission)

    def require(self, permission: Permission | str) -> None:
        """Raise Forbidden if the user lacks the permission."""
        if not self.can(permission):
            raise Forbidden("Insufficient permissions")

    @classmethod
    def anonymous(cls) -> AuthContext:
        return cls()


# =============================================================================
# Pipeline steps
# =============================================================================


async def load_user(users: UserService, user_id: str) -> User:
    user = await users.get(user_id)
    if not user:
        raise Unauthenticated("User not found")
    return user


def check_account_status(user: User) -> User:
    if not user.is_active:
        raise AccountInactive()
    return user


async def authenticate(
    token: str | None,
    users: UserService,
    settings: Settings | None = None,
) -> User:
    """Resolve a bearer token to an active user or raise."""
    if not token:
        raise Unauthenticated("Not authorized, no token")
    payload = decode_token(token, settings)
    user = await load_user(users, payload.sub)
    return check_account_status(user)


async def authenticate_optional(
    token: str | None,
    users: UserService,
    settings: Settings | None = None,
) -> User | None:
    """Same as authenticate(), but failures mean "no user"."""
    if not token:
        return None
    try:
        return await authenticate(token, users, settings)
    except InMemorialError as e:
        logger.debug(f"Optional auth ignored bad credentials: {e.code}")
        return None
