"""
Policies - the clean interface for route authorization.

Just use: `ctx: AuthContext = Depends(require_auth)`

Design:
- Every dependency resolves to an AuthContext
- require_auth rejects anonymous / bad tokens with 401
- optional_auth never rejects; bad tokens become anonymous
- require_admin / require_permission() add a 403 check on top
- Memorial-level checks live in access.py, not here
"""

from __future__ import annotations

from typing import Callable

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from inmemorial.auth.capabilities import Permission
from inmemorial.auth.context import AuthContext, authenticate, authenticate_optional
from inmemorial.core.errors import Forbidden
from inmemorial.services.users import UserService


# Optional bearer (doesn't fail if no token; we raise our own errors)
optional_bearer = HTTPBearer(auto_error=False)


def get_user_service(request: Request) -> UserService:
    return request.app.state.users


async def get_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(optional_bearer),
) -> str | None:
    """Extract the token from `Authorization: Bearer <token>`."""
    if not credentials:
        return None
    return credentials.credentials


# =============================================================================
# Main dependencies
# =============================================================================


async def require_auth(
    request: Request,
    token: str | None = Depends(get_bearer_token),
) -> AuthContext:
    """Logged-in, active user required."""
    user = await authenticate(
        token,
        get_user_service(request),
        request.app.state.settings,
    )
    return AuthContext(user=user)


async def optional_auth(
    request: Request,
    token: str | None = Depends(get_bearer_token),
) -> AuthContext:
    """Identify the user if possible; otherwise anonymous."""
    user = await authenticate_optional(
        token,
        get_user_service(request),
        request.app.state.settings,
    )
    return AuthContext(user=user)


async def require_admin(ctx: AuthContext = Depends(require_auth)) -> AuthContext:
    if not ctx.is_admin:
        raise Forbidden("Admin access required")
    return ctx


def require_permission(permission: Permission | str) -> Callable:
    """
    Require a platform permission.

    Usage:
        @router.delete("/users/{user_id}")
        async def delete_user(
            ctx: AuthContext = Depends(require_permission(Permission.MANAGE_USERS)),
        ):
            ...
    """

    async def dependency(ctx: AuthContext = Depends(require_auth)) -> AuthContext:
        ctx.require(permission)
        return ctx

    return dependency
