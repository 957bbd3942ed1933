# =============================================================================
# Auth API Routes
# =============================================================================
#
# Endpoints:
#   POST /api/auth/register             - Create account (unverified)
#   POST /api/auth/verify-email         - Verify email, returns session token
#   POST /api/auth/login                - Password login
#   POST /api/auth/magic-link           - Request passwordless login link
#   POST /api/auth/magic-login          - Log in with magic link token
#   POST /api/auth/forgot-password      - Request password reset
#   POST /api/auth/reset-password       - Reset password with token
#   POST /api/auth/change-password      - Change password (logged in)
#   POST /api/auth/change-email         - Request email change (logged in)
#   POST /api/auth/confirm-email-change - Complete email change
#   GET  /api/auth/me                   - Current user
#   POST /api/auth/logout               - Client discards its token
#
# forgot-password and magic-link answer identically whether or not the
# account exists.
#
# =============================================================================

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, EmailStr, Field, field_validator

from inmemorial.auth.context import AuthContext
from inmemorial.auth.policies import get_user_service, require_auth
from inmemorial.core.models import User, UserResponse
from inmemorial.services.users import UserService

router = APIRouter(prefix="/api/auth", tags=["auth"])

MAGIC_LINK_SENT = "If account exists, magic link has been sent"
RESET_LINK_SENT = "If account exists, password reset email has been sent"


# =============================================================================
# Request/Response Models
# =============================================================================

class RegisterRequest(BaseModel):
    email: EmailStr
    name: str = Field(min_length=1, max_length=100)
    password: str | None = Field(default=None, min_length=8, max_length=72)

    @field_validator("password", mode="before")
    @classmethod
    def blank_password_means_none(cls, v):
        # An empty password registers a passwordless account
        return v or None


class RegisterResponse(BaseModel):
    message: str
    requires_verification: bool = True
    verification_token: str | None = None  # Only when expose_dev_tokens is on


class TokenRequest(BaseModel):
    token: str = Field(min_length=1)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class EmailRequest(BaseModel):
    email: EmailStr


class MagicLinkResponse(BaseModel):
    message: str
    magic_token: str | None = None  # Only when expose_dev_tokens is on


class ResetPasswordRequest(BaseModel):
    token: str = Field(min_length=1)
    new_password: str = Field(min_length=8, max_length=72)


class ChangePasswordRequest(BaseModel):
    current_password: str | None = None
    new_password: str = Field(min_length=8, max_length=72)


class ChangeEmailRequest(BaseModel):
    new_email: EmailStr


class SessionResponse(BaseModel):
    token: str
    user: UserResponse


class MessageResponse(BaseModel):
    message: str


def _session(user: User, token: str) -> SessionResponse:
    return SessionResponse(token=token, user=UserResponse.from_user(user))


def _dev_token(request: Request, token: str | None) -> str | None:
    return token if request.app.state.settings.expose_dev_tokens else None


# =============================================================================
# Public Endpoints
# =============================================================================

@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    data: RegisterRequest,
    request: Request,
    users: UserService = Depends(get_user_service),
):
    """
    Create a new account.

    No session is issued; the user must verify their email first.
    """
    _, token = await users.register(data.email, data.name, data.password)
    return RegisterResponse(
        message="Registration successful. Please check your email to verify your account.",
        verification_token=_dev_token(request, token),
    )


@router.post("/verify-email", response_model=SessionResponse)
async def verify_email(
    data: TokenRequest,
    users: UserService = Depends(get_user_service),
):
    """Verify email address using token from email. Logs the user in."""
    user, token = await users.verify_email(data.token)
    return _session(user, token)


@router.post("/login", response_model=SessionResponse)
async def login(
    data: LoginRequest,
    users: UserService = Depends(get_user_service),
):
    user, token = await users.login(data.email, data.password)
    return _session(user, token)


@router.post("/magic-link", response_model=MagicLinkResponse)
async def request_magic_link(
    data: EmailRequest,
    request: Request,
    users: UserService = Depends(get_user_service),
):
    """Send a magic link. Same answer whether or not the account exists."""
    token = await users.request_magic_link(data.email)
    return MagicLinkResponse(message=MAGIC_LINK_SENT, magic_token=_dev_token(request, token))


@router.post("/magic-login", response_model=SessionResponse)
async def magic_login(
    data: TokenRequest,
    users: UserService = Depends(get_user_service),
):
    user, token = await users.consume_magic_link(data.token)
    return _session(user, token)


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    data: EmailRequest,
    users: UserService = Depends(get_user_service),
):
    """Always returns success to prevent email enumeration."""
    await users.request_password_reset(data.email)
    return MessageResponse(message=RESET_LINK_SENT)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    data: ResetPasswordRequest,
    users: UserService = Depends(get_user_service),
):
    await users.reset_password(data.token, data.new_password)
    return MessageResponse(message="Password reset successful")


@router.post("/confirm-email-change", response_model=UserResponse)
async def confirm_email_change(
    data: TokenRequest,
    users: UserService = Depends(get_user_service),
):
    user = await users.confirm_email_change(data.token)
    return UserResponse.from_user(user)


# =============================================================================
# Protected Endpoints
# =============================================================================

@router.get("/me")
async def get_current_user(ctx: AuthContext = Depends(require_auth)):
    return {"user": UserResponse.from_user(ctx.user)}


@router.post("/logout", response_model=MessageResponse)
async def logout(ctx: AuthContext = Depends(require_auth)):
    """
    Logout (client should discard its token).

    Session tokens are only time-bound; there is nothing to revoke.
    """
    return MessageResponse(message="Logged out successfully")


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    data: ChangePasswordRequest,
    ctx: AuthContext = Depends(require_auth),
    users: UserService = Depends(get_user_service),
):
    await users.change_password(ctx.user, data.current_password, data.new_password)
    return MessageResponse(message="Password changed successfully")


@router.post("/change-email", response_model=MessageResponse)
async def change_email(
    data: ChangeEmailRequest,
    ctx: AuthContext = Depends(require_auth),
    users: UserService = Depends(get_user_service),
):
    await users.request_email_change(ctx.user, data.new_email)
    return MessageResponse(message="Confirmation email sent to your current email address")
