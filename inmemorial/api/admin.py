"""
Admin routes: account moderation and mail settings.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from pydantic import AnyHttpUrl, BaseModel, EmailStr

from inmemorial.auth.capabilities import Permission
from inmemorial.auth.context import AuthContext
from inmemorial.auth.policies import get_user_service, require_admin, require_permission
from inmemorial.core.errors import ValidationError
from inmemorial.core.models import UserResponse
from inmemorial.integrations.email import EmailService, MailConfig
from inmemorial.services.users import UserService

router = APIRouter(prefix="/api/admin", tags=["admin"])


def get_email_service(request: Request) -> EmailService:
    return request.app.state.email


class MailSettingsRequest(BaseModel):
    region: str = "us-east-1"
    access_key_id: str
    secret_access_key: str
    from_email: EmailStr
    endpoint_url: AnyHttpUrl | None = None


class TestEmailRequest(BaseModel):
    email: EmailStr


# =============================================================================
# Users
# =============================================================================


@router.delete("/users/{user_id}", response_model=UserResponse)
async def soft_delete_user(
    user_id: str,
    ctx: AuthContext = Depends(require_permission(Permission.MANAGE_USERS)),
    users: UserService = Depends(get_user_service),
):
    if user_id == ctx.user_id:
        raise ValidationError("You cannot delete your own account here")
    user = await users.soft_delete_user(user_id)
    return UserResponse.from_user(user)


@router.post("/users/{user_id}/restore", response_model=UserResponse)
async def restore_user(
    user_id: str,
    ctx: AuthContext = Depends(require_permission(Permission.MANAGE_USERS)),
    users: UserService = Depends(get_user_service),
):
    user = await users.restore_user(user_id)
    return UserResponse.from_user(user)


# =============================================================================
# Mail settings
# =============================================================================


@router.put("/email-settings")
async def update_email_settings(
    data: MailSettingsRequest,
    ctx: AuthContext = Depends(require_admin),
    email: EmailService = Depends(get_email_service),
):
    email.configure(MailConfig(**data.model_dump(mode="json")))
    return {"message": "Email settings updated", "configured": email.is_configured}


@router.post("/email-settings/test")
async def send_test_email(
    data: TestEmailRequest,
    ctx: AuthContext = Depends(require_admin),
    email: EmailService = Depends(get_email_service),
):
    sent = await email.send_test(data.email)
    return {"sent": sent}
