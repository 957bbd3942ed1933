"""
Memorial routes.

Everything keyed by id is for people who manage the memorial; the
slug route is the public page and is visibility-gated.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, EmailStr, Field

from inmemorial.auth.context import AuthContext
from inmemorial.auth.policies import optional_auth, require_auth
from inmemorial.core.models import (
    CoverPhoto,
    Favorite,
    FamilyMember,
    Gallery,
    Guestbook,
    ManagerPermissions,
    Memorial,
    MemorialStatus,
    ProfilePhoto,
    ShareChannel,
    Theme,
    Timeline,
)
from inmemorial.services.memorials import MemorialService

router = APIRouter(prefix="/api/memorials", tags=["memorials"])


def get_memorial_service(request: Request) -> MemorialService:
    return request.app.state.memorials


# =============================================================================
# Request Models
# =============================================================================


class CreateMemorialRequest(BaseModel):
    full_name: str = Field(min_length=1, max_length=200)
    birth_date: date | None = None
    death_date: date | None = None
    biography: str | None = None
    profile_photo: ProfilePhoto | None = None
    show_dates: bool = True
    status: MemorialStatus = MemorialStatus.UNPUBLISHED


class UpdateMemorialRequest(BaseModel):
    """Only fields present in the request body are applied."""

    full_name: str | None = None
    birth_date: date | None = None
    death_date: date | None = None
    biography: str | None = None  # Replaces biography.content
    profile_photo: ProfilePhoto | None = None
    cover_photo: CoverPhoto | None = None
    show_dates: bool | None = None
    status: MemorialStatus | None = None
    gallery: Gallery | None = None
    timeline: Timeline | None = None
    family_members: list[FamilyMember] | None = None
    show_family: bool | None = None
    favorites: list[Favorite] | None = None
    show_favorites: bool | None = None
    theme: Theme | None = None
    guestbook: Guestbook | None = None


class InviteManagerRequest(BaseModel):
    email: EmailStr
    permissions: ManagerPermissions = Field(default_factory=ManagerPermissions)


class ShareRequest(BaseModel):
    channel: ShareChannel


def _memorial_body(memorial: Memorial) -> dict[str, Any]:
    return {"memorial": memorial.to_public_dict()}


# =============================================================================
# Owner / manager endpoints
# =============================================================================


@router.post("", status_code=201)
async def create_memorial(
    data: CreateMemorialRequest,
    ctx: AuthContext = Depends(require_auth),
    memorials: MemorialService = Depends(get_memorial_service),
):
    memorial = await memorials.create(ctx.user, data.model_dump())
    return _memorial_body(memorial)


@router.get("/my-memorials")
async def list_my_memorials(
    ctx: AuthContext = Depends(require_auth),
    memorials: MemorialService = Depends(get_memorial_service),
):
    """The caller's memorials, newest first. Trashed ones are left out."""
    owned = await memorials.list_for_owner(ctx.user_id)
    return {"memorials": [m.to_public_dict() for m in owned]}


@router.get("/edit/{memorial_id}")
async def get_memorial_for_edit(
    memorial_id: str,
    ctx: AuthContext = Depends(require_auth),
    memorials: MemorialService = Depends(get_memorial_service),
):
    memorial = await memorials.get_for_edit(memorial_id, ctx.user_id)
    return _memorial_body(memorial)


@router.put("/{memorial_id}")
async def update_memorial(
    memorial_id: str,
    data: UpdateMemorialRequest,
    ctx: AuthContext = Depends(require_auth),
    memorials: MemorialService = Depends(get_memorial_service),
):
    memorial = await memorials.update(
        memorial_id, ctx.user_id, data.model_dump(exclude_unset=True)
    )
    return _memorial_body(memorial)


@router.delete("/{memorial_id}")
async def trash_memorial(
    memorial_id: str,
    ctx: AuthContext = Depends(require_auth),
    memorials: MemorialService = Depends(get_memorial_service),
):
    """Move to trash. Owner only; managers can never delete."""
    await memorials.trash(memorial_id, ctx.user_id)
    return {"message": "Memorial moved to trash"}


@router.post("/{memorial_id}/managers", status_code=201)
async def invite_manager(
    memorial_id: str,
    data: InviteManagerRequest,
    ctx: AuthContext = Depends(require_auth),
    memorials: MemorialService = Depends(get_memorial_service),
):
    manager = await memorials.invite_manager(
        memorial_id, ctx.user_id, data.email, data.permissions
    )
    return {"manager": manager.model_dump(mode="json")}


@router.post("/{memorial_id}/managers/accept")
async def accept_manager_invitation(
    memorial_id: str,
    ctx: AuthContext = Depends(require_auth),
    memorials: MemorialService = Depends(get_memorial_service),
):
    manager = await memorials.accept_invitation(memorial_id, ctx.user_id)
    return {"manager": manager.model_dump(mode="json")}


# =============================================================================
# Public endpoints
# =============================================================================


@router.get("/{slug}")
async def get_memorial(
    slug: str,
    request: Request,
    ctx: AuthContext = Depends(optional_auth),
    memorials: MemorialService = Depends(get_memorial_service),
):
    """
    Public memorial page.

    An unpublished memorial answers 404 to everyone but its owner.
    """
    memorial = await memorials.get_by_slug(slug, ctx.user_id)
    owner = await request.app.state.users.get(memorial.owner_id)
    body = _memorial_body(memorial)
    body["memorial"]["owner"] = {"id": memorial.owner_id, "name": owner.name if owner else None}
    return body


@router.post("/{slug}/share")
async def record_share(
    slug: str,
    data: ShareRequest,
    ctx: AuthContext = Depends(optional_auth),
    memorials: MemorialService = Depends(get_memorial_service),
):
    memorial = await memorials.record_share(slug, data.channel, ctx.user_id)
    return {"share_count": memorial.share_count.model_dump()}
