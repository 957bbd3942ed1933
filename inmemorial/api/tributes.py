"""
Guestbook routes.

Submitting and reading go by slug (public page); the moderation queue
and decisions go by memorial id.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from inmemorial.auth.context import AuthContext
from inmemorial.auth.policies import optional_auth, require_auth
from inmemorial.services.tributes import TributeService

router = APIRouter(prefix="/api/memorials", tags=["tributes"])


def get_tribute_service(request: Request) -> TributeService:
    return request.app.state.tributes


class SubmitTributeRequest(BaseModel):
    author_name: str = Field(min_length=1, max_length=250)
    message: str = Field(min_length=1, max_length=5000)


class RejectTributeRequest(BaseModel):
    reason: str | None = None


@router.post("/{slug}/tributes", status_code=201)
async def submit_tribute(
    slug: str,
    data: SubmitTributeRequest,
    request: Request,
    ctx: AuthContext = Depends(optional_auth),
    tributes: TributeService = Depends(get_tribute_service),
):
    """Leave a tribute. It stays hidden until a moderator approves it."""
    tribute = await tributes.submit(
        slug,
        data.author_name,
        data.message,
        requester_id=ctx.user_id,
        ip_address=request.client.host if request.client else None,
    )
    return {"tribute": tribute.to_public_dict()}


@router.get("/{slug}/tributes")
async def list_tributes(
    slug: str,
    ctx: AuthContext = Depends(optional_auth),
    tributes: TributeService = Depends(get_tribute_service),
):
    approved = await tributes.list_approved(slug, ctx.user_id)
    return {"tributes": [t.to_public_dict() for t in approved]}


@router.get("/{memorial_id}/tributes/pending")
async def list_pending_tributes(
    memorial_id: str,
    ctx: AuthContext = Depends(require_auth),
    tributes: TributeService = Depends(get_tribute_service),
):
    pending = await tributes.list_pending(memorial_id, ctx.user_id)
    return {"tributes": [t.to_public_dict() for t in pending]}


@router.post("/{memorial_id}/tributes/{tribute_id}/approve")
async def approve_tribute(
    memorial_id: str,
    tribute_id: str,
    ctx: AuthContext = Depends(require_auth),
    tributes: TributeService = Depends(get_tribute_service),
):
    tribute = await tributes.approve(memorial_id, tribute_id, ctx.user_id)
    return {"tribute": tribute.to_public_dict()}


@router.post("/{memorial_id}/tributes/{tribute_id}/reject")
async def reject_tribute(
    memorial_id: str,
    tribute_id: str,
    data: RejectTributeRequest,
    ctx: AuthContext = Depends(require_auth),
    tributes: TributeService = Depends(get_tribute_service),
):
    tribute = await tributes.reject(memorial_id, tribute_id, ctx.user_id, data.reason)
    return {"tribute": tribute.to_public_dict()}
