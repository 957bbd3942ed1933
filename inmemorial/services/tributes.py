"""
Tribute service - the memorial guestbook.

Visitors submit tributes to any memorial they can see. Submissions start
pending; only approved tributes are listed on the public page, in the
order the memorial's guestbook settings ask for. Approving and rejecting
need the MODERATE action on the memorial (owner, or an accepted manager
with can_moderate).
"""

from __future__ import annotations

import logging

from pydantic import ValidationError as PydanticValidationError

from inmemorial.auth.access import MemorialAccessPolicy
from inmemorial.auth.capabilities import MemorialAction
from inmemorial.core.errors import Forbidden, NotFound, ValidationError
from inmemorial.core.models import (
    GuestbookSortOrder,
    Memorial,
    Tribute,
    TributeStatus,
)
from inmemorial.core.utils import utc_now
from inmemorial.services.memorials import MemorialService
from inmemorial.storage import Collections, MetadataStorage

logger = logging.getLogger(__name__)


class TributeService:
    """Submit, list and moderate guestbook entries."""

    def __init__(
        self,
        storage: MetadataStorage,
        memorials: MemorialService,
        access: MemorialAccessPolicy | None = None,
    ):
        self.storage = storage
        self.memorials = memorials
        self.access = access or memorials.access

    async def get(self, tribute_id: str) -> Tribute | None:
        doc = await self.storage.get(Collections.TRIBUTES, tribute_id)
        return Tribute.model_validate(doc) if doc else None

    async def save(self, tribute: Tribute) -> Tribute:
        tribute.touch()
        await self.storage.save(
            Collections.TRIBUTES, tribute.id, tribute.model_dump(mode="json")
        )
        return tribute

    async def _for_memorial(self, memorial_id: str, status: TributeStatus) -> list[Tribute]:
        docs = await self.storage.query(
            Collections.TRIBUTES,
            {"memorial_id": memorial_id, "status": status.value},
            limit=None,
        )
        return [Tribute.model_validate(doc) for doc in docs]

    def _require_moderator(self, memorial: Memorial, user_id: str) -> None:
        decision = self.access.authorize(user_id, memorial, MemorialAction.MODERATE)
        if not decision:
            raise Forbidden("Not authorized to moderate this memorial")

    # =========================================================================
    # Public side
    # =========================================================================

    async def submit(
        self,
        slug: str,
        author_name: str,
        message: str,
        requester_id: str | None = None,
        ip_address: str | None = None,
    ) -> Tribute:
        memorial = await self.memorials.get_visible(slug, requester_id)
        if not memorial.guestbook.enabled:
            raise Forbidden("The guestbook for this memorial is closed")

        author_name = (author_name or "").strip()
        message = (message or "").strip()
        if not author_name or not message:
            raise ValidationError("Name and message are required")

        try:
            tribute = Tribute(
                memorial_id=memorial.id,
                author_name=author_name,
                message=message,
                ip_address=ip_address,
            )
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid tribute: {e.error_count()} error(s)") from e

        await self.save(tribute)
        logger.info(f"Tribute {tribute.id} submitted to memorial {memorial.id}")
        return tribute

    async def list_approved(self, slug: str, requester_id: str | None = None) -> list[Tribute]:
        """Approved tributes in the guestbook's sort order. Empty if closed."""
        memorial = await self.memorials.get_visible(slug, requester_id)
        if not memorial.guestbook.enabled:
            return []

        tributes = await self._for_memorial(memorial.id, TributeStatus.APPROVED)
        newest_first = memorial.guestbook.sort_order == GuestbookSortOrder.NEWEST
        return sorted(tributes, key=lambda t: t.submitted_at, reverse=newest_first)

    # =========================================================================
    # Moderation
    # =========================================================================

    async def list_pending(self, memorial_id: str, user_id: str) -> list[Tribute]:
        """Moderation queue, oldest first."""
        memorial = await self.memorials.get_or_404(memorial_id)
        self._require_moderator(memorial, user_id)

        tributes = await self._for_memorial(memorial.id, TributeStatus.PENDING)
        return sorted(tributes, key=lambda t: t.submitted_at)

    async def approve(self, memorial_id: str, tribute_id: str, user_id: str) -> Tribute:
        return await self._moderate(memorial_id, tribute_id, user_id, TributeStatus.APPROVED)

    async def reject(
        self,
        memorial_id: str,
        tribute_id: str,
        user_id: str,
        reason: str | None = None,
    ) -> Tribute:
        return await self._moderate(
            memorial_id, tribute_id, user_id, TributeStatus.REJECTED, reason
        )

    async def _moderate(
        self,
        memorial_id: str,
        tribute_id: str,
        user_id: str,
        status: TributeStatus,
        reason: str | None = None,
    ) -> Tribute:
        memorial = await self.memorials.get_or_404(memorial_id)
        self._require_moderator(memorial, user_id)

        tribute = await self.get(tribute_id)
        if not tribute or tribute.memorial_id != memorial.id:
            raise NotFound("Tribute not found")

        tribute.status = status
        tribute.moderated_by = user_id
        tribute.moderated_at = utc_now()
        tribute.rejection_reason = reason if status == TributeStatus.REJECTED else None
        await self.save(tribute)
        logger.info(f"Tribute {tribute.id} {status.value} by {user_id}")
        return tribute
