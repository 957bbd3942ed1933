"""
Memorial service - lifecycle of memorial pages.

Every operation loads the memorial fresh and asks MemorialAccessPolicy
before mutating or returning it.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from inmemorial.auth.access import MemorialAccessPolicy
from inmemorial.auth.capabilities import MemorialAction
from inmemorial.config import Settings, get_settings
from inmemorial.core.errors import (
    Forbidden,
    NotFound,
    QuotaExceeded,
    ValidationError,
)
from inmemorial.core.models import (
    Manager,
    ManagerPermissions,
    Memorial,
    ShareChannel,
    User,
)
from inmemorial.core.utils import generate_slug, utc_now
from inmemorial.services.users import UserService
from inmemorial.storage import Collections, MetadataStorage

logger = logging.getLogger(__name__)


# Fields an editor may change through update(). Everything else
# (owner, slug, counters, trash state, managers) has its own path.
UPDATABLE_FIELDS = frozenset({
    "full_name",
    "birth_date",
    "death_date",
    "biography",
    "profile_photo",
    "cover_photo",
    "show_dates",
    "status",
    "gallery",
    "timeline",
    "family_members",
    "show_family",
    "favorites",
    "show_favorites",
    "theme",
    "guestbook",
})


def _validated(data: dict[str, Any]) -> Memorial:
    try:
        return Memorial.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid memorial data: {e.error_count()} error(s)") from e


class MemorialService:
    """Create, read, update and trash memorials."""

    def __init__(
        self,
        storage: MetadataStorage,
        users: UserService,
        access: MemorialAccessPolicy | None = None,
        settings: Settings | None = None,
    ):
        self.storage = storage
        self.users = users
        self.access = access or MemorialAccessPolicy()
        self.settings = settings or get_settings()

    # =========================================================================
    # Persistence helpers
    # =========================================================================

    async def get(self, memorial_id: str) -> Memorial | None:
        doc = await self.storage.get(Collections.MEMORIALS, memorial_id)
        return Memorial.model_validate(doc) if doc else None

    async def get_or_404(self, memorial_id: str) -> Memorial:
        memorial = await self.get(memorial_id)
        if not memorial:
            raise NotFound("Memorial not found")
        return memorial

    async def save(self, memorial: Memorial) -> Memorial:
        memorial.touch()
        await self.storage.save(
            Collections.MEMORIALS, memorial.id, memorial.model_dump(mode="json")
        )
        return memorial

    async def _unique_slug(self) -> str:
        while True:
            slug = generate_slug(self.settings.slug_length)
            if not await self.storage.count(Collections.MEMORIALS, {"slug": slug}):
                return slug

    async def count_active(self, owner_id: str) -> int:
        """Memorials that occupy a slot (trashed ones don't)."""
        return await self.storage.count(
            Collections.MEMORIALS, {"owner_id": owner_id, "in_trash": False}
        )

    # =========================================================================
    # Create / list
    # =========================================================================

    async def create(self, owner: User, data: dict[str, Any]) -> Memorial:
        if not (data.get("full_name") or "").strip():
            raise ValidationError("Full name is required")

        in_use = await self.count_active(owner.id)
        if in_use >= owner.memorial_slots:
            raise QuotaExceeded("No available memorial slots")
        if owner.max_memorials is not None and in_use >= owner.max_memorials:
            raise QuotaExceeded("Memorial limit reached")

        biography = data.get("biography")
        memorial = _validated({
            "owner_id": owner.id,
            "slug": await self._unique_slug(),
            "full_name": data["full_name"].strip(),
            "birth_date": data.get("birth_date"),
            "death_date": data.get("death_date"),
            "biography": {"content": biography or "", "show_biography": True},
            "profile_photo": data.get("profile_photo") or {},
            "show_dates": data.get("show_dates") is not False,
            "status": data.get("status") or "unpublished",
        })
        await self.save(memorial)
        logger.info(f"Memorial {memorial.id} created by {owner.id} at /{memorial.slug}")
        return memorial

    async def list_for_owner(self, owner_id: str) -> list[Memorial]:
        """The owner's memorials, newest first, trash excluded."""
        docs = await self.storage.query(
            Collections.MEMORIALS,
            {"owner_id": owner_id, "in_trash": False},
            limit=None,
        )
        memorials = [Memorial.model_validate(doc) for doc in docs]
        return sorted(memorials, key=lambda m: m.created_at, reverse=True)

    # =========================================================================
    # Read
    # =========================================================================

    async def get_for_edit(self, memorial_id: str, user_id: str) -> Memorial:
        memorial = await self.get_or_404(memorial_id)
        decision = self.access.authorize(user_id, memorial, MemorialAction.EDIT)
        if not decision:
            raise Forbidden("Not authorized to edit this memorial")
        return memorial

    async def get_by_slug(self, slug: str, requester_id: str | None) -> Memorial:
        """
        Public fetch. Hidden memorials look exactly like missing ones.

        Every successful fetch counts as a view, owner included.
        """
        memorial = await self.get_visible(slug, requester_id)
        memorial.view_count += 1
        await self.storage.update(
            Collections.MEMORIALS, memorial.id, {"view_count": memorial.view_count}
        )
        return memorial

    async def get_visible(self, slug: str, requester_id: str | None) -> Memorial:
        """Memorial behind a slug, or NotFound if the requester may not see it."""
        doc = await self.storage.find_one(Collections.MEMORIALS, {"slug": slug})
        if not doc:
            raise NotFound("Memorial not found")
        memorial = Memorial.model_validate(doc)
        if not self.access.can_view(memorial, requester_id):
            raise NotFound("Memorial not found")
        return memorial

    # =========================================================================
    # Update / trash
    # =========================================================================

    async def update(
        self,
        memorial_id: str,
        user_id: str,
        changes: dict[str, Any],
    ) -> Memorial:
        memorial = await self.get_or_404(memorial_id)
        if not self.access.can_edit(memorial, user_id):
            raise Forbidden("Not authorized to edit this memorial")

        changes = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS}
        if "gallery" in changes and not self.access.can_manage_gallery(memorial, user_id):
            raise Forbidden("Not authorized to manage this gallery")
        if "full_name" in changes:
            full_name = changes["full_name"]
            if not isinstance(full_name, str) or not full_name.strip():
                raise ValidationError("Full name is required")
            changes["full_name"] = full_name.strip()

        data = memorial.model_dump()
        for field, value in changes.items():
            if field == "biography":
                data["biography"]["content"] = value or ""
            else:
                data[field] = value
        updated = _validated(data)

        if "gallery" in changes:
            await self._check_photo_limit(updated)

        await self.save(updated)
        logger.info(f"Memorial {memorial.id} updated by {user_id}: {sorted(changes)}")
        return updated

    async def _check_photo_limit(self, memorial: Memorial) -> None:
        owner = await self.users.get(memorial.owner_id)
        limit = owner.max_photos_per_memorial if owner else None
        if limit is not None and len(memorial.gallery.photos) > limit:
            raise QuotaExceeded(f"A memorial can hold at most {limit} photos")

    async def trash(self, memorial_id: str, user_id: str) -> Memorial:
        memorial = await self.get_or_404(memorial_id)
        if not self.access.can_trash(memorial, user_id):
            raise Forbidden("Not authorized to delete this memorial")

        if not memorial.in_trash:
            memorial.in_trash = True
            memorial.trashed_at = utc_now()
            await self.save(memorial)
            logger.info(f"Memorial {memorial.id} moved to trash")
        return memorial

    # =========================================================================
    # Managers
    # =========================================================================

    async def invite_manager(
        self,
        memorial_id: str,
        owner_id: str,
        manager_email: str,
        permissions: ManagerPermissions | None = None,
    ) -> Manager:
        memorial = await self.get_or_404(memorial_id)
        decision = self.access.authorize(owner_id, memorial, MemorialAction.MANAGE_MANAGERS)
        if not decision:
            raise Forbidden("Only the owner can invite managers")

        invitee = await self.users.get_by_email(manager_email, active_only=True)
        if not invitee:
            raise NotFound("User not found")
        if invitee.id == memorial.owner_id:
            raise ValidationError("The owner cannot be a manager")
        if memorial.get_manager(invitee.id):
            raise ValidationError("User is already a manager")

        manager = Manager(
            user_id=invitee.id,
            permissions=permissions or ManagerPermissions(),
            invited_at=utc_now(),
        )
        memorial.managers.append(manager)
        await self.save(memorial)
        logger.info(f"User {invitee.id} invited to manage memorial {memorial.id}")
        return manager

    async def accept_invitation(self, memorial_id: str, user_id: str) -> Manager:
        memorial = await self.get_or_404(memorial_id)
        manager = memorial.get_manager(user_id)
        if not manager:
            raise NotFound("No invitation for this memorial")

        if not manager.is_accepted:
            manager.accepted_at = utc_now()
            await self.save(memorial)
            logger.info(f"User {user_id} accepted management of memorial {memorial.id}")
        return manager

    # =========================================================================
    # Sharing
    # =========================================================================

    async def record_share(
        self,
        slug: str,
        channel: ShareChannel | str,
        requester_id: str | None,
    ) -> Memorial:
        channel = ShareChannel(channel)
        memorial = await self.get_visible(slug, requester_id)
        counts = memorial.share_count
        setattr(counts, channel.value, getattr(counts, channel.value) + 1)
        await self.storage.update(
            Collections.MEMORIALS, memorial.id, {"share_count": counts.model_dump()}
        )
        return memorial
