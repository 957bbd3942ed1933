"""
Memorial access policy - permission resolution and the visibility gate.

A standalone authorization service: given (actor, memorial, action) it
returns a Decision with a reason. It never touches storage and keeps no
cache, so every call reflects the memorial as it was just loaded.

Usage:
    policy = MemorialAccessPolicy()
    decision = policy.authorize(user_id, memorial, MemorialAction.EDIT)
    if not decision:
        raise Forbidden(decision.reason)
"""

from __future__ import annotations

from dataclasses import dataclass

from inmemorial.auth.capabilities import (
    MANAGER_FLAGS,
    OWNER_ONLY_ACTIONS,
    MemorialAction,
)
from inmemorial.core.models import Memorial, MemorialStatus


@dataclass(frozen=True)
class Decision:
    """Outcome of an authorization check."""

    allowed: bool
    reason: str

    def __bool__(self) -> bool:
        return self.allowed

    @classmethod
    def allow(cls, reason: str) -> Decision:
        return cls(True, reason)

    @classmethod
    def deny(cls, reason: str) -> Decision:
        return cls(False, reason)


class MemorialAccessPolicy:
    """Decides what a requester may do with a memorial."""

    def authorize(
        self,
        actor_id: str | None,
        memorial: Memorial,
        action: MemorialAction | str,
    ) -> Decision:
        action = MemorialAction(action)

        if action == MemorialAction.VIEW:
            return self.can_view(memorial, actor_id)

        if actor_id is None:
            return Decision.deny("authentication required")

        if actor_id == memorial.owner_id:
            return Decision.allow("owner")

        if action in OWNER_ONLY_ACTIONS:
            return Decision.deny(f"only the owner may {action.value}")

        manager = memorial.get_manager(actor_id)
        if manager is None:
            return Decision.deny("not a manager of this memorial")
        if not manager.is_accepted:
            return Decision.deny("manager invitation not accepted")

        flag = MANAGER_FLAGS[action]
        if not getattr(manager.permissions, flag):
            return Decision.deny(f"manager lacks {flag}")
        return Decision.allow(f"manager with {flag}")

    # -------------------------------------------------------------------------
    # Permission resolver
    # -------------------------------------------------------------------------

    def can_edit(self, memorial: Memorial, user_id: str | None) -> bool:
        return self.authorize(user_id, memorial, MemorialAction.EDIT).allowed

    def can_moderate(self, memorial: Memorial, user_id: str | None) -> bool:
        return self.authorize(user_id, memorial, MemorialAction.MODERATE).allowed

    def can_manage_gallery(self, memorial: Memorial, user_id: str | None) -> bool:
        return self.authorize(user_id, memorial, MemorialAction.MANAGE_GALLERY).allowed

    def can_trash(self, memorial: Memorial, user_id: str | None) -> bool:
        return self.authorize(user_id, memorial, MemorialAction.TRASH).allowed

    # -------------------------------------------------------------------------
    # Visibility gate
    # -------------------------------------------------------------------------

    def can_view(self, memorial: Memorial, requester_id: str | None) -> Decision:
        """
        Public pages are open to everyone, unpublished ones to the owner only.

        Private pages pass this gate; the page-password check happens
        elsewhere. Trash does not affect visibility.
        """
        if memorial.status == MemorialStatus.PUBLIC:
            return Decision.allow("public")

        if memorial.status == MemorialStatus.UNPUBLISHED:
            if requester_id is not None and requester_id == memorial.owner_id:
                return Decision.allow("owner")
            return Decision.deny("unpublished")

        return Decision.allow("private")
