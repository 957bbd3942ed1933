"""
Permissions and memorial actions.

This defines WHAT users can do, not HOW we check it.
Platform permissions are checked against the user record
(User.has_permission); memorial actions are checked by access.py.
"""

from enum import Enum


class Permission(str, Enum):
    """
    Platform-wide permissions.

    Admins implicitly hold all of these. Other roles get them only
    through User.custom_permissions.
    """

    MANAGE_USERS = "manage_users"
    MANAGE_MEMORIALS = "manage_memorials"
    MODERATE_TRIBUTES = "moderate_tributes"
    MANAGE_SETTINGS = "manage_settings"
    VIEW_ANALYTICS = "view_analytics"


class MemorialAction(str, Enum):
    """Things a requester can try to do to a single memorial."""

    VIEW = "view"
    EDIT = "edit"
    MODERATE = "moderate"
    MANAGE_GALLERY = "manage_gallery"
    TRASH = "trash"                      # Owner only
    MANAGE_MANAGERS = "manage_managers"  # Owner only


# Which ManagerPermissions flag unlocks each delegable action
MANAGER_FLAGS: dict[MemorialAction, str] = {
    MemorialAction.EDIT: "can_edit",
    MemorialAction.MODERATE: "can_moderate",
    MemorialAction.MANAGE_GALLERY: "can_manage_gallery",
}

OWNER_ONLY_ACTIONS: frozenset[MemorialAction] = frozenset({
    MemorialAction.TRASH,
    MemorialAction.MANAGE_MANAGERS,
})
