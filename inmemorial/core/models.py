"""
Core data models for the memorial platform.

Two aggregates: Users (credentials, account state, quotas) and Memorials
(the nested document behind a public memorial page). Both are stored as
plain JSON documents through MetadataStorage.
"""

from __future__ import annotations

import datetime as dt
from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from inmemorial.core.utils import generate_id, utc_now


# =============================================================================
# Enums
# =============================================================================


class UserRole(str, Enum):
    """Platform-wide role."""

    USER = "user"
    ADMIN = "admin"            # Implicitly holds every permission
    MODERATOR = "moderator"
    SUPPORT = "support"


class AccountStatus(str, Enum):
    """Only ACTIVE accounts may authenticate."""

    ACTIVE = "active"
    SUSPENDED = "suspended"
    DELETED = "deleted"      # Soft-deleted, restorable


class MemorialStatus(str, Enum):
    """Who can see a memorial page."""

    PUBLIC = "public"            # Anyone
    PRIVATE = "private"          # Anyone with the page password
    UNPUBLISHED = "unpublished"  # Owner only


class PhotoShape(str, Enum):
    CIRCLE = "circle"
    SQUARE = "square"
    ROUNDED_SQUARE = "rounded-square"
    HEART = "heart"
    OVAL = "oval"


class CoverSize(str, Enum):
    TALL = "tall"
    MEDIUM = "medium"
    SHORT = "short"


class CoverPosition(str, Enum):
    TOP = "top"
    CENTER = "center"
    BOTTOM = "bottom"


class GalleryDisplayStyle(str, Enum):
    GRID = "grid"
    CAROUSEL = "carousel"


class TimelineOrientation(str, Enum):
    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"


class GuestbookSortOrder(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"


class ShareChannel(str, Enum):
    SOCIAL = "social"
    QR = "qr"
    LINK = "link"


class TributeStatus(str, Enum):
    """Guestbook entries wait for moderation before they are shown."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# =============================================================================
# User
# =============================================================================


class NotificationPreferences(BaseModel):
    tribute_pending: bool = True
    memorial_expiring: bool = True
    status_changes: bool = True
    system_announcements: bool = True


class User(BaseModel):
    """
    A registered user of the platform.

    A user may have no password at all (passwordless accounts log in via
    magic links only). The password hash is write-only as far as the API
    is concerned; see UserResponse for what leaves the server.
    """

    id: str = Field(default_factory=lambda: generate_id("user"))
    email: str  # Stored lowercased
    name: str
    password_hash: str | None = None

    # Authorization
    role: UserRole = UserRole.USER
    custom_permissions: list[str] = Field(default_factory=list)

    # Quotas
    memorial_slots: int = 0
    max_memorials: int | None = None  # None = bounded by slots only
    max_photos_per_memorial: int = 20

    # Email verification (single use)
    email_verified: bool = False
    email_verification_token: str | None = None

    # Magic link (bounded use, time-boxed)
    magic_link_token: str | None = None
    magic_link_expires: datetime | None = None
    magic_link_uses: int = 0

    # Password reset (single use, time-boxed)
    password_reset_token: str | None = None
    password_reset_expires: datetime | None = None

    # Pending email change
    email_change_token: str | None = None
    email_change_new_email: str | None = None
    email_change_expires: datetime | None = None

    notification_preferences: NotificationPreferences = Field(
        default_factory=NotificationPreferences
    )

    # Account state
    account_status: AccountStatus = AccountStatus.ACTIVE
    deleted_at: datetime | None = None
    last_login: datetime | None = None

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def is_active(self) -> bool:
        return self.account_status == AccountStatus.ACTIVE

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    def has_permission(self, permission: str) -> bool:
        """Admins hold every permission; everyone else needs it granted."""
        if self.role == UserRole.ADMIN:
            return True
        return permission in self.custom_permissions

    def soft_delete(self) -> None:
        self.account_status = AccountStatus.DELETED
        self.deleted_at = utc_now()
        self.touch()

    def restore(self) -> None:
        self.account_status = AccountStatus.ACTIVE
        self.deleted_at = None
        self.touch()

    def touch(self) -> None:
        self.updated_at = utc_now()


class UserResponse(BaseModel):
    """User data returned to client (no sensitive fields)."""

    id: str
    email: str
    name: str
    role: UserRole
    email_verified: bool
    memorial_slots: int
    max_memorials: int | None
    max_photos_per_memorial: int
    account_status: AccountStatus
    last_login: datetime | None
    created_at: datetime

    @classmethod
    def from_user(cls, user: User) -> UserResponse:
        return cls.model_validate(user.model_dump())


# =============================================================================
# Memorial content aggregates
# =============================================================================


class ManagerPermissions(BaseModel):
    can_edit: bool = True
    can_moderate: bool = True
    can_manage_gallery: bool = True


class Manager(BaseModel):
    """
    A non-owner user invited to help run a memorial.

    Grants nothing until accepted_at is set.
    """

    user_id: str
    permissions: ManagerPermissions = Field(default_factory=ManagerPermissions)
    invited_at: datetime | None = None
    accepted_at: datetime | None = None

    @property
    def is_accepted(self) -> bool:
        return self.accepted_at is not None


class ProfilePhoto(BaseModel):
    url: str | None = None
    shape: PhotoShape = PhotoShape.CIRCLE
    cropped_data: dict[str, Any] | None = None


class CoverPhoto(BaseModel):
    url: str | None = None
    size: CoverSize = CoverSize.MEDIUM
    position: CoverPosition = CoverPosition.CENTER
    show_gradient: bool = True


class Biography(BaseModel):
    content: str = ""
    show_biography: bool = True


class Photo(BaseModel):
    url: str
    thumbnail: str | None = None
    caption: str | None = None
    order: int = 0
    uploaded_at: datetime = Field(default_factory=utc_now)


class Video(BaseModel):
    url: str
    platform: str | None = None  # youtube, vimeo, ...
    thumbnail: str | None = None
    caption: str | None = None
    autoplay: bool = False
    order: int = 0
    added_at: datetime = Field(default_factory=utc_now)


class Gallery(BaseModel):
    photos: list[Photo] = Field(default_factory=list)
    videos: list[Video] = Field(default_factory=list)
    display_style: GalleryDisplayStyle = GalleryDisplayStyle.GRID
    show_gallery: bool = True


class TimelineEvent(BaseModel):
    date: dt.date | None = None  # field name shadows the type
    year_only: bool = False
    title: str = ""
    description: str | None = None
    photo_ref: str | None = None
    order: int = 0


class Timeline(BaseModel):
    events: list[TimelineEvent] = Field(default_factory=list)
    orientation: TimelineOrientation = TimelineOrientation.VERTICAL
    show_timeline: bool = True


class FamilyMember(BaseModel):
    name: str
    relationship: str | None = None
    description: str | None = None
    order: int = 0


class Favorite(BaseModel):
    category: str
    icon: str | None = None
    content: str = ""
    order: int = 0


class Theme(BaseModel):
    template_id: str | None = None
    accent_color: str | None = None
    heading_font: str | None = None
    body_font: str | None = None
    header_layout: str = "default"


class Guestbook(BaseModel):
    enabled: bool = True
    sort_order: GuestbookSortOrder = GuestbookSortOrder.NEWEST


class ShareCount(BaseModel):
    social: int = 0
    qr: int = 0
    link: int = 0


class SocialPreview(BaseModel):
    title: str | None = None
    description: str | None = None
    image: str | None = None


# =============================================================================
# Memorial
# =============================================================================


class Memorial(BaseModel):
    """
    A memorial page - the top-level container.

    Exactly one owner, any number of managers. The slug is assigned at
    creation and never changes afterwards. Trashed memorials stay in
    storage; they only disappear from the owner's listing and slot count.
    """

    id: str = Field(default_factory=lambda: generate_id("mem"))

    # Ownership
    owner_id: str
    managers: list[Manager] = Field(default_factory=list)

    # Identity / visibility
    slug: str
    status: MemorialStatus = MemorialStatus.UNPUBLISHED
    password_hash: str | None = None  # Page password for PRIVATE memorials
    expiration_date: datetime | None = None
    is_expired: bool = False

    # Subject
    full_name: str
    birth_date: date | None = None
    death_date: date | None = None
    show_dates: bool = True
    profile_photo: ProfilePhoto = Field(default_factory=ProfilePhoto)
    cover_photo: CoverPhoto = Field(default_factory=CoverPhoto)

    # Content
    biography: Biography = Field(default_factory=Biography)
    gallery: Gallery = Field(default_factory=Gallery)
    timeline: Timeline = Field(default_factory=Timeline)
    family_members: list[FamilyMember] = Field(default_factory=list)
    show_family: bool = True
    favorites: list[Favorite] = Field(default_factory=list)
    show_favorites: bool = True
    theme: Theme = Field(default_factory=Theme)
    guestbook: Guestbook = Field(default_factory=Guestbook)

    # Counters
    view_count: int = 0
    unique_views: int = 0
    share_count: ShareCount = Field(default_factory=ShareCount)
    social_preview: SocialPreview = Field(default_factory=SocialPreview)

    # Soft deletion
    in_trash: bool = False
    trashed_at: datetime | None = None

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def get_manager(self, user_id: str) -> Manager | None:
        """Manager entry for this user, accepted or not."""
        for manager in self.managers:
            if manager.user_id == user_id:
                return manager
        return None

    def to_public_dict(self) -> dict[str, Any]:
        """Serializable view without the page password hash."""
        return self.model_dump(mode="json", exclude={"password_hash"})

    def touch(self) -> None:
        self.updated_at = utc_now()


# =============================================================================
# Tribute
# =============================================================================


class TributeFlags(BaseModel):
    has_profanity: bool = False
    flagged_words: list[str] = Field(default_factory=list)
    custom_flags: list[str] = Field(default_factory=list)


class Tribute(BaseModel):
    """
    A guestbook entry left on a memorial page.

    Anyone who can see the memorial may leave one; it only appears on
    the page once someone allowed to moderate has approved it.
    """

    id: str = Field(default_factory=lambda: generate_id("trib"))
    memorial_id: str

    author_name: str = Field(min_length=1, max_length=250)
    message: str = Field(min_length=1)

    # Moderation
    status: TributeStatus = TributeStatus.PENDING
    flagged: TributeFlags = Field(default_factory=TributeFlags)
    moderated_by: str | None = None
    moderated_at: datetime | None = None
    rejection_reason: str | None = None

    ip_address: str | None = None  # Never returned

    submitted_at: datetime = Field(default_factory=utc_now)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def to_public_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude={"ip_address"})

    def touch(self) -> None:
        self.updated_at = utc_now()
