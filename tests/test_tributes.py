"""
Tests for the guestbook: submitting tributes and moderating them.
"""

from datetime import timedelta

import pytest

from inmemorial.core.errors import Forbidden, NotFound, ValidationError
from inmemorial.core.models import ManagerPermissions, MemorialStatus, TributeStatus


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
async def memorial(memorials, owner):
    created = await memorials.create(owner, {"full_name": "Jane Doe"})
    return await memorials.update(created.id, owner.id, {"status": MemorialStatus.PUBLIC})


async def _manager(memorials, memorial, owner, user, **flags):
    await memorials.invite_manager(memorial.id, owner.id, user.email, ManagerPermissions(**flags))
    await memorials.accept_invitation(memorial.id, user.id)


async def _submitted_in_order(tributes, memorial, *names):
    """Submit one tribute per name, each a minute after the previous one."""
    submitted = []
    for i, name in enumerate(names):
        tribute = await tributes.submit(memorial.slug, name, f"Message from {name}")
        tribute.submitted_at = tribute.submitted_at + timedelta(minutes=i)
        submitted.append(await tributes.save(tribute))
    return submitted


# =============================================================================
# Submitting
# =============================================================================


class TestSubmit:
    @pytest.mark.asyncio
    async def test_submit_is_pending(self, tributes, memorial):
        tribute = await tributes.submit(
            memorial.slug, "  Aunt May ", " She was kind. ", ip_address="10.0.0.1"
        )

        assert tribute.status == TributeStatus.PENDING
        assert tribute.memorial_id == memorial.id
        assert tribute.author_name == "Aunt May"
        assert tribute.message == "She was kind."
        assert (await tributes.get(tribute.id)).ip_address == "10.0.0.1"

    @pytest.mark.asyncio
    async def test_closed_guestbook(self, tributes, memorials, memorial, owner):
        await memorials.update(memorial.id, owner.id, {"guestbook": {"enabled": False}})

        with pytest.raises(Forbidden):
            await tributes.submit(memorial.slug, "Aunt May", "She was kind.")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("author_name,message", [("", "Hello"), ("May", "   "), (None, None)])
    async def test_blank_fields(self, tributes, memorial, author_name, message):
        with pytest.raises(ValidationError):
            await tributes.submit(memorial.slug, author_name, message)

    @pytest.mark.asyncio
    async def test_author_name_too_long(self, tributes, memorial):
        with pytest.raises(ValidationError):
            await tributes.submit(memorial.slug, "x" * 251, "Hello")

    @pytest.mark.asyncio
    async def test_hidden_memorial(self, tributes, memorials, memorial, owner):
        await memorials.update(memorial.id, owner.id, {"status": MemorialStatus.UNPUBLISHED})

        with pytest.raises(NotFound):
            await tributes.submit(memorial.slug, "Aunt May", "She was kind.")

        # The owner can still see (and sign) their own draft
        tribute = await tributes.submit(memorial.slug, "Olivia", "Draft note", requester_id=owner.id)
        assert tribute.status == TributeStatus.PENDING


# =============================================================================
# Public listing
# =============================================================================


class TestListApproved:
    @pytest.mark.asyncio
    async def test_only_approved_listed(self, tributes, memorial, owner):
        first, second = await _submitted_in_order(tributes, memorial, "Ann", "Bob")
        await tributes.approve(memorial.id, first.id, owner.id)

        listed = await tributes.list_approved(memorial.slug)

        assert [t.id for t in listed] == [first.id]

    @pytest.mark.asyncio
    async def test_newest_first_by_default(self, tributes, memorial, owner):
        submitted = await _submitted_in_order(tributes, memorial, "Ann", "Bob", "Cat")
        for tribute in submitted:
            await tributes.approve(memorial.id, tribute.id, owner.id)

        listed = await tributes.list_approved(memorial.slug)

        assert [t.author_name for t in listed] == ["Cat", "Bob", "Ann"]

    @pytest.mark.asyncio
    async def test_oldest_first(self, tributes, memorials, memorial, owner):
        await memorials.update(memorial.id, owner.id, {"guestbook": {"sort_order": "oldest"}})
        submitted = await _submitted_in_order(tributes, memorial, "Ann", "Bob", "Cat")
        for tribute in submitted:
            await tributes.approve(memorial.id, tribute.id, owner.id)

        listed = await tributes.list_approved(memorial.slug)

        assert [t.author_name for t in listed] == ["Ann", "Bob", "Cat"]

    @pytest.mark.asyncio
    async def test_closed_guestbook_lists_nothing(self, tributes, memorials, memorial, owner):
        (tribute,) = await _submitted_in_order(tributes, memorial, "Ann")
        await tributes.approve(memorial.id, tribute.id, owner.id)
        await memorials.update(memorial.id, owner.id, {"guestbook": {"enabled": False}})

        assert await tributes.list_approved(memorial.slug) == []

    @pytest.mark.asyncio
    async def test_unknown_slug(self, tributes):
        with pytest.raises(NotFound):
            await tributes.list_approved("nosuchsl")


# =============================================================================
# Moderation
# =============================================================================


class TestModeration:
    @pytest.mark.asyncio
    async def test_owner_approves(self, tributes, memorial, owner):
        (tribute,) = await _submitted_in_order(tributes, memorial, "Ann")

        approved = await tributes.approve(memorial.id, tribute.id, owner.id)

        assert approved.status == TributeStatus.APPROVED
        assert approved.moderated_by == owner.id
        assert approved.moderated_at is not None
        assert (await tributes.get(tribute.id)).status == TributeStatus.APPROVED

    @pytest.mark.asyncio
    async def test_reject_records_reason(self, tributes, memorial, owner):
        (tribute,) = await _submitted_in_order(tributes, memorial, "Ann")

        rejected = await tributes.reject(memorial.id, tribute.id, owner.id, reason="Spam")

        assert rejected.status == TributeStatus.REJECTED
        assert rejected.rejection_reason == "Spam"
        assert await tributes.list_approved(memorial.slug) == []

    @pytest.mark.asyncio
    async def test_approving_clears_reason(self, tributes, memorial, owner):
        (tribute,) = await _submitted_in_order(tributes, memorial, "Ann")
        await tributes.reject(memorial.id, tribute.id, owner.id, reason="Spam")

        approved = await tributes.approve(memorial.id, tribute.id, owner.id)

        assert approved.rejection_reason is None

    @pytest.mark.asyncio
    async def test_manager_with_moderate(self, tributes, memorials, memorial, owner, other_user):
        await _manager(memorials, memorial, owner, other_user, can_moderate=True)
        (tribute,) = await _submitted_in_order(tributes, memorial, "Ann")

        approved = await tributes.approve(memorial.id, tribute.id, other_user.id)

        assert approved.moderated_by == other_user.id

    @pytest.mark.asyncio
    async def test_manager_without_moderate(self, tributes, memorials, memorial, owner, other_user):
        await _manager(memorials, memorial, owner, other_user, can_moderate=False)
        (tribute,) = await _submitted_in_order(tributes, memorial, "Ann")

        with pytest.raises(Forbidden):
            await tributes.approve(memorial.id, tribute.id, other_user.id)
        with pytest.raises(Forbidden):
            await tributes.list_pending(memorial.id, other_user.id)

    @pytest.mark.asyncio
    async def test_pending_invitation_grants_nothing(self, tributes, memorials, memorial, owner, other_user):
        await memorials.invite_manager(memorial.id, owner.id, other_user.email, ManagerPermissions())
        (tribute,) = await _submitted_in_order(tributes, memorial, "Ann")

        with pytest.raises(Forbidden):
            await tributes.reject(memorial.id, tribute.id, other_user.id)

    @pytest.mark.asyncio
    async def test_stranger_cannot_moderate(self, tributes, memorial, other_user):
        (tribute,) = await _submitted_in_order(tributes, memorial, "Ann")

        with pytest.raises(Forbidden):
            await tributes.approve(memorial.id, tribute.id, other_user.id)
        assert (await tributes.get(tribute.id)).status == TributeStatus.PENDING

    @pytest.mark.asyncio
    async def test_tribute_from_other_memorial(self, tributes, memorials, memorial, owner):
        other = await memorials.create(owner, {"full_name": "John Roe"})
        other = await memorials.update(other.id, owner.id, {"status": MemorialStatus.PUBLIC})
        (tribute,) = await _submitted_in_order(tributes, other, "Ann")

        with pytest.raises(NotFound):
            await tributes.approve(memorial.id, tribute.id, owner.id)

    @pytest.mark.asyncio
    async def test_unknown_tribute(self, tributes, memorial, owner):
        with pytest.raises(NotFound):
            await tributes.approve(memorial.id, "trib_missing", owner.id)

    @pytest.mark.asyncio
    async def test_pending_queue_oldest_first(self, tributes, memorial, owner):
        ann, bob, cat = await _submitted_in_order(tributes, memorial, "Ann", "Bob", "Cat")
        await tributes.reject(memorial.id, bob.id, owner.id)

        pending = await tributes.list_pending(memorial.id, owner.id)

        assert [t.id for t in pending] == [ann.id, cat.id]
