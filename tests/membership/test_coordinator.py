"""Tests for InvitationCoordinator — the end-to-end membership flows.

Covers: invite/accept, owner removal cutting off tenant reads, sole-owner
leave refusal, ownership transfer ordering and atomicity, and the
invitee's pending-invite view.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from uuid_extensions import uuid7

from rolodex.db.tables import WorkspaceRow
from rolodex.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    OwnershipTransferRequiredError,
    ValidationError,
)
from rolodex.membership import InvitationCoordinator, WorkspaceRegistry
from rolodex.models.common import MembershipRole, MembershipStatus
from rolodex.models.principal import Principal
from rolodex.repositories.membership import MembershipRepository
from rolodex.repositories.principals import PrincipalRepository
from rolodex.tenancy.scope import EntityKind, TenantScope


def _principal(name: str) -> Principal:
    return Principal(principal_id=uuid7(), email=f"{name}@x.com", display_name=name.capitalize())


@pytest.fixture
def alice() -> Principal:
    return _principal("a")


@pytest.fixture
def bob() -> Principal:
    return _principal("b")


@pytest.fixture
def coordinator(db_session: AsyncSession) -> InvitationCoordinator:
    return InvitationCoordinator(db_session)


@pytest.fixture
async def workspace_id(db_session: AsyncSession, alice: Principal):
    summary = await WorkspaceRegistry(db_session).create_workspace("W", alice)
    return summary.workspace_id


async def _statuses(session: AsyncSession, workspace_id) -> dict:
    rows = await MembershipRepository(session).list_by_workspace(workspace_id)
    return {row.email: (row.role, row.status) for row in rows}


# ===================================================================
# Invite and accept
# ===================================================================


class TestInviteAccept:
    @pytest.mark.anyio
    async def test_invite_then_accept(self, coordinator, workspace_id, alice, bob) -> None:
        invite = await coordinator.invite("b@x.com", workspace_id, alice.principal_id)
        assert invite.status == MembershipStatus.PENDING

        accepted = await coordinator.accept(workspace_id, bob)
        assert accepted.status == MembershipStatus.ACTIVE
        assert accepted.principal_id == bob.principal_id

    @pytest.mark.anyio
    async def test_cancel_delegates(self, db_session, coordinator, workspace_id, alice) -> None:
        await coordinator.invite("b@x.com", workspace_id, alice.principal_id)
        await coordinator.cancel("b@x.com", workspace_id, alice.principal_id)
        assert "b@x.com" not in await _statuses(db_session, workspace_id)


# ===================================================================
# Removal
# ===================================================================


class TestRemove:
    @pytest.mark.anyio
    async def test_removed_member_loses_tenant_access(self, db_session, coordinator,
                                                      workspace_id, alice, bob) -> None:
        await coordinator.invite(bob.email, workspace_id, alice.principal_id)
        joined = await coordinator.accept(workspace_id, bob)
        scope = await TenantScope.open(db_session, workspace_id, bob.principal_id)
        await scope.create(EntityKind.COMPANY, {"name": "Acme"})

        removed = await coordinator.remove(joined.membership_id, alice.principal_id, workspace_id)
        assert removed.status == MembershipStatus.REMOVED

        with pytest.raises(AuthorizationError):
            await TenantScope.open(db_session, workspace_id, bob.principal_id)


# ===================================================================
# Leave
# ===================================================================


class TestLeave:
    @pytest.mark.anyio
    async def test_sole_owner_cannot_leave(self, db_session, coordinator,
                                           workspace_id, alice) -> None:
        before = await _statuses(db_session, workspace_id)
        with pytest.raises(OwnershipTransferRequiredError):
            await coordinator.leave(workspace_id, alice.principal_id)
        assert await _statuses(db_session, workspace_id) == before

    @pytest.mark.anyio
    async def test_member_leaves(self, db_session, coordinator, workspace_id, alice, bob) -> None:
        await coordinator.invite(bob.email, workspace_id, alice.principal_id)
        await coordinator.accept(workspace_id, bob)

        left = await coordinator.leave(workspace_id, bob.principal_id)
        assert left.status == MembershipStatus.REMOVED
        assert left.removed_by == bob.principal_id

    @pytest.mark.anyio
    async def test_leave_twice_not_found(self, coordinator, workspace_id, alice, bob) -> None:
        await coordinator.invite(bob.email, workspace_id, alice.principal_id)
        await coordinator.accept(workspace_id, bob)
        await coordinator.leave(workspace_id, bob.principal_id)
        with pytest.raises(NotFoundError):
            await coordinator.leave(workspace_id, bob.principal_id)


# ===================================================================
# Ownership transfer
# ===================================================================


class TestTransferOwnership:
    @pytest.mark.anyio
    async def test_transfer_promotes_then_removes(self, db_session, coordinator,
                                                  workspace_id, alice, bob) -> None:
        await coordinator.invite(bob.email, workspace_id, alice.principal_id)
        await coordinator.accept(workspace_id, bob)

        calls: list[str] = []
        ledger = coordinator.ledger
        promote, retire = ledger.promote, ledger.retire

        async def spy_promote(target):
            calls.append("promote")
            return await promote(target)

        async def spy_retire(target, **kwargs):
            calls.append("retire")
            return await retire(target, **kwargs)

        ledger.promote = spy_promote
        ledger.retire = spy_retire

        result = await coordinator.transfer_ownership(
            workspace_id, alice.principal_id, bob.principal_id,
        )
        assert calls == ["promote", "retire"]
        assert result.new_owner.role == MembershipRole.OWNER
        assert result.new_owner.principal_id == bob.principal_id
        assert result.previous_owner.status == MembershipStatus.REMOVED
        assert result.previous_owner.removed_by == alice.principal_id

        assert await _statuses(db_session, workspace_id) == {
            "a@x.com": ("owner", "removed"),
            "b@x.com": ("owner", "active"),
        }
        workspace = await db_session.get(WorkspaceRow, workspace_id, populate_existing=True)
        assert workspace.owner_id == bob.principal_id

    @pytest.mark.anyio
    async def test_second_transfer_after_removal_fails(self, coordinator, workspace_id,
                                                      alice, bob) -> None:
        await coordinator.invite(bob.email, workspace_id, alice.principal_id)
        await coordinator.accept(workspace_id, bob)
        await coordinator.transfer_ownership(workspace_id, alice.principal_id, bob.principal_id)

        with pytest.raises(NotFoundError):
            await coordinator.transfer_ownership(
                workspace_id, alice.principal_id, bob.principal_id,
            )

    @pytest.mark.anyio
    async def test_member_cannot_transfer(self, coordinator, workspace_id, alice, bob) -> None:
        await coordinator.invite(bob.email, workspace_id, alice.principal_id)
        await coordinator.accept(workspace_id, bob)
        with pytest.raises(AuthorizationError):
            await coordinator.transfer_ownership(
                workspace_id, bob.principal_id, alice.principal_id,
            )

    @pytest.mark.anyio
    async def test_transfer_to_self_rejected(self, coordinator, workspace_id, alice) -> None:
        with pytest.raises(ValidationError):
            await coordinator.transfer_ownership(
                workspace_id, alice.principal_id, alice.principal_id,
            )

    @pytest.mark.anyio
    async def test_transfer_to_non_member_rejected(self, db_session, coordinator,
                                                   workspace_id, alice, bob) -> None:
        await coordinator.invite(bob.email, workspace_id, alice.principal_id)
        with pytest.raises(ValidationError):
            await coordinator.transfer_ownership(
                workspace_id, alice.principal_id, bob.principal_id,
            )
        assert (await _statuses(db_session, workspace_id))["a@x.com"] == ("owner", "active")

    @pytest.mark.anyio
    async def test_transfer_retry_with_owner_target_skips_promotion(
        self, db_session, coordinator, workspace_id, alice, bob,
    ) -> None:
        await coordinator.invite(bob.email, workspace_id, alice.principal_id)
        await coordinator.accept(workspace_id, bob)
        repo = MembershipRepository(db_session)
        bob_row = await repo.find_active(workspace_id, bob.principal_id)
        await repo.update_if_status(
            bob_row.membership_id,
            expected_status=MembershipStatus.ACTIVE.value,
            role=MembershipRole.OWNER.value,
        )

        result = await coordinator.transfer_ownership(
            workspace_id, alice.principal_id, bob.principal_id,
        )
        assert result.new_owner.membership_id == bob_row.membership_id
        assert result.previous_owner.status == MembershipStatus.REMOVED


class TestTransferAtomicity:
    """A failure while removing the old owner rolls the promotion back."""

    @pytest.mark.anyio
    async def test_failed_removal_keeps_single_owner(self, db_engine) -> None:
        factory = async_sessionmaker(db_engine, expire_on_commit=False)
        alice, bob = _principal("a"), _principal("b")

        async with factory() as session:
            summary = await WorkspaceRegistry(session).create_workspace("W", alice)
            coordinator = InvitationCoordinator(session)
            await coordinator.invite(bob.email, summary.workspace_id, alice.principal_id)
            await coordinator.accept(summary.workspace_id, bob)
            await session.commit()
        workspace_id = summary.workspace_id

        async def failing_retire(target, **kwargs):
            raise ConflictError("Membership changed concurrently.")

        with pytest.raises(ConflictError):
            async with factory() as session, session.begin():
                coordinator = InvitationCoordinator(session)
                coordinator.ledger.retire = failing_retire
                await coordinator.transfer_ownership(
                    workspace_id, alice.principal_id, bob.principal_id,
                )

        async with factory() as session:
            assert await _statuses(session, workspace_id) == {
                "a@x.com": ("owner", "active"),
                "b@x.com": ("member", "active"),
            }
            workspace = await session.get(WorkspaceRow, workspace_id)
            assert workspace.owner_id == alice.principal_id


# ===================================================================
# Invitee view
# ===================================================================


class TestPendingInvites:
    @pytest.mark.anyio
    async def test_lists_invites_across_workspaces(self, db_session, coordinator,
                                                   alice, bob) -> None:
        await PrincipalRepository(db_session).upsert(
            principal_id=alice.principal_id, email=alice.email, display_name="Alice",
        )
        registry = WorkspaceRegistry(db_session)
        first = await registry.create_workspace("First", alice)
        second = await registry.create_workspace("Second", alice)
        await coordinator.invite(bob.email, first.workspace_id, alice.principal_id)
        await coordinator.invite(bob.email, second.workspace_id, alice.principal_id)
        await coordinator.invite("c@x.com", second.workspace_id, alice.principal_id)

        invites = await coordinator.list_my_pending_invites(bob)
        assert [i.workspace_name for i in invites] == ["First", "Second"]
        assert all(i.inviter_email == alice.email for i in invites)
        assert all(i.inviter_name == "Alice" for i in invites)

    @pytest.mark.anyio
    async def test_unknown_inviter_left_empty(self, coordinator, workspace_id, alice, bob) -> None:
        await coordinator.invite(bob.email, workspace_id, alice.principal_id)
        (invite,) = await coordinator.list_my_pending_invites(bob)
        assert invite.workspace_name == "W"
        assert invite.invited_by == alice.principal_id
        assert invite.inviter_email is None

    @pytest.mark.anyio
    async def test_accepted_invites_not_listed(self, coordinator, workspace_id, alice, bob) -> None:
        await coordinator.invite(bob.email, workspace_id, alice.principal_id)
        await coordinator.accept(workspace_id, bob)
        assert await coordinator.list_my_pending_invites(bob) == []
