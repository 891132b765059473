"""Tests for MembershipRepository and WorkspaceRepository against in-memory SQLite."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession
from uuid_extensions import uuid7

from rolodex.models.common import MembershipRole, MembershipStatus, utc_now
from rolodex.repositories.membership import MembershipRepository
from rolodex.repositories.workspace import WorkspaceRepository


async def _workspace(session: AsyncSession, owner_id=None):
    owner_id = owner_id or uuid7()
    ws = await WorkspaceRepository(session).create(
        workspace_id=uuid7(), name="Acme", owner_id=owner_id,
    )
    return ws, owner_id


async def _active(repo: MembershipRepository, workspace_id, principal_id, email,
                  role=MembershipRole.MEMBER):
    return await repo.create(
        membership_id=uuid7(), workspace_id=workspace_id, email=email,
        role=role.value, status=MembershipStatus.ACTIVE.value,
        principal_id=principal_id, accepted_at=utc_now(),
    )


async def _pending(repo: MembershipRepository, workspace_id, email, invited_by=None):
    return await repo.create(
        membership_id=uuid7(), workspace_id=workspace_id, email=email,
        role=MembershipRole.MEMBER.value, status=MembershipStatus.PENDING.value,
        invited_by=invited_by,
    )


class TestMembershipQueries:
    @pytest.mark.anyio
    async def test_find_pending_and_active(self, db_session: AsyncSession) -> None:
        ws, owner_id = await _workspace(db_session)
        repo = MembershipRepository(db_session)
        owner = await _active(repo, ws.workspace_id, owner_id, "owner@example.com",
                              MembershipRole.OWNER)
        invite = await _pending(repo, ws.workspace_id, "bob@example.com", owner_id)

        assert (await repo.find_pending(ws.workspace_id, "bob@example.com")).membership_id == invite.membership_id
        assert await repo.find_pending(ws.workspace_id, "owner@example.com") is None
        assert (await repo.find_active(ws.workspace_id, owner_id)).membership_id == owner.membership_id
        assert (await repo.find_active_by_email(ws.workspace_id, "owner@example.com")) is not None
        assert await repo.find_active_by_email(ws.workspace_id, "bob@example.com") is None

    @pytest.mark.anyio
    async def test_list_by_workspace_ordered_by_invite_time(self, db_session: AsyncSession) -> None:
        ws, owner_id = await _workspace(db_session)
        repo = MembershipRepository(db_session)
        first = await _active(repo, ws.workspace_id, owner_id, "owner@example.com",
                              MembershipRole.OWNER)
        second = await _pending(repo, ws.workspace_id, "bob@example.com")
        third = await _pending(repo, ws.workspace_id, "carol@example.com")

        rows = await repo.list_by_workspace(ws.workspace_id)
        assert [r.membership_id for r in rows] == [
            first.membership_id, second.membership_id, third.membership_id,
        ]

    @pytest.mark.anyio
    async def test_count_active_zero_fills(self, db_session: AsyncSession) -> None:
        ws, owner_id = await _workspace(db_session)
        empty, _ = await _workspace(db_session)
        repo = MembershipRepository(db_session)
        await _active(repo, ws.workspace_id, owner_id, "owner@example.com", MembershipRole.OWNER)
        await _pending(repo, ws.workspace_id, "bob@example.com")

        counts = await repo.count_active([ws.workspace_id, empty.workspace_id])
        assert counts == {ws.workspace_id: 1, empty.workspace_id: 0}

    @pytest.mark.anyio
    async def test_list_pending_for_email_spans_workspaces(self, db_session: AsyncSession) -> None:
        ws1, _ = await _workspace(db_session)
        ws2, _ = await _workspace(db_session)
        repo = MembershipRepository(db_session)
        await _pending(repo, ws1.workspace_id, "bob@example.com")
        await _pending(repo, ws2.workspace_id, "bob@example.com")
        await _pending(repo, ws2.workspace_id, "carol@example.com")

        rows = await repo.list_pending_for_email("bob@example.com")
        assert {r.workspace_id for r in rows} == {ws1.workspace_id, ws2.workspace_id}


class TestConditionalWrites:
    @pytest.mark.anyio
    async def test_update_if_status_applies_when_matching(self, db_session: AsyncSession) -> None:
        ws, _ = await _workspace(db_session)
        repo = MembershipRepository(db_session)
        invite = await _pending(repo, ws.workspace_id, "bob@example.com")
        principal_id = uuid7()

        row = await repo.update_if_status(
            invite.membership_id,
            expected_status=MembershipStatus.PENDING.value,
            status=MembershipStatus.ACTIVE.value,
            principal_id=principal_id,
        )
        assert row is not None
        assert row.status == MembershipStatus.ACTIVE.value
        assert row.principal_id == principal_id

    @pytest.mark.anyio
    async def test_update_if_status_reports_lost_race(self, db_session: AsyncSession) -> None:
        ws, owner_id = await _workspace(db_session)
        repo = MembershipRepository(db_session)
        member = await _active(repo, ws.workspace_id, uuid7(), "bob@example.com")

        first = await repo.update_if_status(
            member.membership_id,
            expected_status=MembershipStatus.ACTIVE.value,
            status=MembershipStatus.REMOVED.value,
            removed_by=owner_id,
        )
        assert first is not None
        second = await repo.update_if_status(
            member.membership_id,
            expected_status=MembershipStatus.ACTIVE.value,
            status=MembershipStatus.REMOVED.value,
            removed_by=uuid7(),
        )
        assert second is None
        current = await repo.refresh(member.membership_id)
        assert current.removed_by == owner_id

    @pytest.mark.anyio
    async def test_update_if_status_checks_expected_role(self, db_session: AsyncSession) -> None:
        ws, owner_id = await _workspace(db_session)
        repo = MembershipRepository(db_session)
        owner = await _active(repo, ws.workspace_id, owner_id, "owner@example.com",
                              MembershipRole.OWNER)

        row = await repo.update_if_status(
            owner.membership_id,
            expected_status=MembershipStatus.ACTIVE.value,
            expected_role=MembershipRole.MEMBER.value,
            role=MembershipRole.OWNER.value,
        )
        assert row is None

    @pytest.mark.anyio
    async def test_delete_if_pending(self, db_session: AsyncSession) -> None:
        ws, _ = await _workspace(db_session)
        repo = MembershipRepository(db_session)
        invite = await _pending(repo, ws.workspace_id, "bob@example.com")

        assert await repo.delete_if_pending(invite.membership_id) is True
        assert await repo.get(invite.membership_id) is None
        assert await repo.delete_if_pending(invite.membership_id) is False

    @pytest.mark.anyio
    async def test_delete_if_pending_ignores_active_rows(self, db_session: AsyncSession) -> None:
        ws, owner_id = await _workspace(db_session)
        repo = MembershipRepository(db_session)
        owner = await _active(repo, ws.workspace_id, owner_id, "owner@example.com",
                              MembershipRole.OWNER)

        assert await repo.delete_if_pending(owner.membership_id) is False
        assert await repo.get(owner.membership_id) is not None


class TestWorkspaceRepository:
    @pytest.mark.anyio
    async def test_list_for_principal_only_active(self, db_session: AsyncSession) -> None:
        principal_id = uuid7()
        ws1, _ = await _workspace(db_session, principal_id)
        ws2, _ = await _workspace(db_session)
        ws3, _ = await _workspace(db_session)
        repo = MembershipRepository(db_session)
        await _active(repo, ws1.workspace_id, principal_id, "me@example.com", MembershipRole.OWNER)
        await _active(repo, ws2.workspace_id, principal_id, "me@example.com")
        removed = await _active(repo, ws3.workspace_id, principal_id, "me@example.com")
        await repo.update_if_status(
            removed.membership_id,
            expected_status=MembershipStatus.ACTIVE.value,
            status=MembershipStatus.REMOVED.value,
        )

        rows = await WorkspaceRepository(db_session).list_for_principal(principal_id)
        assert [(ws.workspace_id, role) for ws, role in rows] == [
            (ws1.workspace_id, "owner"), (ws2.workspace_id, "member"),
        ]

    @pytest.mark.anyio
    async def test_get_many(self, db_session: AsyncSession) -> None:
        ws1, _ = await _workspace(db_session)
        ws2, _ = await _workspace(db_session)
        repo = WorkspaceRepository(db_session)

        found = await repo.get_many([ws1.workspace_id, ws2.workspace_id, uuid7()])
        assert set(found) == {ws1.workspace_id, ws2.workspace_id}
        assert await repo.get_many([]) == {}

    @pytest.mark.anyio
    async def test_set_owner(self, db_session: AsyncSession) -> None:
        ws, _ = await _workspace(db_session)
        workspace_id = ws.workspace_id
        new_owner = uuid7()
        repo = WorkspaceRepository(db_session)

        await repo.set_owner(workspace_id, new_owner)
        row = await repo.get(workspace_id)
        await db_session.refresh(row)
        assert row.owner_id == new_owner
