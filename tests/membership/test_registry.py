"""Tests for WorkspaceRegistry — listing, creation, default and current workspace."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession
from uuid_extensions import uuid7

from rolodex.config.settings import Settings
from rolodex.errors import AuthorizationError, NotFoundError, ValidationError
from rolodex.membership import InvitationCoordinator, WorkspaceRegistry
from rolodex.models.common import MembershipRole
from rolodex.models.principal import Principal


def _principal(name: str) -> Principal:
    return Principal(principal_id=uuid7(), email=f"{name}@example.com")


@pytest.fixture
def registry(db_session: AsyncSession) -> WorkspaceRegistry:
    return WorkspaceRegistry(db_session, Settings(DEFAULT_WORKSPACE_NAME="My Team"))


class TestCreateWorkspace:
    @pytest.mark.anyio
    async def test_creator_is_active_owner(self, registry) -> None:
        alice = _principal("alice")
        summary = await registry.create_workspace("  Acme  ", alice)
        assert summary.name == "Acme"
        assert summary.owner_id == alice.principal_id
        assert summary.role == MembershipRole.OWNER
        assert summary.active_member_count == 1

    @pytest.mark.anyio
    @pytest.mark.parametrize("name", ["", "   ", "x" * 256])
    async def test_rejects_bad_names(self, registry, name: str) -> None:
        with pytest.raises(ValidationError):
            await registry.create_workspace(name, _principal("alice"))


class TestListWorkspaces:
    @pytest.mark.anyio
    async def test_lists_owned_and_joined(self, db_session, registry) -> None:
        alice, bob = _principal("alice"), _principal("bob")
        mine = await registry.create_workspace("Mine", bob)
        shared = await registry.create_workspace("Shared", alice)
        coordinator = InvitationCoordinator(db_session)
        await coordinator.invite(bob.email, shared.workspace_id, alice.principal_id)
        await coordinator.accept(shared.workspace_id, bob)

        summaries = await registry.list_workspaces(bob.principal_id)
        assert [(s.name, s.role, s.active_member_count) for s in summaries] == [
            ("Mine", MembershipRole.OWNER, 1),
            ("Shared", MembershipRole.MEMBER, 2),
        ]
        assert summaries[0].workspace_id == mine.workspace_id

    @pytest.mark.anyio
    async def test_pending_invites_not_listed(self, db_session, registry) -> None:
        alice, bob = _principal("alice"), _principal("bob")
        shared = await registry.create_workspace("Shared", alice)
        await InvitationCoordinator(db_session).invite(
            bob.email, shared.workspace_id, alice.principal_id,
        )
        assert await registry.list_workspaces(bob.principal_id) == []


class TestDefaultWorkspace:
    @pytest.mark.anyio
    async def test_creates_default_on_first_use(self, registry) -> None:
        alice = _principal("alice")
        created = await registry.get_or_create_default(alice)
        assert created.name == "My Team"
        again = await registry.get_or_create_default(alice)
        assert again.workspace_id == created.workspace_id
        assert len(await registry.list_workspaces(alice.principal_id)) == 1

    @pytest.mark.anyio
    async def test_returns_first_existing(self, registry) -> None:
        alice = _principal("alice")
        first = await registry.create_workspace("First", alice)
        await registry.create_workspace("Second", alice)
        assert (await registry.get_or_create_default(alice)).workspace_id == first.workspace_id


class TestCurrentWorkspace:
    @pytest.mark.anyio
    async def test_select_and_read_back(self, registry) -> None:
        alice = _principal("alice")
        await registry.create_workspace("First", alice)
        second = await registry.create_workspace("Second", alice)

        selected = await registry.select_current(second.workspace_id, alice)
        assert selected.workspace_id == second.workspace_id
        assert (await registry.current_workspace(alice)).workspace_id == second.workspace_id

    @pytest.mark.anyio
    async def test_select_notifies_listeners(self, registry) -> None:
        alice = _principal("alice")
        ws = await registry.create_workspace("First", alice)
        seen: list[tuple] = []

        async def listener(principal_id, workspace_id) -> None:
            seen.append((principal_id, workspace_id))

        registry.add_listener(listener)
        await registry.select_current(ws.workspace_id, alice)
        assert seen == [(alice.principal_id, ws.workspace_id)]

    @pytest.mark.anyio
    async def test_select_requires_membership(self, registry) -> None:
        alice, mallory = _principal("alice"), _principal("mallory")
        ws = await registry.create_workspace("First", alice)
        with pytest.raises(AuthorizationError):
            await registry.select_current(ws.workspace_id, mallory)

    @pytest.mark.anyio
    async def test_select_unknown_workspace(self, registry) -> None:
        with pytest.raises(NotFoundError):
            await registry.select_current(uuid7(), _principal("alice"))

    @pytest.mark.anyio
    async def test_current_falls_back_after_removal(self, db_session, registry) -> None:
        alice, bob = _principal("alice"), _principal("bob")
        home = await registry.create_workspace("Home", bob)
        shared = await registry.create_workspace("Shared", alice)
        coordinator = InvitationCoordinator(db_session)
        await coordinator.invite(bob.email, shared.workspace_id, alice.principal_id)
        joined = await coordinator.accept(shared.workspace_id, bob)
        await registry.select_current(shared.workspace_id, bob)

        await coordinator.remove(joined.membership_id, alice.principal_id)
        assert (await registry.current_workspace(bob)).workspace_id == home.workspace_id

    @pytest.mark.anyio
    async def test_current_without_workspaces_creates_default(self, registry) -> None:
        current = await registry.current_workspace(_principal("alice"))
        assert current.name == "My Team"
        assert current.role == MembershipRole.OWNER
