"""Workspace registry — a principal's workspaces and current selection."""

import logging
from collections.abc import Awaitable, Callable, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from rolodex.config.settings import Settings, get_settings
from rolodex.db.session import translate_backend_errors
from rolodex.db.tables import WorkspaceRow
from rolodex.errors import NotFoundError, ValidationError
from rolodex.membership.gate import AccessGate
from rolodex.models.common import (
    MembershipRole,
    MembershipStatus,
    new_uuid7,
    utc_now,
)
from rolodex.models.principal import Principal
from rolodex.models.workspace import WorkspaceSummary
from rolodex.repositories.membership import MembershipRepository
from rolodex.repositories.principals import PrincipalRepository
from rolodex.repositories.workspace import WorkspaceRepository

logger = logging.getLogger(__name__)

# Awaited with (principal_id, workspace_id) after the current workspace moves,
# so tenant-scoped collections can re-fetch under the new scope.
ScopeChangeListener = Callable[[UUID, UUID], Awaitable[None]]


class WorkspaceRegistry:
    def __init__(self, session: AsyncSession, settings: Settings | None = None,
                 listeners: Sequence[ScopeChangeListener] = ()) -> None:
        self._settings = settings or get_settings()
        self._workspaces = WorkspaceRepository(session)
        self._memberships = MembershipRepository(session)
        self._principals = PrincipalRepository(session)
        self._gate = AccessGate(session)
        self._listeners = list(listeners)

    def add_listener(self, listener: ScopeChangeListener) -> None:
        self._listeners.append(listener)

    async def _summaries(self, rows: list[tuple[WorkspaceRow, str]]) -> list[WorkspaceSummary]:
        seen: dict[UUID, tuple[WorkspaceRow, str]] = {}
        for row, role in rows:
            previous = seen.get(row.workspace_id)
            if previous is None or role == MembershipRole.OWNER.value:
                seen[row.workspace_id] = (row, role)
        counts = await self._memberships.count_active(list(seen))
        return [
            WorkspaceSummary(
                workspace_id=row.workspace_id,
                name=row.name,
                owner_id=row.owner_id,
                active_member_count=counts.get(row.workspace_id, 0),
                role=MembershipRole(role),
            )
            for row, role in seen.values()
        ]

    @translate_backend_errors
    async def list_workspaces(self, principal_id: UUID) -> list[WorkspaceSummary]:
        """Workspaces where the principal holds an active membership, deduplicated."""
        rows = await self._workspaces.list_for_principal(principal_id)
        return await self._summaries(rows)

    @translate_backend_errors
    async def create_workspace(self, name: str, principal: Principal) -> WorkspaceSummary:
        """Create a workspace with ``principal`` as its active owner.

        Raises:
            ValidationError: If the name is blank or too long.
        """
        cleaned = (name or "").strip()
        if not cleaned or len(cleaned) > 255:
            msg = "Workspace name must be 1-255 characters."
            raise ValidationError(msg)

        workspace = await self._workspaces.create(
            workspace_id=new_uuid7(), name=cleaned, owner_id=principal.principal_id,
        )
        await self._memberships.create(
            membership_id=new_uuid7(),
            workspace_id=workspace.workspace_id,
            principal_id=principal.principal_id,
            email=principal.email,
            role=MembershipRole.OWNER.value,
            status=MembershipStatus.ACTIVE.value,
            invited_by=principal.principal_id,
            accepted_at=utc_now(),
        )
        logger.info(
            "Workspace %s created for principal %s",
            workspace.workspace_id, principal.principal_id,
        )
        return WorkspaceSummary(
            workspace_id=workspace.workspace_id,
            name=workspace.name,
            owner_id=workspace.owner_id,
            active_member_count=1,
            role=MembershipRole.OWNER,
        )

    async def get_or_create_default(self, principal: Principal) -> WorkspaceSummary:
        """The principal's first workspace, created on first use."""
        workspaces = await self.list_workspaces(principal.principal_id)
        if workspaces:
            return workspaces[0]
        return await self.create_workspace(self._settings.DEFAULT_WORKSPACE_NAME, principal)

    @translate_backend_errors
    async def select_current(self, workspace_id: UUID,
                             principal: Principal) -> WorkspaceSummary:
        """Point the principal's current workspace at ``workspace_id``.

        Raises:
            NotFoundError: If the workspace does not exist.
            AuthorizationError: If the principal is not an active member.
        """
        if await self._workspaces.get(workspace_id) is None:
            msg = f"Workspace {workspace_id} not found."
            raise NotFoundError(msg)
        await self._gate.require_active_member(principal.principal_id, workspace_id)

        await self._principals.upsert(
            principal_id=principal.principal_id,
            email=principal.email,
            display_name=principal.display_name,
        )
        await self._principals.set_current_workspace(principal.principal_id, workspace_id)
        logger.info("Principal %s selected workspace %s", principal.principal_id, workspace_id)

        for listener in self._listeners:
            await listener(principal.principal_id, workspace_id)

        summaries = await self.list_workspaces(principal.principal_id)
        return next(s for s in summaries if s.workspace_id == workspace_id)

    @translate_backend_errors
    async def current_workspace(self, principal: Principal) -> WorkspaceSummary:
        """The selected workspace, or the default once the selection lapses."""
        summaries = await self.list_workspaces(principal.principal_id)
        entry = await self._principals.get(principal.principal_id)
        if entry is not None and entry.current_workspace_id is not None:
            for summary in summaries:
                if summary.workspace_id == entry.current_workspace_id:
                    return summary
        if summaries:
            return summaries[0]
        return await self.get_or_create_default(principal)
