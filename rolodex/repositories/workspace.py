"""Workspace repository."""

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from rolodex.db.tables import MembershipRow, WorkspaceRow
from rolodex.models.common import MembershipStatus, utc_now


class WorkspaceRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, workspace_id: UUID, name: str,
                     owner_id: UUID) -> WorkspaceRow:
        now = utc_now()
        row = WorkspaceRow(
            workspace_id=workspace_id, name=name, owner_id=owner_id,
            created_at=now, updated_at=now,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def get(self, workspace_id: UUID) -> WorkspaceRow | None:
        return await self._session.get(WorkspaceRow, workspace_id)

    async def get_many(self, workspace_ids: list[UUID]) -> dict[UUID, WorkspaceRow]:
        if not workspace_ids:
            return {}
        result = await self._session.execute(
            select(WorkspaceRow).where(WorkspaceRow.workspace_id.in_(workspace_ids))
        )
        return {row.workspace_id: row for row in result.scalars().all()}

    async def list_for_principal(
        self, principal_id: UUID,
    ) -> list[tuple[WorkspaceRow, str]]:
        """Workspaces where the principal holds an active membership, oldest first."""
        result = await self._session.execute(
            select(WorkspaceRow, MembershipRow.role)
            .join(MembershipRow, MembershipRow.workspace_id == WorkspaceRow.workspace_id)
            .where(
                MembershipRow.principal_id == principal_id,
                MembershipRow.status == MembershipStatus.ACTIVE.value,
            )
            .order_by(WorkspaceRow.created_at, WorkspaceRow.workspace_id)
        )
        return [(row, role) for row, role in result.all()]

    async def set_owner(self, workspace_id: UUID, owner_id: UUID) -> None:
        await self._session.execute(
            update(WorkspaceRow)
            .where(WorkspaceRow.workspace_id == workspace_id)
            .values(owner_id=owner_id, updated_at=utc_now())
        )
