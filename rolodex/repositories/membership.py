"""Membership repository.

Status changes go through ``update_if_status``/``delete_if_pending``: both are
single conditional statements guarded by the row's expected prior status and
report a lost race by returning None/False instead of overwriting.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from rolodex.db.tables import MembershipRow
from rolodex.models.common import MembershipRole, MembershipStatus, utc_now


class MembershipRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, membership_id: UUID, workspace_id: UUID,
                     email: str, role: str, status: str,
                     principal_id: UUID | None = None,
                     invited_by: UUID | None = None,
                     accepted_at: datetime | None = None) -> MembershipRow:
        row = MembershipRow(
            membership_id=membership_id, workspace_id=workspace_id,
            principal_id=principal_id, email=email, role=role, status=status,
            invited_by=invited_by, invited_at=utc_now(), accepted_at=accepted_at,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def get(self, membership_id: UUID) -> MembershipRow | None:
        return await self._session.get(MembershipRow, membership_id)

    async def refresh(self, membership_id: UUID) -> MembershipRow | None:
        return await self._session.get(
            MembershipRow, membership_id, populate_existing=True,
        )

    async def list_by_workspace(self, workspace_id: UUID) -> list[MembershipRow]:
        result = await self._session.execute(
            select(MembershipRow)
            .where(MembershipRow.workspace_id == workspace_id)
            .order_by(MembershipRow.invited_at, MembershipRow.membership_id)
        )
        return list(result.scalars().all())

    async def find_pending(self, workspace_id: UUID, email: str) -> MembershipRow | None:
        result = await self._session.execute(
            select(MembershipRow).where(
                MembershipRow.workspace_id == workspace_id,
                MembershipRow.email == email,
                MembershipRow.status == MembershipStatus.PENDING.value,
            )
        )
        return result.scalars().first()

    async def find_active(self, workspace_id: UUID,
                          principal_id: UUID) -> MembershipRow | None:
        result = await self._session.execute(
            select(MembershipRow).where(
                MembershipRow.workspace_id == workspace_id,
                MembershipRow.principal_id == principal_id,
                MembershipRow.status == MembershipStatus.ACTIVE.value,
            )
        )
        return result.scalars().first()

    async def find_active_by_email(self, workspace_id: UUID,
                                   email: str) -> MembershipRow | None:
        result = await self._session.execute(
            select(MembershipRow).where(
                MembershipRow.workspace_id == workspace_id,
                MembershipRow.email == email,
                MembershipRow.status == MembershipStatus.ACTIVE.value,
            )
        )
        return result.scalars().first()

    async def list_pending_for_email(self, email: str) -> list[MembershipRow]:
        result = await self._session.execute(
            select(MembershipRow)
            .where(
                MembershipRow.email == email,
                MembershipRow.status == MembershipStatus.PENDING.value,
            )
            .order_by(MembershipRow.invited_at, MembershipRow.membership_id)
        )
        return list(result.scalars().all())

    async def list_active_owners(self, workspace_id: UUID) -> list[MembershipRow]:
        result = await self._session.execute(
            select(MembershipRow).where(
                MembershipRow.workspace_id == workspace_id,
                MembershipRow.status == MembershipStatus.ACTIVE.value,
                MembershipRow.role == MembershipRole.OWNER.value,
            )
        )
        return list(result.scalars().all())

    async def count_active(self, workspace_ids: list[UUID]) -> dict[UUID, int]:
        if not workspace_ids:
            return {}
        result = await self._session.execute(
            select(MembershipRow.workspace_id, func.count())
            .where(
                MembershipRow.workspace_id.in_(workspace_ids),
                MembershipRow.status == MembershipStatus.ACTIVE.value,
            )
            .group_by(MembershipRow.workspace_id)
        )
        counts = {wid: 0 for wid in workspace_ids}
        counts.update({wid: n for wid, n in result.all()})
        return counts

    async def update_if_status(self, membership_id: UUID, *,
                               expected_status: str,
                               expected_role: str | None = None,
                               **values: object) -> MembershipRow | None:
        """Apply ``values`` only if the row still has ``expected_status``.

        Returns the refreshed row, or None if nothing matched.
        """
        stmt = update(MembershipRow).where(
            MembershipRow.membership_id == membership_id,
            MembershipRow.status == expected_status,
        )
        if expected_role is not None:
            stmt = stmt.where(MembershipRow.role == expected_role)
        result = await self._session.execute(
            stmt.values(**values).execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return None
        return await self.refresh(membership_id)

    async def delete_if_pending(self, membership_id: UUID) -> bool:
        result = await self._session.execute(
            delete(MembershipRow)
            .where(
                MembershipRow.membership_id == membership_id,
                MembershipRow.status == MembershipStatus.PENDING.value,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return False
        stale = await self._session.get(MembershipRow, membership_id)
        if stale is not None:
            self._session.expunge(stale)
        return True
