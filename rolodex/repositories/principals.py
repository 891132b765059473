"""Principal directory repository."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rolodex.db.tables import PrincipalRow
from rolodex.models.common import utc_now


class PrincipalRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def upsert(self, *, principal_id: UUID, email: str,
                     display_name: str | None = None) -> PrincipalRow:
        row = await self.get(principal_id)
        now = utc_now()
        if row is None:
            row = PrincipalRow(
                principal_id=principal_id, email=email,
                display_name=display_name, updated_at=now,
            )
            self._session.add(row)
        else:
            row.email = email
            if display_name is not None:
                row.display_name = display_name
            row.updated_at = now
        await self._session.flush()
        return row

    async def get(self, principal_id: UUID) -> PrincipalRow | None:
        return await self._session.get(PrincipalRow, principal_id)

    async def get_many(self, principal_ids: list[UUID]) -> dict[UUID, PrincipalRow]:
        if not principal_ids:
            return {}
        result = await self._session.execute(
            select(PrincipalRow).where(PrincipalRow.principal_id.in_(principal_ids))
        )
        return {row.principal_id: row for row in result.scalars().all()}

    async def set_current_workspace(self, principal_id: UUID,
                                    workspace_id: UUID | None) -> PrincipalRow | None:
        row = await self.get(principal_id)
        if row is not None:
            row.current_workspace_id = workspace_id
            row.updated_at = utc_now()
            await self._session.flush()
        return row
