"""Tenant-scoped contact repositories.

Every repository is bound to one workspace at construction. Reads filter on
it, creates stamp it, and updates never touch it. ``locate`` is the one
unfiltered query: it reports which workspace each id lives in so the
scoping layer can reject cross-workspace references.
"""

from datetime import datetime
from typing import ClassVar, Generic, TypeVar
from uuid import UUID

from sqlalchemy import delete, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from rolodex.db.session import Base
from rolodex.db.tables import (
    CompanyRow,
    CompanyTagRow,
    ConversationIndividualRow,
    ConversationRow,
    ConversationTagRow,
    IndividualRow,
    IndividualTagRow,
    ReminderRow,
    TagRow,
)
from rolodex.models.common import ReminderStatus, new_uuid7, utc_now

RowT = TypeVar("RowT", bound=Base)


class TenantScopedRepository(Generic[RowT]):
    """CRUD over one tenant-scoped table, filtered to one workspace."""

    row_class: ClassVar[type]
    id_attr: ClassVar[str]

    def __init__(self, session: AsyncSession, workspace_id: UUID) -> None:
        self._session = session
        self._workspace_id = workspace_id

    @property
    def workspace_id(self) -> UUID:
        return self._workspace_id

    def _id_column(self):
        return getattr(self.row_class, self.id_attr)

    async def create(self, *, created_by: UUID | None = None,
                     **values: object) -> RowT:
        now = utc_now()
        row = self.row_class(
            **{self.id_attr: new_uuid7()},
            workspace_id=self._workspace_id,
            created_by=created_by,
            created_at=now,
            updated_at=now,
            **values,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def get(self, entity_id: UUID) -> RowT | None:
        result = await self._session.execute(
            select(self.row_class).where(
                self._id_column() == entity_id,
                self.row_class.workspace_id == self._workspace_id,
            )
        )
        return result.scalars().first()

    async def list_all(self) -> list[RowT]:
        result = await self._session.execute(
            select(self.row_class)
            .where(self.row_class.workspace_id == self._workspace_id)
            .order_by(self.row_class.created_at)
        )
        return list(result.scalars().all())

    async def update(self, entity_id: UUID, **values: object) -> RowT | None:
        row = await self.get(entity_id)
        if row is not None:
            for key, value in values.items():
                setattr(row, key, value)
            row.updated_at = utc_now()
            await self._session.flush()
        return row

    async def delete(self, entity_id: UUID) -> bool:
        row = await self.get(entity_id)
        if row is None:
            return False
        await self._session.delete(row)
        await self._session.flush()
        return True

    async def locate(self, entity_ids: list[UUID]) -> dict[UUID, UUID]:
        """Map each existing id to its workspace_id, across all workspaces."""
        if not entity_ids:
            return {}
        id_col = self._id_column()
        result = await self._session.execute(
            select(id_col, self.row_class.workspace_id).where(id_col.in_(entity_ids))
        )
        return {entity_id: workspace_id for entity_id, workspace_id in result.all()}


class TaggedRepository(TenantScopedRepository[RowT]):
    """A tenant-scoped table whose rows carry tags through a join table.

    ``tag_link`` is the join row class; its owner column is named after
    ``id_attr``.
    """

    tag_link: ClassVar[type]

    def _link_owner(self):
        return getattr(self.tag_link, self.id_attr)

    async def set_tags(self, entity_id: UUID, tag_ids: list[UUID]) -> None:
        """Replace the entity's whole tag set."""
        await self._session.execute(
            delete(self.tag_link).where(self._link_owner() == entity_id)
        )
        rows = [
            {self.id_attr: entity_id, "tag_id": tag_id}
            for tag_id in dict.fromkeys(tag_ids)
        ]
        if rows:
            await self._session.execute(insert(self.tag_link), rows)

    async def get_tag_ids(self, entity_id: UUID) -> list[UUID]:
        result = await self._session.execute(
            select(self.tag_link.tag_id).where(self._link_owner() == entity_id)
        )
        return list(result.scalars().all())

    async def delete(self, entity_id: UUID) -> bool:
        if await self.get(entity_id) is None:
            return False
        await self.set_tags(entity_id, [])
        return await super().delete(entity_id)


class CompanyRepository(TaggedRepository[CompanyRow]):
    row_class = CompanyRow
    id_attr = "company_id"
    tag_link = CompanyTagRow

    async def delete(self, entity_id: UUID) -> bool:
        if await self.get(entity_id) is None:
            return False
        for table in (IndividualRow, ConversationRow):
            await self._session.execute(
                update(table)
                .where(table.workspace_id == self._workspace_id,
                       table.company_id == entity_id)
                .values(company_id=None)
                .execution_options(synchronize_session="fetch")
            )
        return await super().delete(entity_id)


class IndividualRepository(TaggedRepository[IndividualRow]):
    row_class = IndividualRow
    id_attr = "individual_id"
    tag_link = IndividualTagRow

    async def list_by_company(self, company_id: UUID) -> list[IndividualRow]:
        result = await self._session.execute(
            select(IndividualRow).where(
                IndividualRow.workspace_id == self._workspace_id,
                IndividualRow.company_id == company_id,
            )
        )
        return list(result.scalars().all())

    async def delete(self, entity_id: UUID) -> bool:
        if await self.get(entity_id) is None:
            return False
        await self._session.execute(
            delete(ConversationIndividualRow)
            .where(ConversationIndividualRow.individual_id == entity_id)
        )
        return await super().delete(entity_id)


class TagRepository(TenantScopedRepository[TagRow]):
    row_class = TagRow
    id_attr = "tag_id"

    async def delete(self, entity_id: UUID) -> bool:
        if await self.get(entity_id) is None:
            return False
        for link in (CompanyTagRow, IndividualTagRow, ConversationTagRow):
            await self._session.execute(delete(link).where(link.tag_id == entity_id))
        return await super().delete(entity_id)


class ConversationRepository(TaggedRepository[ConversationRow]):
    row_class = ConversationRow
    id_attr = "conversation_id"
    tag_link = ConversationTagRow

    async def list_all(self) -> list[ConversationRow]:
        result = await self._session.execute(
            select(ConversationRow)
            .where(ConversationRow.workspace_id == self._workspace_id)
            .order_by(ConversationRow.date.desc())
        )
        return list(result.scalars().all())

    async def set_individuals(self, conversation_id: UUID,
                              individual_ids: list[UUID]) -> None:
        await self._session.execute(
            delete(ConversationIndividualRow)
            .where(ConversationIndividualRow.conversation_id == conversation_id)
        )
        rows = [
            {"conversation_id": conversation_id, "individual_id": individual_id}
            for individual_id in dict.fromkeys(individual_ids)
        ]
        if rows:
            await self._session.execute(insert(ConversationIndividualRow), rows)

    async def get_individual_ids(self, conversation_id: UUID) -> list[UUID]:
        result = await self._session.execute(
            select(ConversationIndividualRow.individual_id)
            .where(ConversationIndividualRow.conversation_id == conversation_id)
        )
        return list(result.scalars().all())

    async def delete(self, entity_id: UUID) -> bool:
        if await self.get(entity_id) is None:
            return False
        await self.set_individuals(entity_id, [])
        await self._session.execute(
            update(ReminderRow)
            .where(ReminderRow.workspace_id == self._workspace_id,
                   ReminderRow.conversation_id == entity_id)
            .values(conversation_id=None)
            .execution_options(synchronize_session="fetch")
        )
        return await super().delete(entity_id)


class ReminderRepository(TenantScopedRepository[ReminderRow]):
    row_class = ReminderRow
    id_attr = "reminder_id"

    async def list_all(self) -> list[ReminderRow]:
        result = await self._session.execute(
            select(ReminderRow)
            .where(ReminderRow.workspace_id == self._workspace_id)
            .order_by(ReminderRow.due_date)
        )
        return list(result.scalars().all())

    async def list_upcoming(self, now: datetime, limit: int = 10) -> list[ReminderRow]:
        result = await self._session.execute(
            select(ReminderRow)
            .where(
                ReminderRow.workspace_id == self._workspace_id,
                ReminderRow.status == ReminderStatus.PENDING.value,
                ReminderRow.due_date >= now,
            )
            .order_by(ReminderRow.due_date)
            .limit(limit)
        )
        return list(result.scalars().all())
