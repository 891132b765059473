"""Tenant scoping layer.

All company/individual/tag/conversation/reminder reads and writes go through
a ``TenantScope`` opened for one workspace by one active member. The scope
stamps its workspace id on every created row, filters every read on it, and
refuses any write whose references point into another workspace. Reference
checks run before anything is added to the session, so a rejected
conversation leaves neither its row nor its join rows behind.
"""

import logging
from enum import StrEnum
from typing import Any
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from rolodex.db.session import translate_backend_errors
from rolodex.errors import CrossTenantReferenceError, NotFoundError, ValidationError
from rolodex.membership.gate import AccessGate
from rolodex.models.common import utc_now
from rolodex.models.contacts import (
    Company,
    CompanyCreate,
    CompanyUpdate,
    Conversation,
    ConversationCreate,
    ConversationUpdate,
    Individual,
    IndividualCreate,
    IndividualUpdate,
    Reminder,
    ReminderCreate,
    ReminderUpdate,
    Tag,
    TagCreate,
    TagUpdate,
)
from rolodex.repositories.contacts import (
    CompanyRepository,
    ConversationRepository,
    IndividualRepository,
    ReminderRepository,
    TaggedRepository,
    TagRepository,
    TenantScopedRepository,
)

logger = logging.getLogger(__name__)


class EntityKind(StrEnum):
    COMPANY = "company"
    INDIVIDUAL = "individual"
    TAG = "tag"
    CONVERSATION = "conversation"
    REMINDER = "reminder"


# kind -> (create model, update model, read model)
_MODELS: dict[EntityKind, tuple[type[BaseModel], type[BaseModel], type[BaseModel]]] = {
    EntityKind.COMPANY: (CompanyCreate, CompanyUpdate, Company),
    EntityKind.INDIVIDUAL: (IndividualCreate, IndividualUpdate, Individual),
    EntityKind.TAG: (TagCreate, TagUpdate, Tag),
    EntityKind.CONVERSATION: (ConversationCreate, ConversationUpdate, Conversation),
    EntityKind.REMINDER: (ReminderCreate, ReminderUpdate, Reminder),
}

# Association fields stored in join tables rather than on the row.
_ASSOCIATIONS = ("individual_ids", "tag_ids")


class TenantScope:
    """Workspace-bound access to tenant-scoped entities."""

    def __init__(self, session: AsyncSession, workspace_id: UUID,
                 principal_id: UUID) -> None:
        self._workspace_id = workspace_id
        self._principal_id = principal_id
        self._repos: dict[EntityKind, TenantScopedRepository] = {
            EntityKind.COMPANY: CompanyRepository(session, workspace_id),
            EntityKind.INDIVIDUAL: IndividualRepository(session, workspace_id),
            EntityKind.TAG: TagRepository(session, workspace_id),
            EntityKind.CONVERSATION: ConversationRepository(session, workspace_id),
            EntityKind.REMINDER: ReminderRepository(session, workspace_id),
        }

    @classmethod
    @translate_backend_errors
    async def open(cls, session: AsyncSession, workspace_id: UUID,
                   principal_id: UUID) -> "TenantScope":
        """Open a scope after checking the principal is an active member.

        Raises:
            AuthorizationError: If the principal has no active membership.
        """
        await AccessGate(session).require_active_member(principal_id, workspace_id)
        return cls(session, workspace_id, principal_id)

    @property
    def workspace_id(self) -> UUID:
        return self._workspace_id

    @property
    def conversations(self) -> ConversationRepository:
        return self._repos[EntityKind.CONVERSATION]

    @property
    def reminders(self) -> ReminderRepository:
        return self._repos[EntityKind.REMINDER]

    # ----- Reference checks -----

    async def _check_ids(self, kind: EntityKind, ids: list[UUID]) -> None:
        located = await self._repos[kind].locate(ids)
        for entity_id in ids:
            owner = located.get(entity_id)
            if owner is None:
                msg = f"Referenced {kind.value} {entity_id} not found."
                raise NotFoundError(msg)
            if owner != self._workspace_id:
                msg = (
                    f"Referenced {kind.value} {entity_id} belongs to another workspace."
                )
                raise CrossTenantReferenceError(msg)

    async def verify_references(self, values: dict[str, Any]) -> None:
        """Ensure every referenced entity lives in this scope's workspace.

        Raises:
            NotFoundError: If a referenced id exists nowhere.
            CrossTenantReferenceError: If it exists in another workspace.
        """
        if values.get("company_id") is not None:
            await self._check_ids(EntityKind.COMPANY, [values["company_id"]])
        if values.get("conversation_id") is not None:
            await self._check_ids(EntityKind.CONVERSATION, [values["conversation_id"]])
        if values.get("individual_ids"):
            await self._check_ids(EntityKind.INDIVIDUAL, list(values["individual_ids"]))
        if values.get("tag_ids"):
            await self._check_ids(EntityKind.TAG, list(values["tag_ids"]))

    # ----- Helpers -----

    def _coerce(self, model: type[BaseModel], payload: BaseModel | dict) -> BaseModel:
        if isinstance(payload, dict):
            stamped = payload.get("workspace_id")
            if stamped is not None and str(stamped) != str(self._workspace_id):
                msg = "workspace_id cannot be set or changed on a tenant-scoped entity."
                raise ValidationError(msg)
            payload = {k: v for k, v in payload.items() if k != "workspace_id"}
        elif not isinstance(payload, model):
            payload = payload.model_dump(exclude_unset=True)
        return model.model_validate(payload)

    async def _to_model(self, kind: EntityKind, row: Any) -> BaseModel:
        read_model = _MODELS[kind][2]
        entity = read_model.model_validate(row)
        repo = self._repos[kind]
        entity_id = getattr(row, repo.id_attr)
        links: dict[str, list[UUID]] = {}
        if isinstance(repo, TaggedRepository):
            links["tag_ids"] = await repo.get_tag_ids(entity_id)
        if kind == EntityKind.CONVERSATION:
            links["individual_ids"] = await self.conversations.get_individual_ids(entity_id)
        return entity.model_copy(update=links) if links else entity

    async def _link(self, kind: EntityKind, entity_id: UUID,
                    associations: dict[str, Any]) -> None:
        """Replace each association set that was given."""
        repo = self._repos[kind]
        if associations.get("tag_ids") is not None and isinstance(repo, TaggedRepository):
            await repo.set_tags(entity_id, associations["tag_ids"])
        if associations.get("individual_ids") is not None and kind == EntityKind.CONVERSATION:
            await self.conversations.set_individuals(entity_id, associations["individual_ids"])

    async def _require(self, kind: EntityKind, entity_id: UUID) -> Any:
        row = await self._repos[kind].get(entity_id)
        if row is None:
            msg = f"{kind.value.capitalize()} {entity_id} not found in this workspace."
            raise NotFoundError(msg)
        return row

    # ----- CRUD -----

    @translate_backend_errors
    async def create(self, kind: EntityKind, payload: BaseModel | dict) -> BaseModel:
        data = self._coerce(_MODELS[kind][0], payload)
        values = data.model_dump()
        await self.verify_references(values)

        associations = {key: values.pop(key) for key in _ASSOCIATIONS if key in values}
        repo = self._repos[kind]
        row = await repo.create(created_by=self._principal_id, **values)
        await self._link(kind, getattr(row, repo.id_attr), associations)
        logger.info("Created %s in workspace %s", kind.value, self._workspace_id)
        return await self._to_model(kind, row)

    @translate_backend_errors
    async def get(self, kind: EntityKind, entity_id: UUID) -> BaseModel:
        return await self._to_model(kind, await self._require(kind, entity_id))

    @translate_backend_errors
    async def list_all(self, kind: EntityKind) -> list[BaseModel]:
        rows = await self._repos[kind].list_all()
        return [await self._to_model(kind, row) for row in rows]

    @translate_backend_errors
    async def update(self, kind: EntityKind, entity_id: UUID,
                     changes: BaseModel | dict) -> BaseModel:
        data = self._coerce(_MODELS[kind][1], changes)
        values = data.model_dump(exclude_unset=True)
        await self._require(kind, entity_id)
        await self.verify_references(values)

        associations = {key: values.pop(key) for key in _ASSOCIATIONS if key in values}
        row = await self._repos[kind].update(entity_id, **values)
        await self._link(kind, entity_id, associations)
        return await self._to_model(kind, row)

    @translate_backend_errors
    async def delete(self, kind: EntityKind, entity_id: UUID) -> None:
        if not await self._repos[kind].delete(entity_id):
            msg = f"{kind.value.capitalize()} {entity_id} not found in this workspace."
            raise NotFoundError(msg)
        logger.info("Deleted %s %s in workspace %s", kind.value, entity_id, self._workspace_id)

    @translate_backend_errors
    async def upcoming_reminders(self, limit: int = 10) -> list[Reminder]:
        rows = await self.reminders.list_upcoming(utc_now(), limit=limit)
        return [Reminder.model_validate(row) for row in rows]
