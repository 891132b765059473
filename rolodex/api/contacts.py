"""FastAPI tenant-scoped contact endpoints.

For each of companies, individuals, tags, conversations and reminders:

POST   /v1/workspaces/{workspace_id}/{collection}          — create
GET    /v1/workspaces/{workspace_id}/{collection}          — list
GET    /v1/workspaces/{workspace_id}/{collection}/{id}     — get
PATCH  /v1/workspaces/{workspace_id}/{collection}/{id}     — update (set fields only)
DELETE /v1/workspaces/{workspace_id}/{collection}/{id}     — delete

GET    /v1/workspaces/{workspace_id}/reminders/upcoming    — pending, due soonest first

Every route opens a TenantScope, so callers without an active membership
get 403 before anything is read.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response

from rolodex.api.dependencies import get_tenant_scope
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
from rolodex.tenancy.scope import EntityKind, TenantScope

router = APIRouter(prefix="/v1/workspaces", tags=["contacts"])


@router.get("/{workspace_id}/reminders/upcoming", response_model=list[Reminder])
async def list_upcoming_reminders(
    limit: int = Query(default=10, ge=1, le=100),
    scope: TenantScope = Depends(get_tenant_scope),
) -> list[Reminder]:
    return await scope.upcoming_reminders(limit=limit)


def _register_crud(collection: str, kind: EntityKind, create_model: type,
                   update_model: type, read_model: type) -> None:
    base = f"/{{workspace_id}}/{collection}"

    async def create_entity(
        body: create_model,  # type: ignore[valid-type]
        scope: TenantScope = Depends(get_tenant_scope),
    ):
        return await scope.create(kind, body)

    async def list_entities(scope: TenantScope = Depends(get_tenant_scope)):
        return await scope.list_all(kind)

    async def get_entity(
        entity_id: UUID,
        scope: TenantScope = Depends(get_tenant_scope),
    ):
        return await scope.get(kind, entity_id)

    async def update_entity(
        entity_id: UUID,
        body: update_model,  # type: ignore[valid-type]
        scope: TenantScope = Depends(get_tenant_scope),
    ):
        return await scope.update(kind, entity_id, body)

    async def delete_entity(
        entity_id: UUID,
        scope: TenantScope = Depends(get_tenant_scope),
    ) -> Response:
        await scope.delete(kind, entity_id)
        return Response(status_code=204)

    router.add_api_route(
        base, create_entity, methods=["POST"], status_code=201,
        response_model=read_model, name=f"create_{kind.value}",
    )
    router.add_api_route(
        base, list_entities, methods=["GET"],
        response_model=list[read_model], name=f"list_{kind.value}",
    )
    router.add_api_route(
        f"{base}/{{entity_id}}", get_entity, methods=["GET"],
        response_model=read_model, name=f"get_{kind.value}",
    )
    router.add_api_route(
        f"{base}/{{entity_id}}", update_entity, methods=["PATCH"],
        response_model=read_model, name=f"update_{kind.value}",
    )
    router.add_api_route(
        f"{base}/{{entity_id}}", delete_entity, methods=["DELETE"],
        status_code=204, name=f"delete_{kind.value}",
    )


_register_crud("companies", EntityKind.COMPANY, CompanyCreate, CompanyUpdate, Company)
_register_crud("individuals", EntityKind.INDIVIDUAL, IndividualCreate, IndividualUpdate, Individual)
_register_crud("tags", EntityKind.TAG, TagCreate, TagUpdate, Tag)
_register_crud(
    "conversations", EntityKind.CONVERSATION,
    ConversationCreate, ConversationUpdate, Conversation,
)
_register_crud("reminders", EntityKind.REMINDER, ReminderCreate, ReminderUpdate, Reminder)
