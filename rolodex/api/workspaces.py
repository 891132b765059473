"""FastAPI workspace and membership endpoints.

GET    /v1/workspaces                                      — my workspaces
POST   /v1/workspaces                                      — create
GET    /v1/workspaces/default                              — first workspace (auto-created)
GET    /v1/workspaces/current                              — current selection
POST   /v1/workspaces/{workspace_id}/select                — select current
GET    /v1/workspaces/{workspace_id}/members               — memberships
POST   /v1/workspaces/{workspace_id}/invites               — invite by email
POST   /v1/workspaces/{workspace_id}/invites/accept        — accept my invite
DELETE /v1/workspaces/{workspace_id}/invites?email=...     — cancel invite
DELETE /v1/workspaces/{workspace_id}/members/{membership_id} — remove collaborator
POST   /v1/workspaces/{workspace_id}/leave                 — leave
POST   /v1/workspaces/{workspace_id}/transfer              — transfer ownership and leave
GET    /v1/invites/pending                                 — invites addressed to me

Clients re-fetch membership/workspace state after every mutating call.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, EmailStr, Field

from rolodex.api.dependencies import (
    get_coordinator,
    get_current_principal,
    get_gate,
    get_registry,
)
from rolodex.membership import AccessGate, InvitationCoordinator, WorkspaceRegistry
from rolodex.models.membership import Membership, PendingInvite
from rolodex.models.principal import Principal
from rolodex.models.workspace import WorkspaceSummary

router = APIRouter(prefix="/v1/workspaces", tags=["workspaces"])
invites_router = APIRouter(prefix="/v1/invites", tags=["workspaces"])


# ---------------------------------------------------------------------------
# Request / Response schemas
# ---------------------------------------------------------------------------


class CreateWorkspaceRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class InviteRequest(BaseModel):
    email: EmailStr


class TransferRequest(BaseModel):
    new_owner_id: UUID


class TransferResponse(BaseModel):
    new_owner: Membership
    previous_owner: Membership


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


@router.get("", response_model=list[WorkspaceSummary])
async def list_workspaces(
    principal: Principal = Depends(get_current_principal),
    registry: WorkspaceRegistry = Depends(get_registry),
) -> list[WorkspaceSummary]:
    return await registry.list_workspaces(principal.principal_id)


@router.post("", status_code=201, response_model=WorkspaceSummary)
async def create_workspace(
    body: CreateWorkspaceRequest,
    principal: Principal = Depends(get_current_principal),
    registry: WorkspaceRegistry = Depends(get_registry),
) -> WorkspaceSummary:
    return await registry.create_workspace(body.name, principal)


@router.get("/default", response_model=WorkspaceSummary)
async def get_default_workspace(
    principal: Principal = Depends(get_current_principal),
    registry: WorkspaceRegistry = Depends(get_registry),
) -> WorkspaceSummary:
    return await registry.get_or_create_default(principal)


@router.get("/current", response_model=WorkspaceSummary)
async def get_current_workspace(
    principal: Principal = Depends(get_current_principal),
    registry: WorkspaceRegistry = Depends(get_registry),
) -> WorkspaceSummary:
    return await registry.current_workspace(principal)


@router.post("/{workspace_id}/select", response_model=WorkspaceSummary)
async def select_workspace(
    workspace_id: UUID,
    principal: Principal = Depends(get_current_principal),
    registry: WorkspaceRegistry = Depends(get_registry),
) -> WorkspaceSummary:
    return await registry.select_current(workspace_id, principal)


# ---------------------------------------------------------------------------
# Membership ledger
# ---------------------------------------------------------------------------


@router.get("/{workspace_id}/members", response_model=list[Membership])
async def list_members(
    workspace_id: UUID,
    principal: Principal = Depends(get_current_principal),
    gate: AccessGate = Depends(get_gate),
    coordinator: InvitationCoordinator = Depends(get_coordinator),
) -> list[Membership]:
    await gate.require_active_member(principal.principal_id, workspace_id)
    return await coordinator.ledger.list_memberships(workspace_id)


@router.post("/{workspace_id}/invites", status_code=201, response_model=Membership)
async def invite_collaborator(
    workspace_id: UUID,
    body: InviteRequest,
    principal: Principal = Depends(get_current_principal),
    coordinator: InvitationCoordinator = Depends(get_coordinator),
) -> Membership:
    return await coordinator.invite(body.email, workspace_id, principal.principal_id)


@router.post("/{workspace_id}/invites/accept", response_model=Membership)
async def accept_invite(
    workspace_id: UUID,
    principal: Principal = Depends(get_current_principal),
    coordinator: InvitationCoordinator = Depends(get_coordinator),
) -> Membership:
    return await coordinator.accept(workspace_id, principal)


@router.delete("/{workspace_id}/invites", status_code=204)
async def cancel_invite(
    workspace_id: UUID,
    email: str = Query(..., min_length=1),
    principal: Principal = Depends(get_current_principal),
    coordinator: InvitationCoordinator = Depends(get_coordinator),
) -> Response:
    await coordinator.cancel(email, workspace_id, principal.principal_id)
    return Response(status_code=204)


@router.delete("/{workspace_id}/members/{membership_id}", response_model=Membership)
async def remove_collaborator(
    workspace_id: UUID,
    membership_id: UUID,
    principal: Principal = Depends(get_current_principal),
    coordinator: InvitationCoordinator = Depends(get_coordinator),
) -> Membership:
    return await coordinator.remove(membership_id, principal.principal_id, workspace_id)


@router.post("/{workspace_id}/leave", response_model=Membership)
async def leave_workspace(
    workspace_id: UUID,
    principal: Principal = Depends(get_current_principal),
    coordinator: InvitationCoordinator = Depends(get_coordinator),
) -> Membership:
    return await coordinator.leave(workspace_id, principal.principal_id)


@router.post("/{workspace_id}/transfer", response_model=TransferResponse)
async def transfer_ownership(
    workspace_id: UUID,
    body: TransferRequest,
    principal: Principal = Depends(get_current_principal),
    coordinator: InvitationCoordinator = Depends(get_coordinator),
) -> TransferResponse:
    result = await coordinator.transfer_ownership(
        workspace_id, principal.principal_id, body.new_owner_id,
    )
    return TransferResponse(new_owner=result.new_owner, previous_owner=result.previous_owner)


# ---------------------------------------------------------------------------
# Invitee view
# ---------------------------------------------------------------------------


@invites_router.get("/pending", response_model=list[PendingInvite])
async def list_pending_invites(
    principal: Principal = Depends(get_current_principal),
    coordinator: InvitationCoordinator = Depends(get_coordinator),
) -> list[PendingInvite]:
    return await coordinator.list_my_pending_invites(principal)
