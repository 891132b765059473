"""Invitation flow coordinator — invite/accept/cancel, leave, ownership transfer.

Membership state machine (see ``rolodex.models.membership``):

    PENDING --accept--> ACTIVE
    PENDING --cancel--> (deleted)
    ACTIVE  --remove|leave--> REMOVED
    ACTIVE(owner) --transfer_out--> REMOVED, coupled with promoting the target

Ownership transfer runs in a fixed order: promote the new owner, then
soft-remove the current owner. Both steps run in the caller's unit of work,
so a failure in the second step rolls the first back with it. A workspace
never passes through a state with zero active owners; it briefly holds two
between the steps. Retrying a transfer whose target is already owner skips
straight to the removal.
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from rolodex.db.session import translate_backend_errors
from rolodex.errors import AuthorizationError, NotFoundError, ValidationError
from rolodex.membership.gate import AccessGate
from rolodex.membership.ledger import MembershipLedger
from rolodex.models.common import MembershipRole
from rolodex.models.membership import Membership, MembershipEvent, PendingInvite
from rolodex.models.principal import Principal
from rolodex.repositories.membership import MembershipRepository
from rolodex.repositories.principals import PrincipalRepository
from rolodex.repositories.workspace import WorkspaceRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferResult:
    """Outcome of a completed ownership transfer."""

    new_owner: Membership
    previous_owner: Membership


class InvitationCoordinator:
    """Orchestrates multi-record membership flows for one request session."""

    def __init__(self, session: AsyncSession) -> None:
        self._ledger = MembershipLedger(session)
        self._gate = AccessGate(session)
        self._memberships = MembershipRepository(session)
        self._workspaces = WorkspaceRepository(session)
        self._principals = PrincipalRepository(session)

    @property
    def ledger(self) -> MembershipLedger:
        return self._ledger

    # ----- Invite lifecycle (single-record, delegated to the ledger) -----

    async def invite(self, email: str, workspace_id: UUID,
                     invited_by: UUID) -> Membership:
        return await self._ledger.invite(email, workspace_id, invited_by)

    async def accept(self, workspace_id: UUID, principal: Principal) -> Membership:
        return await self._ledger.accept(workspace_id, principal)

    async def cancel(self, email: str, workspace_id: UUID,
                     acting_principal_id: UUID) -> None:
        await self._ledger.cancel(email, workspace_id, acting_principal_id)

    async def remove(self, membership_id: UUID, acting_principal_id: UUID,
                     workspace_id: UUID | None = None) -> Membership:
        return await self._ledger.remove(membership_id, acting_principal_id, workspace_id)

    # ----- Leave -----

    @translate_backend_errors
    async def leave(self, workspace_id: UUID, principal_id: UUID) -> Membership:
        """Soft-remove the principal's own membership.

        Raises:
            NotFoundError: If the principal has no active membership.
            OwnershipTransferRequiredError: If the principal is the sole
                active owner. Nothing is written.
            ConflictError: If the membership changed concurrently.
        """
        decision = await self._gate.authorize_leave(principal_id, workspace_id)
        row = await self._ledger.retire(
            decision.membership, removed_by=principal_id, event=MembershipEvent.LEAVE,
        )
        logger.info(
            "Principal %s left workspace %s (%s)",
            principal_id, workspace_id, decision.reason.value,
        )
        return Membership.model_validate(row)

    # ----- Ownership transfer -----

    @translate_backend_errors
    async def transfer_ownership(self, workspace_id: UUID, current_owner_id: UUID,
                                 new_owner_id: UUID) -> TransferResult:
        """Promote ``new_owner_id`` to owner, then remove the current owner.

        Raises:
            NotFoundError: If the current owner has no active membership
                (for example, a concurrent transfer already removed it).
            AuthorizationError: If the current principal is not an owner.
            ValidationError: If the target is the current owner or has no
                active membership in the workspace.
            ConflictError: If either membership changes mid-transfer.
        """
        current = await self._memberships.find_active(workspace_id, current_owner_id)
        if current is None:
            msg = f"No active membership in workspace {workspace_id}."
            raise NotFoundError(msg)
        if current.role != MembershipRole.OWNER.value:
            msg = "Only an active owner may transfer ownership."
            raise AuthorizationError(msg)
        if new_owner_id == current_owner_id:
            msg = "Choose another collaborator as the new owner."
            raise ValidationError(msg)

        target = await self._memberships.find_active(workspace_id, new_owner_id)
        if target is None:
            msg = f"Principal {new_owner_id} is not an active collaborator in this workspace."
            raise ValidationError(msg)

        promoted = await self._ledger.promote(target)
        removed = await self._ledger.retire(
            current, removed_by=current_owner_id, event=MembershipEvent.TRANSFER_OUT,
        )
        logger.info(
            "Ownership of workspace %s transferred from %s to %s",
            workspace_id, current_owner_id, new_owner_id,
        )
        return TransferResult(
            new_owner=Membership.model_validate(promoted),
            previous_owner=Membership.model_validate(removed),
        )

    # ----- Invitee view -----

    @translate_backend_errors
    async def list_my_pending_invites(self, principal: Principal) -> list[PendingInvite]:
        """Pending invites across all workspaces addressed to the principal's email.

        Inviter identity comes from the principal directory and is left
        empty when the inviter has never been seen.
        """
        rows = await self._memberships.list_pending_for_email(principal.email)
        workspaces = await self._workspaces.get_many(
            list({row.workspace_id for row in rows})
        )
        inviters = await self._principals.get_many(
            list({row.invited_by for row in rows if row.invited_by is not None})
        )

        invites: list[PendingInvite] = []
        for row in rows:
            workspace = workspaces.get(row.workspace_id)
            if workspace is None:
                continue
            inviter = inviters.get(row.invited_by) if row.invited_by else None
            invites.append(PendingInvite(
                membership_id=row.membership_id,
                workspace_id=row.workspace_id,
                workspace_name=workspace.name,
                email=row.email,
                invited_at=row.invited_at,
                invited_by=row.invited_by,
                inviter_email=inviter.email if inviter else None,
                inviter_name=inviter.display_name if inviter else None,
            ))
        return invites
