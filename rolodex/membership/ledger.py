"""Membership ledger — CRUD over collaborator and invite records.

Every status change is a conditional write guarded by the row's expected
prior status; a write that matches nothing raises ConflictError rather than
re-stamping the row. Invites are addressed by email; identity is bound only
when the invitee accepts.
"""

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from rolodex.db.session import translate_backend_errors
from rolodex.db.tables import MembershipRow
from rolodex.errors import AuthorizationError, ConflictError, NotFoundError
from rolodex.membership.gate import AccessGate
from rolodex.models.common import (
    MembershipRole,
    MembershipStatus,
    new_uuid7,
    normalize_email,
    utc_now,
)
from rolodex.models.membership import Membership, MembershipEvent, next_status
from rolodex.models.principal import Principal
from rolodex.repositories.membership import MembershipRepository
from rolodex.repositories.workspace import WorkspaceRepository

logger = logging.getLogger(__name__)


class MembershipLedger:
    """Collaborator records for workspaces, one request session at a time."""

    def __init__(self, session: AsyncSession) -> None:
        self._memberships = MembershipRepository(session)
        self._workspaces = WorkspaceRepository(session)
        self._gate = AccessGate(session)

    # ----- Queries -----

    @translate_backend_errors
    async def list_memberships(self, workspace_id: UUID) -> list[Membership]:
        """All memberships of a workspace, oldest invite first."""
        rows = await self._memberships.list_by_workspace(workspace_id)
        return [Membership.model_validate(row) for row in rows]

    # ----- Invite lifecycle -----

    @translate_backend_errors
    async def invite(self, email: str, workspace_id: UUID,
                     invited_by: UUID) -> Membership:
        """Create a pending membership addressed to ``email``.

        The email need not belong to an existing account.

        Raises:
            ValidationError: If the email is empty or malformed.
            NotFoundError: If the workspace does not exist.
            AuthorizationError: If ``invited_by`` is not an active member.
            ConflictError: If the email already has a pending or active
                membership in the workspace.
        """
        address = normalize_email(email)
        if await self._workspaces.get(workspace_id) is None:
            msg = f"Workspace {workspace_id} not found."
            raise NotFoundError(msg)
        await self._gate.require_active_member(invited_by, workspace_id)

        if await self._memberships.find_pending(workspace_id, address) is not None:
            msg = "An invite is already pending for this email."
            raise ConflictError(msg)
        if await self._memberships.find_active_by_email(workspace_id, address) is not None:
            msg = "This email already belongs to an active collaborator."
            raise ConflictError(msg)

        try:
            row = await self._memberships.create(
                membership_id=new_uuid7(),
                workspace_id=workspace_id,
                email=address,
                role=MembershipRole.MEMBER.value,
                status=MembershipStatus.PENDING.value,
                invited_by=invited_by,
            )
        except IntegrityError as exc:
            msg = "An invite for this email was created concurrently."
            raise ConflictError(msg) from exc
        logger.info("Invite %s created in workspace %s", row.membership_id, workspace_id)
        logger.debug("Invite %s addressed to %s", row.membership_id, address)
        return Membership.model_validate(row)

    @translate_backend_errors
    async def accept(self, workspace_id: UUID, principal: Principal) -> Membership:
        """Bind the principal to the pending invite for its verified email.

        Raises:
            NotFoundError: If no pending invite exists for that email.
            ConflictError: If the principal is already an active member, or
                the invite changed status concurrently.
        """
        pending = await self._memberships.find_pending(workspace_id, principal.email)
        if pending is None:
            msg = f"No pending invite for this account in workspace {workspace_id}."
            raise NotFoundError(msg)
        if await self._gate.is_active_member(principal.principal_id, workspace_id):
            msg = "You are already an active collaborator in this workspace."
            raise ConflictError(msg)

        target = next_status(MembershipStatus(pending.status), MembershipEvent.ACCEPT)
        try:
            row = await self._memberships.update_if_status(
                pending.membership_id,
                expected_status=MembershipStatus.PENDING.value,
                status=target.value,
                principal_id=principal.principal_id,
                accepted_at=utc_now(),
            )
        except IntegrityError as exc:
            msg = "You are already an active collaborator in this workspace."
            raise ConflictError(msg) from exc
        if row is None:
            msg = f"Invite {pending.membership_id} is no longer pending."
            raise ConflictError(msg)
        logger.info(
            "Invite %s accepted by principal %s", row.membership_id, principal.principal_id,
        )
        return Membership.model_validate(row)

    @translate_backend_errors
    async def cancel(self, email: str, workspace_id: UUID,
                     acting_principal_id: UUID) -> None:
        """Hard-delete the pending invite for ``email``.

        Only an active owner or the original inviter may cancel.

        Raises:
            ValidationError: If the email is malformed.
            NotFoundError: If no invite is pending for the email.
            AuthorizationError: If the acting principal may not cancel it.
            ConflictError: If the invite was accepted or cancelled concurrently.
        """
        address = normalize_email(email)
        pending = await self._memberships.find_pending(workspace_id, address)
        if pending is None:
            msg = f"No pending invite for this email in workspace {workspace_id}."
            raise NotFoundError(msg)

        acting = await self._gate.require_active_member(acting_principal_id, workspace_id)
        if (acting.role != MembershipRole.OWNER.value
                and pending.invited_by != acting_principal_id):
            msg = "Only an owner or the inviter may cancel this invite."
            raise AuthorizationError(msg)

        next_status(MembershipStatus(pending.status), MembershipEvent.CANCEL)
        if not await self._memberships.delete_if_pending(pending.membership_id):
            msg = f"Invite {pending.membership_id} is no longer pending."
            raise ConflictError(msg)
        logger.info("Invite %s cancelled in workspace %s", pending.membership_id, workspace_id)

    # ----- Removal -----

    @translate_backend_errors
    async def remove(self, membership_id: UUID, acting_principal_id: UUID,
                     workspace_id: UUID | None = None) -> Membership:
        """Soft-remove another collaborator's active membership.

        When ``workspace_id`` is given the membership must belong to it.

        Raises:
            NotFoundError: If the membership does not exist (in that workspace).
            ConflictError: If it is already removed, or changes concurrently.
            ValidationError: If it is still pending (cancel it instead).
            AuthorizationError: If the acting principal is not an active
                owner, or targets their own membership.
        """
        target = await self._memberships.get(membership_id)
        if target is None or (workspace_id is not None
                              and target.workspace_id != workspace_id):
            msg = f"Membership {membership_id} not found."
            raise NotFoundError(msg)
        if target.status == MembershipStatus.REMOVED.value:
            msg = f"Membership {membership_id} is already removed."
            raise ConflictError(msg)
        next_status(MembershipStatus(target.status), MembershipEvent.REMOVE)
        await self._gate.authorize_remove(acting_principal_id, target)

        row = await self.retire(target, removed_by=acting_principal_id,
                                event=MembershipEvent.REMOVE)
        return Membership.model_validate(row)

    async def retire(self, target: MembershipRow, *, removed_by: UUID,
                     event: MembershipEvent) -> MembershipRow:
        """Conditionally flip an active membership to removed.

        Shared by remove, leave and ownership transfer.

        Raises:
            InvalidTransitionError: If ``event`` cannot apply to the row.
            ConflictError: If the row is no longer active.
        """
        new_status = next_status(MembershipStatus.ACTIVE, event)
        row = await self._memberships.update_if_status(
            target.membership_id,
            expected_status=MembershipStatus.ACTIVE.value,
            status=new_status.value,
            removed_by=removed_by,
            removed_at=utc_now(),
        )
        if row is None:
            msg = f"Membership {target.membership_id} is no longer active."
            raise ConflictError(msg)
        logger.info(
            "Membership %s removed from workspace %s (%s) by %s",
            row.membership_id, row.workspace_id, event.value, removed_by,
        )
        return row

    async def promote(self, target: MembershipRow) -> MembershipRow:
        """Conditionally raise an active member to owner.

        An active owner is returned unchanged.

        Raises:
            ConflictError: If the row is no longer active.
        """
        if target.role == MembershipRole.OWNER.value:
            current = await self._memberships.refresh(target.membership_id)
            if current is not None and current.status == MembershipStatus.ACTIVE.value:
                return current
            msg = f"Membership {target.membership_id} is no longer active."
            raise ConflictError(msg)

        row = await self._memberships.update_if_status(
            target.membership_id,
            expected_status=MembershipStatus.ACTIVE.value,
            expected_role=MembershipRole.MEMBER.value,
            role=MembershipRole.OWNER.value,
        )
        if row is None:
            msg = f"Membership {target.membership_id} changed while being promoted."
            raise ConflictError(msg)
        await self._workspaces.set_owner(row.workspace_id, row.principal_id)
        logger.info(
            "Membership %s promoted to owner of workspace %s",
            row.membership_id, row.workspace_id,
        )
        return row
