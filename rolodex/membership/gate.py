"""Access control gate — authorization decisions derived from ledger state.

Every decision is recomputed from the memberships table on each call; the
gate holds no state of its own.

- isOwner: an active membership with role=owner exists for the principal.
- authorize_remove: acting is an active owner, target is active, target is
  not the acting principal.
- authorize_leave: non-owners and owners with a co-owner may leave; the
  sole active owner must transfer ownership first.
"""

from dataclasses import dataclass
from enum import StrEnum
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from rolodex.db.tables import MembershipRow
from rolodex.errors import (
    AuthorizationError,
    NotFoundError,
    OwnershipTransferRequiredError,
)
from rolodex.models.common import MembershipRole, MembershipStatus
from rolodex.repositories.membership import MembershipRepository


class LeaveReason(StrEnum):
    """Why a leave request is allowed."""

    NOT_OWNER = "NOT_OWNER"
    CO_OWNER_REMAINS = "CO_OWNER_REMAINS"


@dataclass(frozen=True)
class LeaveDecision:
    """An approved leave: the membership to soft-remove and why it may go."""

    membership: MembershipRow
    reason: LeaveReason


def _is_active_owner(row: MembershipRow | None) -> bool:
    return (
        row is not None
        and row.status == MembershipStatus.ACTIVE.value
        and row.role == MembershipRole.OWNER.value
    )


def can_remove(acting: MembershipRow | None, target: MembershipRow) -> bool:
    """Pure form of the remove rule, evaluated on already-loaded rows."""
    return (
        _is_active_owner(acting)
        and acting.workspace_id == target.workspace_id
        and target.status == MembershipStatus.ACTIVE.value
        and target.principal_id != acting.principal_id
    )


class AccessGate:
    """Authorization checks for one request's session."""

    def __init__(self, session: AsyncSession) -> None:
        self._memberships = MembershipRepository(session)

    async def is_owner(self, principal_id: UUID, workspace_id: UUID) -> bool:
        row = await self._memberships.find_active(workspace_id, principal_id)
        return _is_active_owner(row)

    async def is_active_member(self, principal_id: UUID, workspace_id: UUID) -> bool:
        return await self._memberships.find_active(workspace_id, principal_id) is not None

    async def count_active_members(self, workspace_id: UUID) -> int:
        counts = await self._memberships.count_active([workspace_id])
        return counts[workspace_id]

    async def count_active_owners(self, workspace_id: UUID) -> int:
        return len(await self._memberships.list_active_owners(workspace_id))

    async def require_active_member(self, principal_id: UUID,
                                    workspace_id: UUID) -> MembershipRow:
        """Return the principal's active membership.

        Raises:
            AuthorizationError: If the principal is not an active member.
        """
        row = await self._memberships.find_active(workspace_id, principal_id)
        if row is None:
            msg = f"Not authorized to access workspace {workspace_id}."
            raise AuthorizationError(msg)
        return row

    async def require_owner(self, principal_id: UUID,
                            workspace_id: UUID) -> MembershipRow:
        """Return the principal's active owner membership.

        Raises:
            AuthorizationError: If the principal is not an active owner.
        """
        row = await self._memberships.find_active(workspace_id, principal_id)
        if not _is_active_owner(row):
            msg = f"Only an active owner of workspace {workspace_id} may do this."
            raise AuthorizationError(msg)
        return row

    async def authorize_remove(self, acting_principal_id: UUID,
                               target: MembershipRow) -> MembershipRow:
        """Check that ``acting_principal_id`` may remove ``target``.

        Returns the acting principal's membership.

        Raises:
            AuthorizationError: If the remove rule does not hold.
        """
        acting = await self._memberships.find_active(
            target.workspace_id, acting_principal_id,
        )
        if can_remove(acting, target):
            return acting
        if not _is_active_owner(acting):
            msg = "Only an active owner may remove collaborators."
        elif target.principal_id == acting_principal_id:
            msg = "Owners cannot remove themselves; leave the workspace instead."
        else:
            msg = f"Membership {target.membership_id} is not active."
        raise AuthorizationError(msg)

    async def authorize_leave(self, principal_id: UUID,
                              workspace_id: UUID) -> LeaveDecision:
        """Decide whether the principal may leave directly.

        Raises:
            NotFoundError: If the principal has no active membership.
            OwnershipTransferRequiredError: If the principal is the sole
                active owner.
        """
        membership = await self._memberships.find_active(workspace_id, principal_id)
        if membership is None:
            msg = f"No active membership in workspace {workspace_id}."
            raise NotFoundError(msg)
        if not _is_active_owner(membership):
            return LeaveDecision(membership=membership, reason=LeaveReason.NOT_OWNER)

        owners = await self._memberships.list_active_owners(workspace_id)
        if any(o.membership_id != membership.membership_id for o in owners):
            return LeaveDecision(membership=membership, reason=LeaveReason.CO_OWNER_REMAINS)
        raise OwnershipTransferRequiredError()
