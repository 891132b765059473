"""Membership model and the membership state machine."""

from enum import StrEnum
from uuid import UUID

from pydantic import Field, model_validator

from rolodex.errors import InvalidTransitionError
from rolodex.models.common import (
    MembershipRole,
    MembershipStatus,
    RolodexBase,
    UTCTimestamp,
    UUIDv7,
    new_uuid7,
    utc_now,
)


class MembershipEvent(StrEnum):
    """Operations that move a membership between statuses."""

    ACCEPT = "accept"
    CANCEL = "cancel"
    REMOVE = "remove"
    LEAVE = "leave"
    TRANSFER_OUT = "transfer_out"


# ---------------------------------------------------------------------------
# Valid membership transitions (state machine)
# A target of None means the row is hard-deleted.
# ---------------------------------------------------------------------------

MEMBERSHIP_TRANSITIONS: dict[
    MembershipStatus, dict[MembershipEvent, MembershipStatus | None]
] = {
    MembershipStatus.PENDING: {
        MembershipEvent.ACCEPT: MembershipStatus.ACTIVE,
        MembershipEvent.CANCEL: None,
    },
    MembershipStatus.ACTIVE: {
        MembershipEvent.REMOVE: MembershipStatus.REMOVED,
        MembershipEvent.LEAVE: MembershipStatus.REMOVED,
        MembershipEvent.TRANSFER_OUT: MembershipStatus.REMOVED,
    },
    MembershipStatus.REMOVED: {},
}


def next_status(
    current: MembershipStatus, event: MembershipEvent,
) -> MembershipStatus | None:
    """Return the status ``event`` leads to from ``current``.

    Raises:
        InvalidTransitionError: If the state machine has no such edge.
    """
    allowed = MEMBERSHIP_TRANSITIONS.get(MembershipStatus(current), {})
    if event not in allowed:
        msg = f"Cannot {event.value} a membership that is {current}."
        raise InvalidTransitionError(msg)
    return allowed[event]


class Membership(RolodexBase):
    """Binds a principal (or a pending email) to a workspace.

    A pending membership is addressed by email only; accepting it binds the
    principal id. Removed memberships are kept for audit and never reused.
    """

    membership_id: UUIDv7 = Field(default_factory=new_uuid7)
    workspace_id: UUID
    principal_id: UUID | None = None
    email: str = Field(..., min_length=3, max_length=320)
    role: MembershipRole = Field(default=MembershipRole.MEMBER)
    status: MembershipStatus = Field(default=MembershipStatus.PENDING)
    invited_by: UUID | None = None
    invited_at: UTCTimestamp = Field(default_factory=utc_now)
    accepted_at: UTCTimestamp | None = None
    removed_by: UUID | None = None
    removed_at: UTCTimestamp | None = None

    @model_validator(mode="after")
    def _principal_matches_status(self) -> "Membership":
        if self.status == MembershipStatus.PENDING and self.principal_id is not None:
            msg = "Pending memberships cannot carry a principal id."
            raise ValueError(msg)
        if self.status != MembershipStatus.PENDING and self.principal_id is None:
            msg = f"{self.status} memberships require a principal id."
            raise ValueError(msg)
        return self

    @property
    def is_active(self) -> bool:
        return self.status == MembershipStatus.ACTIVE

    @property
    def is_active_owner(self) -> bool:
        return self.is_active and self.role == MembershipRole.OWNER


class PendingInvite(RolodexBase):
    """A pending membership joined with display data for the invitee."""

    membership_id: UUID
    workspace_id: UUID
    workspace_name: str
    email: str
    invited_at: UTCTimestamp
    invited_by: UUID | None = None
    inviter_email: str | None = None
    inviter_name: str | None = None
