"""Workspace model — isolation boundary for contacts and collaborators."""

from uuid import UUID

from pydantic import Field

from rolodex.models.common import (
    MembershipRole,
    RolodexBase,
    UTCTimestamp,
    UUIDv7,
    new_uuid7,
    utc_now,
)


class Workspace(RolodexBase):
    """Workspace is the top-level tenant partition.

    Every company, individual, conversation, tag and reminder belongs to
    exactly one workspace. Workspaces are never deleted.
    """

    workspace_id: UUIDv7 = Field(default_factory=new_uuid7)
    name: str = Field(..., min_length=1, max_length=255)
    owner_id: UUID
    created_at: UTCTimestamp = Field(default_factory=utc_now)
    updated_at: UTCTimestamp = Field(default_factory=utc_now)


class WorkspaceSummary(RolodexBase):
    """A workspace as seen by one principal."""

    workspace_id: UUID
    name: str
    owner_id: UUID
    active_member_count: int = Field(default=0, ge=0)
    role: MembershipRole | None = None
