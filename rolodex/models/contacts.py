"""Tenant-scoped contact models — companies, individuals, tags, conversations, reminders.

Each ``*Create`` model is the writable field set, each ``*Update`` model the
same fields made optional (only explicitly-set fields are applied), and the
bare model is the stored record stamped with its workspace.
"""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from rolodex.models.common import (
    CompanySize,
    CompanyType,
    ContactType,
    ReminderStatus,
    RolodexBase,
    TagCategory,
    UTCTimestamp,
)


class _Stamped(RolodexBase):
    workspace_id: UUID
    created_by: UUID | None = None
    created_at: UTCTimestamp
    updated_at: UTCTimestamp


# ---------------------------------------------------------------------------
# Company
# ---------------------------------------------------------------------------


class CompanyCreate(RolodexBase):
    name: str = Field(..., min_length=1, max_length=255)
    website: str | None = Field(default=None, max_length=500)
    industry: str | None = Field(default=None, max_length=255)
    size: CompanySize | None = None
    type: CompanyType | None = None
    description: str | None = Field(default=None, max_length=5000)
    tag_ids: list[UUID] = Field(default_factory=list)


class CompanyUpdate(RolodexBase):
    """``tag_ids`` replaces the whole tag set when given."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    website: str | None = Field(default=None, max_length=500)
    industry: str | None = Field(default=None, max_length=255)
    size: CompanySize | None = None
    type: CompanyType | None = None
    description: str | None = Field(default=None, max_length=5000)
    tag_ids: list[UUID] | None = None


class Company(CompanyCreate, _Stamped):
    company_id: UUID


# ---------------------------------------------------------------------------
# Individual
# ---------------------------------------------------------------------------


class IndividualCreate(RolodexBase):
    first_name: str = Field(..., min_length=1, max_length=255)
    last_name: str = Field(default="", max_length=255)
    email: str | None = Field(default=None, max_length=320)
    phone: str | None = Field(default=None, max_length=50)
    company_id: UUID | None = None
    role: str | None = Field(default=None, max_length=255)
    contact_type: ContactType | None = None
    description: str | None = Field(default=None, max_length=5000)
    tag_ids: list[UUID] = Field(default_factory=list)


class IndividualUpdate(RolodexBase):
    first_name: str | None = Field(default=None, min_length=1, max_length=255)
    last_name: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, max_length=320)
    phone: str | None = Field(default=None, max_length=50)
    company_id: UUID | None = None
    role: str | None = Field(default=None, max_length=255)
    contact_type: ContactType | None = None
    description: str | None = Field(default=None, max_length=5000)
    tag_ids: list[UUID] | None = None


class Individual(IndividualCreate, _Stamped):
    individual_id: UUID


# ---------------------------------------------------------------------------
# Tag
# ---------------------------------------------------------------------------


class TagCreate(RolodexBase):
    name: str = Field(..., min_length=1, max_length=100)
    color: str = Field(default="#6b7280", max_length=32)
    category: TagCategory = Field(default=TagCategory.ALL)


class TagUpdate(RolodexBase):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    color: str | None = Field(default=None, max_length=32)
    category: TagCategory | None = None


class Tag(TagCreate, _Stamped):
    tag_id: UUID


# ---------------------------------------------------------------------------
# Conversation
# ---------------------------------------------------------------------------


class ConversationCreate(RolodexBase):
    title: str = Field(..., min_length=1, max_length=500)
    date: datetime
    summary: str | None = Field(default=None, max_length=20000)
    next_steps: str | None = Field(default=None, max_length=5000)
    notes: str | None = Field(default=None, max_length=20000)
    company_id: UUID | None = None
    individual_ids: list[UUID] = Field(default_factory=list)
    tag_ids: list[UUID] = Field(default_factory=list)


class ConversationUpdate(RolodexBase):
    """``individual_ids``/``tag_ids`` replace the whole association set when given."""

    title: str | None = Field(default=None, min_length=1, max_length=500)
    date: datetime | None = None
    summary: str | None = Field(default=None, max_length=20000)
    next_steps: str | None = Field(default=None, max_length=5000)
    notes: str | None = Field(default=None, max_length=20000)
    company_id: UUID | None = None
    individual_ids: list[UUID] | None = None
    tag_ids: list[UUID] | None = None


class Conversation(ConversationCreate, _Stamped):
    conversation_id: UUID


# ---------------------------------------------------------------------------
# Reminder
# ---------------------------------------------------------------------------


class ReminderCreate(RolodexBase):
    title: str = Field(..., min_length=1, max_length=500)
    description: str | None = Field(default=None, max_length=5000)
    due_date: datetime
    status: ReminderStatus = Field(default=ReminderStatus.PENDING)
    conversation_id: UUID | None = None


class ReminderUpdate(RolodexBase):
    title: str | None = Field(default=None, min_length=1, max_length=500)
    description: str | None = Field(default=None, max_length=5000)
    due_date: datetime | None = None
    status: ReminderStatus | None = None
    conversation_id: UUID | None = None


class Reminder(ReminderCreate, _Stamped):
    reminder_id: UUID
