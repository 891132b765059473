"""SQLAlchemy ORM table models for Rolodex.

Categories:
- TENANCY: Workspace, Membership, Principal (directory of seen identities)
- TENANT-SCOPED: Company, Individual, Tag, Conversation, Reminder, plus join
  tables (conversation individuals; company, individual and conversation
  tags). Every tenant-scoped row carries exactly one workspace_id, stamped
  at creation and never updated.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from rolodex.db.session import Base


# ---------------------------------------------------------------------------
# Tenancy
# ---------------------------------------------------------------------------


class WorkspaceRow(Base):
    __tablename__ = "workspaces"

    workspace_id: Mapped[UUID] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    owner_id: Mapped[UUID] = mapped_column(nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class MembershipRow(Base):
    """At most one pending row per email and one active row per principal,
    per workspace. Removed rows accumulate as history.

    Status updates are conditional on the prior status. Only a pending row
    is ever deleted (invite cancellation).
    """

    __tablename__ = "memberships"
    __table_args__ = (
        CheckConstraint(
            "(status = 'pending' AND principal_id IS NULL)"
            " OR (status <> 'pending' AND principal_id IS NOT NULL)",
            name="ck_membership_principal_status",
        ),
        CheckConstraint(
            "status IN ('pending', 'active', 'removed')",
            name="ck_membership_status",
        ),
        CheckConstraint("role IN ('owner', 'member')", name="ck_membership_role"),
        Index("ix_memberships_workspace_status", "workspace_id", "status"),
        Index("ix_memberships_email_status", "email", "status"),
        Index("ix_memberships_principal_status", "principal_id", "status"),
        Index(
            "uq_memberships_pending_email", "workspace_id", "email", unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
        Index(
            "uq_memberships_active_principal", "workspace_id", "principal_id", unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )

    membership_id: Mapped[UUID] = mapped_column(primary_key=True)
    workspace_id: Mapped[UUID] = mapped_column(
        ForeignKey("workspaces.workspace_id"), nullable=False,
    )
    principal_id: Mapped[UUID | None] = mapped_column(nullable=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    invited_by: Mapped[UUID | None] = mapped_column(nullable=True)
    invited_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    removed_by: Mapped[UUID | None] = mapped_column(nullable=True)
    removed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class PrincipalRow(Base):
    """Directory entry refreshed on every authenticated request."""

    __tablename__ = "principals"

    principal_id: Mapped[UUID] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    current_workspace_id: Mapped[UUID | None] = mapped_column(nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


# ---------------------------------------------------------------------------
# Tenant-scoped contacts
# ---------------------------------------------------------------------------


class CompanyRow(Base):
    __tablename__ = "companies"

    company_id: Mapped[UUID] = mapped_column(primary_key=True)
    workspace_id: Mapped[UUID] = mapped_column(
        ForeignKey("workspaces.workspace_id"), nullable=False, index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    website: Mapped[str | None] = mapped_column(String(500), nullable=True)
    industry: Mapped[str | None] = mapped_column(String(255), nullable=True)
    size: Mapped[str | None] = mapped_column(String(50), nullable=True)
    type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[UUID | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class IndividualRow(Base):
    __tablename__ = "individuals"

    individual_id: Mapped[UUID] = mapped_column(primary_key=True)
    workspace_id: Mapped[UUID] = mapped_column(
        ForeignKey("workspaces.workspace_id"), nullable=False, index=True,
    )
    first_name: Mapped[str] = mapped_column(String(255), nullable=False)
    last_name: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    company_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("companies.company_id"), nullable=True,
    )
    role: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[UUID | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class TagRow(Base):
    __tablename__ = "tags"

    tag_id: Mapped[UUID] = mapped_column(primary_key=True)
    workspace_id: Mapped[UUID] = mapped_column(
        ForeignKey("workspaces.workspace_id"), nullable=False, index=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[str] = mapped_column(String(32), nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    created_by: Mapped[UUID | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class ConversationRow(Base):
    __tablename__ = "conversations"

    conversation_id: Mapped[UUID] = mapped_column(primary_key=True)
    workspace_id: Mapped[UUID] = mapped_column(
        ForeignKey("workspaces.workspace_id"), nullable=False, index=True,
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    next_steps: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    company_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("companies.company_id"), nullable=True,
    )
    created_by: Mapped[UUID | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class ConversationIndividualRow(Base):
    __tablename__ = "conversation_individuals"

    conversation_id: Mapped[UUID] = mapped_column(
        ForeignKey("conversations.conversation_id"), primary_key=True,
    )
    individual_id: Mapped[UUID] = mapped_column(
        ForeignKey("individuals.individual_id"), primary_key=True,
    )


class ConversationTagRow(Base):
    __tablename__ = "conversation_tags"

    conversation_id: Mapped[UUID] = mapped_column(
        ForeignKey("conversations.conversation_id"), primary_key=True,
    )
    tag_id: Mapped[UUID] = mapped_column(ForeignKey("tags.tag_id"), primary_key=True)


class CompanyTagRow(Base):
    __tablename__ = "company_tags"

    company_id: Mapped[UUID] = mapped_column(
        ForeignKey("companies.company_id"), primary_key=True,
    )
    tag_id: Mapped[UUID] = mapped_column(ForeignKey("tags.tag_id"), primary_key=True)


class IndividualTagRow(Base):
    __tablename__ = "individual_tags"

    individual_id: Mapped[UUID] = mapped_column(
        ForeignKey("individuals.individual_id"), primary_key=True,
    )
    tag_id: Mapped[UUID] = mapped_column(ForeignKey("tags.tag_id"), primary_key=True)


class ReminderRow(Base):
    __tablename__ = "reminders"

    reminder_id: Mapped[UUID] = mapped_column(primary_key=True)
    workspace_id: Mapped[UUID] = mapped_column(
        ForeignKey("workspaces.workspace_id"), nullable=False, index=True,
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    due_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)
    conversation_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("conversations.conversation_id"), nullable=True,
    )
    created_by: Mapped[UUID | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
