"""Initial schema — tenancy and contact tables.

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _stamps() -> list[sa.Column]:
    return [
        sa.Column("created_by", UUID(as_uuid=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _workspace_fk() -> sa.Column:
    return sa.Column("workspace_id", UUID(as_uuid=True),
                     sa.ForeignKey("workspaces.workspace_id"), nullable=False)


def upgrade() -> None:
    # -- Tenancy --
    op.create_table(
        "workspaces",
        sa.Column("workspace_id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("owner_id", UUID(as_uuid=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "memberships",
        sa.Column("membership_id", UUID(as_uuid=True), primary_key=True),
        _workspace_fk(),
        sa.Column("principal_id", UUID(as_uuid=True), nullable=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("invited_by", UUID(as_uuid=True), nullable=True),
        sa.Column("invited_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("removed_by", UUID(as_uuid=True), nullable=True),
        sa.Column("removed_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "(status = 'pending' AND principal_id IS NULL)"
            " OR (status <> 'pending' AND principal_id IS NOT NULL)",
            name="ck_membership_principal_status",
        ),
        sa.CheckConstraint(
            "status IN ('pending', 'active', 'removed')",
            name="ck_membership_status",
        ),
        sa.CheckConstraint("role IN ('owner', 'member')", name="ck_membership_role"),
    )
    op.create_index("ix_memberships_workspace_status", "memberships",
                    ["workspace_id", "status"])
    op.create_index("ix_memberships_email_status", "memberships", ["email", "status"])
    op.create_index("ix_memberships_principal_status", "memberships",
                    ["principal_id", "status"])
    op.create_index("uq_memberships_pending_email", "memberships",
                    ["workspace_id", "email"], unique=True,
                    postgresql_where=sa.text("status = 'pending'"))
    op.create_index("uq_memberships_active_principal", "memberships",
                    ["workspace_id", "principal_id"], unique=True,
                    postgresql_where=sa.text("status = 'active'"))

    op.create_table(
        "principals",
        sa.Column("principal_id", UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("display_name", sa.String(255), nullable=True),
        sa.Column("current_workspace_id", UUID(as_uuid=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    # -- Tenant-scoped contacts --
    op.create_table(
        "companies",
        sa.Column("company_id", UUID(as_uuid=True), primary_key=True),
        _workspace_fk(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("website", sa.String(500), nullable=True),
        sa.Column("industry", sa.String(255), nullable=True),
        sa.Column("size", sa.String(50), nullable=True),
        sa.Column("type", sa.String(50), nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        *_stamps(),
    )
    op.create_index("ix_companies_workspace_id", "companies", ["workspace_id"])

    op.create_table(
        "individuals",
        sa.Column("individual_id", UUID(as_uuid=True), primary_key=True),
        _workspace_fk(),
        sa.Column("first_name", sa.String(255), nullable=False),
        sa.Column("last_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("company_id", UUID(as_uuid=True),
                  sa.ForeignKey("companies.company_id"), nullable=True),
        sa.Column("role", sa.String(255), nullable=True),
        sa.Column("contact_type", sa.String(50), nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        *_stamps(),
    )
    op.create_index("ix_individuals_workspace_id", "individuals", ["workspace_id"])

    op.create_table(
        "tags",
        sa.Column("tag_id", UUID(as_uuid=True), primary_key=True),
        _workspace_fk(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("color", sa.String(32), nullable=False),
        sa.Column("category", sa.String(50), nullable=False),
        *_stamps(),
    )
    op.create_index("ix_tags_workspace_id", "tags", ["workspace_id"])

    op.create_table(
        "conversations",
        sa.Column("conversation_id", UUID(as_uuid=True), primary_key=True),
        _workspace_fk(),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("summary", sa.Text, nullable=True),
        sa.Column("next_steps", sa.Text, nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("company_id", UUID(as_uuid=True),
                  sa.ForeignKey("companies.company_id"), nullable=True),
        *_stamps(),
    )
    op.create_index("ix_conversations_workspace_id", "conversations", ["workspace_id"])

    op.create_table(
        "conversation_individuals",
        sa.Column("conversation_id", UUID(as_uuid=True),
                  sa.ForeignKey("conversations.conversation_id"), primary_key=True),
        sa.Column("individual_id", UUID(as_uuid=True),
                  sa.ForeignKey("individuals.individual_id"), primary_key=True),
    )

    op.create_table(
        "conversation_tags",
        sa.Column("conversation_id", UUID(as_uuid=True),
                  sa.ForeignKey("conversations.conversation_id"), primary_key=True),
        sa.Column("tag_id", UUID(as_uuid=True),
                  sa.ForeignKey("tags.tag_id"), primary_key=True),
    )

    op.create_table(
        "company_tags",
        sa.Column("company_id", UUID(as_uuid=True),
                  sa.ForeignKey("companies.company_id"), primary_key=True),
        sa.Column("tag_id", UUID(as_uuid=True),
                  sa.ForeignKey("tags.tag_id"), primary_key=True),
    )

    op.create_table(
        "individual_tags",
        sa.Column("individual_id", UUID(as_uuid=True),
                  sa.ForeignKey("individuals.individual_id"), primary_key=True),
        sa.Column("tag_id", UUID(as_uuid=True),
                  sa.ForeignKey("tags.tag_id"), primary_key=True),
    )

    op.create_table(
        "reminders",
        sa.Column("reminder_id", UUID(as_uuid=True), primary_key=True),
        _workspace_fk(),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("conversation_id", UUID(as_uuid=True),
                  sa.ForeignKey("conversations.conversation_id"), nullable=True),
        *_stamps(),
    )
    op.create_index("ix_reminders_workspace_id", "reminders", ["workspace_id"])


def downgrade() -> None:
    op.drop_table("reminders")
    op.drop_table("individual_tags")
    op.drop_table("company_tags")
    op.drop_table("conversation_tags")
    op.drop_table("conversation_individuals")
    op.drop_table("conversations")
    op.drop_table("tags")
    op.drop_table("individuals")
    op.drop_table("companies")
    op.drop_table("principals")
    op.drop_table("memberships")
    op.drop_table("workspaces")
