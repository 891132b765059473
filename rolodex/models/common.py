"""Shared types, enums, and base models used across Rolodex domain models."""

from datetime import datetime, timezone
from enum import StrEnum
from typing import Annotated
from uuid import UUID

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, Field
from uuid_extensions import uuid7

from rolodex.errors import ValidationError


def utc_now() -> datetime:
    """Return the current UTC timestamp (timezone-aware)."""
    return datetime.now(tz=timezone.utc)


def new_uuid7() -> UUID:
    """Generate a new time-sortable UUID v7."""
    return uuid7()


def normalize_email(email: str | None) -> str:
    """Trim and lower-case an email address.

    Syntax is checked by email-validator; deliverability (DNS) is not.

    Raises:
        ValidationError: If the address is empty or malformed.
    """
    cleaned = (email or "").strip().lower()
    if not cleaned:
        raise ValidationError("Email is required.")
    try:
        validate_email(cleaned, check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValidationError(f"Malformed email address: {email!r}.") from exc
    return cleaned


# --- Reusable annotated types ---

UUIDv7 = Annotated[UUID, Field(description="Time-sortable UUID v7.")]
UTCTimestamp = Annotated[
    datetime, Field(description="UTC timezone-aware timestamp.")
]


# --- Shared enums ---


class MembershipRole(StrEnum):
    """Role a principal holds inside a workspace."""

    OWNER = "owner"
    MEMBER = "member"


class MembershipStatus(StrEnum):
    """Persisted membership status.

    A cancelled invite has no status: its row is deleted.
    """

    PENDING = "pending"
    ACTIVE = "active"
    REMOVED = "removed"


class CompanySize(StrEnum):
    SMALL = "Small"
    MEDIUM = "Medium"
    LARGE = "Large"
    ENTERPRISE = "Enterprise"


class CompanyType(StrEnum):
    INVESTOR = "Investor"
    CUSTOMER = "Customer"
    PARTNER = "Partner"
    VENDOR = "Vendor"
    OTHER = "Other"


class ContactType(StrEnum):
    INVESTOR = "Investor"
    CUSTOMER = "Customer"
    POTENTIAL_EMPLOYEE = "Potential Employee"
    PARTNER = "Partner"
    OTHER = "Other"


class TagCategory(StrEnum):
    COMPANY = "Company"
    INDIVIDUAL = "Individual"
    CONVERSATION = "Conversation"
    ALL = "All"


class ReminderStatus(StrEnum):
    PENDING = "pending"
    COMPLETED = "completed"


# --- Base model ---


class RolodexBase(BaseModel):
    """Base model with common configuration for all Rolodex Pydantic models."""

    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
        "protected_namespaces": (),
    }
