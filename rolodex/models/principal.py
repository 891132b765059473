"""Principal — the authenticated identity supplied by the identity provider."""

from uuid import UUID

from pydantic import Field, field_validator

from rolodex.models.common import RolodexBase, normalize_email


class Principal(RolodexBase, frozen=True):
    """Authenticated caller. ``email`` is verified upstream and trusted."""

    principal_id: UUID
    email: str
    display_name: str | None = Field(default=None, max_length=255)

    @field_validator("email")
    @classmethod
    def _normalize(cls, value: str) -> str:
        return normalize_email(value)
