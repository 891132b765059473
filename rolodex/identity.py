"""Identity provider boundary.

Authentication happens upstream (an identity-aware proxy or gateway); the
API trusts the principal id and verified email it forwards in headers.
"""

from collections.abc import Mapping
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from rolodex.config.settings import Settings
from rolodex.errors import AuthorizationError, RolodexError
from rolodex.models.principal import Principal


class HeaderIdentityProvider:
    """Builds the current Principal from trusted request headers."""

    def __init__(self, settings: Settings) -> None:
        self._id_header = settings.PRINCIPAL_ID_HEADER
        self._email_header = settings.PRINCIPAL_EMAIL_HEADER
        self._name_header = settings.PRINCIPAL_NAME_HEADER

    def resolve(self, headers: Mapping[str, str]) -> Principal:
        """Return the authenticated principal.

        Raises:
            AuthorizationError: If identity headers are missing or malformed.
        """
        raw_id = headers.get(self._id_header)
        raw_email = headers.get(self._email_header)
        if not raw_id or not raw_email:
            msg = "Not authenticated."
            raise AuthorizationError(msg)
        try:
            principal_id = UUID(raw_id)
        except ValueError:
            msg = "Malformed principal id."
            raise AuthorizationError(msg) from None
        try:
            return Principal(
                principal_id=principal_id,
                email=raw_email,
                display_name=headers.get(self._name_header) or None,
            )
        except (RolodexError, PydanticValidationError) as exc:
            raise AuthorizationError(f"Invalid identity: {exc}") from exc
