"""Error taxonomy for the membership and tenancy core.

Every core operation surfaces one of these to its caller. Nothing in the
core retries; the API layer renders them through ``to_response()``.
"""


class RolodexError(Exception):
    """Base class for all domain errors."""

    code = "ROLODEX_ERROR"
    http_status = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_response(self) -> dict:
        return {"error": {"code": self.code, "message": self.message}}


class ValidationError(RolodexError):
    """Malformed input, invalid transition, or unknown transfer target."""

    code = "VALIDATION_ERROR"
    http_status = 422


class InvalidTransitionError(ValidationError):
    """Raised by the membership state machine for a forbidden transition."""

    code = "INVALID_TRANSITION"


class NotFoundError(RolodexError):
    """No matching pending/active record."""

    code = "NOT_FOUND"
    http_status = 404


class AuthorizationError(RolodexError):
    """Insufficient role or ownership for the requested action."""

    code = "FORBIDDEN"
    http_status = 403


class OwnershipTransferRequiredError(RolodexError):
    """The sole active owner tried to leave without transferring ownership."""

    code = "OWNERSHIP_TRANSFER_REQUIRED"
    http_status = 409

    def __init__(
        self,
        message: str = "Transfer ownership before leaving this workspace.",
    ) -> None:
        super().__init__(message)


class CrossTenantReferenceError(RolodexError):
    """An entity reference spans two workspaces."""

    code = "CROSS_TENANT_REFERENCE"
    http_status = 422


class ConflictError(RolodexError):
    """A conditional write found the record in an unexpected status."""

    code = "CONFLICT"
    http_status = 409


class BackendUnavailableError(RolodexError):
    """I/O failure talking to the persistence backend or identity provider."""

    code = "BACKEND_UNAVAILABLE"
    http_status = 503
