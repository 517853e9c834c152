"""
Domain errors.

Services raise these; the API layer maps them to HTTP responses with a
single `{"message": ...}` body (see backoffice.main).

    ValidationError  -> 400  caller input is wrong, fix and resend
    NotFoundError    -> 404  unknown slug / id
    ConflictError    -> 409  collision, blocked delete, stale version
    StructuralError  -> 500  stored configuration is inconsistent
"""

from typing import Optional


class BackofficeError(Exception):
    """Base class for all domain errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BackofficeError):
    """Input failed validation. `field` names the offending key when known."""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        if field:
            message = f"{field}: {message}"
        super().__init__(message)
        self.field = field


class NotFoundError(BackofficeError):
    status_code = 404


class ConflictError(BackofficeError):
    status_code = 409


class StructuralError(BackofficeError):
    """
    A stored schema points at something that no longer exists.

    This means the integrity checks were bypassed (manual DB edit, race,
    bug). It is not user error and is logged separately.
    """

    status_code = 500
