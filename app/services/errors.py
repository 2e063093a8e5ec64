"""Domain errors raised by BetLedger services.

The API layer maps each class to an HTTP status; services never build
HTTP responses themselves.
"""

from typing import Any


class BetLedgerError(Exception):
    """Base class for expected, user-facing failures."""

    status_code = 500
    default_code = "INTERNAL"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Response body for this error."""
        return {"detail": self.message, "code": self.code, "errors": self.details}


class ValidationError(BetLedgerError):
    """Malformed or out-of-range input, rejected before any write."""

    status_code = 422
    default_code = "VALIDATION_ERROR"

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(message, details={field: message})


class ConflictError(BetLedgerError):
    """Duplicate name, or a transition the current state does not allow."""

    status_code = 409
    default_code = "CONFLICT"


class NotFoundError(BetLedgerError):
    """Referenced id does not exist."""

    status_code = 404
    default_code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Any) -> None:
        super().__init__(
            f"{entity} not found",
            details={"entity": entity, "id": entity_id},
        )
        self.entity = entity
        self.entity_id = entity_id


class ReferenceInUseError(BetLedgerError):
    """Delete blocked because other rows still point at this one."""

    status_code = 409
    default_code = "REFERENCE_IN_USE"

    def __init__(self, entity: str, entity_id: Any) -> None:
        super().__init__(
            f"{entity} is referenced by other records and cannot be deleted",
            details={"entity": entity, "id": entity_id},
        )
        self.entity = entity
        self.entity_id = entity_id
