"""Domain error taxonomy.

Services raise these; the API layer maps each class to an HTTP status in one
exception handler registered in ``hostdesk.main``. ``NoCapacity`` is not an
exception: the scheduler reports it as ``EstimateStatus.NO_CAPACITY``.
"""

from typing import Any, Dict, Optional


class HostdeskError(Exception):
    """Base class for all domain errors."""

    status_code = 400
    error_code = "error"
    retryable = False

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.context = context
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"detail": self.message, "error": self.error_code}
        if self.retryable:
            body["retryable"] = True
        return body


class NotFoundError(HostdeskError):
    """Raised for an unknown group, location, table or party."""

    status_code = 404
    error_code = "not_found"

    def __init__(self, entity: str, entity_id: Optional[str]):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} '{entity_id}' not found", entity=entity, entity_id=entity_id)


class ConflictError(HostdeskError):
    """Raised when a uniqueness guard loses a race (e.g. a table is already occupied).

    The caller should re-fetch the available tables and retry.
    """

    status_code = 409
    error_code = "conflict"
    retryable = True


class InvalidTransitionError(HostdeskError):
    """Raised for a status edge that the party state machine does not allow."""

    status_code = 409
    error_code = "invalid_transition"

    def __init__(self, party_id: str, current: str, target: str):
        self.party_id = party_id
        self.current = current
        self.target = target
        super().__init__(
            f"Party '{party_id}' cannot move from '{current}' to '{target}'",
            party_id=party_id,
            current=current,
            target=target,
        )


class InvalidStateError(HostdeskError):
    """Raised when an allowed edge is missing its precondition (no open seat event)."""

    status_code = 409
    error_code = "invalid_state"


class ValidationError(HostdeskError):
    """Raised for missing or out-of-range input, e.g. a party size below 1."""

    status_code = 422
    error_code = "validation_error"
