"""
Domain error taxonomy shared by the API and the dashboard client.

The API maps each class to an HTTP status in app.main; the client maps the
status back to the same class in app.client.api_client.
"""
from typing import Any, Dict, Optional


class WarehouseError(Exception):
    """Base class for warehouse domain errors."""

    status_code: int = 400
    kind: str = "WarehouseError"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"success": False, "error": self.message, "type": self.kind}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(WarehouseError):
    """Missing or malformed required field."""
    status_code = 400
    kind = "ValidationError"


class NotFoundError(WarehouseError):
    """Referenced entity does not exist."""
    status_code = 404
    kind = "NotFound"

    @classmethod
    def for_entity(cls, entity: str, identifier: Any) -> "NotFoundError":
        return cls(f"{entity} '{identifier}' not found", {"entity": entity, "id": str(identifier)})


class ConflictError(WarehouseError):
    """The mutation was based on a stale version of the entity."""
    status_code = 409
    kind = "Conflict"


class InvalidTransitionError(WarehouseError):
    """Status change not permitted from the current state."""
    status_code = 422
    kind = "InvalidTransition"


class NetworkError(WarehouseError):
    """Transport failure or unexpected non-2xx response (client side only)."""
    status_code = 503
    kind = "NetworkError"


# Fetch failures are reported to the dashboard as "unreachable"
Unreachable = NetworkError


ERRORS_BY_STATUS = {
    400: ValidationError,
    404: NotFoundError,
    409: ConflictError,
    422: InvalidTransitionError,
}

ERRORS_BY_KIND = {
    cls.kind: cls
    for cls in (ValidationError, NotFoundError, ConflictError, InvalidTransitionError, NetworkError)
}
