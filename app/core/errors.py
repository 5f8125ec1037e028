"""
Error types raised by the access-control core.

Services raise these before applying any write, so a failed mutation leaves
prior state untouched. app.main maps them to HTTP responses; app.client maps
HTTP responses back to them.
"""
from typing import Any


class TrackerError(Exception):
    """
    Base class for all application errors.

    Attributes:
        message: Human-readable description
        error_code: Machine-readable code
        details: Extra context (field, resource, ids)
    """
    status_code: int = 400
    default_code: str = "ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.error_code, "detail": self.message, "details": self.details}


class ValidationError(TrackerError):
    """Malformed input to a catalog, role or assignment mutation."""
    status_code = 400
    default_code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None, **details: Any) -> None:
        if field:
            details["field"] = field
        super().__init__(message, details=details)


class NotFoundError(TrackerError):
    """Referenced module, role, permission, user, project or team does not exist."""
    status_code = 404
    default_code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: Any = None, message: str | None = None) -> None:
        details: dict[str, Any] = {"resource": resource}
        if resource_id is not None:
            details["id"] = resource_id
        super().__init__(message or f"{resource} not found", details=details)


class UnauthorizedError(TrackerError):
    """Credential missing, expired or rejected."""
    status_code = 401
    default_code = "UNAUTHORIZED"

    def __init__(self, message: str = "Not authenticated", redirect_to: str | None = None) -> None:
        details = {"loginUrl": redirect_to} if redirect_to else {}
        self.redirect_to = redirect_to
        super().__init__(message, details=details)


class PermissionDeniedError(TrackerError):
    """Authenticated caller fails the role or permission check."""
    status_code = 403
    default_code = "PERMISSION_DENIED"

    def __init__(self, message: str = "Permission denied", **details: Any) -> None:
        super().__init__(message, details=details)
