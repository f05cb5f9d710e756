"""
Service error hierarchy.

Services raise these; routers translate them into HTTP responses with a
`{"error": CODE, "message": ...}` detail body.
"""

from typing import Any, NoReturn

from fastapi import HTTPException


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 400,
        extra: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.extra = extra or {}
        super().__init__(message)


class NotFoundError(ServiceError):
    """Raised when a resource does not exist."""

    def __init__(self, resource: str, resource_id: str | None = None):
        message = f"{resource} {resource_id} not found" if resource_id else f"{resource} not found"
        super().__init__(
            message=message,
            error_code=f"{resource.upper().replace(' ', '_')}_NOT_FOUND",
            status_code=404,
        )


class AccessDeniedError(ServiceError):
    """Raised when the caller is neither the owner nor an admin."""

    def __init__(self, message: str = "Access denied"):
        super().__init__(message=message, error_code="ACCESS_DENIED", status_code=403)


class ValidationFailedError(ServiceError):
    """Raised for request data the service cannot accept."""

    def __init__(self, message: str, error_code: str = "VALIDATION_ERROR"):
        super().__init__(message=message, error_code=error_code, status_code=400)


def raise_http_error(e: ServiceError) -> NoReturn:
    """Convert a service error to an HTTPException."""
    detail: dict[str, Any] = {"error": e.error_code, "message": e.message}
    detail.update(e.extra)
    raise HTTPException(status_code=e.status_code, detail=detail) from e
