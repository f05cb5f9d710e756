"""
Shared building blocks used across modules.
"""

from app.modules.shared.errors import (
    AccessDeniedError,
    NotFoundError,
    ServiceError,
    ValidationFailedError,
    raise_http_error,
)
from app.modules.shared.models import BaseModel, TimestampMixin, enum_values

__all__ = [
    "AccessDeniedError",
    "BaseModel",
    "NotFoundError",
    "ServiceError",
    "TimestampMixin",
    "ValidationFailedError",
    "enum_values",
    "raise_http_error",
]
