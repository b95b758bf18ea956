"""Domain layer exports."""

from domain.aggregates import ApprovalRequest
from domain.exceptions import (
    ApprovalNotFoundError,
    BlobNotFoundError,
    DomainError,
    InfrastructureError,
    InvalidSecretError,
    NotificationError,
    PayloadTooLargeError,
    ValidationError,
)
from domain.value_objects import ApprovalStatus, Category, StorageName

__all__ = [
    "ApprovalNotFoundError",
    "ApprovalRequest",
    "ApprovalStatus",
    "BlobNotFoundError",
    "Category",
    "DomainError",
    "InfrastructureError",
    "InvalidSecretError",
    "NotificationError",
    "PayloadTooLargeError",
    "StorageName",
    "ValidationError",
]
