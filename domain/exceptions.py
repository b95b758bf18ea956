"""Domain exceptions for business rule violations."""


class DomainError(Exception):
    """Base exception for domain layer."""


class ValidationError(DomainError):
    """Raised when input validation fails."""


class PayloadTooLargeError(DomainError):
    """Raised when an upload exceeds the configured size limit."""

    def __init__(self, limit_bytes: int) -> None:
        super().__init__(f"File exceeds the maximum upload size of {limit_bytes} bytes")
        self.limit_bytes = limit_bytes


class BlobNotFoundError(DomainError):
    """Raised when a blob identifier does not resolve to a stored object."""


class ApprovalNotFoundError(DomainError):
    """Raised when an approval token is unknown, expired or already consumed."""


class InvalidSecretError(DomainError):
    """Raised when a submitted access secret does not match."""


class NotificationError(DomainError):
    """Raised when the operator notification could not be delivered."""


class InfrastructureError(DomainError):
    """Raised when infrastructure operations fail (DB, network, etc.)."""
