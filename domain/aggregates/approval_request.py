from datetime import UTC, datetime, timedelta
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from domain.exceptions import ValidationError
from domain.value_objects.approval_status import ApprovalStatus


def _new_token() -> str:
    # uuid4 carries 122 random bits from the OS CSPRNG
    return str(uuid4())


class ApprovalRequest(BaseModel):
    """A pending request to access a protected subject.

    Created when a requester submits the correct secret, flipped to approved
    once by the operator, and consumed the first time a poller observes the
    approval. Consumption is performed by the registry that owns the request.
    """

    token: str = Field(default_factory=_new_token)
    """One-time, unguessable handle shared with the requester."""

    subject_id: str
    """Identifies the protected resource (e.g. a specific file)."""

    submitted_secret: str = Field(repr=False)

    status: ApprovalStatus = ApprovalStatus.PENDING

    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("subject_id")
    @classmethod
    def validate_subject_id(cls, v: str) -> str:
        if not v or not v.strip():
            msg = "subject_id cannot be blank"
            raise ValueError(msg)
        return v

    @classmethod
    def create(cls, subject_id: str, submitted_secret: str, now: datetime | None = None) -> "ApprovalRequest":
        """Create a new pending request (Factory Method)."""
        if now is None:
            return cls(subject_id=subject_id, submitted_secret=submitted_secret)
        return cls(subject_id=subject_id, submitted_secret=submitted_secret, created_at=now)

    @property
    def approved(self) -> bool:
        return self.status is not ApprovalStatus.PENDING

    def approve(self) -> None:
        """Record the operator's decision. Repeated calls are no-ops."""
        if self.status is ApprovalStatus.PENDING:
            self.status = ApprovalStatus.APPROVED

    def consume(self) -> None:
        """Mark an approved request as used up by the poll that observed it."""
        if self.status is not ApprovalStatus.APPROVED:
            msg = f"Cannot consume a request in state {self.status.value}"
            raise ValidationError(msg)
        self.status = ApprovalStatus.CONSUMED

    def is_expired(self, now: datetime, ttl: timedelta | None) -> bool:
        if ttl is None:
            return False
        return now - self.created_at >= ttl
