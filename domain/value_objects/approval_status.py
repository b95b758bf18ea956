from enum import Enum


class ApprovalStatus(str, Enum):
    """Lifecycle states of an access approval request."""

    PENDING = "pending"
    APPROVED = "approved"
    CONSUMED = "consumed"
