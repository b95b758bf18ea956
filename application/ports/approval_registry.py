from abc import ABC, abstractmethod

from domain.aggregates.approval_request import ApprovalRequest


class ApprovalRegistry(ABC):
    """Port for the table of live approval requests, keyed by token.

    Every method is atomic with respect to the others.
    """

    @abstractmethod
    async def create(self, subject_id: str, submitted_secret: str) -> ApprovalRequest:
        """Store a new pending request under a fresh token and return it."""

    @abstractmethod
    async def approve(self, token: str) -> ApprovalRequest:
        """Mark the request as approved.

        Raises:
            ApprovalNotFoundError: token unknown, expired or consumed

        """

    @abstractmethod
    async def check_and_consume(self, token: str) -> ApprovalRequest:
        """Return a snapshot of the request, removing it if it is approved.

        Raises:
            ApprovalNotFoundError: token unknown, expired or consumed

        """

    @abstractmethod
    async def discard(self, token: str) -> None:
        """Remove the request if present."""

    @abstractmethod
    async def purge_expired(self) -> int:
        """Drop expired requests and return how many were removed."""
