from abc import ABC, abstractmethod

from application.dtos.approval_dtos import ApprovalNotification


class NotificationSender(ABC):
    """Port for delivering approval links to the operator out of band."""

    @abstractmethod
    async def send(self, notification: ApprovalNotification) -> None:
        """Deliver the notification, returning only once it was accepted.

        Raises:
            NotificationError: the transport rejected or failed to send it

        """
