import structlog

from application.dtos.approval_dtos import ApprovalNotification
from application.ports.notification_sender import NotificationSender

logger = structlog.get_logger()


class ConsoleNotificationSender(NotificationSender):
    """Log approval links instead of sending them. For development."""

    async def send(self, notification: ApprovalNotification) -> None:
        logger.info(
            "approval_notification",
            operator=notification.operator_address,
            subject_id=notification.subject_id,
            approval_link=notification.approval_link,
        )
