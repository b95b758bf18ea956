from __future__ import annotations

import asyncio
import html
import smtplib
import ssl
from email.message import EmailMessage

import structlog

from application.dtos.approval_dtos import ApprovalNotification
from application.ports.notification_sender import NotificationSender
from domain.exceptions import NotificationError

logger = structlog.get_logger()


def build_approval_email(sender: str, notification: ApprovalNotification) -> EmailMessage:
    subject_id = html.escape(notification.subject_id)
    link = html.escape(notification.approval_link, quote=True)

    message = EmailMessage()
    message["From"] = sender
    message["To"] = notification.operator_address
    message["Subject"] = f"Click to Approve Access for PDF ID {notification.subject_id}"
    message.set_content(
        f"A user is requesting access to PDF ID {notification.subject_id}.\n"
        f"Approve access: {notification.approval_link}\n",
    )
    message.add_alternative(
        "<h3>File Access Approval Request</h3>"
        f"<p>A user is requesting access to PDF ID <strong>{subject_id}</strong>.</p>"
        f'<p><a href="{link}">Click here to approve access</a></p>',
        subtype="html",
    )
    return message


class SmtpNotificationSender(NotificationSender):
    """Email the approval link over SMTP.

    smtplib blocks, so each send runs in a worker thread with its own
    connection.
    """

    def __init__(
        self,
        host: str,
        port: int,
        *,
        username: str | None = None,
        password: str | None = None,
        sender: str | None = None,
        use_ssl: bool = True,
        timeout: float = 30.0,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender or username or ""
        self.use_ssl = use_ssl
        self.timeout = timeout

    def _connect(self) -> smtplib.SMTP:
        context = ssl.create_default_context()
        if self.use_ssl:
            return smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout, context=context)
        client = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        try:
            client.starttls(context=context)
        except BaseException:
            client.close()
            raise
        return client

    def _send_blocking(self, message: EmailMessage) -> None:
        with self._connect() as client:
            if self.username and self.password:
                client.login(self.username, self.password)
            client.send_message(message)

    async def send(self, notification: ApprovalNotification) -> None:
        if not notification.operator_address:
            msg = "No operator address configured"
            raise NotificationError(msg)

        message = build_approval_email(self.sender, notification)
        try:
            await asyncio.to_thread(self._send_blocking, message)
        except (smtplib.SMTPException, OSError) as e:
            msg = f"SMTP delivery to {notification.operator_address} failed: {e!s}"
            raise NotificationError(msg) from e

        logger.info(
            "approval_email_sent",
            operator=notification.operator_address,
            subject_id=notification.subject_id,
        )
