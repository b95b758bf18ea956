"""Tests for notification sender adapters."""

from __future__ import annotations

import smtplib
from email.message import EmailMessage

import pytest

from application.dtos.approval_dtos import ApprovalNotification
from domain.exceptions import NotificationError
from infrastructure.notifications.console_notification_sender import ConsoleNotificationSender
from infrastructure.notifications.smtp_notification_sender import (
    SmtpNotificationSender,
    build_approval_email,
)


@pytest.fixture
def notification() -> ApprovalNotification:
    return ApprovalNotification(
        operator_address="operator@example.com",
        subject_id="pdf-<7>",
        approval_link="http://files.example.com/approve/tok-123",
    )


def test_approval_email_contents(notification: ApprovalNotification) -> None:
    message = build_approval_email("bot@example.com", notification)

    assert message["To"] == "operator@example.com"
    assert message["From"] == "bot@example.com"
    assert message["Subject"] == "Click to Approve Access for PDF ID pdf-<7>"
    html_part = message.get_body(preferencelist=("html",))
    html = html_part.get_content()
    assert 'href="http://files.example.com/approve/tok-123"' in html
    # subject ids are escaped in the HTML body
    assert "pdf-&lt;7&gt;" in html
    assert "http://files.example.com/approve/tok-123" in message.get_body(("plain",)).get_content()


class TestSmtpNotificationSender:
    @pytest.mark.asyncio
    async def test_sends_through_smtp(
        self,
        notification: ApprovalNotification,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        sent: list[EmailMessage] = []
        sender = SmtpNotificationSender("smtp.example.com", 465, username="bot@example.com")
        monkeypatch.setattr(sender, "_send_blocking", sent.append)

        await sender.send(notification)

        assert len(sent) == 1
        assert sent[0]["From"] == "bot@example.com"

    @pytest.mark.asyncio
    async def test_smtp_failure_raises_notification_error(
        self,
        notification: ApprovalNotification,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        def refuse(message: EmailMessage) -> None:
            raise smtplib.SMTPAuthenticationError(535, b"bad credentials")

        sender = SmtpNotificationSender("smtp.example.com", 465)
        monkeypatch.setattr(sender, "_send_blocking", refuse)

        with pytest.raises(NotificationError, match="operator@example.com"):
            await sender.send(notification)

    @pytest.mark.asyncio
    async def test_connection_failure_raises_notification_error(
        self,
        notification: ApprovalNotification,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        def unreachable(message: EmailMessage) -> None:
            raise ConnectionRefusedError

        sender = SmtpNotificationSender("smtp.example.com", 465)
        monkeypatch.setattr(sender, "_send_blocking", unreachable)

        with pytest.raises(NotificationError):
            await sender.send(notification)

    @pytest.mark.asyncio
    async def test_failed_starttls_closes_connection(
        self,
        notification: ApprovalNotification,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        opened: list[FakeSMTP] = []

        class FakeSMTP:
            def __init__(self, host: str, port: int, timeout: float) -> None:
                self.closed = False
                opened.append(self)

            def starttls(self, context: object) -> None:
                msg = "STARTTLS extension not supported by server."
                raise smtplib.SMTPNotSupportedError(msg)

            def close(self) -> None:
                self.closed = True

        monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
        sender = SmtpNotificationSender("smtp.example.com", 587, use_ssl=False)

        with pytest.raises(NotificationError):
            await sender.send(notification)

        assert len(opened) == 1
        assert opened[0].closed is True

    @pytest.mark.asyncio
    async def test_missing_operator_address(self, notification: ApprovalNotification) -> None:
        sender = SmtpNotificationSender("smtp.example.com", 465)

        with pytest.raises(NotificationError, match="No operator address"):
            await sender.send(notification.model_copy(update={"operator_address": ""}))


@pytest.mark.asyncio
async def test_console_sender_never_fails(notification: ApprovalNotification) -> None:
    await ConsoleNotificationSender().send(notification)
