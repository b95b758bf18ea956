import secrets

import structlog
from returns.result import Failure, Result, Success

from application.dtos.approval_dtos import (
    ApprovalNotification,
    ApprovalStatusResponse,
    RequestAccessRequest,
    RequestAccessResponse,
)
from application.dtos.errors import AppError
from application.ports.approval_registry import ApprovalRegistry
from application.ports.notification_sender import NotificationSender
from domain.exceptions import ApprovalNotFoundError, InvalidSecretError, NotificationError
from domain.value_objects.approval_status import ApprovalStatus

logger = structlog.get_logger()


def build_approval_link(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}/approve/{token}"


class RequestAccessUseCase:
    """Verify the shared secret and ask the operator to approve access.

    The token is returned to the caller only after the operator notification
    was accepted; if dispatch fails the pending entry is discarded.
    """

    def __init__(
        self,
        approval_registry: ApprovalRegistry,
        notification_sender: NotificationSender,
        access_secret: str,
        operator_address: str,
        base_url: str,
    ) -> None:
        self.approval_registry = approval_registry
        self.notification_sender = notification_sender
        self.access_secret = access_secret
        self.operator_address = operator_address
        self.base_url = base_url

    def _verify_secret(self, submitted: str) -> None:
        # An unset secret never matches, not even an empty submission
        if not self.access_secret or not secrets.compare_digest(
            submitted.encode(),
            self.access_secret.encode(),
        ):
            msg = "Incorrect password"
            raise InvalidSecretError(msg)

    async def execute(self, request: RequestAccessRequest) -> Result[RequestAccessResponse, AppError]:
        try:
            self._verify_secret(request.secret)
        except InvalidSecretError as e:
            logger.warning("access_secret_rejected", subject_id=request.subject_id)
            return Failure(AppError("unauthorized", str(e)))

        approval = await self.approval_registry.create(request.subject_id, request.secret)
        approval_link = build_approval_link(self.base_url, approval.token)

        try:
            await self.notification_sender.send(
                ApprovalNotification(
                    operator_address=self.operator_address,
                    subject_id=request.subject_id,
                    approval_link=approval_link,
                ),
            )
        except NotificationError:
            await self.approval_registry.discard(approval.token)
            logger.exception("approval_notification_failed", subject_id=request.subject_id)
            return Failure(AppError("notification_error", "Failed to send email"))
        except BaseException:
            # Cancellation or an adapter bug must not leave a usable token behind
            await self.approval_registry.discard(approval.token)
            raise

        logger.info(
            "approval_requested",
            subject_id=request.subject_id,
            approval_link=approval_link,
        )
        return Success(RequestAccessResponse(token=approval.token))


class RecordApprovalUseCase:
    """Record the operator's approval. Safe to repeat."""

    def __init__(self, approval_registry: ApprovalRegistry) -> None:
        self.approval_registry = approval_registry

    async def execute(self, token: str) -> Result[str, AppError]:
        try:
            approval = await self.approval_registry.approve(token)
        except ApprovalNotFoundError:
            logger.info("approval_token_not_found", action="approve")
            return Failure(AppError("not_found", "Invalid or expired token"))

        logger.info("approval_recorded", subject_id=approval.subject_id)
        return Success(approval.subject_id)


class CheckApprovalUseCase:
    """Poll a token; an approved token is consumed by the first poll that sees it."""

    def __init__(self, approval_registry: ApprovalRegistry) -> None:
        self.approval_registry = approval_registry

    async def execute(self, token: str) -> Result[ApprovalStatusResponse, AppError]:
        try:
            approval = await self.approval_registry.check_and_consume(token)
        except ApprovalNotFoundError:
            return Failure(AppError("not_found", "Invalid or expired token"))

        if approval.status is ApprovalStatus.PENDING:
            return Success(ApprovalStatusResponse(approved=False))

        logger.info("approval_consumed", subject_id=approval.subject_id)
        return Success(ApprovalStatusResponse(approved=True, subject_id=approval.subject_id))
