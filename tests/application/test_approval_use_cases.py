"""Tests for the access approval use cases."""

from __future__ import annotations

import asyncio

import pytest
import pytest_asyncio
from returns.result import Failure, Success

from application.dtos.approval_dtos import RequestAccessRequest
from application.use_cases.approval_use_cases import (
    CheckApprovalUseCase,
    RecordApprovalUseCase,
    RequestAccessUseCase,
)
from infrastructure.approvals.in_memory_approval_registry import InMemoryApprovalRegistry
from tests.mocks import ACCESS_SECRET, BASE_URL, OPERATOR, RecordingNotificationSender


def _request(secret: str = ACCESS_SECRET, subject_id: str = "pdf-42") -> RequestAccessRequest:
    return RequestAccessRequest(subject_id=subject_id, secret=secret)


class TestRequestAccessUseCase:
    """Test RequestAccessUseCase."""

    @pytest.mark.asyncio
    async def test_correct_secret_creates_pending_entry_and_notifies(
        self,
        request_access_use_case: RequestAccessUseCase,
        approval_registry: InMemoryApprovalRegistry,
        notification_sender: RecordingNotificationSender,
    ) -> None:
        result = await request_access_use_case.execute(_request())

        assert isinstance(result, Success)
        response = result.unwrap()
        assert response.message == "Waiting for approval"
        assert len(approval_registry) == 1

        notification = notification_sender.sent[0]
        assert notification.operator_address == OPERATOR
        assert notification.subject_id == "pdf-42"
        assert notification.approval_link == f"{BASE_URL}/approve/{response.token}"

    @pytest.mark.asyncio
    async def test_wrong_secret_is_unauthorized_and_creates_nothing(
        self,
        request_access_use_case: RequestAccessUseCase,
        approval_registry: InMemoryApprovalRegistry,
        notification_sender: RecordingNotificationSender,
    ) -> None:
        result = await request_access_use_case.execute(_request(secret="wrong"))

        assert isinstance(result, Failure)
        assert result.failure().category == "unauthorized"
        assert len(approval_registry) == 0
        assert notification_sender.sent == []

    @pytest.mark.asyncio
    async def test_unset_secret_rejects_everything(
        self,
        approval_registry: InMemoryApprovalRegistry,
        notification_sender: RecordingNotificationSender,
    ) -> None:
        use_case = RequestAccessUseCase(
            approval_registry=approval_registry,
            notification_sender=notification_sender,
            access_secret="",
            operator_address=OPERATOR,
            base_url=BASE_URL,
        )

        result = await use_case.execute(_request(secret=""))

        assert isinstance(result, Failure)
        assert result.failure().category == "unauthorized"

    @pytest.mark.asyncio
    async def test_dispatch_failure_rolls_back_entry(
        self,
        approval_registry: InMemoryApprovalRegistry,
    ) -> None:
        use_case = RequestAccessUseCase(
            approval_registry=approval_registry,
            notification_sender=RecordingNotificationSender(fail=True),
            access_secret=ACCESS_SECRET,
            operator_address=OPERATOR,
            base_url=BASE_URL,
        )

        result = await use_case.execute(_request())

        assert isinstance(result, Failure)
        assert result.failure().category == "notification_error"
        assert result.failure().message == "Failed to send email"
        assert len(approval_registry) == 0


class TestApprovalLifecycle:
    """Pending -> approved -> consumed."""

    @pytest_asyncio.fixture
    async def token(self, request_access_use_case: RequestAccessUseCase) -> str:
        return (await request_access_use_case.execute(_request())).unwrap().token

    @pytest.mark.asyncio
    async def test_poll_before_approval_is_repeatable(
        self,
        token: str,
        approval_registry: InMemoryApprovalRegistry,
    ) -> None:
        check = CheckApprovalUseCase(approval_registry)

        first = await check.execute(token)
        second = await check.execute(token)

        assert first.unwrap().approved is False
        assert first.unwrap().subject_id is None
        assert second.unwrap().approved is False
        assert len(approval_registry) == 1

    @pytest.mark.asyncio
    async def test_approved_token_consumed_exactly_once(
        self,
        token: str,
        approval_registry: InMemoryApprovalRegistry,
    ) -> None:
        approve = RecordApprovalUseCase(approval_registry)
        check = CheckApprovalUseCase(approval_registry)

        assert (await approve.execute(token)).unwrap() == "pdf-42"

        first = await check.execute(token)
        assert first.unwrap().approved is True
        assert first.unwrap().subject_id == "pdf-42"

        for _ in range(3):
            later = await check.execute(token)
            assert isinstance(later, Failure)
            assert later.failure().category == "not_found"

    @pytest.mark.asyncio
    async def test_double_approval_equivalent_to_single(
        self,
        token: str,
        approval_registry: InMemoryApprovalRegistry,
    ) -> None:
        approve = RecordApprovalUseCase(approval_registry)
        check = CheckApprovalUseCase(approval_registry)

        assert isinstance(await approve.execute(token), Success)
        assert isinstance(await approve.execute(token), Success)

        assert (await check.execute(token)).unwrap().approved is True
        assert isinstance(await check.execute(token), Failure)

    @pytest.mark.asyncio
    async def test_approval_after_consumption_is_not_found(
        self,
        token: str,
        approval_registry: InMemoryApprovalRegistry,
    ) -> None:
        approve = RecordApprovalUseCase(approval_registry)
        await approve.execute(token)
        await CheckApprovalUseCase(approval_registry).execute(token)

        result = await approve.execute(token)

        assert isinstance(result, Failure)
        assert result.failure().category == "not_found"

    @pytest.mark.asyncio
    async def test_concurrent_polls_have_single_winner(
        self,
        token: str,
        approval_registry: InMemoryApprovalRegistry,
    ) -> None:
        await RecordApprovalUseCase(approval_registry).execute(token)
        check = CheckApprovalUseCase(approval_registry)

        results = await asyncio.gather(*(check.execute(token) for _ in range(25)))

        winners = [r for r in results if isinstance(r, Success)]
        losers = [r for r in results if isinstance(r, Failure)]
        assert len(winners) == 1
        assert winners[0].unwrap().approved is True
        assert len(losers) == 24
        assert all(r.failure().category == "not_found" for r in losers)


class TestUnknownToken:
    @pytest.mark.asyncio
    async def test_unknown_token_not_found_and_state_untouched(
        self,
        request_access_use_case: RequestAccessUseCase,
        approval_registry: InMemoryApprovalRegistry,
    ) -> None:
        await request_access_use_case.execute(_request())

        check = await CheckApprovalUseCase(approval_registry).execute("nonexistent")
        approve = await RecordApprovalUseCase(approval_registry).execute("nonexistent")

        assert check.failure().category == "not_found"
        assert approve.failure().category == "not_found"
        assert len(approval_registry) == 1
