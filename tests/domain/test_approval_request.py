"""Tests for the ApprovalRequest entity."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from uuid import UUID

import pytest
from pydantic import ValidationError as PydanticValidationError

from domain.aggregates.approval_request import ApprovalRequest
from domain.exceptions import ValidationError
from domain.value_objects.approval_status import ApprovalStatus


class TestApprovalRequest:
    def test_create_is_pending_with_random_token(self) -> None:
        request = ApprovalRequest.create("pdf-1", "secret")

        assert request.approved is False
        assert request.status == ApprovalStatus.PENDING
        assert UUID(request.token).version == 4
        assert ApprovalRequest.create("pdf-1", "secret").token != request.token

    def test_approve_is_idempotent(self) -> None:
        request = ApprovalRequest.create("pdf-1", "secret")

        request.approve()
        request.approve()

        assert request.approved is True
        assert request.status == ApprovalStatus.APPROVED

    def test_blank_subject_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            ApprovalRequest.create("  ", "secret")

    def test_secret_not_in_repr(self) -> None:
        request = ApprovalRequest.create("pdf-1", "hunter2")
        assert "hunter2" not in repr(request)

    def test_expiry(self) -> None:
        created = datetime(2026, 1, 1, tzinfo=UTC)
        request = ApprovalRequest.create("pdf-1", "secret", now=created)
        ttl = timedelta(minutes=10)

        assert request.is_expired(created + timedelta(minutes=9), ttl) is False
        assert request.is_expired(created + timedelta(minutes=10), ttl) is True
        assert request.is_expired(created + timedelta(days=365), None) is False

    def test_consume_requires_approval(self) -> None:
        request = ApprovalRequest.create("pdf-1", "secret")

        with pytest.raises(ValidationError):
            request.consume()
        assert request.status == ApprovalStatus.PENDING

        request.approve()
        request.consume()

        assert request.status == ApprovalStatus.CONSUMED
        assert request.approved is True

    def test_approve_after_consume_keeps_consumed(self) -> None:
        request = ApprovalRequest.create("pdf-1", "secret")
        request.approve()
        request.consume()

        request.approve()

        assert request.status == ApprovalStatus.CONSUMED
