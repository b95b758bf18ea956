"""Shared test fixtures and configuration."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

import pytest

# Must run before infrastructure.config is first imported
os.environ.setdefault("APP_ENV", "development")
os.environ.setdefault("LOG_DIR", str(Path(tempfile.gettempdir()) / "filevault-test-logs"))
os.environ.setdefault("NOTIFICATION_BACKEND", "console")

from application.use_cases.approval_use_cases import RequestAccessUseCase  # noqa: E402
from infrastructure.approvals.in_memory_approval_registry import (  # noqa: E402
    InMemoryApprovalRegistry,
)
from tests.mocks import (  # noqa: E402
    ACCESS_SECRET,
    BASE_URL,
    OPERATOR,
    InMemoryBlobStore,
    RecordingNotificationSender,
)


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def approval_registry() -> InMemoryApprovalRegistry:
    return InMemoryApprovalRegistry()


@pytest.fixture
def notification_sender() -> RecordingNotificationSender:
    return RecordingNotificationSender()


@pytest.fixture
def request_access_use_case(
    approval_registry: InMemoryApprovalRegistry,
    notification_sender: RecordingNotificationSender,
) -> RequestAccessUseCase:
    return RequestAccessUseCase(
        approval_registry=approval_registry,
        notification_sender=notification_sender,
        access_secret=ACCESS_SECRET,
        operator_address=OPERATOR,
        base_url=BASE_URL,
    )
