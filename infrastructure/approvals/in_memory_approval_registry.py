from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import structlog

from application.ports.approval_registry import ApprovalRegistry
from domain.aggregates.approval_request import ApprovalRequest
from domain.exceptions import ApprovalNotFoundError
from domain.value_objects.approval_status import ApprovalStatus

logger = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _log_transition(request: ApprovalRequest) -> None:
    logger.info(
        "approval_state_changed",
        subject_id=request.subject_id,
        status=request.status.value,
    )


class InMemoryApprovalRegistry(ApprovalRegistry):
    """Process-local approval table guarded by a single asyncio lock.

    Entries live until consumed or until ``ttl`` elapses; expired entries are
    purged at the start of every operation and are indistinguishable from
    tokens that never existed. State does not survive a restart.
    """

    def __init__(
        self,
        ttl: timedelta | None = timedelta(hours=1),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._requests: dict[str, ApprovalRequest] = {}
        self._lock = asyncio.Lock()
        self._ttl = ttl
        self._clock = clock

    def __len__(self) -> int:
        return len(self._requests)

    def _purge_locked(self) -> int:
        if self._ttl is None:
            return 0
        now = self._clock()
        expired = [
            token for token, request in self._requests.items() if request.is_expired(now, self._ttl)
        ]
        for token in expired:
            del self._requests[token]
        if expired:
            logger.info("approval_requests_expired", count=len(expired))
        return len(expired)

    def _get_locked(self, token: str) -> ApprovalRequest:
        request = self._requests.get(token)
        if request is None:
            msg = "Invalid or expired token"
            raise ApprovalNotFoundError(msg)
        return request

    async def create(self, subject_id: str, submitted_secret: str) -> ApprovalRequest:
        async with self._lock:
            self._purge_locked()
            request = ApprovalRequest.create(subject_id, submitted_secret, now=self._clock())
            while request.token in self._requests:
                request = ApprovalRequest.create(subject_id, submitted_secret, now=self._clock())
            self._requests[request.token] = request
            return request.model_copy()

    async def approve(self, token: str) -> ApprovalRequest:
        async with self._lock:
            self._purge_locked()
            request = self._get_locked(token)
            if request.status is ApprovalStatus.PENDING:
                request.approve()
                _log_transition(request)
            return request.model_copy()

    async def check_and_consume(self, token: str) -> ApprovalRequest:
        async with self._lock:
            self._purge_locked()
            request = self._get_locked(token)
            if request.status is ApprovalStatus.APPROVED:
                request.consume()
                del self._requests[token]
                _log_transition(request)
            return request.model_copy()

    async def discard(self, token: str) -> None:
        async with self._lock:
            self._requests.pop(token, None)

    async def purge_expired(self) -> int:
        async with self._lock:
            return self._purge_locked()
