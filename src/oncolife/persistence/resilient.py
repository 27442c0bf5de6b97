"""
Resilient Persistence

Wraps a gateway with bounded retries. Writes that still fail are logged,
parked on a dead-letter queue and never surface to the patient.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
import asyncio
import uuid

import structlog

from oncolife.engine.constants import ConversationPhase, TriageLevel
from oncolife.engine.models import utcnow
from oncolife.exceptions import PersistenceError
from oncolife.persistence.gateway import PersistenceGateway
from oncolife.persistence.models import AlertRecord, SessionSummaryRecord, SymptomReportRecord

logger = structlog.get_logger(__name__)


class FailureReason(str, Enum):
    TIMEOUT = "timeout"
    CONNECTION = "connection"
    REJECTED = "rejected"
    UNKNOWN = "unknown"


def classify_failure(error: Exception) -> FailureReason:
    if isinstance(error, asyncio.TimeoutError):
        return FailureReason.TIMEOUT
    if isinstance(error, (ConnectionError, OSError)):
        return FailureReason.CONNECTION
    if isinstance(error, PersistenceError):
        return FailureReason.REJECTED
    return FailureReason.UNKNOWN


@dataclass
class FailedWrite:
    id: str
    operation: str
    args: tuple
    kwargs: dict[str, Any]
    reason: FailureReason
    error: str
    conversation_id: str | None = None
    retry_count: int = 0
    max_retries: int = 3
    created_at: datetime = field(default_factory=utcnow)
    last_retry: datetime | None = None


class DeadLetterQueue:
    """Gateway writes that exhausted their retries."""

    def __init__(self, max_retries: int = 3):
        self._queue: list[FailedWrite] = []
        self._max_retries = max_retries

    def add(
        self,
        operation: str,
        args: tuple,
        kwargs: dict[str, Any],
        reason: FailureReason,
        error: str,
        conversation_id: str | None = None,
    ) -> FailedWrite:
        write = FailedWrite(
            id=str(uuid.uuid4()),
            operation=operation,
            args=args,
            kwargs=kwargs,
            reason=reason,
            error=error,
            conversation_id=conversation_id,
            max_retries=self._max_retries,
        )
        self._queue.append(write)
        logger.warning(
            "Write added to DLQ",
            id=write.id,
            operation=operation,
            conversation_id=conversation_id,
            reason=reason.value,
        )
        return write

    def get_retryable(self) -> list[FailedWrite]:
        return [w for w in self._queue if w.retry_count < w.max_retries]

    def mark_retry(self, write_id: str, success: bool) -> None:
        for write in self._queue:
            if write.id == write_id:
                write.retry_count += 1
                write.last_retry = utcnow()
                if success:
                    self._queue.remove(write)
                break

    def get_by_reason(self, reason: FailureReason) -> list[FailedWrite]:
        return [w for w in self._queue if w.reason == reason]

    def get_stats(self) -> dict:
        return {
            "total": len(self._queue),
            "by_reason": {r.value: len(self.get_by_reason(r)) for r in FailureReason},
            "by_operation": self._count_by_operation(),
            "retryable": len(self.get_retryable()),
            "exhausted": len([w for w in self._queue if w.retry_count >= w.max_retries]),
        }

    def _count_by_operation(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for write in self._queue:
            counts[write.operation] = counts.get(write.operation, 0) + 1
        return counts

    def __len__(self) -> int:
        return len(self._queue)


class ResilientPersistence(PersistenceGateway):
    """
    Retrying front for a persistence gateway.

    Every write is attempted ``retries + 1`` times with a linear backoff of
    ``retry_delay`` seconds. After the last failure the write is logged and
    dead-lettered; callers never see the exception.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        retries: int = 2,
        retry_delay: float = 0.2,
        dlq: DeadLetterQueue | None = None,
    ):
        self.gateway = gateway
        self.retries = retries
        self.retry_delay = retry_delay
        self.dlq = dlq or DeadLetterQueue()

    async def update_conversation(
        self,
        conversation_id: str,
        *,
        phase: ConversationPhase,
        is_emergency: bool,
        completed_at: datetime | None = None,
        triage_level: TriageLevel | None = None,
    ) -> None:
        await self._write(
            "update_conversation",
            conversation_id,
            (conversation_id,),
            {
                "phase": phase,
                "is_emergency": is_emergency,
                "completed_at": completed_at,
                "triage_level": triage_level,
            },
        )

    async def create_alert(self, alert: AlertRecord) -> None:
        await self._write("create_alert", alert.conversation_id, (alert,), {})

    async def create_symptom_report(self, report: SymptomReportRecord) -> None:
        await self._write("create_symptom_report", report.conversation_id, (report,), {})

    async def create_session_summary(self, summary: SessionSummaryRecord) -> None:
        await self._write("create_session_summary", summary.conversation_id, (summary,), {})

    async def _write(self, operation: str, conversation_id: str | None, args: tuple, kwargs: dict) -> bool:
        method = getattr(self.gateway, operation)
        attempts = self.retries + 1

        for attempt in range(1, attempts + 1):
            try:
                await method(*args, **kwargs)
                return True
            except Exception as e:
                logger.error(
                    "Persistence write failed",
                    operation=operation,
                    conversation_id=conversation_id,
                    attempt=attempt,
                    max_attempts=attempts,
                    error=str(e),
                )
                if attempt == attempts:
                    self.dlq.add(
                        operation,
                        args,
                        kwargs,
                        reason=classify_failure(e),
                        error=str(e),
                        conversation_id=conversation_id,
                    )
                    return False
                await asyncio.sleep(self.retry_delay * attempt)
        return False

    async def replay_dead_letters(self) -> int:
        """Retry dead-lettered writes once each. Returns how many succeeded."""
        succeeded = 0
        for write in self.dlq.get_retryable():
            method = getattr(self.gateway, write.operation)
            try:
                await method(*write.args, **write.kwargs)
            except Exception as e:
                logger.warning("DLQ replay failed", id=write.id, operation=write.operation, error=str(e))
                self.dlq.mark_retry(write.id, success=False)
                continue
            self.dlq.mark_retry(write.id, success=True)
            succeeded += 1

        if succeeded:
            logger.info("DLQ replay completed", succeeded=succeeded, remaining=len(self.dlq))
        return succeeded
