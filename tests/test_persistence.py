"""
Tests for the persistence gateways and the retrying wrapper
"""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from oncolife.engine.constants import ConversationPhase, SeverityLevel, TriageLevel
from oncolife.engine.models import SymptomRecommendation
from oncolife.exceptions import PersistenceError
from oncolife.persistence import (
    AlertRecord,
    DeadLetterQueue,
    InMemoryPatientDirectory,
    InMemoryPersistenceGateway,
    PatientRecord,
    ResilientPersistence,
    SessionSummaryRecord,
    SymptomReportRecord,
)
from oncolife.persistence.postgres import PostgresPatientDirectory, PostgresPersistenceGateway
from oncolife.persistence.resilient import FailureReason, classify_failure


def make_alert(**overrides) -> AlertRecord:
    fields = {
        "patient_id": "patient-1",
        "conversation_id": "conv-1",
        "triage_level": TriageLevel.NOTIFY_CARE_TEAM,
        "message": "Fever 101.5°F",
        "symptom_id": "FEV-202",
    }
    fields.update(overrides)
    return AlertRecord(**fields)


@pytest.fixture
def mock_pool():
    """asyncpg pool whose acquire() yields a mock connection."""
    conn = AsyncMock()
    pool = MagicMock()
    pool.acquire.return_value.__aenter__.return_value = conn
    pool.acquire.return_value.__aexit__.return_value = False
    pool.conn = conn
    return pool


class TestInMemoryGateway:
    """Test the development gateway."""

    @pytest.mark.asyncio
    async def test_update_keeps_completion_fields(self):
        gateway = InMemoryPersistenceGateway()
        await gateway.update_conversation(
            "conv-1",
            phase=ConversationPhase.COMPLETED,
            is_emergency=False,
            triage_level=TriageLevel.NOTIFY_CARE_TEAM,
        )
        await gateway.update_conversation("conv-1", phase=ConversationPhase.COMPLETED, is_emergency=False)

        record = gateway.conversations["conv-1"]
        assert record.triage_level == TriageLevel.NOTIFY_CARE_TEAM

    @pytest.mark.asyncio
    async def test_records_filtered_by_conversation(self):
        gateway = InMemoryPersistenceGateway()
        await gateway.create_alert(make_alert())
        await gateway.create_alert(make_alert(conversation_id="conv-2"))
        await gateway.create_symptom_report(SymptomReportRecord(conversation_id="conv-1", symptom_id="FEV-202"))

        assert len(gateway.alerts_for("conv-1")) == 1
        assert gateway.reports_for("conv-1")[0].severity == SeverityLevel.MILD
        assert gateway.reports_for("conv-2") == []

    @pytest.mark.asyncio
    async def test_patient_directory(self):
        directory = InMemoryPatientDirectory([PatientRecord(patient_id="patient-1", first_name="Maria")])
        assert (await directory.get_patient("patient-1")).first_name == "Maria"
        assert await directory.get_patient("patient-9") is None


class TestResilientPersistence:
    """Test retries and dead-lettering."""

    @pytest.mark.asyncio
    async def test_retry_then_success(self):
        gateway = AsyncMock()
        gateway.create_alert.side_effect = [ConnectionError("reset"), None]
        persistence = ResilientPersistence(gateway, retries=2, retry_delay=0)

        await persistence.create_alert(make_alert())

        assert gateway.create_alert.await_count == 2
        assert len(persistence.dlq) == 0

    @pytest.mark.asyncio
    async def test_exhausted_write_is_dead_lettered(self):
        gateway = AsyncMock()
        gateway.update_conversation.side_effect = ConnectionError("refused")
        persistence = ResilientPersistence(gateway, retries=2, retry_delay=0)

        # Never raises
        await persistence.update_conversation("conv-1", phase=ConversationPhase.EMERGENCY, is_emergency=True)

        assert gateway.update_conversation.await_count == 3
        [write] = persistence.dlq.get_retryable()
        assert write.operation == "update_conversation"
        assert write.conversation_id == "conv-1"
        assert write.reason == FailureReason.CONNECTION
        assert write.kwargs["is_emergency"] is True

    @pytest.mark.asyncio
    async def test_replay_dead_letters(self):
        gateway = AsyncMock()
        gateway.create_alert.side_effect = [RuntimeError("rejected"), None]
        persistence = ResilientPersistence(gateway, retries=0, retry_delay=0)
        alert = make_alert()

        await persistence.create_alert(alert)
        assert len(persistence.dlq) == 1

        assert await persistence.replay_dead_letters() == 1
        assert len(persistence.dlq) == 0
        gateway.create_alert.assert_awaited_with(alert)

    @pytest.mark.asyncio
    async def test_replay_failure_counts_retry(self):
        gateway = AsyncMock()
        gateway.create_symptom_report.side_effect = RuntimeError("down")
        persistence = ResilientPersistence(gateway, retries=0, retry_delay=0)

        await persistence.create_symptom_report(SymptomReportRecord(conversation_id="conv-1", symptom_id="NAU-203"))

        assert await persistence.replay_dead_letters() == 0
        assert persistence.dlq.get_stats()["total"] == 1
        assert persistence.dlq.get_retryable()[0].retry_count == 1


class TestDeadLetterQueue:
    """Test DLQ bookkeeping."""

    def test_stats(self):
        dlq = DeadLetterQueue(max_retries=1)
        first = dlq.add("create_alert", (), {}, FailureReason.TIMEOUT, "timed out", "conv-1")
        dlq.add("create_alert", (), {}, FailureReason.CONNECTION, "refused", "conv-1")
        dlq.add("create_symptom_report", (), {}, FailureReason.CONNECTION, "refused", "conv-2")
        dlq.mark_retry(first.id, success=False)

        stats = dlq.get_stats()

        assert stats["total"] == 3
        assert stats["by_reason"]["connection"] == 2
        assert stats["by_operation"] == {"create_alert": 2, "create_symptom_report": 1}
        assert stats["retryable"] == 2
        assert stats["exhausted"] == 1

    def test_classify_failure(self):
        assert classify_failure(asyncio.TimeoutError()) == FailureReason.TIMEOUT
        assert classify_failure(ConnectionRefusedError()) == FailureReason.CONNECTION
        assert classify_failure(PersistenceError("create_alert", "constraint violated")) == FailureReason.REJECTED
        assert classify_failure(ValueError("bad")) == FailureReason.UNKNOWN


class TestPostgresGateway:
    """Test SQL parameter binding against a mock pool."""

    @pytest.mark.asyncio
    async def test_update_conversation(self, mock_pool):
        mock_pool.conn.execute.return_value = "UPDATE 1"
        gateway = PostgresPersistenceGateway(mock_pool)

        await gateway.update_conversation(
            "conv-1",
            phase=ConversationPhase.COMPLETED,
            is_emergency=False,
            triage_level=TriageLevel.NOTIFY_CARE_TEAM,
        )

        args = mock_pool.conn.execute.await_args.args
        assert "UPDATE conversations" in args[0]
        assert args[1:] == ("conv-1", "completed", False, None, "notify_care_team")

    @pytest.mark.asyncio
    async def test_update_of_missing_row_is_rejected(self, mock_pool):
        mock_pool.conn.execute.return_value = "UPDATE 0"
        gateway = PostgresPersistenceGateway(mock_pool)

        with pytest.raises(PersistenceError, match="no conversation row for conv-9"):
            await gateway.update_conversation("conv-9", phase=ConversationPhase.COMPLETED, is_emergency=False)

    @pytest.mark.asyncio
    async def test_rejected_update_is_dead_lettered_as_rejected(self, mock_pool):
        mock_pool.conn.execute.return_value = "UPDATE 0"
        persistence = ResilientPersistence(PostgresPersistenceGateway(mock_pool), retries=0, retry_delay=0)

        await persistence.update_conversation("conv-9", phase=ConversationPhase.EMERGENCY, is_emergency=True)

        [write] = persistence.dlq.get_retryable()
        assert write.reason == FailureReason.REJECTED
        assert write.conversation_id == "conv-9"

    @pytest.mark.asyncio
    async def test_create_alert(self, mock_pool):
        gateway = PostgresPersistenceGateway(mock_pool)
        alert = make_alert()

        await gateway.create_alert(alert)

        args = mock_pool.conn.execute.await_args.args
        assert "INSERT INTO alerts" in args[0]
        assert args[1] == alert.id
        assert args[4] == "notify_care_team"

    @pytest.mark.asyncio
    async def test_summary_json_columns(self, mock_pool):
        gateway = PostgresPersistenceGateway(mock_pool)
        summary = SessionSummaryRecord(
            conversation_id="conv-1",
            patient_id="patient-1",
            summary_text="Hi Maria,",
            recommendations=[SymptomRecommendation(
                symptom_id="FEV-202",
                symptom_name="Fever",
                triage_level=TriageLevel.NOTIFY_CARE_TEAM,
                message="🟡 Fever: Your care team will be notified.",
            )],
            education_links=["/education/fever-and-infection"],
        )

        await gateway.create_session_summary(summary)

        args = mock_pool.conn.execute.await_args.args
        assert json.loads(args[7])[0]["triage_level"] == "notify_care_team"
        assert json.loads(args[8]) == ["/education/fever-and-infection"]

    @pytest.mark.asyncio
    async def test_patient_lookup(self, mock_pool):
        mock_pool.conn.fetchrow.return_value = {
            "id": "patient-1",
            "first_name": "Maria",
            "last_name": "Lopez",
            "conversation_count": 3,
        }
        directory = PostgresPatientDirectory(mock_pool)

        patient = await directory.get_patient("patient-1")

        assert patient.first_name == "Maria"
        assert patient.conversation_count == 3

    @pytest.mark.asyncio
    async def test_unknown_patient(self, mock_pool):
        mock_pool.conn.fetchrow.return_value = None
        directory = PostgresPatientDirectory(mock_pool)
        assert await directory.get_patient("patient-9") is None
