"""
PostgreSQL Persistence

Gateway and patient directory backed by an asyncpg connection pool.

Tables: conversations, alerts, symptom_reports, session_summaries, patients.
"""

from datetime import datetime
import json

import structlog

from oncolife.engine.constants import ConversationPhase, TriageLevel
from oncolife.exceptions import PersistenceError
from oncolife.persistence.gateway import PatientDirectory, PersistenceGateway
from oncolife.persistence.models import (
    AlertRecord,
    PatientRecord,
    SessionSummaryRecord,
    SymptomReportRecord,
)

logger = structlog.get_logger(__name__)


class PostgresPersistenceGateway(PersistenceGateway):
    """
    Conversation side effects written to PostgreSQL.

    Usage:
        gateway = PostgresPersistenceGateway(pool)
        await gateway.create_alert(alert)
    """

    def __init__(self, pool):
        """
        Args:
            pool: asyncpg.Pool instance
        """
        self.pool = pool

    async def update_conversation(
        self,
        conversation_id: str,
        *,
        phase: ConversationPhase,
        is_emergency: bool,
        completed_at: datetime | None = None,
        triage_level: TriageLevel | None = None,
    ) -> None:
        query = """
            UPDATE conversations
            SET phase = $2,
                is_emergency = $3,
                completed_at = COALESCE($4, completed_at),
                triage_level = COALESCE($5, triage_level),
                updated_at = NOW()
            WHERE id = $1
        """
        async with self.pool.acquire() as conn:
            status = await conn.execute(
                query,
                conversation_id,
                phase.value,
                is_emergency,
                completed_at,
                triage_level.value if triage_level else None,
            )
        if status == "UPDATE 0":
            logger.warning("Conversation row not found", conversation_id=conversation_id)
            raise PersistenceError("update_conversation", f"no conversation row for {conversation_id}")

    async def create_alert(self, alert: AlertRecord) -> None:
        query = """
            INSERT INTO alerts (id, patient_id, conversation_id, triage_level,
                                message, symptom_id, acknowledged, created_at)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
        """
        async with self.pool.acquire() as conn:
            await conn.execute(
                query,
                alert.id,
                alert.patient_id,
                alert.conversation_id,
                alert.triage_level.value,
                alert.message,
                alert.symptom_id,
                alert.acknowledged,
                alert.created_at,
            )

    async def create_symptom_report(self, report: SymptomReportRecord) -> None:
        query = """
            INSERT INTO symptom_reports (id, conversation_id, symptom_id, severity,
                                         duration, triage_level, notes,
                                         medications_tried, branched_from, created_at)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
        """
        async with self.pool.acquire() as conn:
            await conn.execute(
                query,
                report.id,
                report.conversation_id,
                report.symptom_id,
                report.severity.value,
                report.duration,
                report.triage_level.value,
                report.notes,
                report.medications_tried,
                report.branched_from,
                report.created_at,
            )

    async def create_session_summary(self, summary: SessionSummaryRecord) -> None:
        query = """
            INSERT INTO session_summaries (id, conversation_id, patient_id, summary_text,
                                           patient_added_notes, overall_triage_level,
                                           recommendations, education_links, created_at)
            VALUES ($1, $2, $3, $4, $5, $6, $7::jsonb, $8::jsonb, $9)
        """
        recommendations = json.dumps([r.model_dump(mode="json") for r in summary.recommendations])
        async with self.pool.acquire() as conn:
            await conn.execute(
                query,
                summary.id,
                summary.conversation_id,
                summary.patient_id,
                summary.summary_text,
                summary.patient_added_notes,
                summary.overall_triage_level.value,
                recommendations,
                json.dumps(summary.education_links),
                summary.created_at,
            )


class PostgresPatientDirectory(PatientDirectory):
    """Patient names and conversation counts from PostgreSQL."""

    def __init__(self, pool):
        self.pool = pool

    async def get_patient(self, patient_id: str) -> PatientRecord | None:
        query = """
            SELECT p.id, p.first_name, p.last_name,
                   (SELECT COUNT(*) FROM conversations c WHERE c.patient_id = p.id)
                       AS conversation_count
            FROM patients p
            WHERE p.id = $1
        """
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(query, patient_id)

        if not row:
            return None
        return PatientRecord(
            patient_id=row["id"],
            first_name=row["first_name"],
            last_name=row["last_name"],
            conversation_count=row["conversation_count"],
        )
