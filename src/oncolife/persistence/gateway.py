"""
Persistence Gateway

Interfaces the conversation engine writes through, plus in-memory
implementations for development and tests.
"""

from abc import ABC, abstractmethod
from datetime import datetime

import structlog

from oncolife.engine.constants import ConversationPhase, TriageLevel
from oncolife.engine.models import utcnow
from oncolife.persistence.models import (
    AlertRecord,
    ConversationRecord,
    PatientRecord,
    SessionSummaryRecord,
    SymptomReportRecord,
)

logger = structlog.get_logger(__name__)


class PersistenceGateway(ABC):
    """Side-effect sink for conversation state."""

    @abstractmethod
    async def update_conversation(
        self,
        conversation_id: str,
        *,
        phase: ConversationPhase,
        is_emergency: bool,
        completed_at: datetime | None = None,
        triage_level: TriageLevel | None = None,
    ) -> None:
        """Record the conversation's phase, emergency flag and completion."""
        ...

    @abstractmethod
    async def create_alert(self, alert: AlertRecord) -> None:
        ...

    @abstractmethod
    async def create_symptom_report(self, report: SymptomReportRecord) -> None:
        ...

    @abstractmethod
    async def create_session_summary(self, summary: SessionSummaryRecord) -> None:
        ...


class PatientDirectory(ABC):
    """Patient lookup used once when a conversation starts."""

    @abstractmethod
    async def get_patient(self, patient_id: str) -> PatientRecord | None:
        """Return the patient with their conversation count, current one included."""
        ...


# =============================================================================
# In-Memory Backends
# =============================================================================

class InMemoryPersistenceGateway(PersistenceGateway):
    """In-memory gateway for development."""

    def __init__(self):
        self.conversations: dict[str, ConversationRecord] = {}
        self.alerts: list[AlertRecord] = []
        self.symptom_reports: list[SymptomReportRecord] = []
        self.summaries: list[SessionSummaryRecord] = []

    async def update_conversation(
        self,
        conversation_id: str,
        *,
        phase: ConversationPhase,
        is_emergency: bool,
        completed_at: datetime | None = None,
        triage_level: TriageLevel | None = None,
    ) -> None:
        existing = self.conversations.get(conversation_id)
        record = ConversationRecord(
            conversation_id=conversation_id,
            phase=phase,
            is_emergency=is_emergency,
            completed_at=completed_at or (existing.completed_at if existing else None),
            triage_level=triage_level or (existing.triage_level if existing else None),
            updated_at=utcnow(),
        )
        self.conversations[conversation_id] = record

    async def create_alert(self, alert: AlertRecord) -> None:
        self.alerts.append(alert)
        logger.info(
            "Alert created",
            conversation_id=alert.conversation_id,
            triage_level=alert.triage_level.value,
            symptom_id=alert.symptom_id,
        )

    async def create_symptom_report(self, report: SymptomReportRecord) -> None:
        self.symptom_reports.append(report)

    async def create_session_summary(self, summary: SessionSummaryRecord) -> None:
        self.summaries.append(summary)

    def alerts_for(self, conversation_id: str) -> list[AlertRecord]:
        return [a for a in self.alerts if a.conversation_id == conversation_id]

    def reports_for(self, conversation_id: str) -> list[SymptomReportRecord]:
        return [r for r in self.symptom_reports if r.conversation_id == conversation_id]


class InMemoryPatientDirectory(PatientDirectory):
    """In-memory patient directory for development."""

    def __init__(self, patients: list[PatientRecord] | None = None):
        self._patients: dict[str, PatientRecord] = {}
        for patient in patients or []:
            self.add(patient)

    def add(self, patient: PatientRecord) -> None:
        self._patients[patient.patient_id] = patient

    async def get_patient(self, patient_id: str) -> PatientRecord | None:
        return self._patients.get(patient_id)
