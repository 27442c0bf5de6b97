"""
Oncolife Persistence

Gateway for conversation side effects (phase updates, alerts, symptom
reports, session summaries) and the patient directory used at start.

Backends:
- In-memory (development, tests)
- PostgreSQL via asyncpg
"""

from oncolife.persistence.gateway import (
    InMemoryPatientDirectory,
    InMemoryPersistenceGateway,
    PatientDirectory,
    PersistenceGateway,
)
from oncolife.persistence.models import (
    AlertRecord,
    ConversationRecord,
    PatientRecord,
    SessionSummaryRecord,
    SymptomReportRecord,
)
from oncolife.persistence.resilient import DeadLetterQueue, FailedWrite, ResilientPersistence

__all__ = [
    "PersistenceGateway",
    "PatientDirectory",
    "InMemoryPersistenceGateway",
    "InMemoryPatientDirectory",
    "ResilientPersistence",
    "DeadLetterQueue",
    "FailedWrite",
    "AlertRecord",
    "ConversationRecord",
    "PatientRecord",
    "SessionSummaryRecord",
    "SymptomReportRecord",
]
