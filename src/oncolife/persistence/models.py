"""
Persistence Records

Rows written by the conversation engine and read from the patient
directory.
"""

from typing import List, Optional
from datetime import datetime
import uuid

from pydantic import BaseModel, Field

from oncolife.engine.constants import ConversationPhase, SeverityLevel, TriageLevel
from oncolife.engine.models import SymptomRecommendation, utcnow


def _new_id() -> str:
    return str(uuid.uuid4())


class ConversationRecord(BaseModel):
    """Latest known state of a conversation."""
    conversation_id: str
    phase: ConversationPhase
    is_emergency: bool = False
    completed_at: Optional[datetime] = None
    triage_level: Optional[TriageLevel] = None
    updated_at: datetime = Field(default_factory=utcnow)


class AlertRecord(BaseModel):
    """Care-team alert raised during a check-in."""
    id: str = Field(default_factory=_new_id)
    patient_id: str
    conversation_id: Optional[str] = None
    triage_level: TriageLevel
    message: str
    symptom_id: Optional[str] = None
    acknowledged: bool = False
    created_at: datetime = Field(default_factory=utcnow)


class SymptomReportRecord(BaseModel):
    """One evaluated symptom of a conversation."""
    id: str = Field(default_factory=_new_id)
    conversation_id: str
    symptom_id: str
    severity: SeverityLevel = SeverityLevel.MILD
    duration: Optional[str] = None
    triage_level: TriageLevel = TriageLevel.NONE
    notes: Optional[str] = None
    medications_tried: Optional[str] = None
    branched_from: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


class SessionSummaryRecord(BaseModel):
    """Final summary of a completed check-in."""
    id: str = Field(default_factory=_new_id)
    conversation_id: str
    patient_id: str
    summary_text: str
    patient_added_notes: Optional[str] = None
    overall_triage_level: TriageLevel = TriageLevel.NONE
    recommendations: List[SymptomRecommendation] = Field(default_factory=list)
    education_links: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)


class PatientRecord(BaseModel):
    """Patient directory entry."""
    patient_id: str
    first_name: str
    last_name: Optional[str] = None
    conversation_count: int = 0
