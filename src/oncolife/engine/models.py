"""
Engine Models

Session state, patient input and engine output models for the symptom
check-in conversation.
"""

from typing import Any, Dict, List, Optional, Set
from datetime import datetime, timezone

from pydantic import BaseModel, Field

from oncolife.engine.constants import (
    ConversationPhase,
    EvalAction,
    MessageType,
    Section,
    SeverityLevel,
    TriageLevel,
    worst_triage,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def answer_key(symptom_id: str, question_id: str) -> str:
    """Key of an answer in ``SessionState.answers``."""
    symptom = getattr(symptom_id, "value", symptom_id)
    return f"{symptom}:{question_id}"


# =============================================================================
# Evaluation
# =============================================================================

class EvalResult(BaseModel):
    """Verdict returned by a symptom module evaluator."""
    action: EvalAction
    triage_level: TriageLevel = TriageLevel.NONE
    branch_to: List[str] = Field(default_factory=list)
    alert_message: Optional[str] = None
    severity: Optional[SeverityLevel] = None
    duration: Optional[str] = None
    medications_tried: Optional[str] = None
    notes: Optional[str] = None


class SymptomResult(BaseModel):
    """Accumulated outcome of one symptom module."""
    symptom_id: str
    triage_level: TriageLevel = TriageLevel.NONE
    severity: Optional[SeverityLevel] = None
    duration: Optional[str] = None
    medications_tried: Optional[str] = None
    notes: Optional[str] = None
    alert_message: Optional[str] = None
    branched_from: Optional[str] = None

    def merge(self, result: EvalResult) -> None:
        """Fold an evaluator verdict in, keeping the worst level seen."""
        self.triage_level = worst_triage(self.triage_level, result.triage_level)
        self.severity = result.severity or self.severity
        self.duration = result.duration or self.duration
        self.medications_tried = result.medications_tried or self.medications_tried
        self.notes = result.notes or self.notes
        if result.alert_message and result.alert_message != self.alert_message:
            if self.alert_message:
                self.alert_message = f"{self.alert_message}; {result.alert_message}"
            else:
                self.alert_message = result.alert_message


# =============================================================================
# Session
# =============================================================================

class PatientContext(BaseModel):
    """Treatment context gathered before symptom selection."""
    last_chemo: Optional[str] = None
    next_visit: Optional[str] = None


class SessionState(BaseModel):
    """
    Full mutable state of one check-in conversation.

    The work queue has two levels: ``selected_symptoms`` is the ordered
    top-level list walked by ``current_symptom_index`` and ``branch_stack``
    holds branch-discovered symptoms, drained depth-first before the next
    top-level entry.
    """
    conversation_id: str
    patient_id: str
    patient_name: str = "there"
    phase: ConversationPhase = ConversationPhase.DISCLAIMER

    # Work queue
    selected_symptoms: List[str] = Field(default_factory=list)
    current_symptom_index: int = -1
    current_symptom: Optional[str] = None
    current_question_index: int = 0
    current_section: Section = Section.SCREENING
    branch_stack: List[str] = Field(default_factory=list)
    branch_origins: Dict[str, str] = Field(default_factory=dict)  # child -> parent

    # Answers and results
    answers: Dict[str, Any] = Field(default_factory=dict)
    symptom_results: Dict[str, SymptomResult] = Field(default_factory=dict)
    evaluated_symptoms: List[str] = Field(default_factory=list)
    reported_symptoms: Set[str] = Field(default_factory=set)

    # Canonical dehydration questions already asked, and what was answered
    dehydration_keys_asked: Set[str] = Field(default_factory=set)
    dehydration_answers: Dict[str, Any] = Field(default_factory=dict)

    patient_context: PatientContext = Field(default_factory=PatientContext)
    is_emergency: bool = False
    emergency_screening: bool = False  # module entered from EMERGENCY_CHECK
    completed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def get_answer(self, symptom_id: str, question_id: str) -> Any:
        return self.answers.get(answer_key(symptom_id, question_id))

    def result_for(self, symptom_id: str) -> SymptomResult:
        """Return the symptom's result, creating an empty one on first use."""
        if symptom_id not in self.symptom_results:
            self.symptom_results[symptom_id] = SymptomResult(
                symptom_id=symptom_id,
                branched_from=self.branch_origins.get(symptom_id),
            )
        return self.symptom_results[symptom_id]

    @property
    def overall_triage(self) -> TriageLevel:
        return worst_triage(*(r.triage_level for r in self.symptom_results.values()))

    def touch(self) -> None:
        self.updated_at = utcnow()


# =============================================================================
# Input / Output
# =============================================================================

class PatientResponse(BaseModel):
    """One patient turn: a selection, a list of selections, free text or a number."""
    text: Optional[str] = None
    selected_option: Optional[str] = None
    selected_options: Optional[List[str]] = None
    numeric_value: Optional[float] = None

    @property
    def raw_text(self) -> str:
        """Text scanned by the hard-stop detector."""
        return " ".join(part for part in (self.text, self.selected_option) if part)

    @property
    def answer(self) -> str:
        """Single-valued answer, trimmed."""
        if self.selected_option:
            return self.selected_option.strip()
        if self.text:
            return self.text.strip()
        if self.numeric_value is not None:
            return f"{self.numeric_value:g}"
        return ""

    @property
    def selections(self) -> List[str]:
        if self.selected_options is not None:
            return [s for s in self.selected_options if s]
        return [self.answer] if self.answer else []


class SymptomRecommendation(BaseModel):
    symptom_id: str
    symptom_name: str
    triage_level: TriageLevel
    message: str


class SessionSummaryData(BaseModel):
    """Patient-facing summary of a check-in."""
    summary_text: str
    recommendations: List[SymptomRecommendation] = Field(default_factory=list)
    education_links: List[str] = Field(default_factory=list)
    overall_triage_level: TriageLevel = TriageLevel.NONE
    symptom_results: Dict[str, SymptomResult] = Field(default_factory=dict)


class EngineResponse(BaseModel):
    """What the presentation layer renders after a turn."""
    phase: ConversationPhase
    message: str
    message_type: MessageType = MessageType.TEXT
    options: Optional[List[str]] = None
    progress: Optional[int] = None
    is_complete: bool = False
    is_emergency: bool = False
    summary: Optional[SessionSummaryData] = None
    input_hint: Optional[str] = None
