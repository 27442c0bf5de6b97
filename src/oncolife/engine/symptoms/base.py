"""
Symptom Module Building Blocks

Module and question definitions, the option sets shared across modules and
the answer-reading helpers used by evaluators.
"""

from dataclasses import dataclass
from typing import Any, Callable

from oncolife.engine.conditions import Condition, to_fahrenheit, to_number
from oncolife.engine.constants import (
    EvalAction,
    NO,
    NONE_OF_THESE,
    QuestionType,
    Section,
    SeverityLevel,
    SymptomCategory,
    SymptomId,
    TriageLevel,
    YES,
    YES_NO_OPTIONS,
)
from oncolife.engine.models import EvalResult, SessionState, answer_key


Evaluator = Callable[[dict[str, Any], SessionState], EvalResult]

FEVER_THRESHOLD_F = 100.3
DEFAULT_EMERGENCY_MESSAGE = "Emergency detected — call 911 immediately."


# =============================================================================
# Definitions
# =============================================================================

@dataclass(frozen=True)
class QuestionDef:
    id: str
    text: str
    type: QuestionType
    options: tuple[str, ...] | None = None
    condition: Condition | None = None

    def is_visible(self, answers: dict[str, Any]) -> bool:
        return self.condition is None or self.condition.evaluate(answers)


def _stop(answers: dict[str, Any], session: SessionState) -> EvalResult:
    return EvalResult(action=EvalAction.STOP)


@dataclass(frozen=True)
class SymptomModule:
    """Question lists and decision rules for one symptom."""
    symptom_id: SymptomId
    name: str
    category: SymptomCategory
    screening_questions: tuple[QuestionDef, ...]
    evaluate_screening: Evaluator
    follow_up_questions: tuple[QuestionDef, ...] = ()
    evaluate_follow_up: Evaluator = _stop
    hidden: bool = False

    @property
    def id(self) -> str:
        return self.symptom_id.value

    def questions(self, section: Section) -> tuple[QuestionDef, ...]:
        if section == Section.FOLLOW_UP:
            return self.follow_up_questions
        return self.screening_questions

    def evaluator(self, section: Section) -> Evaluator:
        if section == Section.FOLLOW_UP:
            return self.evaluate_follow_up
        return self.evaluate_screening


def choice(qid: str, text: str, options: list[str], condition: Condition | None = None) -> QuestionDef:
    return QuestionDef(qid, text, QuestionType.CHOICE, tuple(options), condition)


def yes_no(qid: str, text: str, condition: Condition | None = None) -> QuestionDef:
    return QuestionDef(qid, text, QuestionType.YES_NO, tuple(YES_NO_OPTIONS), condition)


def number(qid: str, text: str, condition: Condition | None = None) -> QuestionDef:
    return QuestionDef(qid, text, QuestionType.NUMBER, None, condition)


def free_text(qid: str, text: str, condition: Condition | None = None) -> QuestionDef:
    return QuestionDef(qid, text, QuestionType.TEXT, None, condition)


def multi_select(qid: str, text: str, options: list[str], condition: Condition | None = None) -> QuestionDef:
    return QuestionDef(qid, text, QuestionType.MULTI_SELECT, tuple(options), condition)


# =============================================================================
# Option Sets
# =============================================================================

SEVERITY_OPTIONS = ["Mild (1–3)", "Moderate (4–6)", "Severe (7–10)"]
ORAL_INTAKE_OPTIONS = [
    "Reduced but eating",
    "Having difficulty eating/drinking",
    "Barely eating/drinking",
    "Not able to eat/drink at all",
    "Normal",
]
DEHYDRATION_SIGNS_OPTIONS = [
    "Dark urine",
    "Less urine than usual",
    "Very thirsty",
    "Lightheaded",
    "I know my vitals",
    NONE_OF_THESE,
]
KNOW_VITALS = "I know my vitals"

MEDS_NAUSEA_OPTIONS = [
    "Compazine (prochlorperazine) 5mg q6h",
    "Zofran (ondansetron) 8mg q8h",
    "Olanzapine 5mg daily",
    "Other",
    "None",
]
MEDS_DIARRHEA_OPTIONS = [
    "Imodium (loperamide) 4mg then 2mg after each loose stool",
    "Lomotil 1–2 tablets four times daily",
    "Other",
    "None",
]
MEDS_CONSTIPATION_OPTIONS = [
    "Miralax once daily",
    "Miralax twice daily",
    "Senna",
    "Bisacodyl (Dulcolax)",
    "Docusate (Colace)",
    "Other",
    "None",
]
MEDS_NEUROPATHY_OPTIONS = ["Gabapentin", "Duloxetine", "Pregabalin", "Other", "None"]
MEDS_COUGH_OPTIONS = [
    "Robitussin (dextromethorphan) 10–20mg every 4h",
    "Robitussin DM 30mg every 6–8h",
    "Other",
    "None",
]
FEVER_MEDS_OPTIONS = ["Tylenol (acetaminophen)", "Ibuprofen (Advil/Motrin)", "Other", "None"]
MOUTH_REMEDY_OPTIONS = ["Magic Mouthwash Rinse 5–10 mL for 30–60 sec every 4–6h", "Other", "None"]

WORSENING_OPTIONS = ["Worsening", "Same", "Improving"]
DURATION_OPTIONS = ["Less than 24 hours", "24 hours", "2–3 days", "More than 3 days"]
FEVER_DURATION_OPTIONS = ["Less than 24 hours", "1–2 days", "3 or more days"]
VOMITING_FREQUENCY_OPTIONS = ["1–2 times", "3–5 times", "More than 6 times"]
STOOL_SYMPTOMS_OPTIONS = ["Black stool", "Blood in stool", "Mucus", "Other", "None"]
PAIN_LOCATIONS = [
    "Chest",
    "Port/IV Site",
    "Head",
    "Leg/Calf",
    "Abdomen",
    "Urinary/Pelvic",
    "Joints/Muscles",
    "General Aches",
    "Nerve Burning/Tingling",
    "Mouth/Throat",
    "Other",
]
HEADACHE_NEURO_OPTIONS = [
    "Blurred/double vision",
    "Trouble speaking",
    "Face droopy",
    "Arm/leg weak",
    "Trouble walking",
    "Confusion",
    "None",
]
SKIN_LOCATIONS = ["Face", "Chest", "Arms", "Legs", "Hands/Feet", "Infusion Site", "Other"]
FEVER_ASSOCIATED_OPTIONS = [
    "Heart rate over 100",
    "Nausea",
    "Vomiting",
    "Abdominal Pain",
    "Diarrhea",
    "Port redness",
    "Cough",
    "Dizziness",
    "Confusion",
    "Burning urination",
    "Chills",
    "Other",
    "None",
]
JOINT_PAIN_TYPE_OPTIONS = ["Joint", "Muscle", "General aches"]
PAIN_DESCRIPTION_OPTIONS = ["Sharp", "Dull", "Burning", "Throbbing"]
HEADACHE_ONSET_OPTIONS = ["Sudden", "Today", "1–3 days ago", "More than 3 days"]
MUCUS_OPTIONS = ["No", "Clear", "Yellow-green", "Blood-streaked"]
URINE_COLOR_OPTIONS = ["Clear/pale", "Light yellow", "Dark yellow", "Orange", "Brown"]
DARK_URINE_COLORS = ("Dark yellow", "Orange", "Brown")
SWELLING_LOCATIONS = ["Face", "Neck", "Arms", "Legs", "Feet/Ankles", "Abdomen", "Other"]
SWELLING_ASSOCIATED_OPTIONS = ["Shortness of breath", "Chest discomfort", "Fever", "Redness", "None"]
EYE_SYMPTOMS_OPTIONS = ["Pain", "Discharge", "Excessive tearing", "None"]
BURNING_URINATION_OPTIONS = ["No", "Mild", "Moderate", "Severe"]
LAST_BM_OPTIONS = ["Today", "Yesterday", "2+ days ago"]


# =============================================================================
# Answer Helpers
# =============================================================================

def get(answers: dict[str, Any], symptom_id: SymptomId, question_id: str) -> Any:
    return answers.get(answer_key(symptom_id, question_id))


def is_yes(value: Any) -> bool:
    return value == YES


def is_no(value: Any) -> bool:
    return value == NO


def parse_severity(value: Any) -> SeverityLevel | None:
    if not value:
        return None
    lowered = str(value).lower()
    if "severe" in lowered:
        return SeverityLevel.SEVERE
    if "moderate" in lowered:
        return SeverityLevel.MODERATE
    if "mild" in lowered:
        return SeverityLevel.MILD
    return None


def is_critical_intake(value: Any) -> bool:
    if not value:
        return False
    lowered = str(value).lower()
    return "barely" in lowered or "not able" in lowered


def has_dehydration_signs(selected: Any) -> bool:
    if not isinstance(selected, (list, tuple, set)):
        return False
    return any(s not in (NONE_OF_THESE, KNOW_VITALS) for s in selected)


def meds_taken(value: Any) -> bool:
    return bool(value) and value != "None"


def parse_count(value: Any) -> float:
    number = to_number(value)
    return number if number is not None else 0


def parse_temperature(value: Any) -> float:
    temp = to_fahrenheit(value)
    return temp if temp is not None else 0


def selected(value: Any) -> list[str]:
    """Multi-select answer without the 'None' placeholders."""
    if not isinstance(value, (list, tuple, set)):
        return []
    return [v for v in value if v not in ("None", NONE_OF_THESE)]


def severity_of(answers: dict[str, Any], symptom_id: SymptomId, *question_ids: str) -> SeverityLevel | None:
    """Severity from the first answered of ``question_ids``."""
    for qid in question_ids:
        severity = parse_severity(get(answers, symptom_id, qid))
        if severity:
            return severity
    return None


# =============================================================================
# Verdicts
# =============================================================================

def proceed(triage_level: TriageLevel = TriageLevel.NONE, **kwargs: Any) -> EvalResult:
    """Screening done; go on to the module's follow-up questions."""
    return EvalResult(action=EvalAction.CONTINUE, triage_level=triage_level, **kwargs)


def stop(triage_level: TriageLevel = TriageLevel.NONE, **kwargs: Any) -> EvalResult:
    return EvalResult(action=EvalAction.STOP, triage_level=triage_level, **kwargs)


def branch(targets: list[SymptomId], triage_level: TriageLevel = TriageLevel.NONE, **kwargs: Any) -> EvalResult:
    return EvalResult(
        action=EvalAction.BRANCH,
        triage_level=triage_level,
        branch_to=[t.value for t in targets],
        **kwargs,
    )


def emergency(message: str = DEFAULT_EMERGENCY_MESSAGE, **kwargs: Any) -> EvalResult:
    return EvalResult(
        action=EvalAction.EMERGENCY,
        triage_level=TriageLevel.CALL_911,
        alert_message=message,
        **kwargs,
    )


def flag(
    alerts: list[str],
    action: EvalAction,
    branch_to: list[SymptomId] | None = None,
    **kwargs: Any,
) -> EvalResult:
    """Verdict for a rule set that collected ``alerts``.

    Any alert raises the level to NOTIFY_CARE_TEAM. Branch targets turn the
    verdict into a branch regardless of ``action``.
    """
    level = TriageLevel.NOTIFY_CARE_TEAM if alerts else TriageLevel.NONE
    message = "; ".join(alerts) if alerts else None
    if branch_to:
        return branch(branch_to, triage_level=level, alert_message=message, **kwargs)
    return EvalResult(action=action, triage_level=level, alert_message=message, **kwargs)


# =============================================================================
# Dehydration Equivalents
# =============================================================================

# Question id -> canonical key; each canonical key is asked once per conversation
DEHYDRATION_EQUIVALENTS: dict[str, str] = {
    "urine_color": "urine_color",
    "dark_urine": "urine_color",
    "less_urine": "reduced_urine",
    "thirsty": "thirst",
    "lightheaded": "lightheaded",
    "vitals": "known_vitals",
    "dehydration": "dehydration_signs",
}


def recall(answers: dict[str, Any], session: SessionState, symptom_id: SymptomId, question_id: str) -> Any:
    """Module's own answer, or the canonical answer when the question was skipped."""
    value = get(answers, symptom_id, question_id)
    if value is not None:
        return value
    canonical = DEHYDRATION_EQUIVALENTS.get(question_id)
    if canonical is None:
        return None
    return session.dehydration_answers.get(canonical)


def is_dark_urine(value: Any) -> bool:
    return value == YES or value in DARK_URINE_COLORS
