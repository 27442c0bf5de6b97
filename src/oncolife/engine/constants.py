"""
Engine Constants

Enumerations shared by the conversation engine, the symptom modules and
the persistence layer, plus the fixed option sets used by the phase
dispatcher.
"""

from enum import Enum


# =============================================================================
# Triage
# =============================================================================

class TriageLevel(str, Enum):
    """Ordinal urgency of a symptom or a whole conversation."""
    NONE = "none"
    NOTIFY_CARE_TEAM = "notify_care_team"
    URGENT = "urgent"
    CALL_911 = "call_911"


TRIAGE_PRIORITY: dict[TriageLevel, int] = {
    TriageLevel.NONE: 0,
    TriageLevel.NOTIFY_CARE_TEAM: 1,
    TriageLevel.URGENT: 2,
    TriageLevel.CALL_911: 3,
}


def worst_triage(*levels: TriageLevel | None) -> TriageLevel:
    """Return the highest-priority level among ``levels`` (NONE when empty)."""
    worst = TriageLevel.NONE
    for level in levels:
        if level is not None and TRIAGE_PRIORITY[level] > TRIAGE_PRIORITY[worst]:
            worst = level
    return worst


class SeverityLevel(str, Enum):
    """Patient-rated severity."""
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"


# =============================================================================
# Conversation
# =============================================================================

class ConversationPhase(str, Enum):
    """Phases of the check-in state machine."""
    DISCLAIMER = "disclaimer"
    PATIENT_CONTEXT = "patient_context"
    EMERGENCY_CHECK = "emergency_check"
    SYMPTOM_SELECTION = "symptom_selection"
    SCREENING = "screening"
    FOLLOW_UP = "follow_up"
    BRANCHED = "branched"
    SUMMARY = "summary"
    ADDING_NOTES = "adding_notes"
    COMPLETED = "completed"
    EMERGENCY = "emergency"


TERMINAL_PHASES = frozenset({ConversationPhase.COMPLETED, ConversationPhase.EMERGENCY})


class MessageType(str, Enum):
    """Input widget the presentation layer should render."""
    TEXT = "text"
    OPTION_SELECT = "option_select"
    MULTI_SELECT = "multi_select"
    NUMBER_INPUT = "number_input"
    SUMMARY = "summary"


class Section(str, Enum):
    """Question list of a symptom module currently being walked."""
    SCREENING = "screening"
    FOLLOW_UP = "follow_up"


# =============================================================================
# Symptom Modules
# =============================================================================

class QuestionType(str, Enum):
    CHOICE = "choice"
    YES_NO = "yes_no"
    NUMBER = "number"
    TEXT = "text"
    MULTI_SELECT = "multi_select"


class EvalAction(str, Enum):
    """Verdict of a symptom module evaluator."""
    CONTINUE = "continue"
    STOP = "stop"
    BRANCH = "branch"
    EMERGENCY = "emergency"


class SymptomCategory(str, Enum):
    DIGESTIVE = "Digestive"
    PAIN_NERVE = "Pain & Nerve"
    SYSTEMIC = "Systemic"
    SKIN_EXTERNAL = "Skin & External"
    EMERGENCY = "Emergency"
    HIDDEN = "Hidden"


class SymptomId(str, Enum):
    """Closed set of symptom modules known to the registry."""
    # Digestive
    NAUSEA = "NAU-203"
    VOMITING = "VOM-204"
    DIARRHEA = "DIA-205"
    CONSTIPATION = "CON-210"
    NO_APPETITE = "APP-209"
    MOUTH_SORES = "MSO-208"
    DEHYDRATION = "DEH-201"

    # Pain & Nerve
    PAIN = "PAI-213"
    NEUROPATHY = "NEU-216"
    HEADACHE = "HEA-210"
    ABDOMINAL_PAIN = "ABD-211"
    LEG_PAIN = "LEG-208"
    PORT_SITE_PAIN = "URG-114"
    JOINT_MUSCLE_PAIN = "JMP-212"

    # Systemic
    FEVER = "FEV-202"
    FATIGUE = "FAT-206"
    COUGH = "COU-215"
    URINARY = "URI-211"

    # Skin & External
    SKIN_RASH = "SKI-212"
    SWELLING = "SWE-214"
    EYE = "EYE-207"

    # Emergency
    TROUBLE_BREATHING = "URG-101"
    CHEST_PAIN = "URG-102"
    BLEEDING = "URG-103"
    FAINTING = "URG-107"
    ALTERED_MENTAL_STATUS = "URG-108"

    # Hidden
    FALLS_BALANCE = "NEU-304"


# =============================================================================
# Phase Option Sets
# =============================================================================

YES = "Yes"
NO = "No"
YES_NO_OPTIONS = [YES, NO]

NONE_OF_THESE = "None of these"
FEEL_FINE = "None — I feel fine"

ADD_NOTES = "Yes, I want to add notes"
DONE = "No, I'm done"
NOTES_OPTIONS = [ADD_NOTES, DONE]

LAST_CHEMO_OPTIONS = [
    "Today",
    "Yesterday",
    "2–3 days ago",
    "4–7 days ago",
    "1–2 weeks ago",
    "More than 2 weeks ago",
    "None",
]

PHYSICIAN_VISIT_OPTIONS = [
    "Today",
    "Tomorrow",
    "In 2–3 days",
    "This week",
    "Next week",
    "More than 2 weeks away",
    "Not scheduled",
]

# Label shown in EMERGENCY_CHECK -> module that confirms or stands down
EMERGENCY_BUTTONS: dict[str, SymptomId] = {
    "Trouble Breathing": SymptomId.TROUBLE_BREATHING,
    "Chest Pain": SymptomId.CHEST_PAIN,
    "Significant Bleeding": SymptomId.BLEEDING,
    "Fainting": SymptomId.FAINTING,
    "Confusion": SymptomId.ALTERED_MENTAL_STATUS,
}

SYMPTOM_SELECTION_CATEGORIES: list[tuple[SymptomCategory, list[tuple[SymptomId, str]]]] = [
    (SymptomCategory.DIGESTIVE, [
        (SymptomId.NAUSEA, "Nausea"),
        (SymptomId.VOMITING, "Vomiting"),
        (SymptomId.DIARRHEA, "Diarrhea"),
        (SymptomId.CONSTIPATION, "Constipation"),
        (SymptomId.NO_APPETITE, "No Appetite"),
        (SymptomId.MOUTH_SORES, "Mouth Sores"),
        (SymptomId.DEHYDRATION, "Dehydration"),
    ]),
    (SymptomCategory.PAIN_NERVE, [
        (SymptomId.PAIN, "Pain"),
        (SymptomId.NEUROPATHY, "Neuropathy"),
    ]),
    (SymptomCategory.SYSTEMIC, [
        (SymptomId.FEVER, "Fever"),
        (SymptomId.FATIGUE, "Fatigue"),
        (SymptomId.COUGH, "Cough"),
        (SymptomId.URINARY, "Urinary Problems"),
    ]),
    (SymptomCategory.SKIN_EXTERNAL, [
        (SymptomId.SKIN_RASH, "Skin Rash/Redness"),
        (SymptomId.SWELLING, "Swelling"),
        (SymptomId.EYE, "Eye Complaints"),
    ]),
]

SELECTION_LABELS: dict[str, SymptomId] = {
    label: symptom_id
    for _, symptoms in SYMPTOM_SELECTION_CATEGORIES
    for symptom_id, label in symptoms
}
