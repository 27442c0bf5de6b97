"""
Emergency Symptom Modules

Single-question confirmations reached from the emergency check (or, for
chest pain, from the pain router). A "Yes" escalates to 911; anything else
stands down.
"""

from typing import Any

from oncolife.engine.constants import SymptomCategory, SymptomId, TriageLevel
from oncolife.engine.models import EvalResult, SessionState
from oncolife.engine.symptoms.base import (
    SymptomModule,
    choice,
    emergency,
    get,
    is_yes,
    stop,
    yes_no,
)


def confirmation_module(
    symptom_id: SymptomId,
    name: str,
    question_id: str,
    question: str,
    alert_message: str,
    hidden: bool = False,
) -> SymptomModule:
    """Build a module whose single yes/no question confirms an emergency."""

    def evaluate(answers: dict[str, Any], session: SessionState) -> EvalResult:
        if is_yes(get(answers, symptom_id, question_id)):
            return emergency(alert_message)
        return stop()

    return SymptomModule(
        symptom_id=symptom_id,
        name=name,
        category=SymptomCategory.EMERGENCY,
        screening_questions=(yes_no(question_id, question),),
        evaluate_screening=evaluate,
        hidden=hidden,
    )


TROUBLE_BREATHING = confirmation_module(
    SymptomId.TROUBLE_BREATHING,
    "Trouble Breathing",
    "q1",
    "Are you having Trouble Breathing or Shortness of Breath right now?",
    "Patient reports Trouble Breathing or Shortness of Breath.",
)

CHEST_PAIN = confirmation_module(
    SymptomId.CHEST_PAIN,
    "Chest Pain",
    "q1",
    "Are you having Chest pain?",
    "Patient reports Chest Pain.",
    hidden=True,
)

FAINTING = confirmation_module(
    SymptomId.FAINTING,
    "Fainting / Syncope",
    "faint",
    "Have you fainted or felt like you were going to faint?",
    "Patient reports fainting or near-fainting episode.",
)

ALTERED_MENTAL_STATUS = confirmation_module(
    SymptomId.ALTERED_MENTAL_STATUS,
    "Altered Mental Status",
    "confused",
    "Are you feeling confused, disoriented, or having trouble speaking?",
    "Patient reports confusion, disorientation, or sudden change.",
)


# =============================================================================
# URG-103 Bleeding / Bruising
# =============================================================================

BLD = SymptomId.BLEEDING


def evaluate_bleeding(answers: dict[str, Any], session: SessionState) -> EvalResult:
    if is_yes(get(answers, BLD, "pressure")):
        return emergency(
            "Call 911 right now. Bleeding that will not stop with pressure requires immediate emergency care."
        )

    notes = []
    if is_yes(get(answers, BLD, "thinners")):
        notes.append("On blood thinners")
    if is_yes(get(answers, BLD, "injury")):
        notes.append("Recent injury")
    if get(answers, BLD, "location"):
        notes.append(f"Bruising: {get(answers, BLD, 'location')}")

    if is_yes(get(answers, BLD, "stool_urine")):
        return stop(
            TriageLevel.NOTIFY_CARE_TEAM,
            alert_message=(
                "Contact your care team or go to the emergency department. "
                "Blood in stool or urine requires prompt medical evaluation."
            ),
            notes="; ".join(notes) or None,
        )
    return stop(notes="; ".join(notes) or None)


BLEEDING = SymptomModule(
    symptom_id=BLD,
    name="Bleeding / Bruising",
    category=SymptomCategory.EMERGENCY,
    screening_questions=(
        yes_no("pressure", "Are you bleeding and the bleeding won't stop with pressure?"),
        yes_no("stool_urine", "Do you have any blood in your stool or urine?"),
        yes_no("injury", "Did you injure yourself?"),
        yes_no("thinners", "Are you on blood thinners?"),
        choice("location", "Is the bruising in one area or all over your body?", ["One area", "All over"]),
    ),
    evaluate_screening=evaluate_bleeding,
)


MODULES = [TROUBLE_BREATHING, CHEST_PAIN, BLEEDING, FAINTING, ALTERED_MENTAL_STATUS]
