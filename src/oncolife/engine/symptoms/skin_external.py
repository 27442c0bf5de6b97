"""
Skin & External Symptom Modules

Skin rash/redness, swelling and eye complaints.
"""

from typing import Any

from oncolife.engine.conditions import AnswerIncludes
from oncolife.engine.constants import EvalAction, SeverityLevel, SymptomCategory, SymptomId
from oncolife.engine.models import EvalResult, SessionState
from oncolife.engine.symptoms.base import (
    EYE_SYMPTOMS_OPTIONS,
    FEVER_THRESHOLD_F,
    SEVERITY_OPTIONS,
    SKIN_LOCATIONS,
    SWELLING_ASSOCIATED_OPTIONS,
    SWELLING_LOCATIONS,
    SymptomModule,
    WORSENING_OPTIONS,
    choice,
    emergency,
    flag,
    free_text,
    get,
    is_yes,
    multi_select,
    number,
    parse_count,
    parse_severity,
    parse_temperature,
    selected,
    yes_no,
)

SKI = SymptomId.SKIN_RASH
SWE = SymptomId.SWELLING
EYE = SymptomId.EYE


# =============================================================================
# SKI-212 Skin Rash/Redness
# =============================================================================

def evaluate_skin_screening(answers: dict[str, Any], session: SessionState) -> EvalResult:
    locations = selected(get(answers, SKI, "locations"))
    if "Face" in locations and is_yes(get(answers, SKI, "facial_breathing")):
        return emergency("Facial rash with breathing difficulty: possible allergic reaction. Call 911.")

    severity = parse_severity(get(answers, SKI, "severity"))
    alerts = []
    if is_yes(get(answers, SKI, "coverage")):
        alerts.append("Rash covers >30% body")
    if severity == SeverityLevel.SEVERE:
        alerts.append("Severe skin problem")
    if parse_temperature(get(answers, SKI, "temperature")) >= FEVER_THRESHOLD_F:
        alerts.append("Fever ≥100.3°F")
    if is_yes(get(answers, SKI, "infusion_symptoms")):
        alerts.append("Infusion site swollen/warm/draining")

    return flag(
        alerts,
        EvalAction.CONTINUE,
        severity=severity,
        notes=f"Location: {', '.join(locations)}" if locations else None,
    )


def evaluate_skin_follow_up(answers: dict[str, Any], session: SessionState) -> EvalResult:
    days = parse_count(get(answers, SKI, "days"))
    blistering = is_yes(get(answers, SKI, "blistering"))

    alerts = []
    if blistering:
        alerts.append("Skin blistering/peeling")
    elif get(answers, SKI, "worsening") == "Worsening" and days >= 2:
        alerts.append("Worsening rash ≥2 days")

    return flag(
        alerts,
        EvalAction.STOP,
        branch_to=[SymptomId.FEVER] if is_yes(get(answers, SKI, "feeling_unwell")) else None,
        duration=f"{days:g} days",
    )


SKIN_RASH = SymptomModule(
    symptom_id=SKI,
    name="Skin Rash/Redness",
    category=SymptomCategory.SKIN_EXTERNAL,
    screening_questions=(
        multi_select("locations", "Where is the rash or redness?", SKIN_LOCATIONS),
        yes_no("facial_breathing", "Are you having trouble breathing?", AnswerIncludes(SKI, "locations", "Face")),
        yes_no(
            "infusion_symptoms",
            "Is the infusion site swollen, warm, or draining?",
            AnswerIncludes(SKI, "locations", "Infusion Site"),
        ),
        yes_no("coverage", "Does the rash cover more than 30% of your body?"),
        number("temperature", "What is your temperature? (Enter number, e.g., 101.5)"),
        choice("severity", "How would you rate the skin problem?", SEVERITY_OPTIONS),
    ),
    evaluate_screening=evaluate_skin_screening,
    follow_up_questions=(
        number("days", "How many days have you had this rash?"),
        choice("worsening", "Is the rash getting worse, staying the same, or improving?", WORSENING_OPTIONS),
        yes_no("blistering", "Is the skin blistering or peeling?"),
        yes_no("itching", "Is the rash itching?"),
        yes_no("feeling_unwell", "Are you feeling generally unwell?"),
    ),
    evaluate_follow_up=evaluate_skin_follow_up,
)


# =============================================================================
# SWE-214 Swelling
# =============================================================================

def evaluate_swelling(answers: dict[str, Any], session: SessionState) -> EvalResult:
    locations = selected(get(answers, SWE, "locations"))
    associated = selected(get(answers, SWE, "associated"))

    if "Shortness of breath" in associated or "Chest discomfort" in associated:
        return emergency("Swelling with shortness of breath or chest discomfort: possible DVT/PE. Call 911.")

    severity = parse_severity(get(answers, SWE, "severity"))
    alerts = []
    if "Face" in locations or "Neck" in locations:
        alerts.append("Face/neck swelling")
    if "Fever" in associated:
        alerts.append("Fever with swelling")
    if "Legs" in locations and get(answers, SWE, "one_both") == "One side":
        alerts.append("Unilateral leg swelling (DVT concern)")
    if is_yes(get(answers, SWE, "redness_over")) or "Redness" in associated:
        alerts.append("Redness/warmth over swelling")
    if is_yes(get(answers, SWE, "clot_history")):
        alerts.append("History of blood clots")
    if severity == SeverityLevel.SEVERE:
        alerts.append("Severe swelling")

    cause = get(answers, SWE, "cause")
    return flag(
        alerts,
        EvalAction.STOP,
        severity=severity,
        duration=get(answers, SWE, "onset"),
        notes=f"Cause: {cause}" if cause else None,
    )


SWELLING = SymptomModule(
    symptom_id=SWE,
    name="Swelling",
    category=SymptomCategory.SKIN_EXTERNAL,
    screening_questions=(
        multi_select("locations", "Where is the swelling?", SWELLING_LOCATIONS),
        choice("one_both", "Is the swelling on one side or both sides?", ["One side", "Both sides"]),
        free_text("onset", "When did the swelling start?"),
        free_text("cause", "Do you know what caused the swelling?"),
        choice("severity", "How would you rate the swelling?", SEVERITY_OPTIONS),
        multi_select("associated", "Are you experiencing any of these?", SWELLING_ASSOCIATED_OPTIONS),
        yes_no("redness_over", "Is there redness or warmth over the swelling?"),
        yes_no("clot_history", "Do you have a history of blood clots?"),
    ),
    evaluate_screening=evaluate_swelling,
)


# =============================================================================
# EYE-207 Eye Complaints
# =============================================================================

def evaluate_eye(answers: dict[str, Any], session: SessionState) -> EvalResult:
    severity = parse_severity(get(answers, EYE, "severity"))

    alerts = []
    if is_yes(get(answers, EYE, "vision_problems")):
        alerts.append("Vision problems")
    if is_yes(get(answers, EYE, "interferes_tasks")):
        alerts.append("Interferes with daily tasks")
    if severity == SeverityLevel.SEVERE:
        alerts.append("Severe eye problem")

    symptoms = selected(get(answers, EYE, "symptoms"))
    return flag(
        alerts,
        EvalAction.CONTINUE,
        severity=severity,
        notes=", ".join(symptoms) if symptoms else None,
    )


def evaluate_eye_follow_up(answers: dict[str, Any], session: SessionState) -> EvalResult:
    seen = get(answers, EYE, "seen_doctor")
    return flag([], EvalAction.STOP, notes="Seen by an eye doctor" if is_yes(seen) else None)


EYE_COMPLAINTS = SymptomModule(
    symptom_id=EYE,
    name="Eye Complaints",
    category=SymptomCategory.SKIN_EXTERNAL,
    screening_questions=(
        yes_no("new_concern", "Is this a new eye concern?"),
        multi_select("symptoms", "Which eye symptoms are you experiencing?", EYE_SYMPTOMS_OPTIONS),
        yes_no(
            "vision_problems",
            "Are you having any vision problems (blurry vision, double vision, vision loss)?",
        ),
        yes_no("interferes_tasks", "Does this interfere with your daily tasks?"),
        choice("severity", "How would you rate your eye problem?", SEVERITY_OPTIONS),
    ),
    evaluate_screening=evaluate_eye,
    follow_up_questions=(
        yes_no("seen_doctor", "Have you seen an eye doctor about this?"),
    ),
    evaluate_follow_up=evaluate_eye_follow_up,
)


MODULES = [SKIN_RASH, SWELLING, EYE_COMPLAINTS]
