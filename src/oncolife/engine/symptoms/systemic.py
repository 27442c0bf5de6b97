"""
Systemic Symptom Modules

Fever, fatigue, cough and urinary problems.
"""

from typing import Any

from oncolife.engine.conditions import AnswerAtLeast, AnswerEquals, AnswerIncludes, AllOf, Answered, TemperatureAbove
from oncolife.engine.constants import (
    EvalAction,
    SeverityLevel,
    SymptomCategory,
    SymptomId,
    TriageLevel,
)
from oncolife.engine.models import EvalResult, SessionState
from oncolife.engine.symptoms.base import (
    BURNING_URINATION_OPTIONS,
    FEVER_ASSOCIATED_OPTIONS,
    FEVER_DURATION_OPTIONS,
    FEVER_MEDS_OPTIONS,
    FEVER_THRESHOLD_F,
    MEDS_COUGH_OPTIONS,
    MUCUS_OPTIONS,
    ORAL_INTAKE_OPTIONS,
    SEVERITY_OPTIONS,
    SymptomModule,
    WORSENING_OPTIONS,
    choice,
    emergency,
    flag,
    free_text,
    get,
    is_no,
    is_yes,
    meds_taken,
    multi_select,
    number,
    parse_count,
    parse_severity,
    parse_temperature,
    selected,
    stop,
    yes_no,
)

FEV = SymptomId.FEVER
FAT = SymptomId.FATIGUE
COU = SymptomId.COUGH
URI = SymptomId.URINARY

_HIGH_TEMP = TemperatureAbove(FEV, "temp", FEVER_THRESHOLD_F)


# =============================================================================
# FEV-202 Fever
# =============================================================================

def _fever_medications(answers: dict[str, Any]) -> str | None:
    meds = get(answers, FEV, "fever_meds")
    if not meds_taken(meds):
        return None
    detail = get(answers, FEV, "fever_meds_detail")
    return f"{meds}: {detail}" if detail else meds


def evaluate_fever(answers: dict[str, Any], session: SessionState) -> EvalResult:
    temp = parse_temperature(get(answers, FEV, "temp"))
    meds = _fever_medications(answers)
    meds_sentence = f"Taking {meds}." if meds else "No fever medications taken."

    if temp <= FEVER_THRESHOLD_F:
        return stop(
            notes=(
                f"Temperature {temp:.1f}°F is below fever threshold ({FEVER_THRESHOLD_F}°F). "
                f"{meds_sentence} Continue to monitor temperature."
            ),
            medications_tried=meds,
        )

    duration = get(answers, FEV, "fever_duration")
    symptoms = selected(get(answers, FEV, "high_temp_symptoms"))
    other = get(answers, FEV, "high_temp_symptoms_other")
    if other:
        symptoms = [s for s in symptoms if s != "Other"] + [other]
    symptoms_sentence = (
        f"Associated symptoms: {', '.join(symptoms)}." if symptoms else "No additional symptoms reported."
    )

    return stop(
        TriageLevel.NOTIFY_CARE_TEAM,
        alert_message=(
            f"Fever {temp:.1f}°F (Duration: {duration or 'unknown'}). {meds_sentence} {symptoms_sentence}"
        ),
        duration=duration,
        medications_tried=meds,
    )


FEVER = SymptomModule(
    symptom_id=FEV,
    name="Fever",
    category=SymptomCategory.SYSTEMIC,
    screening_questions=(
        number("temp", "Fever can be worrying. What is your temperature? (Enter number, e.g., 101.5)"),
        choice("fever_meds", "What medications have you taken to lower your temperature?", FEVER_MEDS_OPTIONS),
        free_text("fever_meds_detail", "What did you take and how often?", Answered(FEV, "fever_meds")),
        choice("fever_duration", "How long have you had this fever?", FEVER_DURATION_OPTIONS, _HIGH_TEMP),
        multi_select(
            "high_temp_symptoms",
            "Are you experiencing any of these additional symptoms?",
            FEVER_ASSOCIATED_OPTIONS,
            _HIGH_TEMP,
        ),
        free_text(
            "high_temp_symptoms_other",
            "Please describe the other symptom:",
            AllOf((_HIGH_TEMP, AnswerIncludes(FEV, "high_temp_symptoms", "Other"))),
        ),
        choice("fever_intake", "Have you been able to eat/drink normally?", ORAL_INTAKE_OPTIONS, _HIGH_TEMP),
        yes_no(
            "fever_adl",
            "Are you able to perform daily self care like bathing, using the toilet, eating independently?",
            _HIGH_TEMP,
        ),
    ),
    evaluate_screening=evaluate_fever,
)


# =============================================================================
# FAT-206 Fatigue
# =============================================================================

def evaluate_fatigue(answers: dict[str, Any], session: SessionState) -> EvalResult:
    severity = parse_severity(get(answers, FAT, "severity"))
    days = parse_count(get(answers, FAT, "days"))

    alerts = []
    if is_yes(get(answers, FAT, "daily_activities")):
        alerts.append("Fatigue interferes with daily activities")
    if severity == SeverityLevel.SEVERE:
        alerts.append("Severe fatigue")
    if severity == SeverityLevel.MODERATE and days >= 3:
        alerts.append("Moderate fatigue for ≥3 days")
    if get(answers, FAT, "worsening") == "Worsening":
        alerts.append("Fatigue worsening")
    if is_yes(get(answers, FAT, "self_care")):
        alerts.append("Fatigue affects self-care")

    hours = get(answers, FAT, "hours_bed")
    return flag(
        alerts,
        EvalAction.STOP,
        severity=severity,
        duration=f"{days:g} days",
        notes=f"{parse_count(hours):g} hours in bed" if hours is not None else None,
    )


FATIGUE = SymptomModule(
    symptom_id=FAT,
    name="Fatigue",
    category=SymptomCategory.SYSTEMIC,
    screening_questions=(
        yes_no("daily_activities", "Does the fatigue interfere with your daily activities?"),
        choice("severity", "How would you rate your fatigue?", SEVERITY_OPTIONS),
        number("days", "How many continuous days have you felt this fatigue?"),
        choice(
            "worsening",
            "Is the fatigue worsening, the same, or improving?",
            WORSENING_OPTIONS,
            AnswerAtLeast(FAT, "days", 3),
        ),
        number("hours_bed", "How many hours a day are you sleeping or spending in bed?"),
        yes_no("worse_yesterday", "Was the fatigue worse yesterday than the day before?"),
        yes_no("self_care", "Does the fatigue affect your ability to take care of yourself?"),
    ),
    evaluate_screening=evaluate_fatigue,
)


# =============================================================================
# COU-215 Cough
# =============================================================================

def evaluate_cough(answers: dict[str, Any], session: SessionState) -> EvalResult:
    if is_yes(get(answers, COU, "chest_pain_sob")):
        return emergency("Cough with chest pain or shortness of breath. Call 911.")

    o2 = parse_count(get(answers, COU, "o2_sat"))
    if 0 < o2 < 90:
        return emergency(f"Oxygen saturation {o2:g}% is below 90%. Call 911.")

    severity = parse_severity(get(answers, COU, "severity"))
    alerts = []
    if get(answers, COU, "mucus") == "Blood-streaked":
        alerts.append("Blood-streaked mucus")
    if 0 < o2 < 94:
        alerts.append(f"O2 saturation {o2:g}%")
    if severity == SeverityLevel.SEVERE:
        alerts.append("Severe cough")
    temp = parse_temperature(get(answers, COU, "temperature"))
    if temp >= FEVER_THRESHOLD_F:
        alerts.append(f"Fever {temp:g}°F")

    meds = get(answers, COU, "meds")
    return flag(
        alerts,
        EvalAction.STOP,
        severity=severity,
        duration=f"{parse_count(get(answers, COU, 'days')):g} days",
        medications_tried=meds if meds_taken(meds) else None,
    )


COUGH = SymptomModule(
    symptom_id=COU,
    name="Cough",
    category=SymptomCategory.SYSTEMIC,
    screening_questions=(
        number("days", "How many days have you had a cough?"),
        number("temperature", "What is your temperature? (Enter number, e.g., 101.5)"),
        choice("mucus", "Are you coughing up mucus?", MUCUS_OPTIONS),
        choice("meds", "What cough medications are you taking?", MEDS_COUGH_OPTIONS),
        yes_no("meds_helping", "Are the medications helping?", Answered(COU, "meds")),
        yes_no("daily_activities", "Does the cough prevent you from performing daily activities?"),
        yes_no("chest_pain_sob", "Are you having chest pain or shortness of breath?"),
        yes_no("has_oximeter", "Do you have access to a pulse oximeter?"),
        number("o2_sat", "What is your oxygen saturation (O2 sat)?", AnswerEquals(COU, "has_oximeter", "Yes")),
        choice("severity", "How would you rate your cough?", SEVERITY_OPTIONS),
        yes_no("around_sick", "Have you been around anyone who is sick?"),
    ),
    evaluate_screening=evaluate_cough,
)


# =============================================================================
# URI-211 Urinary Problems
# =============================================================================

def evaluate_urinary_screening(answers: dict[str, Any], session: SessionState) -> EvalResult:
    burning = get(answers, URI, "burning")

    alerts = []
    if is_yes(get(answers, URI, "amount_changed")):
        alerts.append("Change in urine amount")
    if is_yes(get(answers, URI, "pelvic_pain")):
        alerts.append("Pelvic pain")
    if is_yes(get(answers, URI, "blood_urine")):
        alerts.append("Blood in urine")
    if burning in ("Moderate", "Severe"):
        alerts.append(f"{burning} burning with urination")

    return flag(alerts, EvalAction.CONTINUE, severity=parse_severity(burning))


def evaluate_urinary_follow_up(answers: dict[str, Any], session: SessionState) -> EvalResult:
    alerts = []
    sugar = parse_count(get(answers, URI, "blood_sugar"))
    if sugar > 250:
        alerts.append(f"Blood sugar {sugar:g} (high)")
    elif 0 < sugar < 60:
        alerts.append(f"Blood sugar {sugar:g} (low)")

    return flag(
        alerts,
        EvalAction.STOP,
        branch_to=[SymptomId.DEHYDRATION] if is_no(get(answers, URI, "drinking_normal")) else None,
    )


URINARY = SymptomModule(
    symptom_id=URI,
    name="Urinary Problems",
    category=SymptomCategory.SYSTEMIC,
    screening_questions=(
        yes_no("amount_changed", "Has the amount of urine you produce changed?"),
        choice("burning", "Are you experiencing burning with urination?", BURNING_URINATION_OPTIONS),
        yes_no("pelvic_pain", "Are you having pelvic pain?"),
        yes_no("blood_urine", "Is there blood in your urine?"),
    ),
    evaluate_screening=evaluate_urinary_screening,
    follow_up_questions=(
        yes_no("unusual_smell", "Does your urine have an unusual smell?"),
        yes_no("drinking_normal", "Are you drinking normal amounts of fluids?"),
        yes_no("diabetic", "Are you diabetic?"),
        number("blood_sugar", "What is your blood sugar?", AnswerEquals(URI, "diabetic", "Yes")),
    ),
    evaluate_follow_up=evaluate_urinary_follow_up,
)


MODULES = [FEVER, FATIGUE, COUGH, URINARY]
