"""
Digestive Symptom Modules

Nausea, vomiting, diarrhea, constipation, appetite, mouth sores and the
dehydration module the others branch into.
"""

from typing import Any

from oncolife.engine.conditions import AnswerAtLeast, AnswerEquals, AnswerIncludes, Answered, Not
from oncolife.engine.constants import (
    EvalAction,
    SeverityLevel,
    SymptomCategory,
    SymptomId,
)
from oncolife.engine.models import EvalResult, SessionState
from oncolife.engine.symptoms.base import (
    DEHYDRATION_SIGNS_OPTIONS,
    DURATION_OPTIONS,
    FEVER_THRESHOLD_F,
    KNOW_VITALS,
    MEDS_CONSTIPATION_OPTIONS,
    MEDS_DIARRHEA_OPTIONS,
    MEDS_NAUSEA_OPTIONS,
    MOUTH_REMEDY_OPTIONS,
    ORAL_INTAKE_OPTIONS,
    SEVERITY_OPTIONS,
    STOOL_SYMPTOMS_OPTIONS,
    SymptomModule,
    URINE_COLOR_OPTIONS,
    VOMITING_FREQUENCY_OPTIONS,
    WORSENING_OPTIONS,
    branch,
    choice,
    flag,
    free_text,
    get,
    has_dehydration_signs,
    is_critical_intake,
    is_dark_urine,
    is_yes,
    meds_taken,
    multi_select,
    number,
    parse_count,
    parse_severity,
    parse_temperature,
    recall,
    selected,
    severity_of,
    stop,
    yes_no,
)

NAU = SymptomId.NAUSEA
VOM = SymptomId.VOMITING
DIA = SymptomId.DIARRHEA
CON = SymptomId.CONSTIPATION
APP = SymptomId.NO_APPETITE
MSO = SymptomId.MOUTH_SORES
DEH = SymptomId.DEHYDRATION

ORAL_INTAKE_PROMPT = "How much are you able to eat or drink right now?"
DEHYDRATION_PROMPT = "Have you noticed any of these signs of dehydration? Select all that apply."
VITALS_PROMPT = "Please share any vitals you know (temperature, heart rate, blood pressure)."
SELF_CARE_PROMPT = "Is this making it hard to take care of yourself (bathing, dressing, eating)?"


def medications(answers: dict[str, Any], symptom_id: SymptomId, meds_qid: str, other_qid: str) -> str | None:
    """Medication answer for the result, with the free-text detail for 'Other'."""
    meds = get(answers, symptom_id, meds_qid)
    if not meds_taken(meds):
        return None
    if meds == "Other":
        return get(answers, symptom_id, other_qid) or "Other"
    return meds


def _days(answers: dict[str, Any], symptom_id: SymptomId, qid: str = "days") -> float:
    return parse_count(get(answers, symptom_id, qid))


def _worsening_or_same(answers: dict[str, Any], symptom_id: SymptomId) -> bool:
    return get(answers, symptom_id, "worsening") in ("Worsening", "Same")


# =============================================================================
# NAU-203 Nausea
# =============================================================================

def evaluate_nausea_screening(answers: dict[str, Any], session: SessionState) -> EvalResult:
    duration = get(answers, NAU, "duration")
    took_meds = meds_taken(get(answers, NAU, "meds"))
    severity = severity_of(answers, NAU, "severity_with_meds", "severity_no_meds")

    alerts = []
    if is_critical_intake(get(answers, NAU, "oral_intake")):
        alerts.append("Patient reports barely eating/drinking or unable to eat/drink.")
    if took_meds and severity == SeverityLevel.SEVERE:
        alerts.append("Severe nausea despite medication.")
    if (
        severity == SeverityLevel.MODERATE
        and duration == "More than 3 days"
        and _worsening_or_same(answers, NAU)
    ):
        alerts.append("Moderate nausea for >3 days and worsening/same.")

    return flag(
        alerts,
        EvalAction.CONTINUE,
        severity=severity,
        duration=duration,
        medications_tried=medications(answers, NAU, "meds", "med_frequency"),
    )


def evaluate_nausea_follow_up(answers: dict[str, Any], session: SessionState) -> EvalResult:
    if has_dehydration_signs(recall(answers, session, NAU, "dehydration")):
        return branch([DEH])
    return stop()


NAUSEA = SymptomModule(
    symptom_id=NAU,
    name="Nausea",
    category=SymptomCategory.DIGESTIVE,
    screening_questions=(
        choice("duration", "How long have you been feeling nauseous?", DURATION_OPTIONS),
        choice(
            "worsening",
            "Is your nausea getting worse, staying the same, or improving?",
            WORSENING_OPTIONS,
            AnswerEquals(NAU, "duration", "More than 3 days"),
        ),
        choice("oral_intake", ORAL_INTAKE_PROMPT, ORAL_INTAKE_OPTIONS),
        choice("meds", "Which anti-nausea medications have you taken?", MEDS_NAUSEA_OPTIONS),
        free_text(
            "med_frequency",
            "Which medication did you take, and how often?",
            AnswerEquals(NAU, "meds", "Other"),
        ),
        choice(
            "severity_with_meds",
            "After taking medication, how would you rate your nausea?",
            SEVERITY_OPTIONS,
            Answered(NAU, "meds"),
        ),
        choice(
            "severity_no_meds",
            "How would you rate your nausea?",
            SEVERITY_OPTIONS,
            Not(Answered(NAU, "meds")),
        ),
    ),
    evaluate_screening=evaluate_nausea_screening,
    follow_up_questions=(
        yes_no("vomiting", "Have you been vomiting?"),
        yes_no("abd_pain", "Do you have any abdominal pain?"),
        multi_select("dehydration", DEHYDRATION_PROMPT, DEHYDRATION_SIGNS_OPTIONS),
        free_text("vitals", VITALS_PROMPT, AnswerIncludes(NAU, "dehydration", KNOW_VITALS)),
        yes_no("fluids_down", "Are you able to keep fluids down?"),
        yes_no("self_care", SELF_CARE_PROMPT),
    ),
    evaluate_follow_up=evaluate_nausea_follow_up,
)


# =============================================================================
# VOM-204 Vomiting
# =============================================================================

def evaluate_vomiting_screening(answers: dict[str, Any], session: SessionState) -> EvalResult:
    days = _days(answers, VOM)
    took_meds = meds_taken(get(answers, VOM, "meds"))
    severity = severity_of(answers, VOM, "severity_with_meds", "severity_no_meds")

    alerts = []
    if get(answers, VOM, "frequency") == "More than 6 times":
        alerts.append(">6 vomiting episodes in 24h")
    if "not able" in str(get(answers, VOM, "oral_intake") or "").lower():
        alerts.append("No oral intake in last 12h")
    if took_meds and severity == SeverityLevel.SEVERE:
        alerts.append("Severe vomiting despite meds")
    if severity == SeverityLevel.MODERATE and days >= 3:
        alerts.append("Moderate vomiting for ≥3 continuous days")

    return flag(
        alerts,
        EvalAction.CONTINUE,
        severity=severity,
        duration=f"{days:g} days",
        medications_tried=medications(answers, VOM, "meds", "med_other"),
    )


def evaluate_vomiting_follow_up(answers: dict[str, Any], session: SessionState) -> EvalResult:
    if has_dehydration_signs(recall(answers, session, VOM, "dehydration")):
        return branch([DEH])
    return stop()


VOMITING = SymptomModule(
    symptom_id=VOM,
    name="Vomiting",
    category=SymptomCategory.DIGESTIVE,
    screening_questions=(
        number("days", "How many days have you been vomiting?"),
        choice(
            "worsening",
            "Is your vomiting getting worse, staying the same, or improving?",
            WORSENING_OPTIONS,
            AnswerAtLeast(VOM, "days", 3),
        ),
        choice("frequency", "How many times have you vomited in the last 24 hours?", VOMITING_FREQUENCY_OPTIONS),
        choice("oral_intake", ORAL_INTAKE_PROMPT, ORAL_INTAKE_OPTIONS),
        choice("meds", "Which anti-nausea medications have you taken?", MEDS_NAUSEA_OPTIONS),
        free_text("med_other", "Which medication did you take?", AnswerEquals(VOM, "meds", "Other")),
        choice(
            "severity_with_meds",
            "After taking medication, how would you rate your vomiting?",
            SEVERITY_OPTIONS,
            Answered(VOM, "meds"),
        ),
        choice(
            "severity_no_meds",
            "How would you rate your vomiting?",
            SEVERITY_OPTIONS,
            Not(Answered(VOM, "meds")),
        ),
    ),
    evaluate_screening=evaluate_vomiting_screening,
    follow_up_questions=(
        yes_no("abd_pain", "Do you have any abdominal pain?"),
        multi_select("dehydration", DEHYDRATION_PROMPT, DEHYDRATION_SIGNS_OPTIONS),
        yes_no("self_care", SELF_CARE_PROMPT),
    ),
    evaluate_follow_up=evaluate_vomiting_follow_up,
)


# =============================================================================
# DIA-205 Diarrhea
# =============================================================================

def evaluate_diarrhea(answers: dict[str, Any], session: SessionState) -> EvalResult:
    days = _days(answers, DIA)
    took_meds = meds_taken(get(answers, DIA, "meds"))
    severity = severity_of(answers, DIA, "severity_with_meds", "severity_no_meds")
    signs = has_dehydration_signs(recall(answers, session, DIA, "dehydration"))

    alerts = []
    if parse_count(get(answers, DIA, "loose_stools")) > 5:
        alerts.append("More than 5 loose stools in 24h")
    if is_yes(get(answers, DIA, "abd_pain")) and parse_severity(get(answers, DIA, "abd_pain_severity")) in (
        SeverityLevel.MODERATE,
        SeverityLevel.SEVERE,
    ):
        alerts.append("Moderate/severe abdominal pain")
    stool_changes = [s for s in selected(get(answers, DIA, "stool_symptoms")) if s != "Other"]
    if stool_changes:
        alerts.append(f"Stool changes: {', '.join(stool_changes)}")
    if signs:
        alerts.append("Dehydration signs present")
    if is_critical_intake(get(answers, DIA, "oral_intake")):
        alerts.append("Barely eating/drinking or unable to eat/drink")
    if took_meds and severity == SeverityLevel.SEVERE:
        alerts.append("Severe diarrhea despite medication")
    if severity == SeverityLevel.MODERATE and days >= 3:
        alerts.append("Moderate diarrhea for ≥3 days")

    return flag(
        alerts,
        EvalAction.STOP,
        branch_to=[DEH] if signs else None,
        severity=severity,
        duration=f"{days:g} days",
        medications_tried=medications(answers, DIA, "meds", "med_other"),
    )


DIARRHEA = SymptomModule(
    symptom_id=DIA,
    name="Diarrhea",
    category=SymptomCategory.DIGESTIVE,
    screening_questions=(
        number("days", "How many days have you had diarrhea?"),
        choice(
            "worsening",
            "Is your diarrhea getting worse, staying the same, or improving?",
            WORSENING_OPTIONS,
            AnswerAtLeast(DIA, "days", 3),
        ),
        number("loose_stools", "How many loose stools have you had in the last 24 hours?"),
        multi_select(
            "stool_symptoms",
            "Have you noticed any of the following in your stool?",
            STOOL_SYMPTOMS_OPTIONS,
        ),
        yes_no("abd_pain", "Do you have any abdominal pain or cramping?"),
        choice(
            "abd_pain_severity",
            "How would you rate your abdominal pain?",
            SEVERITY_OPTIONS,
            AnswerEquals(DIA, "abd_pain", "Yes"),
        ),
        choice("meds", "Which anti-diarrhea medications have you taken?", MEDS_DIARRHEA_OPTIONS),
        free_text("med_other", "Which medication did you take?", AnswerEquals(DIA, "meds", "Other")),
        choice(
            "severity_with_meds",
            "After taking medication, how would you rate your diarrhea?",
            SEVERITY_OPTIONS,
            Answered(DIA, "meds"),
        ),
        choice(
            "severity_no_meds",
            "How would you rate your diarrhea?",
            SEVERITY_OPTIONS,
            Not(Answered(DIA, "meds")),
        ),
        multi_select("dehydration", DEHYDRATION_PROMPT, DEHYDRATION_SIGNS_OPTIONS),
        free_text("vitals", VITALS_PROMPT, AnswerIncludes(DIA, "dehydration", KNOW_VITALS)),
        choice("oral_intake", ORAL_INTAKE_PROMPT, ORAL_INTAKE_OPTIONS),
        yes_no("self_care", SELF_CARE_PROMPT),
    ),
    evaluate_screening=evaluate_diarrhea,
)


# =============================================================================
# CON-210 Constipation
# =============================================================================

def evaluate_constipation(answers: dict[str, Any], session: SessionState) -> EvalResult:
    days_no_bm = _days(answers, CON, "days_no_bm")
    signs = has_dehydration_signs(recall(answers, session, CON, "dehydration"))

    alerts = []
    if days_no_bm >= 2:
        alerts.append(f"No bowel movement for {days_no_bm:g} days")
    if is_yes(get(answers, CON, "abd_pain")) and parse_severity(get(answers, CON, "abd_pain_severity")) in (
        SeverityLevel.MODERATE,
        SeverityLevel.SEVERE,
    ):
        alerts.append("Moderate/severe abdominal pain")
    if signs:
        alerts.append("Dehydration signs present")

    notes = None
    if get(answers, CON, "days_no_gas") is not None:
        notes = f"Not passing gas for {parse_count(get(answers, CON, 'days_no_gas')):g} days"

    return flag(
        alerts,
        EvalAction.STOP,
        branch_to=[DEH] if signs else None,
        severity=parse_severity(get(answers, CON, "abd_pain_severity")),
        duration=f"{days_no_bm:g} days since last BM",
        medications_tried=medications(answers, CON, "meds", "med_other"),
        notes=notes,
    )


CONSTIPATION = SymptomModule(
    symptom_id=CON,
    name="Constipation",
    category=SymptomCategory.DIGESTIVE,
    screening_questions=(
        number("days_no_bm", "How many days has it been since your last bowel movement?"),
        yes_no("passing_gas", "Are you able to pass gas?"),
        number(
            "days_no_gas",
            "How many days since you last passed gas?",
            AnswerEquals(CON, "passing_gas", "No"),
        ),
        yes_no("abd_discomfort", "Do you have abdominal discomfort or bloating?"),
        yes_no("abd_pain", "Do you have abdominal pain?"),
        choice(
            "abd_pain_severity",
            "How would you rate your abdominal pain?",
            SEVERITY_OPTIONS,
            AnswerEquals(CON, "abd_pain", "Yes"),
        ),
        multi_select("dehydration", DEHYDRATION_PROMPT, DEHYDRATION_SIGNS_OPTIONS),
        choice("meds", "Which medications have you taken for constipation?", MEDS_CONSTIPATION_OPTIONS),
        free_text("med_other", "Which medication did you take?", AnswerEquals(CON, "meds", "Other")),
    ),
    evaluate_screening=evaluate_constipation,
)


# =============================================================================
# APP-209 No Appetite
# =============================================================================

def evaluate_appetite(answers: dict[str, Any], session: SessionState) -> EvalResult:
    severity = parse_severity(get(answers, APP, "severity"))

    alerts = []
    if "not able" in str(get(answers, APP, "oral_intake") or "").lower():
        alerts.append("Not able to eat/drink at all")
    if is_yes(get(answers, APP, "weight_loss")):
        alerts.append("Unintentional weight loss")
    if is_yes(get(answers, APP, "eating_less")):
        alerts.append("Eating less than half of usual meals")
    if severity == SeverityLevel.SEVERE:
        alerts.append("Severe loss of appetite")

    return flag(alerts, EvalAction.STOP, severity=severity)


NO_APPETITE = SymptomModule(
    symptom_id=APP,
    name="No Appetite",
    category=SymptomCategory.DIGESTIVE,
    screening_questions=(
        choice("oral_intake", ORAL_INTAKE_PROMPT, ORAL_INTAKE_OPTIONS),
        yes_no("weight_loss", "Have you lost weight without trying?"),
        yes_no("eating_less", "Are you eating less than half of your usual meals?"),
        choice("severity", "How would you rate your loss of appetite?", SEVERITY_OPTIONS),
    ),
    evaluate_screening=evaluate_appetite,
)


# =============================================================================
# MSO-208 Mouth Sores
# =============================================================================

def evaluate_mouth_sores_screening(answers: dict[str, Any], session: SessionState) -> EvalResult:
    severity = parse_severity(get(answers, MSO, "severity"))

    alerts = []
    if is_critical_intake(get(answers, MSO, "oral_intake")):
        alerts.append("Barely eating/drinking or unable to eat/drink")
    if is_yes(get(answers, MSO, "weight_loss")):
        alerts.append("Weight loss with mouth sores")
    if severity == SeverityLevel.SEVERE:
        alerts.append("Severe mouth sores")
    temp = parse_temperature(get(answers, MSO, "temperature"))
    if temp >= FEVER_THRESHOLD_F:
        alerts.append(f"Temperature {temp:g}°F with mouth sores")

    return flag(
        alerts,
        EvalAction.CONTINUE,
        severity=severity,
        duration=get(answers, MSO, "remedy_days"),
        medications_tried=medications(answers, MSO, "remedy", "remedy_other"),
    )


def evaluate_mouth_sores_follow_up(answers: dict[str, Any], session: SessionState) -> EvalResult:
    signs = [
        is_dark_urine(recall(answers, session, MSO, "dark_urine")),
        is_yes(recall(answers, session, MSO, "less_urine")),
        is_yes(recall(answers, session, MSO, "thirsty")),
        is_yes(recall(answers, session, MSO, "lightheaded")),
    ]
    if any(signs):
        return branch([DEH])
    return stop()


MOUTH_SORES = SymptomModule(
    symptom_id=MSO,
    name="Mouth Sores",
    category=SymptomCategory.DIGESTIVE,
    screening_questions=(
        choice("oral_intake", ORAL_INTAKE_PROMPT, ORAL_INTAKE_OPTIONS),
        yes_no("weight_loss", "Have you lost weight since the mouth sores started?"),
        choice("remedy", "What have you used for your mouth sores?", MOUTH_REMEDY_OPTIONS),
        free_text("remedy_other", "What did you use?", AnswerEquals(MSO, "remedy", "Other")),
        free_text(
            "remedy_days",
            "How long have you been using it?",
            Answered(MSO, "remedy"),
        ),
        yes_no("remedy_helped", "Has it helped?", Answered(MSO, "remedy")),
        number("temperature", "What is your temperature? (Enter number, e.g., 101.5)"),
        choice("severity", "How would you rate your mouth sores?", SEVERITY_OPTIONS),
    ),
    evaluate_screening=evaluate_mouth_sores_screening,
    follow_up_questions=(
        yes_no("swallow_pain", "Does it hurt to swallow?"),
        yes_no("dark_urine", "Is your urine darker than usual?"),
        yes_no("less_urine", "Are you urinating less than usual?"),
        yes_no("thirsty", "Are you very thirsty?"),
        yes_no("lightheaded", "Do you feel lightheaded when standing?"),
        free_text("vitals", VITALS_PROMPT),
    ),
    evaluate_follow_up=evaluate_mouth_sores_follow_up,
)


# =============================================================================
# DEH-201 Dehydration
# =============================================================================

def evaluate_dehydration(answers: dict[str, Any], session: SessionState) -> EvalResult:
    sign_count = sum([
        is_dark_urine(recall(answers, session, DEH, "urine_color")),
        is_yes(recall(answers, session, DEH, "less_urine")),
        is_yes(recall(answers, session, DEH, "thirsty")),
        is_yes(recall(answers, session, DEH, "lightheaded")),
    ])

    alerts = []
    if sign_count >= 2:
        alerts.append("Multiple dehydration signs")
    if is_critical_intake(get(answers, DEH, "oral_intake")):
        alerts.append("Intake barely/none")

    vitals = recall(answers, session, DEH, "vitals")
    return flag(
        alerts,
        EvalAction.STOP,
        notes=f"Vitals: {vitals}" if vitals else None,
    )


DEHYDRATION = SymptomModule(
    symptom_id=DEH,
    name="Dehydration",
    category=SymptomCategory.DIGESTIVE,
    screening_questions=(
        choice("urine_color", "What color is your urine?", URINE_COLOR_OPTIONS),
        yes_no("less_urine", "Are you urinating less than usual?"),
        yes_no("thirsty", "Are you very thirsty?"),
        yes_no("lightheaded", "Do you feel lightheaded when standing?"),
        free_text("vitals", VITALS_PROMPT),
        yes_no("vomiting", "Have you been vomiting?"),
        yes_no("diarrhea", "Have you had diarrhea?"),
        choice("oral_intake", ORAL_INTAKE_PROMPT, ORAL_INTAKE_OPTIONS),
        yes_no("fever", "Have you had a fever?"),
    ),
    evaluate_screening=evaluate_dehydration,
    hidden=True,
)


MODULES = [NAUSEA, VOMITING, DIARRHEA, CONSTIPATION, NO_APPETITE, MOUTH_SORES, DEHYDRATION]
