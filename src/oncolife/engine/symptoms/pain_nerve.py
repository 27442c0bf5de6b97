"""
Pain & Nerve Symptom Modules

The pain router sends each reported location to its own (hidden) module:
headache, abdominal, leg/calf, port site and joint/muscle pain. Neuropathy
can hand off to the falls & balance screen.
"""

from typing import Any

from oncolife.engine.conditions import AnswerEquals, AnswerIncludes, Answered
from oncolife.engine.constants import (
    EvalAction,
    SeverityLevel,
    SymptomCategory,
    SymptomId,
    TriageLevel,
)
from oncolife.engine.models import EvalResult, SessionState
from oncolife.engine.symptoms.base import (
    DEHYDRATION_SIGNS_OPTIONS,
    FEVER_THRESHOLD_F,
    HEADACHE_NEURO_OPTIONS,
    HEADACHE_ONSET_OPTIONS,
    JOINT_PAIN_TYPE_OPTIONS,
    LAST_BM_OPTIONS,
    MEDS_NEUROPATHY_OPTIONS,
    PAIN_DESCRIPTION_OPTIONS,
    PAIN_LOCATIONS,
    SEVERITY_OPTIONS,
    SymptomModule,
    branch,
    choice,
    emergency,
    flag,
    free_text,
    get,
    has_dehydration_signs,
    is_no,
    is_yes,
    meds_taken,
    multi_select,
    number,
    parse_count,
    parse_severity,
    parse_temperature,
    proceed,
    recall,
    selected,
    stop,
    yes_no,
)

PAI = SymptomId.PAIN
NEU = SymptomId.NEUROPATHY
HEA = SymptomId.HEADACHE
ABD = SymptomId.ABDOMINAL_PAIN
LEG = SymptomId.LEG_PAIN
PORT = SymptomId.PORT_SITE_PAIN
JMP = SymptomId.JOINT_MUSCLE_PAIN
FALLS = SymptomId.FALLS_BALANCE

TEMPERATURE_PROMPT = "What is your temperature? (Enter number, e.g., 101.5)"
DAILY_ACTIVITIES_PROMPT = "Does the pain interfere with your daily activities?"

PAIN_LOCATION_ROUTES: dict[str, SymptomId] = {
    "Chest": SymptomId.CHEST_PAIN,
    "Port/IV Site": PORT,
    "Head": HEA,
    "Leg/Calf": LEG,
    "Abdomen": ABD,
    "Urinary/Pelvic": SymptomId.URINARY,
    "Joints/Muscles": JMP,
    "General Aches": JMP,
    "Nerve Burning/Tingling": NEU,
    "Mouth/Throat": SymptomId.MOUTH_SORES,
}


def _moderate_or_severe(severity: SeverityLevel | None) -> bool:
    return severity in (SeverityLevel.MODERATE, SeverityLevel.SEVERE)


# =============================================================================
# PAI-213 Pain (router)
# =============================================================================

def evaluate_pain(answers: dict[str, Any], session: SessionState) -> EvalResult:
    locations = selected(get(answers, PAI, "location"))
    severity = parse_severity(get(answers, PAI, "severity"))

    targets: list[SymptomId] = []
    for location in locations:
        target = PAIN_LOCATION_ROUTES.get(location)
        if target and target not in targets:
            targets.append(target)
    # Chest pain is confirmed first
    if SymptomId.CHEST_PAIN in targets:
        targets.remove(SymptomId.CHEST_PAIN)
        targets.insert(0, SymptomId.CHEST_PAIN)

    alerts = []
    if "Chest" in locations:
        alerts.append("Chest pain reported")
    if severity == SeverityLevel.SEVERE:
        alerts.append("Severe pain")
    if is_no(get(answers, PAI, "controlled")):
        alerts.append("Pain not controlled with usual medications")

    notes = None
    if get(answers, PAI, "location_other"):
        notes = f"Other location: {get(answers, PAI, 'location_other')}"

    return flag(
        alerts,
        EvalAction.STOP,
        branch_to=targets or None,
        severity=severity,
        notes=notes,
    )


PAIN = SymptomModule(
    symptom_id=PAI,
    name="Pain",
    category=SymptomCategory.PAIN_NERVE,
    screening_questions=(
        multi_select("location", "Where does it hurt? Select all that apply.", PAIN_LOCATIONS),
        free_text(
            "location_other",
            "Please describe where else it hurts:",
            AnswerIncludes(PAI, "location", "Other"),
        ),
        choice("severity", "How would you rate your pain?", SEVERITY_OPTIONS),
        yes_no("daily_activities", DAILY_ACTIVITIES_PROMPT),
        number("temperature", TEMPERATURE_PROMPT),
        yes_no("controlled", "Is your pain controlled with your usual medications?"),
    ),
    evaluate_screening=evaluate_pain,
)


# =============================================================================
# NEU-216 Neuropathy
# =============================================================================

def evaluate_neuropathy_screening(answers: dict[str, Any], session: SessionState) -> EvalResult:
    severity = parse_severity(get(answers, NEU, "severity"))

    alerts = []
    if severity == SeverityLevel.SEVERE:
        alerts.append("Severe neuropathy")
    if is_yes(get(answers, NEU, "affects_function")) or is_yes(get(answers, NEU, "daily_activities")):
        alerts.append("Affects function/ADLs")

    return flag(
        alerts,
        EvalAction.CONTINUE,
        severity=severity,
        duration=get(answers, NEU, "onset"),
        notes=f"Location: {get(answers, NEU, 'location')}" if get(answers, NEU, "location") else None,
    )


def evaluate_neuropathy_follow_up(answers: dict[str, Any], session: SessionState) -> EvalResult:
    meds = get(answers, NEU, "meds")
    tried = None
    if meds_taken(meds):
        tried = get(answers, NEU, "meds_other") if meds == "Other" else meds

    alerts = []
    if is_yes(get(answers, NEU, "getting_worse")):
        alerts.append("Neuropathy getting worse")
    if tried and is_no(get(answers, NEU, "meds_helping")):
        alerts.append("Neuropathy medication not helping")

    return flag(
        alerts,
        EvalAction.STOP,
        branch_to=[FALLS] if is_yes(get(answers, NEU, "balance")) else None,
        medications_tried=tried,
    )


NEUROPATHY = SymptomModule(
    symptom_id=NEU,
    name="Neuropathy",
    category=SymptomCategory.PAIN_NERVE,
    screening_questions=(
        free_text("onset", "When did the numbness or tingling start?"),
        free_text("location", "Where are you feeling it?"),
        yes_no("affects_function", "Does it affect your ability to function or perform daily tasks?"),
        choice("severity", "How would you rate your neuropathy?", SEVERITY_OPTIONS),
        yes_no("daily_activities", "Does it interfere with your daily activities?"),
    ),
    evaluate_screening=evaluate_neuropathy_screening,
    follow_up_questions=(
        yes_no("fine_motor", "Do you have trouble with fine motor tasks like buttoning or writing?"),
        yes_no("getting_worse", "Is it getting worse?"),
        yes_no("balance", "Do you have trouble with balance or walking?"),
        choice("meds", "What medications are you taking for neuropathy?", MEDS_NEUROPATHY_OPTIONS),
        free_text("meds_other", "What other medication?", AnswerEquals(NEU, "meds", "Other")),
        yes_no("meds_helping", "Are the medications helping?", Answered(NEU, "meds")),
    ),
    evaluate_follow_up=evaluate_neuropathy_follow_up,
)


# =============================================================================
# HEA-210 Headache
# =============================================================================

def evaluate_headache_screening(answers: dict[str, Any], session: SessionState) -> EvalResult:
    if is_yes(get(answers, HEA, "worst_ever")) or selected(get(answers, HEA, "neuro_symptoms")):
        return emergency("Worst headache ever or neurological symptoms. Call 911.")
    return proceed(severity=parse_severity(get(answers, HEA, "severity")))


def evaluate_headache_follow_up(answers: dict[str, Any], session: SessionState) -> EvalResult:
    if get(answers, HEA, "onset") == "Sudden":
        return emergency("Sudden onset headache. Call 911.")

    severity = parse_severity(get(answers, HEA, "severity"))
    alerts = ["Severe or moderate headache"] if _moderate_or_severe(severity) else []
    has_fever = is_yes(get(answers, HEA, "fever"))
    return flag(
        alerts,
        EvalAction.STOP,
        branch_to=[SymptomId.FEVER] if has_fever else None,
        severity=severity,
        duration=get(answers, HEA, "duration"),
        medications_tried="Headache medication" if is_yes(get(answers, HEA, "meds_taken")) else None,
    )


HEADACHE = SymptomModule(
    symptom_id=HEA,
    name="Headache",
    category=SymptomCategory.PAIN_NERVE,
    screening_questions=(
        yes_no(
            "worst_ever",
            "Is this the worst headache you've ever had, or did it start suddenly and very strongly?",
        ),
        multi_select("neuro_symptoms", "Do you have any of these symptoms?", HEADACHE_NEURO_OPTIONS),
        choice("severity", "How would you rate your headache?", SEVERITY_OPTIONS),
        yes_no("daily_activities", "Does the headache interfere with your daily activities?"),
    ),
    evaluate_screening=evaluate_headache_screening,
    follow_up_questions=(
        choice("onset", "When did this headache start?", HEADACHE_ONSET_OPTIONS),
        free_text("duration", "How long has the headache lasted?"),
        yes_no("meds_taken", "Have you taken any medication for the headache?"),
        yes_no("meds_helped", "Did the medication help?", AnswerEquals(HEA, "meds_taken", "Yes")),
        yes_no("fever", "Do you have a fever?"),
        number("temperature", TEMPERATURE_PROMPT, AnswerEquals(HEA, "fever", "Yes")),
    ),
    evaluate_follow_up=evaluate_headache_follow_up,
    hidden=True,
)


# =============================================================================
# ABD-211 Abdominal Pain
# =============================================================================

def evaluate_abdominal_screening(answers: dict[str, Any], session: SessionState) -> EvalResult:
    severity = parse_severity(get(answers, ABD, "severity"))

    alerts = []
    if _moderate_or_severe(severity):
        alerts.append("Moderate/severe abdominal pain")
    if parse_count(get(answers, ABD, "days_no_bm")) >= 3 and is_no(get(answers, ABD, "passing_gas")):
        alerts.append("No BM ≥3 days, not passing gas")
    if parse_temperature(get(answers, ABD, "temperature")) >= FEVER_THRESHOLD_F:
        alerts.append("Fever >100.3°F")
    if is_yes(get(answers, ABD, "blood_stool")):
        alerts.append("Blood in stool")

    return flag(alerts, EvalAction.CONTINUE, severity=severity)


def evaluate_abdominal_follow_up(answers: dict[str, Any], session: SessionState) -> EvalResult:
    targets = []
    if is_yes(get(answers, ABD, "vomiting")):
        targets.append(SymptomId.VOMITING)
    if has_dehydration_signs(recall(answers, session, ABD, "dehydration")):
        targets.append(SymptomId.DEHYDRATION)
    if get(answers, ABD, "last_bm") == "2+ days ago":
        targets.append(SymptomId.CONSTIPATION)

    alerts = []
    if is_yes(get(answers, ABD, "blood_stool_fu")) and not is_yes(get(answers, ABD, "blood_stool")):
        alerts.append("Blood in stool")
    return flag(alerts, EvalAction.STOP, branch_to=targets or None)


ABDOMINAL_PAIN = SymptomModule(
    symptom_id=ABD,
    name="Abdominal Pain",
    category=SymptomCategory.PAIN_NERVE,
    screening_questions=(
        choice("severity", "How would you rate your abdominal pain?", SEVERITY_OPTIONS),
        yes_no("daily_activities", DAILY_ACTIVITIES_PROMPT),
        number("temperature", TEMPERATURE_PROMPT),
        number("days_no_bm", "How many days since your last bowel movement?"),
        yes_no("passing_gas", "Are you able to pass gas?"),
        yes_no("blood_stool", "Is there blood in your stool?"),
    ),
    evaluate_screening=evaluate_abdominal_screening,
    follow_up_questions=(
        yes_no("vomiting", "Are you vomiting?"),
        yes_no("blood_stool_fu", "Have you noticed black or bloody stool since the pain started?"),
        multi_select("dehydration", "Any signs of dehydration? Select all that apply.", DEHYDRATION_SIGNS_OPTIONS),
        choice("last_bm", "When was your last bowel movement?", LAST_BM_OPTIONS),
    ),
    evaluate_follow_up=evaluate_abdominal_follow_up,
    hidden=True,
)


# =============================================================================
# LEG-208 Leg/Calf Pain
# =============================================================================

def evaluate_leg_screening(answers: dict[str, Any], session: SessionState) -> EvalResult:
    if is_yes(get(answers, LEG, "asymmetric")) or is_yes(get(answers, LEG, "worse_walking")):
        return emergency(
            "Asymmetric leg swelling/redness or pain with walking: possible blood clot (DVT). Call 911."
        )
    return proceed(severity=parse_severity(get(answers, LEG, "severity")))


def evaluate_leg_follow_up(answers: dict[str, Any], session: SessionState) -> EvalResult:
    if is_yes(get(answers, LEG, "sob")):
        return emergency("Shortness of breath with leg pain: possible pulmonary embolism. Call 911.")
    if is_yes(get(answers, LEG, "immobility")):
        return stop(TriageLevel.NOTIFY_CARE_TEAM, alert_message="Recent immobility with leg pain")
    if is_yes(get(answers, LEG, "clot_history")):
        return stop(TriageLevel.NOTIFY_CARE_TEAM, alert_message="History of blood clots with leg pain")
    return stop()


LEG_PAIN = SymptomModule(
    symptom_id=LEG,
    name="Leg/Calf Pain",
    category=SymptomCategory.PAIN_NERVE,
    screening_questions=(
        yes_no("asymmetric", "Is one leg more swollen, red, or warm than the other?"),
        yes_no("worse_walking", "Is the pain worse with walking or pressing on the calf?"),
        choice("severity", "How would you rate your pain?", SEVERITY_OPTIONS),
        yes_no("walking_difficulty", "Does the pain interfere with walking?"),
    ),
    evaluate_screening=evaluate_leg_screening,
    follow_up_questions=(
        yes_no("immobility", "Have you had recent immobility (long travel, bed rest)?"),
        yes_no("clot_history", "Do you have a history of blood clots?"),
        yes_no("sob", "Are you experiencing shortness of breath?"),
    ),
    evaluate_follow_up=evaluate_leg_follow_up,
    hidden=True,
)


# =============================================================================
# URG-114 Port/IV Site Pain
# =============================================================================

def evaluate_port_site(answers: dict[str, Any], session: SessionState) -> EvalResult:
    signs = [
        name for name in ("redness", "drainage", "chills")
        if is_yes(get(answers, PORT, name))
    ]
    temp = parse_temperature(get(answers, PORT, "temperature"))

    if signs and temp >= FEVER_THRESHOLD_F:
        return emergency("Port/IV site infection signs with fever ≥100.3°F. Call 911.")
    if signs:
        return stop(
            TriageLevel.NOTIFY_CARE_TEAM,
            alert_message=f"Port/IV site concern: {', '.join(signs)}",
        )
    return stop()


PORT_SITE_PAIN = SymptomModule(
    symptom_id=PORT,
    name="Port/IV Site Pain",
    category=SymptomCategory.PAIN_NERVE,
    screening_questions=(
        yes_no("redness", "Is there new redness around the port/IV site?"),
        yes_no("drainage", "Is there any drainage from the site?"),
        yes_no("chills", "Are you having chills?"),
        number("temperature", TEMPERATURE_PROMPT),
    ),
    evaluate_screening=evaluate_port_site,
    hidden=True,
)


# =============================================================================
# JMP-212 Joint/Muscle/General Pain
# =============================================================================

def evaluate_joint_screening(answers: dict[str, Any], session: SessionState) -> EvalResult:
    severity = parse_severity(get(answers, JMP, "severity"))

    alerts = []
    if severity == SeverityLevel.SEVERE:
        alerts.append("Severe pain")
    if is_yes(get(answers, JMP, "hard_to_move")):
        alerts.append("Hard to move/sleep")
    if is_yes(get(answers, JMP, "daily_activities")):
        alerts.append("ADL interference")
    if is_no(get(answers, JMP, "better_rest")):
        alerts.append("Not better with rest/OTC")
    if parse_temperature(get(answers, JMP, "temperature")) >= 100.4:
        alerts.append("Fever ≥100.4°F")

    return flag(alerts, EvalAction.CONTINUE, severity=severity)


def evaluate_joint_follow_up(answers: dict[str, Any], session: SessionState) -> EvalResult:
    duration = get(answers, JMP, "duration")
    description = get(answers, JMP, "description")
    notes = f"{description} pain" if description else None
    if is_no(get(answers, JMP, "controlled")):
        return stop(
            TriageLevel.NOTIFY_CARE_TEAM,
            alert_message="Pain not controlled with usual medications",
            duration=duration,
            notes=notes,
        )
    return stop(duration=duration, notes=notes)


JOINT_MUSCLE_PAIN = SymptomModule(
    symptom_id=JMP,
    name="Joint/Muscle/General Pain",
    category=SymptomCategory.PAIN_NERVE,
    screening_questions=(
        choice("pain_type", "What type of pain are you experiencing?", JOINT_PAIN_TYPE_OPTIONS),
        yes_no("hard_to_move", "Is it hard to move or sleep because of the pain?"),
        choice("severity", "How would you rate your pain?", SEVERITY_OPTIONS),
        yes_no("daily_activities", DAILY_ACTIVITIES_PROMPT),
        yes_no("better_rest", "Does the pain get better with rest or over-the-counter medications?"),
        number("temperature", TEMPERATURE_PROMPT),
    ),
    evaluate_screening=evaluate_joint_screening,
    follow_up_questions=(
        choice("description", "How would you describe the pain?", PAIN_DESCRIPTION_OPTIONS),
        free_text("duration", "How long have you had this pain?"),
        yes_no("controlled", "Is the pain controlled with your usual medications?"),
    ),
    evaluate_follow_up=evaluate_joint_follow_up,
    hidden=True,
)


# =============================================================================
# NEU-304 Falls & Balance
# =============================================================================

def evaluate_falls_screening(answers: dict[str, Any], session: SessionState) -> EvalResult:
    alerts = []
    if is_yes(get(answers, FALLS, "falls")):
        alerts.append("Falls reported")
    if is_yes(get(answers, FALLS, "new_neuro")):
        alerts.append("New neuro symptoms")
    if alerts:
        return flag(alerts, EvalAction.CONTINUE)
    return stop()


def evaluate_falls_follow_up(answers: dict[str, Any], session: SessionState) -> EvalResult:
    head_injury = is_yes(get(answers, FALLS, "head_injury"))
    if head_injury and is_yes(get(answers, FALLS, "blood_thinners")):
        return emergency("Head injury while on blood thinners. Call 911.")
    if head_injury:
        return stop(TriageLevel.NOTIFY_CARE_TEAM, alert_message="Head injury from fall")
    return stop()


FALLS_BALANCE = SymptomModule(
    symptom_id=FALLS,
    name="Falls & Balance",
    category=SymptomCategory.PAIN_NERVE,
    screening_questions=(
        yes_no("falls", "Have you had any falls since your last visit?"),
        yes_no("new_neuro", "Do you have new dizziness, confusion, or balance problems?"),
    ),
    evaluate_screening=evaluate_falls_screening,
    follow_up_questions=(
        yes_no("head_injury", "Did you hit your head during the fall?", AnswerEquals(FALLS, "falls", "Yes")),
        yes_no("blood_thinners", "Are you taking blood thinners?", AnswerEquals(FALLS, "falls", "Yes")),
    ),
    evaluate_follow_up=evaluate_falls_follow_up,
    hidden=True,
)


MODULES = [
    PAIN,
    NEUROPATHY,
    HEADACHE,
    ABDOMINAL_PAIN,
    LEG_PAIN,
    PORT_SITE_PAIN,
    JOINT_MUSCLE_PAIN,
    FALLS_BALANCE,
]
