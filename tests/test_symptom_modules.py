"""
Tests for the symptom module registry and decision rules
"""

import pytest

from oncolife.engine.constants import (
    EMERGENCY_BUTTONS,
    SELECTION_LABELS,
    EvalAction,
    QuestionType,
    Section,
    SeverityLevel,
    SymptomId,
    TriageLevel,
)
from oncolife.engine.models import SessionState
from oncolife.engine.symptoms import ALL_MODULES, REGISTRY, get_module
from oncolife.engine.symptoms.digestive import (
    evaluate_dehydration,
    evaluate_diarrhea,
    evaluate_nausea_follow_up,
    evaluate_nausea_screening,
)
from oncolife.engine.symptoms.emergency import evaluate_bleeding
from oncolife.engine.symptoms.pain_nerve import evaluate_neuropathy_follow_up, evaluate_pain
from oncolife.engine.symptoms.systemic import evaluate_fever


@pytest.fixture
def session():
    return SessionState(conversation_id="conv-1", patient_id="patient-1")


class TestRegistry:
    """Test module lookup."""

    def test_every_symptom_id_has_a_module(self):
        assert len(REGISTRY) == len(SymptomId)
        for symptom_id in SymptomId:
            assert get_module(symptom_id) is not None, symptom_id.value

    def test_lookup_by_string_and_unknown_id(self):
        assert REGISTRY.get("NAU-203").name == "Nausea"
        assert REGISTRY.get("XYZ-999") is None
        assert REGISTRY.get(None) is None
        assert "FEV-202" in REGISTRY
        assert "XYZ-999" not in REGISTRY

    def test_selectable_and_emergency_labels_resolve(self):
        for symptom_id in [*SELECTION_LABELS.values(), *EMERGENCY_BUTTONS.values()]:
            assert REGISTRY.get(symptom_id) is not None

    def test_hidden_modules_not_visible(self):
        visible = {m.id for m in REGISTRY.visible()}
        assert "HEA-210" not in visible
        assert "NEU-304" not in visible
        assert "NAU-203" in visible

    def test_yes_no_questions_offer_yes_and_no(self):
        for module in ALL_MODULES:
            for question in (*module.screening_questions, *module.follow_up_questions):
                if question.type == QuestionType.YES_NO:
                    assert question.options == ("Yes", "No")

    def test_question_ids_unique_per_module(self):
        for module in ALL_MODULES:
            ids = [q.id for q in (*module.screening_questions, *module.follow_up_questions)]
            assert len(ids) == len(set(ids)), module.id


class TestDigestiveRules:
    """Test nausea, diarrhea and dehydration rules."""

    def test_nausea_critical_intake_notifies_and_continues(self, session):
        answers = {
            "NAU-203:duration": "24 hours",
            "NAU-203:oral_intake": "Barely eating/drinking",
            "NAU-203:meds": "None",
            "NAU-203:severity_no_meds": "Mild (1–3)",
        }
        result = evaluate_nausea_screening(answers, session)
        assert result.action == EvalAction.CONTINUE
        assert result.triage_level == TriageLevel.NOTIFY_CARE_TEAM
        assert result.severity == SeverityLevel.MILD
        assert result.medications_tried is None

    def test_nausea_without_concerns(self, session):
        answers = {"NAU-203:duration": "24 hours", "NAU-203:oral_intake": "Normal"}
        result = evaluate_nausea_screening(answers, session)
        assert result.triage_level == TriageLevel.NONE
        assert result.alert_message is None

    def test_nausea_vitals_only_does_not_branch(self, session):
        answers = {"NAU-203:dehydration": ["I know my vitals"]}
        assert evaluate_nausea_follow_up(answers, session).action == EvalAction.STOP

    def test_nausea_uses_canonical_dehydration_answer(self, session):
        session.dehydration_answers["dehydration_signs"] = ["Dark urine"]
        result = evaluate_nausea_follow_up({}, session)
        assert result.action == EvalAction.BRANCH
        assert result.branch_to == ["DEH-201"]

    def test_diarrhea_many_stools_with_signs_branches_with_alert(self, session):
        answers = {
            "DIA-205:days": 1,
            "DIA-205:loose_stools": 7,
            "DIA-205:dehydration": ["Very thirsty"],
        }
        result = evaluate_diarrhea(answers, session)
        assert result.action == EvalAction.BRANCH
        assert result.branch_to == ["DEH-201"]
        assert result.triage_level == TriageLevel.NOTIFY_CARE_TEAM
        assert "More than 5 loose stools in 24h" in result.alert_message
        assert "Dehydration signs present" in result.alert_message

    def test_dehydration_counts_recalled_signs(self, session):
        session.dehydration_answers["urine_color"] = "Dark yellow"
        answers = {"DEH-201:thirsty": "Yes"}
        result = evaluate_dehydration(answers, session)
        assert result.triage_level == TriageLevel.NOTIFY_CARE_TEAM
        assert result.alert_message == "Multiple dehydration signs"


class TestPainRouting:
    """Test the pain router and neuropathy hand-off."""

    def test_chest_is_routed_first(self, session):
        answers = {"PAI-213:location": ["Head", "Chest"], "PAI-213:severity": "Severe (7–10)"}
        result = evaluate_pain(answers, session)
        assert result.action == EvalAction.BRANCH
        assert result.branch_to == ["URG-102", "HEA-210"]
        assert result.triage_level == TriageLevel.NOTIFY_CARE_TEAM
        assert result.alert_message == "Chest pain reported; Severe pain"

    def test_general_aches_and_joints_route_once(self, session):
        answers = {"PAI-213:location": ["Joints/Muscles", "General Aches"]}
        assert evaluate_pain(answers, session).branch_to == ["JMP-212"]

    def test_neuropathy_balance_goes_to_falls_screen(self, session):
        answers = {"NEU-216:balance": "Yes"}
        result = evaluate_neuropathy_follow_up(answers, session)
        assert result.branch_to == ["NEU-304"]


class TestSystemicAndEmergencyRules:
    """Test fever and bleeding rules."""

    def test_low_grade_temperature_records_note(self, session):
        result = evaluate_fever({"FEV-202:temp": 99.5, "FEV-202:fever_meds": "None"}, session)
        assert result.action == EvalAction.STOP
        assert result.triage_level == TriageLevel.NONE
        assert result.notes.startswith("Temperature 99.5°F is below fever threshold")

    def test_fever_notifies(self, session):
        answers = {"FEV-202:temp": 101.5, "FEV-202:fever_duration": "1–2 days"}
        result = evaluate_fever(answers, session)
        assert result.triage_level == TriageLevel.NOTIFY_CARE_TEAM
        assert result.alert_message.startswith("Fever 101.5°F (Duration: 1–2 days).")

    def test_bleeding_that_will_not_stop_is_an_emergency(self, session):
        result = evaluate_bleeding({"URG-103:pressure": "Yes"}, session)
        assert result.action == EvalAction.EMERGENCY
        assert result.triage_level == TriageLevel.CALL_911

    def test_blood_in_stool_notifies(self, session):
        answers = {"URG-103:pressure": "No", "URG-103:stool_urine": "Yes", "URG-103:thinners": "Yes"}
        result = evaluate_bleeding(answers, session)
        assert result.action == EvalAction.STOP
        assert result.triage_level == TriageLevel.NOTIFY_CARE_TEAM
        assert result.notes == "On blood thinners"


CALL_911_CASES = [
    pytest.param(SymptomId.HEADACHE, Section.SCREENING, {"HEA-210:worst_ever": "Yes"}, id="worst-headache"),
    pytest.param(
        SymptomId.HEADACHE, Section.SCREENING, {"HEA-210:neuro_symptoms": ["Confusion"]}, id="headache-neuro"
    ),
    pytest.param(SymptomId.HEADACHE, Section.FOLLOW_UP, {"HEA-210:onset": "Sudden"}, id="sudden-headache"),
    pytest.param(SymptomId.LEG_PAIN, Section.SCREENING, {"LEG-208:asymmetric": "Yes"}, id="leg-asymmetric"),
    pytest.param(SymptomId.LEG_PAIN, Section.SCREENING, {"LEG-208:worse_walking": "Yes"}, id="leg-walking"),
    pytest.param(SymptomId.LEG_PAIN, Section.FOLLOW_UP, {"LEG-208:sob": "Yes"}, id="leg-sob"),
    pytest.param(
        SymptomId.FALLS_BALANCE,
        Section.FOLLOW_UP,
        {"NEU-304:head_injury": "Yes", "NEU-304:blood_thinners": "Yes"},
        id="head-injury-thinners",
    ),
    pytest.param(
        SymptomId.PORT_SITE_PAIN,
        Section.SCREENING,
        {"URG-114:drainage": "Yes", "URG-114:temperature": 101.2},
        id="port-infection-fever",
    ),
    pytest.param(SymptomId.CHEST_PAIN, Section.SCREENING, {"URG-102:q1": "Yes"}, id="chest-pain"),
    pytest.param(
        SymptomId.SKIN_RASH,
        Section.SCREENING,
        {"SKI-212:locations": ["Face", "Arms"], "SKI-212:facial_breathing": "Yes"},
        id="facial-rash-breathing",
    ),
    pytest.param(
        SymptomId.SWELLING,
        Section.SCREENING,
        {"SWE-214:locations": ["Legs"], "SWE-214:associated": ["Chest discomfort"]},
        id="swelling-chest",
    ),
    pytest.param(SymptomId.COUGH, Section.SCREENING, {"COU-215:chest_pain_sob": "Yes"}, id="cough-chest-sob"),
    pytest.param(
        SymptomId.COUGH,
        Section.SCREENING,
        {"COU-215:chest_pain_sob": "No", "COU-215:o2_sat": 88},
        id="cough-low-o2",
    ),
]

SHORT_OF_911_CASES = [
    pytest.param(
        SymptomId.HEADACHE,
        Section.SCREENING,
        {"HEA-210:worst_ever": "No", "HEA-210:neuro_symptoms": ["None"], "HEA-210:severity": "Severe"},
        TriageLevel.NONE,
        id="headache-screen-clear",
    ),
    pytest.param(
        SymptomId.HEADACHE,
        Section.FOLLOW_UP,
        {"HEA-210:onset": "Gradual", "HEA-210:severity": "Severe"},
        TriageLevel.NOTIFY_CARE_TEAM,
        id="severe-gradual-headache",
    ),
    pytest.param(
        SymptomId.LEG_PAIN,
        Section.SCREENING,
        {"LEG-208:asymmetric": "No", "LEG-208:worse_walking": "No"},
        TriageLevel.NONE,
        id="leg-screen-clear",
    ),
    pytest.param(
        SymptomId.LEG_PAIN,
        Section.FOLLOW_UP,
        {"LEG-208:sob": "No", "LEG-208:immobility": "Yes"},
        TriageLevel.NOTIFY_CARE_TEAM,
        id="leg-immobility",
    ),
    pytest.param(
        SymptomId.FALLS_BALANCE,
        Section.FOLLOW_UP,
        {"NEU-304:head_injury": "Yes", "NEU-304:blood_thinners": "No"},
        TriageLevel.NOTIFY_CARE_TEAM,
        id="head-injury-no-thinners",
    ),
    pytest.param(
        SymptomId.PORT_SITE_PAIN,
        Section.SCREENING,
        {"URG-114:drainage": "Yes", "URG-114:temperature": 99.0},
        TriageLevel.NOTIFY_CARE_TEAM,
        id="port-infection-afebrile",
    ),
    pytest.param(SymptomId.CHEST_PAIN, Section.SCREENING, {"URG-102:q1": "No"}, TriageLevel.NONE, id="no-chest-pain"),
    pytest.param(
        SymptomId.SKIN_RASH,
        Section.SCREENING,
        {"SKI-212:locations": ["Face"], "SKI-212:facial_breathing": "No", "SKI-212:coverage": "Yes"},
        TriageLevel.NOTIFY_CARE_TEAM,
        id="facial-rash-breathing-ok",
    ),
    pytest.param(
        SymptomId.SWELLING,
        Section.SCREENING,
        {"SWE-214:locations": ["Face"], "SWE-214:associated": ["Fever"]},
        TriageLevel.NOTIFY_CARE_TEAM,
        id="face-swelling-fever",
    ),
    pytest.param(
        SymptomId.COUGH,
        Section.SCREENING,
        {"COU-215:chest_pain_sob": "No", "COU-215:o2_sat": 92},
        TriageLevel.NOTIFY_CARE_TEAM,
        id="cough-borderline-o2",
    ),
    pytest.param(
        SymptomId.ABDOMINAL_PAIN,
        Section.SCREENING,
        {"ABD-211:severity": "Severe", "ABD-211:blood_stool": "Yes", "ABD-211:temperature": 101.5},
        TriageLevel.NOTIFY_CARE_TEAM,
        id="severe-abdominal-pain",
    ),
    pytest.param(
        SymptomId.ABDOMINAL_PAIN,
        Section.FOLLOW_UP,
        {"ABD-211:blood_stool_fu": "Yes"},
        TriageLevel.NOTIFY_CARE_TEAM,
        id="abdominal-blood-in-stool",
    ),
    pytest.param(
        SymptomId.URINARY,
        Section.SCREENING,
        {"URI-211:blood_urine": "Yes", "URI-211:burning": "Severe"},
        TriageLevel.NOTIFY_CARE_TEAM,
        id="blood-in-urine",
    ),
    pytest.param(
        SymptomId.URINARY,
        Section.FOLLOW_UP,
        {"URI-211:blood_sugar": 40},
        TriageLevel.NOTIFY_CARE_TEAM,
        id="low-blood-sugar",
    ),
    pytest.param(
        SymptomId.EYE,
        Section.SCREENING,
        {"EYE-207:vision_problems": "Yes", "EYE-207:severity": "Severe"},
        TriageLevel.NOTIFY_CARE_TEAM,
        id="vision-problems",
    ),
    pytest.param(
        SymptomId.EYE,
        Section.FOLLOW_UP,
        {"EYE-207:seen_doctor": "Yes"},
        TriageLevel.NONE,
        id="eye-seen-doctor",
    ),
]


class TestCall911Rules:
    """Test the per-module rules that escalate straight to 911."""

    @pytest.mark.parametrize("symptom_id,section,answers", CALL_911_CASES)
    def test_escalates_to_911(self, session, symptom_id, section, answers):
        result = get_module(symptom_id).evaluator(section)(answers, session)
        assert result.action == EvalAction.EMERGENCY
        assert result.triage_level == TriageLevel.CALL_911

    @pytest.mark.parametrize("symptom_id,section,answers,level", SHORT_OF_911_CASES)
    def test_serious_findings_stop_short_of_911(self, session, symptom_id, section, answers, level):
        result = get_module(symptom_id).evaluator(section)(answers, session)
        assert result.action != EvalAction.EMERGENCY
        assert result.triage_level == level

    def test_low_o2_message_names_the_reading(self, session):
        answers = {"COU-215:chest_pain_sob": "No", "COU-215:o2_sat": 88}
        result = get_module(SymptomId.COUGH).evaluate_screening(answers, session)
        assert result.alert_message == "Oxygen saturation 88% is below 90%. Call 911."
