"""
Tests for the check-in summary
"""

import pytest

from oncolife.engine.constants import SeverityLevel, TriageLevel
from oncolife.engine.models import SessionState, SymptomResult
from oncolife.engine.summary import SummaryGenerator


@pytest.fixture
def generator():
    return SummaryGenerator()


def make_session(**results: SymptomResult) -> SessionState:
    session = SessionState(conversation_id="conv-1", patient_id="patient-1", patient_name="Maria")
    session.symptom_results = {r.symptom_id: r for r in results.values()}
    return session


def test_no_symptoms(generator):
    session = make_session()
    summary = generator.generate(session)

    assert summary.summary_text.startswith("Hi Maria,")
    assert "You did not report any symptoms today." in summary.summary_text
    assert summary.overall_triage_level == TriageLevel.NONE
    assert summary.recommendations == []
    assert summary.education_links == []


def test_overall_level_is_worst_result(generator):
    session = make_session(
        nausea=SymptomResult(symptom_id="NAU-203", triage_level=TriageLevel.NOTIFY_CARE_TEAM),
        fatigue=SymptomResult(symptom_id="FAT-206"),
    )
    session.selected_symptoms = ["NAU-203", "FAT-206"]

    summary = generator.generate(session)

    assert summary.overall_triage_level == TriageLevel.NOTIFY_CARE_TEAM
    assert "Your care team has been notified" in summary.summary_text
    assert [r.symptom_id for r in summary.recommendations] == ["NAU-203"]
    assert summary.recommendations[0].message == "🟡 Nausea: Your care team will be notified."


def test_symptom_paragraph(generator):
    session = make_session(
        nausea=SymptomResult(
            symptom_id="NAU-203",
            severity=SeverityLevel.MODERATE,
            duration="2–3 days",
            medications_tried="Zofran (ondansetron) 8mg q8h",
        ),
    )
    session.selected_symptoms = ["NAU-203"]

    text = generator.generate(session).summary_text

    assert (
        "• **Nausea**: you reported this for 2–3 days, rated as moderate. "
        "You have tried Zofran (ondansetron) 8mg q8h. No action needed right now."
    ) in text


def test_branch_discovered_symptom_labelled_follow_up(generator):
    session = make_session(
        diarrhea=SymptomResult(symptom_id="DIA-205"),
        dehydration=SymptomResult(
            symptom_id="DEH-201",
            triage_level=TriageLevel.NOTIFY_CARE_TEAM,
            branched_from="DIA-205",
        ),
    )
    session.selected_symptoms = ["DIA-205"]

    text = generator.generate(session).summary_text

    assert "**Dehydration** (follow-up)" in text
    assert "Flagged for care team review." in text


def test_quiet_branch_result_left_out(generator):
    session = make_session(
        pain=SymptomResult(symptom_id="PAI-213"),
        headache=SymptomResult(symptom_id="HEA-210", branched_from="PAI-213"),
    )
    session.selected_symptoms = ["PAI-213"]

    assert "Headache" not in generator.generate(session).summary_text


def test_education_links_deduplicated(generator):
    session = make_session(
        nausea=SymptomResult(symptom_id="NAU-203"),
        vomiting=SymptomResult(symptom_id="VOM-204"),
        fever=SymptomResult(symptom_id="FEV-202"),
    )
    session.selected_symptoms = ["NAU-203", "VOM-204", "FEV-202"]

    links = generator.generate(session).education_links

    assert links == ["/education/nausea-and-vomiting", "/education/fever-and-infection"]


def test_emergency_closing(generator):
    session = make_session(
        breathing=SymptomResult(symptom_id="URG-101", triage_level=TriageLevel.CALL_911),
    )
    session.selected_symptoms = ["URG-101"]

    summary = generator.generate(session)

    assert summary.overall_triage_level == TriageLevel.CALL_911
    assert "call 911" in summary.summary_text
    assert summary.recommendations[0].message.startswith("⚠️")
