"""
Summary Generator

Builds the patient-facing summary of a check-in from the recorded symptom
results.
"""

from oncolife.engine.constants import TriageLevel, TRIAGE_PRIORITY
from oncolife.engine.models import SessionState, SessionSummaryData, SymptomRecommendation, SymptomResult
from oncolife.engine.symptoms import REGISTRY, SymptomRegistry


TRIAGE_LABELS: dict[TriageLevel, str] = {
    TriageLevel.CALL_911: "Seek emergency care immediately.",
    TriageLevel.URGENT: "Contact your care team urgently.",
    TriageLevel.NOTIFY_CARE_TEAM: "Your care team will be notified.",
    TriageLevel.NONE: "No action needed right now.",
}

RECOMMENDATION_ICONS: dict[TriageLevel, str] = {
    TriageLevel.CALL_911: "⚠️",
    TriageLevel.URGENT: "🔴",
    TriageLevel.NOTIFY_CARE_TEAM: "🟡",
}

CLOSING_MESSAGES: dict[TriageLevel, str] = {
    TriageLevel.CALL_911: "🚨 **Please call 911 or go to the nearest emergency room immediately.**",
    TriageLevel.URGENT: "🔴 **Please contact your care team as soon as possible.**",
    TriageLevel.NOTIFY_CARE_TEAM: "🟡 **Your care team has been notified and will review your symptoms.**",
    TriageLevel.NONE: "✅ **No urgent concerns identified. Your care team will review at your next visit.**",
}

# Symptom id -> patient education material
EDUCATION_LINKS: dict[str, list[str]] = {
    "NAU-203": ["/education/nausea-and-vomiting"],
    "VOM-204": ["/education/nausea-and-vomiting"],
    "DIA-205": ["/education/diarrhea"],
    "CON-210": ["/education/constipation"],
    "APP-209": ["/education/appetite-and-nutrition"],
    "MSO-208": ["/education/mouth-sores"],
    "DEH-201": ["/education/staying-hydrated"],
    "PAI-213": ["/education/managing-pain"],
    "NEU-216": ["/education/peripheral-neuropathy"],
    "FEV-202": ["/education/fever-and-infection"],
    "FAT-206": ["/education/fatigue"],
    "COU-215": ["/education/cough"],
    "SKI-212": ["/education/skin-changes"],
}


class SummaryGenerator:
    """Composes summary text, per-symptom recommendations and education links."""

    def __init__(self, registry: SymptomRegistry = REGISTRY, education_links: dict[str, list[str]] | None = None):
        self.registry = registry
        self.education_links = EDUCATION_LINKS if education_links is None else education_links

    def generate(self, session: SessionState) -> SessionSummaryData:
        results = session.symptom_results
        overall = session.overall_triage

        top_level = [s for s in session.selected_symptoms if s in results]
        discovered = [
            s for s, r in results.items()
            if s not in top_level and r.triage_level != TriageLevel.NONE
        ]

        lines = [f"Hi {session.patient_name},", "", "Here is a summary of today's symptom check-in:", ""]
        if top_level or discovered:
            for symptom_id in top_level:
                lines.append(self._paragraph(results[symptom_id]))
            for symptom_id in discovered:
                lines.append(self._paragraph(results[symptom_id], follow_up=True))
        else:
            lines.append("You did not report any symptoms today.")
        lines.extend(["", CLOSING_MESSAGES[overall]])

        reported = top_level + discovered
        return SessionSummaryData(
            summary_text="\n".join(lines),
            recommendations=self._recommendations(reported, results),
            education_links=self._education(reported),
            overall_triage_level=overall,
            symptom_results={k: v.model_copy() for k, v in results.items()},
        )

    def _paragraph(self, result: SymptomResult, follow_up: bool = False) -> str:
        name = self.registry.name_of(result.symptom_id)
        label = f"**{name}** (follow-up)" if follow_up else f"**{name}**"

        report = f"• {label}: you reported this"
        if result.duration:
            report += f" for {result.duration}"
        if result.severity:
            report += f", rated as {result.severity.value}"
        report += "."
        if result.notes:
            report += f" {result.notes}"
        elif follow_up:
            report += " Flagged for care team review."

        if result.medications_tried:
            medication = f" You have tried {result.medications_tried}."
        else:
            medication = " You have not tried medications for this."

        return f"{report}{medication} {TRIAGE_LABELS[result.triage_level]}"

    def _recommendations(self, reported: list[str], results: dict[str, SymptomResult]) -> list[SymptomRecommendation]:
        recommendations = []
        for symptom_id in reported:
            result = results[symptom_id]
            if TRIAGE_PRIORITY[result.triage_level] == 0:
                continue
            name = self.registry.name_of(symptom_id)
            icon = RECOMMENDATION_ICONS[result.triage_level]
            recommendations.append(SymptomRecommendation(
                symptom_id=symptom_id,
                symptom_name=name,
                triage_level=result.triage_level,
                message=f"{icon} {name}: {TRIAGE_LABELS[result.triage_level]}",
            ))
        return recommendations

    def _education(self, reported: list[str]) -> list[str]:
        links: list[str] = []
        for symptom_id in reported:
            for link in self.education_links.get(symptom_id, []):
                if link not in links:
                    links.append(link)
        return links
