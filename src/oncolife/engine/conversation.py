"""
Conversation Engine

Phase state machine for the symptom check-in:

    DISCLAIMER -> EMERGENCY_CHECK -> PATIENT_CONTEXT -> SYMPTOM_SELECTION
        -> SCREENING <-> FOLLOW_UP <-> BRANCHED -> SUMMARY -> ADDING_NOTES
        -> COMPLETED

EMERGENCY is terminal and reachable from any phase. Each turn runs the
hard-stop scan, the phase handler and, for symptom phases, the
question/evaluation loop until a prompt for the patient is produced.
Persistence is a side effect: failures are retried, dead-lettered and
never block the conversation.
"""

from typing import Optional

import structlog

from oncolife.engine.constants import (
    ADD_NOTES,
    DONE,
    EMERGENCY_BUTTONS,
    FEEL_FINE,
    LAST_CHEMO_OPTIONS,
    NO,
    NONE_OF_THESE,
    NOTES_OPTIONS,
    PHYSICIAN_VISIT_OPTIONS,
    SELECTION_LABELS,
    SYMPTOM_SELECTION_CATEGORIES,
    TERMINAL_PHASES,
    YES_NO_OPTIONS,
    ConversationPhase,
    MessageType,
    SeverityLevel,
    TriageLevel,
)
from oncolife.engine.hard_stops import HardStopDetector, HardStopResult
from oncolife.engine.models import EngineResponse, PatientResponse, SessionState, utcnow
from oncolife.engine.questions import QuestionEngine
from oncolife.engine.resolver import BranchResolver, Outcome, PendingAlert
from oncolife.engine.session_store import SessionStore
from oncolife.engine.summary import SummaryGenerator
from oncolife.engine.symptoms import REGISTRY, SymptomRegistry
from oncolife.exceptions import SessionNotFoundError
from oncolife.persistence.gateway import PatientDirectory, PersistenceGateway
from oncolife.persistence.models import AlertRecord, SessionSummaryRecord, SymptomReportRecord
from oncolife.persistence.resilient import ResilientPersistence

logger = structlog.get_logger(__name__)


# =============================================================================
# Patient-facing text
# =============================================================================

EMERGENCY_QUESTION = (
    "Are you currently experiencing any emergency symptoms such as chest pain, "
    "difficulty breathing, significant bleeding, fainting, or confusion?"
)
EMERGENCY_SELECT_PROMPT = "Please select the emergency symptom you are experiencing:"
LAST_CHEMO_PROMPT = "When was your last chemotherapy treatment?"
NEXT_VISIT_PROMPT = "When is your next scheduled provider visit?"
SYMPTOM_SELECTION_PROMPT = "What symptoms are you experiencing? Select all that apply."
NOTES_PROMPT = "Would you like to add any additional notes for your care team?"
NOTES_TEXT_PROMPT = "Please type your additional notes below:"
STAND_DOWN_MESSAGE = "Thank you for checking. Let's continue with your check-in."
EMPTY_ANSWER_MESSAGE = "Please choose an answer to continue."
ALREADY_COMPLETE_MESSAGE = "This conversation is already complete."
COMPLETED_MESSAGE = (
    "Thank you for completing your symptom check-in! "
    "Your care team will review your responses. Take care! 💙"
)
COMPLETED_WITH_NOTES_MESSAGE = (
    "Thank you! Your notes have been added. "
    "Your care team will review your responses. Take care! 💙"
)
SELF_HARM_ALERT = "Patient used language indicating possible self-harm or suicidal thoughts."

PROGRESS = {
    ConversationPhase.DISCLAIMER: 0,
    ConversationPhase.EMERGENCY_CHECK: 5,
    ConversationPhase.SYMPTOM_SELECTION: 15,
    ConversationPhase.SUMMARY: 85,
    ConversationPhase.ADDING_NOTES: 90,
    ConversationPhase.COMPLETED: 100,
}
NOTES_TEXT_PROGRESS = 92


def emergency_text(message: str) -> str:
    return (
        "🚨 **Please call 911 immediately.**\n\n"
        f"{message}\n\n"
        "Your care team has been notified."
    )


def selection_options() -> list[str]:
    labels = [label for _, symptoms in SYMPTOM_SELECTION_CATEGORIES for _, label in symptoms]
    return [*labels, FEEL_FINE]


class ConversationEngine:
    """
    Drives one check-in conversation per conversation id.

    Usage:
        engine = ConversationEngine(store, persistence, patients)
        greeting = await engine.start_conversation("conv-1", "patient-1")
        reply = await engine.process_response("conv-1", PatientResponse(selected_option="No"))

    Turns for the same conversation are serialized with the session store's
    lock. Persistence failures never reach the caller.
    """

    def __init__(
        self,
        store: SessionStore,
        persistence: PersistenceGateway,
        patients: PatientDirectory,
        registry: SymptomRegistry = REGISTRY,
        assistant_name: str = "Ruby",
        hard_stops: HardStopDetector | None = None,
        summary_generator: SummaryGenerator | None = None,
    ):
        self.store = store
        if not isinstance(persistence, ResilientPersistence):
            persistence = ResilientPersistence(persistence)
        self.persistence = persistence
        self.patients = patients
        self.registry = registry
        self.assistant_name = assistant_name

        self.hard_stops = hard_stops or HardStopDetector()
        self.questions = QuestionEngine()
        self.resolver = BranchResolver(registry)
        self.summaries = summary_generator or SummaryGenerator(registry)

    # =========================================================================
    # Public API
    # =========================================================================

    async def start_conversation(self, conversation_id: str, patient_id: str) -> EngineResponse:
        """Create the session and return the greeting with the disclaimer question."""
        patient = await self._lookup_patient(patient_id)
        patient_name = patient.first_name if patient else "there"
        first_time = patient is None or patient.conversation_count <= 1

        session = SessionState(
            conversation_id=conversation_id,
            patient_id=patient_id,
            patient_name=patient_name,
        )
        async with self.store.lock(conversation_id):
            await self.store.put(session)

        logger.info(
            "Conversation started",
            conversation_id=conversation_id,
            patient_id=patient_id,
            returning=not first_time,
        )

        if first_time:
            message = (
                f"Hi {patient_name}! I'm {self.assistant_name}, your virtual symptom assistant. "
                "I'll ask you some questions about how you're feeling today. "
                "Your responses will be shared with your care team.\n\n"
                "⚠️ **Important:** This is not a substitute for emergency medical care. "
                "If you are experiencing a medical emergency, please call 911 immediately.\n\n"
                f"{EMERGENCY_QUESTION}"
            )
        else:
            message = f"Hi {patient_name}! Let's check in on how you're feeling today.\n\n{EMERGENCY_QUESTION}"

        return EngineResponse(
            phase=ConversationPhase.DISCLAIMER,
            message=message,
            message_type=MessageType.OPTION_SELECT,
            options=list(YES_NO_OPTIONS),
            progress=PROGRESS[ConversationPhase.DISCLAIMER],
        )

    async def process_response(self, conversation_id: str, response: PatientResponse) -> EngineResponse:
        """Apply one patient turn and return what to show next.

        Raises:
            SessionNotFoundError: no live session for ``conversation_id``.
        """
        async with self.store.lock(conversation_id):
            session = await self.store.get(conversation_id)
            if session is None:
                raise SessionNotFoundError(conversation_id)

            reply = await self._dispatch(session, response)
            await self.store.put(session)
            return reply

    async def get_session(self, conversation_id: str) -> SessionState:
        session = await self.store.get(conversation_id)
        if session is None:
            raise SessionNotFoundError(conversation_id)
        return session

    # =========================================================================
    # Dispatch
    # =========================================================================

    async def _dispatch(self, session: SessionState, response: PatientResponse) -> EngineResponse:
        hard_stop = self.hard_stops.check(response.raw_text)
        if hard_stop.triggered:
            return await self._handle_hard_stop(session, hard_stop)

        phase = session.phase
        if phase in TERMINAL_PHASES:
            return EngineResponse(
                phase=phase,
                message=ALREADY_COMPLETE_MESSAGE,
                is_complete=True,
                is_emergency=session.is_emergency,
            )
        if phase == ConversationPhase.DISCLAIMER:
            return await self._handle_disclaimer(session, response)
        if phase == ConversationPhase.EMERGENCY_CHECK:
            return await self._handle_emergency_check(session, response)
        if phase == ConversationPhase.PATIENT_CONTEXT:
            return await self._handle_patient_context(session, response)
        if phase == ConversationPhase.SYMPTOM_SELECTION:
            return await self._handle_symptom_selection(session, response)
        if phase in (ConversationPhase.SCREENING, ConversationPhase.FOLLOW_UP, ConversationPhase.BRANCHED):
            return await self._handle_symptom_answer(session, response)
        if phase == ConversationPhase.SUMMARY:
            return await self._handle_summary(session)
        return await self._handle_adding_notes(session, response)

    async def _handle_hard_stop(self, session: SessionState, hard_stop: HardStopResult) -> EngineResponse:
        if hard_stop.ends_conversation:
            if not session.is_emergency:
                await self._enter_emergency(session, PendingAlert(None, TriageLevel.CALL_911, SELF_HARM_ALERT))
            return EngineResponse(
                phase=session.phase,
                message=hard_stop.message,
                is_complete=True,
                is_emergency=True,
            )

        # Deflect, then show the prompt the patient still owes an answer to
        prompt = self._current_prompt(session)
        return prompt.model_copy(update={"message": f"{hard_stop.message}\n\n{prompt.message}"})

    # =========================================================================
    # Phase Handlers
    # =========================================================================

    async def _handle_disclaimer(self, session: SessionState, response: PatientResponse) -> EngineResponse:
        if response.answer.lower() == NO.lower():
            await self._transition(session, ConversationPhase.PATIENT_CONTEXT)
            return self._patient_context_prompt(session)

        await self._transition(session, ConversationPhase.EMERGENCY_CHECK)
        return self._emergency_check_prompt()

    async def _handle_emergency_check(self, session: SessionState, response: PatientResponse) -> EngineResponse:
        answer = response.answer
        if not answer:
            return self._emergency_check_prompt()

        if answer == NONE_OF_THESE:
            await self._transition(session, ConversationPhase.PATIENT_CONTEXT)
            return self._patient_context_prompt(session)

        symptom_id = EMERGENCY_BUTTONS.get(answer)
        if symptom_id is None or self.registry.get(symptom_id) is None:
            alert = PendingAlert(
                symptom_id.value if symptom_id else None,
                TriageLevel.CALL_911,
                f"Emergency: {answer} ({symptom_id.value if symptom_id else 'unknown'})",
            )
            return await self._enter_emergency(
                session,
                alert,
                f"You reported: {answer}. This requires immediate medical attention.",
            )

        # Let the symptom's own screening confirm or stand down
        session.emergency_screening = True
        return await self._begin_symptoms(session, [symptom_id.value])

    async def _handle_patient_context(self, session: SessionState, response: PatientResponse) -> EngineResponse:
        answer = response.answer
        if not answer:
            return self._patient_context_prompt(session)

        context = session.patient_context
        if context.last_chemo is None:
            context.last_chemo = answer
            return self._patient_context_prompt(session)

        context.next_visit = answer
        await self._transition(session, ConversationPhase.SYMPTOM_SELECTION)
        return self._symptom_selection_prompt()

    async def _handle_symptom_selection(self, session: SessionState, response: PatientResponse) -> EngineResponse:
        selections = response.selections
        if not selections or FEEL_FINE in selections:
            return await self._enter_summary(session)

        symptom_ids: list[str] = []
        for label in selections:
            symptom_id = SELECTION_LABELS.get(label)
            if symptom_id is None:
                logger.debug("Unknown symptom label dropped", label=label)
                continue
            if symptom_id.value not in symptom_ids:
                symptom_ids.append(symptom_id.value)

        if not symptom_ids:
            return await self._enter_summary(session)

        logger.info(
            "Symptoms selected",
            conversation_id=session.conversation_id,
            symptoms=symptom_ids,
        )
        return await self._begin_symptoms(session, symptom_ids)

    async def _handle_symptom_answer(self, session: SessionState, response: PatientResponse) -> EngineResponse:
        module = self.registry.get(session.current_symptom)
        question = self.questions.pending_question(session, module) if module else None
        if module is None or question is None:
            return await self._run_symptoms(session)

        if self.questions.is_blank(question, response):
            return self.questions.build_prompt(
                session, module, question, progress=self._progress(session), error=EMPTY_ANSWER_MESSAGE,
            )

        outcome = self.questions.record_answer(session, module, question, response)
        if not outcome.accepted:
            return self.questions.build_prompt(
                session, module, question, progress=self._progress(session), error=outcome.error,
            )
        return await self._run_symptoms(session)

    async def _handle_summary(self, session: SessionState) -> EngineResponse:
        await self._transition(session, ConversationPhase.ADDING_NOTES)
        return self._notes_prompt()

    async def _handle_adding_notes(self, session: SessionState, response: PatientResponse) -> EngineResponse:
        answer = response.answer
        if not answer:
            return self._notes_prompt()

        if answer == ADD_NOTES:
            return EngineResponse(
                phase=session.phase,
                message=NOTES_TEXT_PROMPT,
                message_type=MessageType.TEXT,
                progress=NOTES_TEXT_PROGRESS,
            )

        if answer in (DONE, NO):
            await self._complete(session, notes=None)
            message = COMPLETED_MESSAGE
        else:
            await self._complete(session, notes=answer)
            message = COMPLETED_WITH_NOTES_MESSAGE

        return EngineResponse(
            phase=ConversationPhase.COMPLETED,
            message=message,
            is_complete=True,
            progress=PROGRESS[ConversationPhase.COMPLETED],
        )

    # =========================================================================
    # Symptom Loop
    # =========================================================================

    async def _begin_symptoms(self, session: SessionState, symptom_ids: list[str]) -> EngineResponse:
        if not self.resolver.start(session, symptom_ids):
            return await self._finish_queue(session)
        await self._persist_phase(session)
        return await self._run_symptoms(session)

    async def _run_symptoms(self, session: SessionState) -> EngineResponse:
        """Ask the next eligible question, evaluating finished sections on the way.

        Several modules may be evaluated and advanced past in one turn.
        """
        while True:
            module = self.registry.get(session.current_symptom)
            if module is None:
                if not self.resolver.advance(session):
                    return await self._finish_queue(session)
                await self._persist_phase(session)
                continue

            question = self.questions.next_question(session, module)
            if question is not None:
                return self.questions.build_prompt(session, module, question, progress=self._progress(session))

            evaluate = module.evaluator(session.current_section)
            result = evaluate(session.answers, session)
            phase_before = session.phase
            resolution = self.resolver.resolve(session, module, result)

            if resolution.outcome == Outcome.EMERGENCY:
                return await self._enter_emergency(session, resolution.alert, resolution.emergency_message)

            if resolution.alert is not None:
                await self._create_alert(session, resolution.alert)

            if resolution.outcome == Outcome.FOLLOW_UP:
                if session.phase != phase_before:
                    await self._persist_phase(session)
                continue

            if not self.resolver.advance(session):
                return await self._finish_queue(session)
            await self._persist_phase(session)

    async def _finish_queue(self, session: SessionState) -> EngineResponse:
        if not session.emergency_screening:
            return await self._enter_summary(session)

        # Emergency symptom stood down: resume the regular check-in
        session.emergency_screening = False
        session.selected_symptoms = []
        session.current_symptom_index = -1
        session.current_symptom = None
        logger.info("Emergency screening stood down", conversation_id=session.conversation_id)

        await self._transition(session, ConversationPhase.PATIENT_CONTEXT)
        prompt = self._patient_context_prompt(session)
        return prompt.model_copy(update={"message": f"{STAND_DOWN_MESSAGE}\n\n{prompt.message}"})

    def _progress(self, session: SessionState) -> int:
        total = len(session.selected_symptoms) or 1
        completed = len([s for s in session.selected_symptoms if s in session.evaluated_symptoms])
        return min(round(20 + completed / total * 65), 85)

    # =========================================================================
    # Summary, Completion, Emergency
    # =========================================================================

    async def _enter_summary(self, session: SessionState) -> EngineResponse:
        await self._transition(session, ConversationPhase.SUMMARY)
        await self._persist_symptom_reports(session)

        summary = self.summaries.generate(session)
        return EngineResponse(
            phase=ConversationPhase.SUMMARY,
            message=summary.summary_text,
            message_type=MessageType.SUMMARY,
            summary=summary,
            progress=PROGRESS[ConversationPhase.SUMMARY],
        )

    async def _complete(self, session: SessionState, notes: Optional[str]) -> None:
        summary = self.summaries.generate(session)
        await self.persistence.create_session_summary(SessionSummaryRecord(
            conversation_id=session.conversation_id,
            patient_id=session.patient_id,
            summary_text=summary.summary_text,
            patient_added_notes=notes,
            overall_triage_level=summary.overall_triage_level,
            recommendations=summary.recommendations,
            education_links=summary.education_links,
        ))

        session.phase = ConversationPhase.COMPLETED
        session.completed_at = utcnow()
        await self._persist_phase(session, triage_level=summary.overall_triage_level)
        logger.info(
            "Conversation completed",
            conversation_id=session.conversation_id,
            triage_level=summary.overall_triage_level.value,
            has_notes=notes is not None,
        )

    async def _enter_emergency(
        self,
        session: SessionState,
        alert: PendingAlert,
        patient_message: str | None = None,
    ) -> EngineResponse:
        session.is_emergency = True
        session.phase = ConversationPhase.EMERGENCY
        session.completed_at = utcnow()
        await self._persist_phase(session)
        await self._create_alert(session, alert)
        await self._persist_symptom_reports(session)

        logger.warning(
            "Emergency escalation",
            conversation_id=session.conversation_id,
            symptom_id=alert.symptom_id,
        )
        return EngineResponse(
            phase=ConversationPhase.EMERGENCY,
            message=emergency_text(patient_message or alert.message),
            is_complete=True,
            is_emergency=True,
        )

    # =========================================================================
    # Prompts
    # =========================================================================

    def _current_prompt(self, session: SessionState) -> EngineResponse:
        """The prompt the patient is expected to answer in the current phase."""
        phase = session.phase
        if phase == ConversationPhase.DISCLAIMER:
            return EngineResponse(
                phase=phase,
                message=EMERGENCY_QUESTION,
                message_type=MessageType.OPTION_SELECT,
                options=list(YES_NO_OPTIONS),
                progress=PROGRESS[phase],
            )
        if phase == ConversationPhase.EMERGENCY_CHECK:
            return self._emergency_check_prompt()
        if phase == ConversationPhase.PATIENT_CONTEXT:
            return self._patient_context_prompt(session)
        if phase == ConversationPhase.SYMPTOM_SELECTION:
            return self._symptom_selection_prompt()
        if phase in (ConversationPhase.SCREENING, ConversationPhase.FOLLOW_UP, ConversationPhase.BRANCHED):
            module = self.registry.get(session.current_symptom)
            question = self.questions.pending_question(session, module) if module else None
            if question is not None:
                return self.questions.build_prompt(session, module, question, progress=self._progress(session))
        if phase == ConversationPhase.SUMMARY:
            summary = self.summaries.generate(session)
            return EngineResponse(
                phase=phase,
                message=summary.summary_text,
                message_type=MessageType.SUMMARY,
                summary=summary,
                progress=PROGRESS[phase],
            )
        if phase == ConversationPhase.ADDING_NOTES:
            return self._notes_prompt()
        return EngineResponse(
            phase=phase,
            message=ALREADY_COMPLETE_MESSAGE,
            is_complete=phase in TERMINAL_PHASES,
            is_emergency=session.is_emergency,
        )

    def _emergency_check_prompt(self) -> EngineResponse:
        return EngineResponse(
            phase=ConversationPhase.EMERGENCY_CHECK,
            message=EMERGENCY_SELECT_PROMPT,
            message_type=MessageType.OPTION_SELECT,
            options=[*EMERGENCY_BUTTONS, NONE_OF_THESE],
            progress=PROGRESS[ConversationPhase.EMERGENCY_CHECK],
        )

    def _patient_context_prompt(self, session: SessionState) -> EngineResponse:
        if session.patient_context.last_chemo is None:
            message, options, progress = LAST_CHEMO_PROMPT, LAST_CHEMO_OPTIONS, 5
        else:
            message, options, progress = NEXT_VISIT_PROMPT, PHYSICIAN_VISIT_OPTIONS, 8
        return EngineResponse(
            phase=ConversationPhase.PATIENT_CONTEXT,
            message=message,
            message_type=MessageType.OPTION_SELECT,
            options=list(options),
            progress=progress,
        )

    def _symptom_selection_prompt(self) -> EngineResponse:
        return EngineResponse(
            phase=ConversationPhase.SYMPTOM_SELECTION,
            message=SYMPTOM_SELECTION_PROMPT,
            message_type=MessageType.MULTI_SELECT,
            options=selection_options(),
            progress=PROGRESS[ConversationPhase.SYMPTOM_SELECTION],
        )

    def _notes_prompt(self) -> EngineResponse:
        return EngineResponse(
            phase=ConversationPhase.ADDING_NOTES,
            message=NOTES_PROMPT,
            message_type=MessageType.OPTION_SELECT,
            options=list(NOTES_OPTIONS),
            progress=PROGRESS[ConversationPhase.ADDING_NOTES],
        )

    # =========================================================================
    # Persistence
    # =========================================================================

    async def _lookup_patient(self, patient_id: str):
        try:
            return await self.patients.get_patient(patient_id)
        except Exception as e:
            logger.error("Patient lookup failed", patient_id=patient_id, error=str(e))
            return None

    async def _transition(self, session: SessionState, phase: ConversationPhase) -> None:
        session.phase = phase
        await self._persist_phase(session)

    async def _persist_phase(self, session: SessionState, triage_level: TriageLevel | None = None) -> None:
        logger.info(
            "Phase transition",
            conversation_id=session.conversation_id,
            phase=session.phase.value,
            symptom_id=session.current_symptom,
        )
        await self.persistence.update_conversation(
            session.conversation_id,
            phase=session.phase,
            is_emergency=session.is_emergency,
            completed_at=session.completed_at if session.phase in TERMINAL_PHASES else None,
            triage_level=triage_level,
        )

    async def _create_alert(self, session: SessionState, alert: PendingAlert) -> None:
        await self.persistence.create_alert(AlertRecord(
            patient_id=session.patient_id,
            conversation_id=session.conversation_id,
            triage_level=alert.triage_level,
            message=alert.message,
            symptom_id=alert.symptom_id,
        ))

    async def _persist_symptom_reports(self, session: SessionState) -> None:
        """Write one report per evaluated symptom not yet reported."""
        for symptom_id, result in session.symptom_results.items():
            if symptom_id in session.reported_symptoms:
                continue
            await self.persistence.create_symptom_report(SymptomReportRecord(
                conversation_id=session.conversation_id,
                symptom_id=symptom_id,
                severity=result.severity or SeverityLevel.MILD,
                duration=result.duration,
                triage_level=result.triage_level,
                notes=result.notes,
                medications_tried=result.medications_tried,
                branched_from=result.branched_from,
            ))
            session.reported_symptoms.add(symptom_id)
