"""
Evaluation & Branch Resolver

Applies evaluator verdicts to the session and owns the two-level work
queue: the ordered top-level selection list and a LIFO stack of
branch-discovered symptoms that drains before the next top-level entry.
"""

from dataclasses import dataclass
from enum import Enum

import structlog

from oncolife.engine.constants import (
    ConversationPhase,
    EvalAction,
    Section,
    SymptomId,
    TriageLevel,
    TRIAGE_PRIORITY,
)
from oncolife.engine.models import EvalResult, SessionState
from oncolife.engine.symptoms import SymptomModule, SymptomRegistry

logger = structlog.get_logger(__name__)


class Outcome(str, Enum):
    FOLLOW_UP = "follow_up"  # same module, follow-up section
    ADVANCE = "advance"      # module done, move the queue
    EMERGENCY = "emergency"


@dataclass
class PendingAlert:
    symptom_id: str | None
    triage_level: TriageLevel
    message: str


@dataclass
class Resolution:
    outcome: Outcome
    alert: PendingAlert | None = None
    emergency_message: str | None = None


class BranchResolver:
    """Turns evaluator verdicts into queue movements and pending alerts."""

    def __init__(self, registry: SymptomRegistry):
        self.registry = registry

    def resolve(self, session: SessionState, module: SymptomModule, result: EvalResult) -> Resolution:
        symptom_id = module.id
        session.result_for(symptom_id).merge(result)

        logger.info(
            "Symptom evaluated",
            conversation_id=session.conversation_id,
            symptom_id=symptom_id,
            section=session.current_section.value,
            action=result.action.value,
            triage_level=result.triage_level.value,
        )

        if result.action == EvalAction.EMERGENCY:
            self._mark_done(session, symptom_id)
            message = result.alert_message or "Emergency detected."
            return Resolution(
                outcome=Outcome.EMERGENCY,
                alert=PendingAlert(symptom_id, TriageLevel.CALL_911, message),
                emergency_message=message,
            )

        if result.action == EvalAction.CONTINUE and session.current_section == Section.SCREENING:
            session.current_section = Section.FOLLOW_UP
            session.current_question_index = 0
            if session.phase != ConversationPhase.BRANCHED:
                session.phase = ConversationPhase.FOLLOW_UP
            return Resolution(outcome=Outcome.FOLLOW_UP)

        # stop, branch, or a continue from follow-up (treated as stop)
        if result.action == EvalAction.BRANCH:
            self.push_branches(session, symptom_id, result.branch_to)

        self._mark_done(session, symptom_id)
        return Resolution(outcome=Outcome.ADVANCE, alert=self._module_alert(session, symptom_id))

    def _module_alert(self, session: SessionState, symptom_id: str) -> PendingAlert | None:
        """One alert per finished module carrying its accumulated messages."""
        result = session.symptom_results[symptom_id]
        if TRIAGE_PRIORITY[result.triage_level] <= TRIAGE_PRIORITY[TriageLevel.NONE]:
            return None
        if not result.alert_message:
            return None
        return PendingAlert(symptom_id, result.triage_level, result.alert_message)

    def _mark_done(self, session: SessionState, symptom_id: str) -> None:
        if symptom_id not in session.evaluated_symptoms:
            session.evaluated_symptoms.append(symptom_id)

    # =========================================================================
    # Work Queue
    # =========================================================================

    def is_satisfied(self, session: SessionState, symptom_id: str) -> bool:
        """Whether a branch target is already covered elsewhere in the queue."""
        if symptom_id in session.evaluated_symptoms:
            return True
        if symptom_id == session.current_symptom or symptom_id in session.branch_stack:
            return True
        pending = session.selected_symptoms[session.current_symptom_index + 1:]
        if symptom_id in pending:
            return True
        if symptom_id == SymptomId.DEHYDRATION.value and symptom_id in session.symptom_results:
            return True
        return False

    def push_branches(self, session: SessionState, parent_id: str, targets: list[str]) -> list[str]:
        """Push branch targets so the first listed target is processed first."""
        accepted = []
        for target in targets:
            if self.registry.get(target) is None:
                logger.warning("Unknown branch target skipped", symptom_id=target, parent=parent_id)
                continue
            if target in accepted or self.is_satisfied(session, target):
                logger.debug("Branch target already satisfied", symptom_id=target, parent=parent_id)
                continue
            accepted.append(target)

        for target in reversed(accepted):
            session.branch_stack.append(target)
            session.branch_origins.setdefault(target, parent_id)

        if accepted:
            logger.info(
                "Branching",
                conversation_id=session.conversation_id,
                parent=parent_id,
                targets=accepted,
            )
        return accepted

    def start(self, session: SessionState, symptom_ids: list[str]) -> bool:
        """Load a fresh top-level list and move to its first entry."""
        session.selected_symptoms = list(symptom_ids)
        session.current_symptom_index = -1
        session.current_symptom = None
        session.branch_stack = []
        return self.advance(session)

    def advance(self, session: SessionState) -> bool:
        """Make the next queued symptom current.

        Pops the branch stack first, then moves along the top-level list.
        Unknown modules and already evaluated symptoms are skipped.
        Returns False when the queue is exhausted.
        """
        while session.branch_stack:
            candidate = session.branch_stack.pop()
            if candidate in session.evaluated_symptoms or self.registry.get(candidate) is None:
                continue
            self._activate(session, candidate, ConversationPhase.BRANCHED)
            return True

        while session.current_symptom_index + 1 < len(session.selected_symptoms):
            session.current_symptom_index += 1
            candidate = session.selected_symptoms[session.current_symptom_index]
            if self.registry.get(candidate) is None:
                logger.warning("Unknown symptom module skipped", symptom_id=candidate)
                continue
            if candidate in session.evaluated_symptoms:
                continue
            self._activate(session, candidate, ConversationPhase.SCREENING)
            return True

        session.current_symptom = None
        return False

    def _activate(self, session: SessionState, symptom_id: str, phase: ConversationPhase) -> None:
        session.current_symptom = symptom_id
        session.current_section = Section.SCREENING
        session.current_question_index = 0
        session.phase = phase
