"""
Question Engine

Walks the active module's question list, skipping hidden and already
answered dehydration questions, records answers and validates numbers.
"""

from dataclasses import dataclass
from typing import Any

import structlog

from oncolife.engine.constants import MessageType, QuestionType
from oncolife.engine.models import EngineResponse, PatientResponse, SessionState, answer_key
from oncolife.engine.symptoms import SymptomModule
from oncolife.engine.symptoms.base import DEHYDRATION_EQUIVALENTS, QuestionDef
from oncolife.engine.validation import get_input_hint, validate_numeric_input

logger = structlog.get_logger(__name__)


MESSAGE_TYPES: dict[QuestionType, MessageType] = {
    QuestionType.CHOICE: MessageType.OPTION_SELECT,
    QuestionType.YES_NO: MessageType.OPTION_SELECT,
    QuestionType.NUMBER: MessageType.NUMBER_INPUT,
    QuestionType.TEXT: MessageType.TEXT,
    QuestionType.MULTI_SELECT: MessageType.MULTI_SELECT,
}


@dataclass
class AnswerOutcome:
    accepted: bool
    error: str | None = None


class QuestionEngine:
    """
    Presents one question at a time from the current symptom module.

    The question at ``session.current_question_index`` is the one pending
    an answer. ``next_question`` moves the index forward past questions
    that should not be asked.
    """

    def canonical_key(self, question: QuestionDef) -> str | None:
        return DEHYDRATION_EQUIVALENTS.get(question.id)

    def is_eligible(self, session: SessionState, question: QuestionDef) -> bool:
        if not question.is_visible(session.answers):
            return False
        canonical = self.canonical_key(question)
        if canonical and canonical in session.dehydration_keys_asked:
            return False
        return True

    def pending_question(self, session: SessionState, module: SymptomModule) -> QuestionDef | None:
        """The question currently awaiting an answer, if any."""
        questions = module.questions(session.current_section)
        if 0 <= session.current_question_index < len(questions):
            return questions[session.current_question_index]
        return None

    def next_question(self, session: SessionState, module: SymptomModule) -> QuestionDef | None:
        """Advance to the next eligible question in the active section.

        Returns None when the section is exhausted and ready to evaluate.
        """
        questions = module.questions(session.current_section)
        index = session.current_question_index
        while index < len(questions):
            question = questions[index]
            if self.is_eligible(session, question):
                session.current_question_index = index
                return question
            logger.debug(
                "Skipping question",
                symptom_id=module.id,
                question_id=question.id,
                section=session.current_section.value,
            )
            index += 1
        session.current_question_index = index
        return None

    def is_blank(self, question: QuestionDef, response: PatientResponse) -> bool:
        """Whether ``response`` carries nothing that ``record_answer`` would store for ``question``."""
        if question.type == QuestionType.MULTI_SELECT:
            return not response.selections
        if question.type == QuestionType.NUMBER:
            return response.numeric_value is None and not response.answer
        return not response.answer

    def record_answer(
        self,
        session: SessionState,
        module: SymptomModule,
        question: QuestionDef,
        response: PatientResponse,
    ) -> AnswerOutcome:
        """Store the answer to ``question`` and advance the index.

        Invalid NUMBER input is rejected without touching the session.
        """
        key = answer_key(module.id, question.id)
        value: Any

        if question.type == QuestionType.NUMBER:
            raw = response.numeric_value if response.numeric_value is not None else response.answer
            result = validate_numeric_input(question.id, raw)
            if not result.is_valid:
                logger.info(
                    "Numeric input rejected",
                    symptom_id=module.id,
                    question_id=question.id,
                    error=result.error,
                )
                return AnswerOutcome(accepted=False, error=result.error)
            value = result.value
            if result.reading:
                session.answers[f"{key}:reading"] = result.reading
        elif question.type == QuestionType.MULTI_SELECT:
            value = response.selections
        else:
            value = response.answer

        session.answers[key] = value
        canonical = self.canonical_key(question)
        if canonical:
            session.dehydration_keys_asked.add(canonical)
            session.dehydration_answers[canonical] = value

        session.current_question_index += 1
        return AnswerOutcome(accepted=True)

    def build_prompt(
        self,
        session: SessionState,
        module: SymptomModule,
        question: QuestionDef,
        progress: int | None = None,
        error: str | None = None,
    ) -> EngineResponse:
        message = f"{error}\n\n{question.text}" if error else question.text
        return EngineResponse(
            phase=session.phase,
            message=message,
            message_type=MESSAGE_TYPES[question.type],
            options=list(question.options) if question.options else None,
            progress=progress,
            input_hint=get_input_hint(question.id) if question.type == QuestionType.NUMBER else None,
        )
