"""
Conversation API Endpoints

REST API for starting a symptom check-in and submitting patient turns.
"""

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel
import structlog

from oncolife.engine.constants import EMERGENCY_BUTTONS, SYMPTOM_SELECTION_CATEGORIES, TriageLevel
from oncolife.engine.conversation import ConversationEngine
from oncolife.engine.models import EngineResponse, PatientResponse
from oncolife.exceptions import SessionNotFoundError, SessionStoreError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/conversations", tags=["conversations"])


class StartConversationRequest(BaseModel):
    """Request to start a check-in."""
    patient_id: str


class ConversationStatus(BaseModel):
    conversation_id: str
    patient_id: str
    phase: str
    is_emergency: bool
    overall_triage_level: TriageLevel
    selected_symptoms: List[str]
    current_symptom: Optional[str] = None


class SymptomOption(BaseModel):
    symptom_id: str
    label: str


class SymptomCatalog(BaseModel):
    emergency: List[SymptomOption]
    categories: Dict[str, List[SymptomOption]]


def get_engine(request: Request) -> ConversationEngine:
    """Engine built during application startup."""
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="Conversation engine not initialized")
    return engine


@router.get("/symptoms", response_model=SymptomCatalog)
async def list_symptoms():
    """Emergency buttons and the selectable symptom categories."""
    return SymptomCatalog(
        emergency=[
            SymptomOption(symptom_id=symptom_id.value, label=label)
            for label, symptom_id in EMERGENCY_BUTTONS.items()
        ],
        categories={
            category.value: [
                SymptomOption(symptom_id=symptom_id.value, label=label)
                for symptom_id, label in symptoms
            ]
            for category, symptoms in SYMPTOM_SELECTION_CATEGORIES
        },
    )


@router.post("/{conversation_id}/start", response_model=EngineResponse)
async def start_conversation(
    conversation_id: str,
    request: StartConversationRequest,
    engine: ConversationEngine = Depends(get_engine),
):
    """Start a check-in and return the greeting."""
    try:
        return await engine.start_conversation(conversation_id, request.patient_id)
    except SessionStoreError as e:
        raise HTTPException(status_code=503, detail=f"Session store unavailable: {e}")


@router.post("/{conversation_id}/messages", response_model=EngineResponse)
async def send_message(
    conversation_id: str,
    response: PatientResponse,
    engine: ConversationEngine = Depends(get_engine),
):
    """Submit one patient turn."""
    try:
        return await engine.process_response(conversation_id, response)
    except SessionNotFoundError as e:
        logger.info("Message for unknown conversation", conversation_id=conversation_id)
        raise HTTPException(status_code=404, detail=str(e))
    except SessionStoreError as e:
        raise HTTPException(status_code=503, detail=f"Session store unavailable: {e}")


@router.get("/{conversation_id}", response_model=ConversationStatus)
async def get_conversation(
    conversation_id: str,
    engine: ConversationEngine = Depends(get_engine),
):
    """Current phase and triage level of a live conversation."""
    try:
        session = await engine.get_session(conversation_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SessionStoreError as e:
        raise HTTPException(status_code=503, detail=f"Session store unavailable: {e}")

    return ConversationStatus(
        conversation_id=session.conversation_id,
        patient_id=session.patient_id,
        phase=session.phase.value,
        is_emergency=session.is_emergency,
        overall_triage_level=session.overall_triage,
        selected_symptoms=session.selected_symptoms,
        current_symptom=session.current_symptom,
    )
