"""Shared fixtures for the triage engine tests."""

import re

import pytest

from oncolife.engine.constants import MessageType, NONE_OF_THESE, NO
from oncolife.engine.conversation import ConversationEngine
from oncolife.engine.models import EngineResponse, PatientResponse
from oncolife.engine.session_store import InMemorySessionStore
from oncolife.persistence import (
    InMemoryPatientDirectory,
    InMemoryPersistenceGateway,
    PatientRecord,
    ResilientPersistence,
)


@pytest.fixture
def gateway():
    return InMemoryPersistenceGateway()


@pytest.fixture
def patients():
    return InMemoryPatientDirectory([
        PatientRecord(patient_id="patient-1", first_name="Maria", last_name="Lopez", conversation_count=1),
        PatientRecord(patient_id="patient-2", first_name="James", last_name="Chen", conversation_count=4),
    ])


@pytest.fixture
def store():
    return InMemorySessionStore()


@pytest.fixture
def engine(store, gateway, patients):
    persistence = ResilientPersistence(gateway, retries=0, retry_delay=0)
    return ConversationEngine(store=store, persistence=persistence, patients=patients)


def default_answer(reply: EngineResponse) -> PatientResponse:
    """A low-risk answer for whatever ``reply`` asks."""
    options = reply.options or []
    if reply.message_type == MessageType.MULTI_SELECT:
        for blank in (NONE_OF_THESE, "None"):
            if blank in options:
                return PatientResponse(selected_options=[blank])
        return PatientResponse(selected_options=options[:1])
    if reply.message_type == MessageType.NUMBER_INPUT:
        hint = reply.input_hint or ""
        if "101.5" in hint:
            return PatientResponse(numeric_value=98.6)
        if "/" in hint:
            return PatientResponse(text="120/80")
        match = re.search(r"\d+", hint)
        return PatientResponse(numeric_value=float(match.group(0)) if match else 1)
    if reply.message_type == MessageType.OPTION_SELECT:
        if NO in options:
            return PatientResponse(selected_option=NO)
        mild = [o for o in options if o.startswith("Mild")]
        return PatientResponse(selected_option=mild[0] if mild else options[0])
    return PatientResponse(text="nothing else")


async def walk(engine, conversation_id, reply, overrides=None, max_turns=80):
    """Answer questions until the engine leaves the symptom phases.

    ``overrides`` maps a question's text to the response to give it.
    Returns every reply seen, ``reply`` included.
    """
    overrides = overrides or {}
    replies = [reply]
    for _ in range(max_turns):
        if reply.phase.value not in ("screening", "follow_up", "branched"):
            return replies
        response = overrides.get(reply.message) or default_answer(reply)
        reply = await engine.process_response(conversation_id, response)
        replies.append(reply)
    raise AssertionError("conversation did not leave the symptom phases")


async def to_selection(engine, conversation_id="conv-1", patient_id="patient-1") -> EngineResponse:
    """Start a conversation and answer through to symptom selection."""
    await engine.start_conversation(conversation_id, patient_id)
    await engine.process_response(conversation_id, PatientResponse(selected_option="No"))
    await engine.process_response(conversation_id, PatientResponse(selected_option="Yesterday"))
    return await engine.process_response(conversation_id, PatientResponse(selected_option="Next week"))
