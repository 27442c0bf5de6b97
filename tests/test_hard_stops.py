"""
Tests for the hard-stop detector
"""

import re

import pytest

from oncolife.engine.hard_stops import (
    HardStopAction,
    HardStopCheck,
    HardStopDetector,
    HardStopType,
    MEDICATION_CHANGE_MESSAGE,
    SELF_HARM_MESSAGE,
)


@pytest.fixture
def detector():
    return HardStopDetector()


class TestHardStopDetector:
    """Test check ordering and actions."""

    def test_self_harm_terminates(self, detector):
        result = detector.check("Some days I think about suicide")
        assert result.triggered
        assert result.stop_type == HardStopType.SELF_HARM
        assert result.ends_conversation
        assert result.message == SELF_HARM_MESSAGE
        assert "988" in result.message

    def test_case_insensitive(self, detector):
        assert detector.check("I WANT TO DIE").stop_type == HardStopType.SELF_HARM

    def test_medical_advice_deflects(self, detector):
        result = detector.check("What dose should I be on?")
        assert result.stop_type == HardStopType.MEDICAL_ADVICE
        assert result.action == HardStopAction.DEFLECT
        assert not result.ends_conversation

    def test_medication_change_deflects(self, detector):
        result = detector.check("Please change my medication")
        assert result.stop_type == HardStopType.MEDICATION_CHANGE
        assert result.message == MEDICATION_CHANGE_MESSAGE

    def test_profanity_deflects(self, detector):
        assert detector.check("this is shit").stop_type == HardStopType.PROFANITY

    def test_profanity_needs_word_boundary(self, detector):
        assert not detector.check("I have a mass on my side").triggered

    def test_self_harm_wins_over_other_checks(self, detector):
        result = detector.check("Should I take all my pills and kill myself")
        assert result.stop_type == HardStopType.SELF_HARM

    def test_clean_and_empty_input(self, detector):
        assert not detector.check("Moderate (4–6)").triggered
        assert not detector.check("").triggered
        assert not detector.check(None).triggered

    def test_registered_check_runs_in_priority_order(self, detector):
        detector.register_check(HardStopCheck(
            name="test_word",
            stop_type=HardStopType.PROFANITY,
            check_func=lambda content: re.findall(r"\bdarn\b", content),
            action=HardStopAction.DEFLECT,
            message="custom",
            priority=0,
        ))
        assert detector.check("darn it").message == "custom"

    def test_disabled_check_is_skipped(self, detector):
        for check in detector._checks:
            if check.name == "profanity":
                check.enabled = False
        assert not detector.check("this is shit").triggered
