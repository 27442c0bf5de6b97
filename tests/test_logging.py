"""
Tests for log PHI redaction
"""

from oncolife.observability.logging import REDACTED, phi_redaction_processor, redact_phi


class TestRedactPhi:
    """Test identifier patterns."""

    def test_identifiers_replaced(self):
        text = "Call me at 555-123-4567 or maria@example.com, SSN 123-45-6789, MRN: 00123456"
        redacted = redact_phi(text)

        assert "555-123-4567" not in redacted
        assert "[PHONE]" in redacted
        assert "[EMAIL]" in redacted
        assert "[SSN]" in redacted
        assert "[MRN]" in redacted

    def test_plain_text_untouched(self):
        assert redact_phi("Symptom evaluated") == "Symptom evaluated"


class TestRedactionProcessor:
    """Test the structlog processor."""

    def test_patient_text_keys_redacted(self):
        event = phi_redaction_processor(None, "info", {
            "event": "Hard stop detected",
            "patient_text": "I feel awful",
            "notes": "my neighbour drove me",
            "conversation_id": "conv-1",
        })

        assert event["patient_text"] == REDACTED
        assert event["notes"] == REDACTED
        assert event["conversation_id"] == "conv-1"
        assert event["event"] == "Hard stop detected"

    def test_patterns_redacted_in_other_values(self):
        event = phi_redaction_processor(None, "error", {
            "event": "Persistence write failed",
            "error": "duplicate key for maria@example.com",
            "attempt": 1,
        })

        assert event["error"] == "duplicate key for [EMAIL]"
        assert event["attempt"] == 1

    def test_none_values_kept(self):
        event = phi_redaction_processor(None, "info", {"event": "x", "notes": None})
        assert event["notes"] is None
