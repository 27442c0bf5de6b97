"""
Oncolife Observability

Structured logging setup with PHI redaction.
"""

from oncolife.observability.logging import configure_logging, phi_redaction_processor, redact_phi

__all__ = ["configure_logging", "phi_redaction_processor", "redact_phi"]
