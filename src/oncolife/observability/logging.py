"""
Structured Logging

Features:
- JSON-formatted logs (console rendering for local development)
- Log level filtering
- PHI redaction of patient free text and identifiers
"""

from typing import Any
import logging
import re
import sys

import structlog


# =============================================================================
# PHI Redaction
# =============================================================================

REDACTED = "[REDACTED]"

# Event keys that carry patient-entered text
PHI_KEYS = frozenset({"patient_text", "notes", "patient_name", "patient_added_notes", "answer"})

PHI_PATTERNS: list[tuple[str, re.Pattern]] = [
    ("SSN", re.compile(r"\b\d{3}-\d{2}-\d{4}\b")),
    ("PHONE", re.compile(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b")),
    ("EMAIL", re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")),
    ("MRN", re.compile(r"\bMRN[:\s]*\d{6,}\b", re.IGNORECASE)),
]

_SKIP_KEYS = frozenset({"level", "logger", "timestamp"})


def redact_phi(text: str) -> str:
    """Replace identifier patterns in ``text`` with typed placeholders."""
    for label, pattern in PHI_PATTERNS:
        text = pattern.sub(f"[{label}]", text)
    return text


def phi_redaction_processor(logger, method_name, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Redact PHI from log events."""
    for key, value in event_dict.items():
        if key in _SKIP_KEYS:
            continue
        if key in PHI_KEYS and value is not None:
            event_dict[key] = REDACTED
        elif isinstance(value, str):
            event_dict[key] = redact_phi(value)
    return event_dict


# =============================================================================
# Setup
# =============================================================================

def configure_logging(level: str = "INFO", json_logs: bool = True) -> None:
    """
    Install the structlog processor chain.

    Called once at application startup.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)

    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            phi_redaction_processor,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
