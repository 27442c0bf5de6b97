"""Hard-Stop Detector - safety net run before any phase logic"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable
import re
import structlog

logger = structlog.get_logger(__name__)


class HardStopType(str, Enum):
    SELF_HARM = "self_harm"
    MEDICAL_ADVICE = "medical_advice"
    MEDICATION_CHANGE = "medication_change"
    PROFANITY = "profanity"


class HardStopAction(str, Enum):
    ALLOW = "allow"
    DEFLECT = "deflect"
    TERMINATE = "terminate"


@dataclass
class HardStopResult:
    triggered: bool
    stop_type: HardStopType | None = None
    action: HardStopAction = HardStopAction.ALLOW
    message: str | None = None
    matches: list[str] = field(default_factory=list)

    @property
    def ends_conversation(self) -> bool:
        return self.action == HardStopAction.TERMINATE


@dataclass
class HardStopCheck:
    name: str
    stop_type: HardStopType
    check_func: Callable[[str], list[str]]
    action: HardStopAction
    message: str
    enabled: bool = True
    priority: int = 100


SELF_HARM_KEYWORDS = [
    "kill myself",
    "want to die",
    "end my life",
    "suicide",
    "suicidal",
    "self-harm",
    "self harm",
    "hurt myself",
    "don't want to live",
    "no reason to live",
    "better off dead",
    "wish i was dead",
    "wish i were dead",
]

MEDICAL_ADVICE_PATTERNS = [
    re.compile(r"should i (take|stop|change|start|increase|decrease)", re.IGNORECASE),
    re.compile(r"what (medication|medicine|drug|treatment) should", re.IGNORECASE),
    re.compile(r"can you (prescribe|recommend|suggest)", re.IGNORECASE),
    re.compile(r"is it (safe|ok|okay) to (take|stop|combine)", re.IGNORECASE),
    re.compile(r"what (dose|dosage) should", re.IGNORECASE),
]

MEDICATION_CHANGE_PATTERNS = [
    re.compile(r"change my (medication|medicine|dose|dosage)", re.IGNORECASE),
    re.compile(r"stop (taking|my) (medication|medicine)", re.IGNORECASE),
    re.compile(r"switch (to|from) (a|another|different)", re.IGNORECASE),
    re.compile(r"increase my (dose|dosage)", re.IGNORECASE),
    re.compile(r"decrease my (dose|dosage)", re.IGNORECASE),
]

PROFANITY_PATTERN = re.compile(r"\b(fuck|shit|damn|ass|bitch|bastard)\b", re.IGNORECASE)

SELF_HARM_MESSAGE = (
    "I'm very concerned about what you just shared. Your safety is the most important thing right now.\n\n"
    "🚨 **Please call 911 immediately** if you are in danger.\n\n"
    "📞 **National Suicide Prevention Lifeline: 988** (call or text, 24/7)\n\n"
    "Your care team has been notified and will reach out to you. You are not alone."
)
MEDICAL_ADVICE_MESSAGE = (
    "I'm not able to provide medical advice or treatment recommendations. "
    "Please contact your care team directly for questions about your treatment plan. "
    "Let's continue with your symptom check-in."
)
MEDICATION_CHANGE_MESSAGE = (
    "I'm not able to make changes to your medications. "
    "Please discuss medication changes with your oncologist or care team. "
    "Let's continue with your symptom check-in."
)
PROFANITY_MESSAGE = (
    "I'm here to help you track your symptoms and connect you with your care team. "
    "Let's continue with your check-in."
)


def _keyword_matches(keywords: list[str]) -> Callable[[str], list[str]]:
    def check(content: str) -> list[str]:
        lowered = content.lower()
        return [kw for kw in keywords if kw in lowered]
    return check


def _pattern_matches(patterns: list[re.Pattern]) -> Callable[[str], list[str]]:
    def check(content: str) -> list[str]:
        return [m.group(0) for p in patterns if (m := p.search(content))]
    return check


class HardStopDetector:
    """
    Scans free text and selections for content the check-in must not act on.

    Checks run in priority order and the first one that matches wins.
    Self-harm language terminates the conversation; everything else is
    deflected with a fixed message and the check-in resumes.
    """

    def __init__(self):
        self._checks: list[HardStopCheck] = []
        self._register_default_checks()

    def _register_default_checks(self):
        self.register_check(HardStopCheck(
            name="self_harm",
            stop_type=HardStopType.SELF_HARM,
            check_func=_keyword_matches(SELF_HARM_KEYWORDS),
            action=HardStopAction.TERMINATE,
            message=SELF_HARM_MESSAGE,
            priority=1,
        ))
        self.register_check(HardStopCheck(
            name="medical_advice",
            stop_type=HardStopType.MEDICAL_ADVICE,
            check_func=_pattern_matches(MEDICAL_ADVICE_PATTERNS),
            action=HardStopAction.DEFLECT,
            message=MEDICAL_ADVICE_MESSAGE,
            priority=10,
        ))
        self.register_check(HardStopCheck(
            name="medication_change",
            stop_type=HardStopType.MEDICATION_CHANGE,
            check_func=_pattern_matches(MEDICATION_CHANGE_PATTERNS),
            action=HardStopAction.DEFLECT,
            message=MEDICATION_CHANGE_MESSAGE,
            priority=20,
        ))
        self.register_check(HardStopCheck(
            name="profanity",
            stop_type=HardStopType.PROFANITY,
            check_func=lambda content: PROFANITY_PATTERN.findall(content),
            action=HardStopAction.DEFLECT,
            message=PROFANITY_MESSAGE,
            priority=30,
        ))

    def register_check(self, check: HardStopCheck):
        """Register a hard-stop check."""
        self._checks.append(check)
        self._checks.sort(key=lambda c: c.priority)

    def check(self, content: str | None) -> HardStopResult:
        """Return the first triggered hard stop, or a passing result."""
        if not content or not content.strip():
            return HardStopResult(triggered=False)

        for check in self._checks:
            if not check.enabled:
                continue
            matches = check.check_func(content)
            if matches:
                logger.warning(
                    "Hard stop triggered",
                    check=check.name,
                    action=check.action.value,
                    match_count=len(matches),
                )
                return HardStopResult(
                    triggered=True,
                    stop_type=check.stop_type,
                    action=check.action,
                    message=check.message,
                    matches=matches,
                )
        return HardStopResult(triggered=False)
