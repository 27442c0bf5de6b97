"""
Question Visibility Conditions

Declarative predicates over the answers recorded so far. A question whose
condition evaluates false is skipped by the question engine. Conditions are
plain data so module definitions can be inspected and tested without
executing closures.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from oncolife.engine.models import answer_key


def to_number(value: Any) -> float | None:
    """Best-effort numeric read of a stored answer."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip().rstrip("%°FfCc"))
    except ValueError:
        return None


def to_fahrenheit(value: Any) -> float | None:
    """Read a temperature answer; values under 45 are taken as Celsius."""
    number = to_number(value)
    if number is None:
        return None
    if 0 < number < 45:
        return round(number * 9 / 5 + 32, 1)
    return number


class Condition(ABC):
    """Predicate over the answer map."""

    @abstractmethod
    def evaluate(self, answers: dict[str, Any]) -> bool:
        ...

    def __and__(self, other: "Condition") -> "Condition":
        return AllOf((self, other))

    def __or__(self, other: "Condition") -> "Condition":
        return AnyOf((self, other))

    def __invert__(self) -> "Condition":
        return Not(self)


@dataclass(frozen=True)
class AnswerEquals(Condition):
    symptom_id: str
    question_id: str
    value: Any

    def evaluate(self, answers: dict[str, Any]) -> bool:
        return answers.get(answer_key(self.symptom_id, self.question_id)) == self.value


@dataclass(frozen=True)
class AnswerIn(Condition):
    """Single-valued answer is one of ``values``."""
    symptom_id: str
    question_id: str
    values: tuple[Any, ...]

    def evaluate(self, answers: dict[str, Any]) -> bool:
        return answers.get(answer_key(self.symptom_id, self.question_id)) in self.values


@dataclass(frozen=True)
class AnswerIncludes(Condition):
    """Multi-select answer contains ``value``."""
    symptom_id: str
    question_id: str
    value: str

    def evaluate(self, answers: dict[str, Any]) -> bool:
        selected = answers.get(answer_key(self.symptom_id, self.question_id))
        return isinstance(selected, (list, tuple, set)) and self.value in selected


@dataclass(frozen=True)
class Answered(Condition):
    """Answer is present and is not one of the ``blank`` values."""
    symptom_id: str
    question_id: str
    blank: tuple[Any, ...] = ("None",)

    def evaluate(self, answers: dict[str, Any]) -> bool:
        value = answers.get(answer_key(self.symptom_id, self.question_id))
        if not value:
            return False
        return value not in self.blank


@dataclass(frozen=True)
class AnswerAtLeast(Condition):
    symptom_id: str
    question_id: str
    threshold: float

    def evaluate(self, answers: dict[str, Any]) -> bool:
        number = to_number(answers.get(answer_key(self.symptom_id, self.question_id)))
        return number is not None and number >= self.threshold


@dataclass(frozen=True)
class TemperatureAbove(Condition):
    symptom_id: str
    question_id: str
    threshold: float

    def evaluate(self, answers: dict[str, Any]) -> bool:
        temp = to_fahrenheit(answers.get(answer_key(self.symptom_id, self.question_id)))
        return temp is not None and temp > self.threshold


@dataclass(frozen=True)
class Not(Condition):
    condition: Condition

    def evaluate(self, answers: dict[str, Any]) -> bool:
        return not self.condition.evaluate(answers)


@dataclass(frozen=True)
class AllOf(Condition):
    conditions: tuple[Condition, ...]

    def evaluate(self, answers: dict[str, Any]) -> bool:
        return all(c.evaluate(answers) for c in self.conditions)


@dataclass(frozen=True)
class AnyOf(Condition):
    conditions: tuple[Condition, ...]

    def evaluate(self, answers: dict[str, Any]) -> bool:
        return any(c.evaluate(answers) for c in self.conditions)
