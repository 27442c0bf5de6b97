"""
Numeric Input Validation

Validates NUMBER answers against clinically plausible ranges. The kind of
value (temperature, blood pressure, ...) is inferred from the question id.
"""

from dataclasses import dataclass
from enum import Enum
import math
import re

import structlog

logger = structlog.get_logger(__name__)


class InputKind(str, Enum):
    TEMPERATURE = "temperature"
    BLOOD_PRESSURE = "blood_pressure"
    HEART_RATE = "heart_rate"
    OXYGEN = "oxygen"
    BLOOD_SUGAR = "blood_sugar"
    WEIGHT = "weight"
    DAYS = "days"
    TIMES = "times"
    NUMBER = "number"


@dataclass(frozen=True)
class ValueRange:
    label: str
    minimum: float
    maximum: float
    unit: str = ""


TEMPERATURE_F = ValueRange("Temperature", 90, 110, "°F")
TEMPERATURE_C = ValueRange("Temperature", 32, 43, "°C")
CELSIUS_CUTOFF = 45

SYSTOLIC = ValueRange("Systolic pressure", 70, 250)
DIASTOLIC = ValueRange("Diastolic pressure", 40, 150)

RANGES: dict[InputKind, ValueRange] = {
    InputKind.HEART_RATE: ValueRange("Heart rate", 40, 200, " bpm"),
    InputKind.OXYGEN: ValueRange("Oxygen saturation", 70, 100, "%"),
    InputKind.BLOOD_SUGAR: ValueRange("Blood sugar", 20, 600, " mg/dL"),
    InputKind.WEIGHT: ValueRange("Weight", 50, 500, " lbs"),
    InputKind.DAYS: ValueRange("Number of days", 0, 365),
    InputKind.TIMES: ValueRange("Count", 0, 50),
}

INPUT_HINTS: dict[InputKind, str] = {
    InputKind.TEMPERATURE: "e.g., 101.5 or 38.6°C",
    InputKind.BLOOD_PRESSURE: "e.g., 120/80",
    InputKind.HEART_RATE: "e.g., 88",
    InputKind.OXYGEN: "e.g., 98",
    InputKind.BLOOD_SUGAR: "e.g., 110",
    InputKind.WEIGHT: "e.g., 165",
    InputKind.DAYS: "e.g., 3",
    InputKind.TIMES: "e.g., 3",
}

# Checked in order; first matching fragment wins
_KIND_FRAGMENTS: list[tuple[InputKind, tuple[str, ...]]] = [
    (InputKind.TEMPERATURE, ("temp",)),
    (InputKind.BLOOD_PRESSURE, ("bp", "blood_pressure", "pressure")),
    (InputKind.HEART_RATE, ("hr", "heart_rate", "pulse")),
    (InputKind.OXYGEN, ("o2", "oxygen", "spo2", "sat")),
    (InputKind.BLOOD_SUGAR, ("sugar", "glucose")),
    (InputKind.WEIGHT, ("weight", "lbs")),
    (InputKind.DAYS, ("days", "day", "duration")),
    (InputKind.TIMES, ("times", "episodes", "frequency", "loose_stools")),
]

BLOOD_PRESSURE_PATTERN = re.compile(r"^(\d{2,3})\s*/\s*(\d{2,3})$")
_NUMBER_PATTERN = re.compile(r"^[-+]?(\d+(\.\d*)?|\.\d+)$")


@dataclass
class ValidationResult:
    """Outcome of validating one NUMBER answer.

    ``value`` is the number to store; ``reading`` carries the full text
    form when one number cannot represent the input (blood pressure).
    """
    is_valid: bool
    value: float | None = None
    error: str | None = None
    reading: str | None = None
    converted_from: str | None = None


def detect_kind(question_id: str) -> InputKind:
    qid = question_id.lower()
    for kind, fragments in _KIND_FRAGMENTS:
        if any(fragment in qid for fragment in fragments):
            return kind
    return InputKind.NUMBER


def get_input_hint(question_id: str) -> str | None:
    return INPUT_HINTS.get(detect_kind(question_id))


def _parse_number(raw: str) -> float | None:
    cleaned = raw.strip()
    if not _NUMBER_PATTERN.match(cleaned):
        return None
    number = float(cleaned)
    return number if math.isfinite(number) else None


def _check_range(value: float, value_range: ValueRange) -> ValidationResult:
    """Check the band on the value rounded half-up; the unrounded value is stored."""
    rounded = math.floor(value + 0.5)
    if rounded < value_range.minimum:
        return ValidationResult(
            is_valid=False,
            error=(
                f"{value_range.label} {rounded:g}{value_range.unit} seems too low. "
                f"Expected range: {value_range.minimum:g}-{value_range.maximum:g}{value_range.unit}."
            ),
        )
    if rounded > value_range.maximum:
        return ValidationResult(
            is_valid=False,
            error=(
                f"{value_range.label} {rounded:g}{value_range.unit} seems too high. "
                f"Expected range: {value_range.minimum:g}-{value_range.maximum:g}{value_range.unit}."
            ),
        )
    return ValidationResult(is_valid=True, value=value)


def validate_temperature(raw: str) -> ValidationResult:
    """Validate a temperature, auto-converting Celsius readings to Fahrenheit."""
    text = raw.strip().replace("°", "")
    unit = None
    if text[-1:].upper() in ("C", "F"):
        unit = text[-1].upper()
        text = text[:-1]

    number = _parse_number(text)
    if number is None:
        return ValidationResult(
            is_valid=False,
            error="Please enter a valid number (e.g., 101.5 or 38.6°C).",
        )

    if unit == "C" or (unit is None and number < CELSIUS_CUTOFF):
        if not TEMPERATURE_C.minimum <= number <= TEMPERATURE_C.maximum:
            return ValidationResult(
                is_valid=False,
                error=f"Temperature {number:g}°C is outside the expected range. Please verify and re-enter.",
            )
        fahrenheit = round(number * 9 / 5 + 32, 1)
        logger.debug("Converted Celsius temperature", celsius=number, fahrenheit=fahrenheit)
        return ValidationResult(is_valid=True, value=fahrenheit, converted_from=f"{number:g}°C")

    if number < TEMPERATURE_F.minimum:
        return ValidationResult(
            is_valid=False,
            error=f"Temperature {number:g}°F seems too low. Please verify and re-enter.",
        )
    if number > TEMPERATURE_F.maximum:
        return ValidationResult(
            is_valid=False,
            error=f"Temperature {number:g}°F seems too high. Please verify and re-enter.",
        )
    return ValidationResult(is_valid=True, value=number)


def validate_blood_pressure(raw: str) -> ValidationResult:
    match = BLOOD_PRESSURE_PATTERN.match(raw.strip())
    if not match:
        return ValidationResult(
            is_valid=False,
            error="Please enter blood pressure as systolic/diastolic (e.g., 120/80).",
        )

    systolic, diastolic = float(match.group(1)), float(match.group(2))
    for value, value_range in ((systolic, SYSTOLIC), (diastolic, DIASTOLIC)):
        checked = _check_range(value, value_range)
        if not checked.is_valid:
            return checked
    if systolic <= diastolic:
        return ValidationResult(
            is_valid=False,
            error="Systolic pressure (top number) should be higher than diastolic. Please re-enter.",
        )
    return ValidationResult(
        is_valid=True,
        value=systolic,
        reading=f"{systolic:g}/{diastolic:g}",
    )


def validate_numeric_input(question_id: str, raw: str | float | None) -> ValidationResult:
    """Validate a NUMBER answer for ``question_id``.

    Args:
        question_id: Question id, used to infer the kind of value
        raw: Typed text or numeric value

    Returns:
        ValidationResult with the value to store or an inline error
    """
    if raw is None or str(raw).strip() == "":
        return ValidationResult(is_valid=False, error="Please enter a value.")

    text = str(raw).strip()
    kind = detect_kind(question_id)

    if kind == InputKind.TEMPERATURE:
        return validate_temperature(text)
    if kind == InputKind.BLOOD_PRESSURE:
        return validate_blood_pressure(text)

    if kind == InputKind.OXYGEN:
        text = text.rstrip("%").strip()

    number = _parse_number(text)
    if number is None:
        hint = INPUT_HINTS.get(kind)
        example = f" ({hint})" if hint else ""
        return ValidationResult(is_valid=False, error=f"Please enter a valid number{example}.")

    value_range = RANGES.get(kind)
    if value_range is None:
        return ValidationResult(is_valid=True, value=number)
    return _check_range(number, value_range)
