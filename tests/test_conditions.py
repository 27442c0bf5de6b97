"""
Tests for declarative question conditions
"""

from oncolife.engine.conditions import (
    AllOf,
    AnswerAtLeast,
    AnswerEquals,
    AnswerIn,
    AnswerIncludes,
    Answered,
    AnyOf,
    Not,
    TemperatureAbove,
    to_fahrenheit,
    to_number,
)
from oncolife.engine.constants import SymptomId


ANSWERS = {
    "NAU-203:duration": "More than 3 days",
    "NAU-203:meds": "None",
    "NAU-203:dehydration": ["Dark urine", "Lightheaded"],
    "VOM-204:days": 3.0,
    "FEV-202:temp": "38.6",
}


def test_answer_equals_accepts_enum_ids():
    assert AnswerEquals(SymptomId.NAUSEA, "duration", "More than 3 days").evaluate(ANSWERS)
    assert AnswerEquals("NAU-203", "duration", "More than 3 days").evaluate(ANSWERS)
    assert not AnswerEquals(SymptomId.NAUSEA, "duration", "24 hours").evaluate(ANSWERS)


def test_answer_in_and_includes():
    assert AnswerIn(SymptomId.NAUSEA, "duration", ("24 hours", "More than 3 days")).evaluate(ANSWERS)
    assert AnswerIncludes(SymptomId.NAUSEA, "dehydration", "Lightheaded").evaluate(ANSWERS)
    assert not AnswerIncludes(SymptomId.NAUSEA, "duration", "More").evaluate(ANSWERS)


def test_answered_treats_none_option_as_blank():
    assert not Answered(SymptomId.NAUSEA, "meds").evaluate(ANSWERS)
    assert Answered(SymptomId.NAUSEA, "duration").evaluate(ANSWERS)
    assert not Answered(SymptomId.NAUSEA, "missing").evaluate(ANSWERS)


def test_numeric_conditions():
    assert AnswerAtLeast(SymptomId.VOMITING, "days", 3).evaluate(ANSWERS)
    assert not AnswerAtLeast(SymptomId.VOMITING, "days", 4).evaluate(ANSWERS)
    assert TemperatureAbove(SymptomId.FEVER, "temp", 100.3).evaluate(ANSWERS)


def test_composition_operators():
    long_nausea = AnswerEquals(SymptomId.NAUSEA, "duration", "More than 3 days")
    took_meds = Answered(SymptomId.NAUSEA, "meds")

    assert not (long_nausea & took_meds).evaluate(ANSWERS)
    assert (long_nausea | took_meds).evaluate(ANSWERS)
    assert (~took_meds).evaluate(ANSWERS)
    assert Not(took_meds).evaluate(ANSWERS)
    assert AllOf((long_nausea, ~took_meds)).evaluate(ANSWERS)
    assert not AnyOf((took_meds,)).evaluate(ANSWERS)


def test_number_helpers():
    assert to_number("98%") == 98
    assert to_number("101.5°F") == 101.5
    assert to_number("abc") is None
    assert to_fahrenheit("38.6") == 101.5
    assert to_fahrenheit(101.5) == 101.5
