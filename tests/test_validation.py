"""
Tests for numeric input validation
"""

import pytest

from oncolife.engine.validation import (
    InputKind,
    detect_kind,
    get_input_hint,
    validate_blood_pressure,
    validate_numeric_input,
    validate_temperature,
)


class TestTemperature:
    """Test temperature parsing and Celsius conversion."""

    def test_celsius_converts_to_fahrenheit(self):
        result = validate_temperature("38.6")
        assert result.is_valid
        assert result.value == pytest.approx(101.5)
        assert result.converted_from == "38.6°C"

    def test_fahrenheit_passes_through(self):
        result = validate_temperature("101.5")
        assert result.is_valid
        assert result.value == 101.5
        assert result.converted_from is None

    def test_too_high_rejected(self):
        result = validate_temperature("115")
        assert not result.is_valid
        assert result.error == "Temperature 115°F seems too high. Please verify and re-enter."

    def test_cutoff_separates_units(self):
        # 44.9 is read as Celsius and is out of the Celsius range
        assert not validate_temperature("44.9").is_valid
        # 45 is read as Fahrenheit and is far too low
        result = validate_temperature("45")
        assert not result.is_valid
        assert "°F seems too low" in result.error

    def test_explicit_unit_suffix(self):
        assert validate_temperature("38.6°C").value == pytest.approx(101.5)
        assert validate_temperature("100.4F").value == 100.4

    def test_not_a_number(self):
        result = validate_temperature("hot")
        assert not result.is_valid
        assert result.error == "Please enter a valid number (e.g., 101.5 or 38.6°C)."


class TestBloodPressure:
    """Test blood pressure readings."""

    def test_valid_reading_keeps_both_values(self):
        result = validate_blood_pressure("120/80")
        assert result.is_valid
        assert result.value == 120
        assert result.reading == "120/80"

    def test_systolic_must_exceed_diastolic(self):
        result = validate_blood_pressure("80/120")
        assert not result.is_valid
        assert "higher than diastolic" in result.error

    def test_out_of_range(self):
        assert not validate_blood_pressure("260/90").is_valid
        assert not validate_blood_pressure("120/30").is_valid

    def test_malformed(self):
        assert not validate_blood_pressure("120").is_valid


class TestNumericInput:
    """Test kind detection and range checks."""

    @pytest.mark.parametrize("question_id,kind", [
        ("temp", InputKind.TEMPERATURE),
        ("bp", InputKind.BLOOD_PRESSURE),
        ("heart_rate", InputKind.HEART_RATE),
        ("o2_sat", InputKind.OXYGEN),
        ("blood_sugar", InputKind.BLOOD_SUGAR),
        ("weight", InputKind.WEIGHT),
        ("days", InputKind.DAYS),
        ("loose_stools", InputKind.TIMES),
        ("count", InputKind.NUMBER),
    ])
    def test_detect_kind(self, question_id, kind):
        assert detect_kind(question_id) == kind

    def test_input_hints(self):
        assert get_input_hint("temp") == "e.g., 101.5 or 38.6°C"
        assert get_input_hint("bp") == "e.g., 120/80"
        assert get_input_hint("count") is None

    def test_empty_value(self):
        result = validate_numeric_input("days", "  ")
        assert not result.is_valid
        assert result.error == "Please enter a value."

    def test_oxygen_accepts_percent(self):
        result = validate_numeric_input("o2_sat", "95%")
        assert result.is_valid
        assert result.value == 95

    def test_range_message(self):
        result = validate_numeric_input("heart_rate", 30)
        assert not result.is_valid
        assert result.error == "Heart rate 30 bpm seems too low. Expected range: 40-200 bpm."

    def test_range_checked_on_rounded_value(self):
        result = validate_numeric_input("heart_rate", "200.4")
        assert result.is_valid
        assert result.value == 200.4

        result = validate_numeric_input("heart_rate", "200.5")
        assert not result.is_valid
        assert result.error == "Heart rate 201 bpm seems too high. Expected range: 40-200 bpm."

        assert validate_numeric_input("heart_rate", "39.5").is_valid
        assert not validate_numeric_input("heart_rate", "39.4").is_valid

    def test_days_range(self):
        assert validate_numeric_input("days", "3").value == 3
        assert not validate_numeric_input("days", "400").is_valid

    def test_unrecognized_id_accepts_any_finite_number(self):
        assert validate_numeric_input("count", "-12.5").value == -12.5
        assert not validate_numeric_input("count", "inf").is_valid
