"""
tests/test_normalizer.py

Pytest unit tests for cell-level value normalization.

Coverage
--------
- Null, empty and whitespace-only input
- Integer and float patterns
- Oversized numbers kept as text
- Strict date formats and their precedence
- Boolean vocabularies
- String fallback and trimming
- Pass-through of already-typed values
- Type tags used by column inference
"""

from __future__ import annotations

import json

import pytest

from analysis.cleaner import clean_rows
from analysis.normalizer import normalize_value, parse_strict_date, type_tag


class TestNullHandling:
    @pytest.mark.parametrize("raw", [None, "", "   ", "\t"])
    def test_blank_values_become_none(self, raw) -> None:
        assert normalize_value(raw) is None


class TestNumbers:
    def test_scenario_mixed_column(self) -> None:
        values = [normalize_value(raw) for raw in ("123", "4.5", "true", "hello")]
        assert values == [123, 4.5, True, "hello"]
        assert isinstance(values[0], int)
        assert isinstance(values[1], float)

    def test_leading_dot_float(self) -> None:
        assert normalize_value(".5") == 0.5

    def test_digits_win_over_boolean_vocabulary(self) -> None:
        assert normalize_value("1") == 1
        assert normalize_value("1") is not True
        assert normalize_value("0") == 0

    def test_leading_zeros_parse_base_ten(self) -> None:
        assert normalize_value("007") == 7

    @pytest.mark.parametrize("raw", ["-5", "1,000", "1e5", "3."])
    def test_non_matching_numeric_text_stays_string(self, raw) -> None:
        assert normalize_value(raw) == raw

    def test_surrounding_whitespace_is_trimmed_before_matching(self) -> None:
        assert normalize_value(" 42 ") == 42

    def test_digit_run_beyond_int_limit_stays_text(self) -> None:
        digits = "1" * 5000
        assert normalize_value(digits) == digits

        result = clean_rows([{"Ticket": digits, "Agent": "A"}])
        assert result.errors == []
        assert result.data == [{"Ticket": digits, "Agent": "A"}]

    def test_overflowing_decimal_stays_text(self) -> None:
        raw = "9" * 400 + ".5"
        value = normalize_value(raw)
        assert value == raw
        assert json.loads(json.dumps(value, allow_nan=False)) == raw

    def test_long_fraction_is_still_a_float(self) -> None:
        value = normalize_value("." + "9" * 400)
        assert isinstance(value, float)
        json.dumps(value, allow_nan=False)


class TestDates:
    def test_iso_date(self) -> None:
        assert normalize_value("2024-01-15") == "2024-01-15T00:00:00.000Z"

    def test_ambiguous_slash_date_prefers_month_first(self) -> None:
        assert normalize_value("01/02/2024") == "2024-01-02T00:00:00.000Z"

    def test_day_first_used_when_month_first_is_invalid(self) -> None:
        assert normalize_value("13/02/2024") == "2024-02-13T00:00:00.000Z"

    def test_datetime_with_seconds(self) -> None:
        assert normalize_value("2024-01-15 10:30:00") == "2024-01-15T10:30:00.000Z"

    @pytest.mark.parametrize("raw", ["2024-02-30", "1/2/2024", "2024-01-15 10:30", "Jan 5 2024"])
    def test_non_strict_dates_stay_strings(self, raw) -> None:
        assert normalize_value(raw) == raw

    def test_parse_strict_date_returns_none_for_garbage(self) -> None:
        assert parse_strict_date("yesterday") is None


class TestBooleans:
    @pytest.mark.parametrize("raw", ["true", "TRUE", "Yes", "y", "Y"])
    def test_true_vocabulary(self, raw) -> None:
        assert normalize_value(raw) is True

    @pytest.mark.parametrize("raw", ["false", "No", "n", "N"])
    def test_false_vocabulary(self, raw) -> None:
        assert normalize_value(raw) is False


class TestFallback:
    def test_trimmed_string(self) -> None:
        assert normalize_value("  Violated  ") == "Violated"

    @pytest.mark.parametrize("value", [5, 2.5, True, False, {"a": 1}])
    def test_non_string_passes_through(self, value) -> None:
        assert normalize_value(value) is value

    def test_second_pass_is_stable_for_normalized_values(self) -> None:
        for raw in ("123", "4.5", "yes", "hello", "2024-01-15"):
            once = normalize_value(raw)
            assert normalize_value(once) == once


class TestTypeTag:
    def test_bool_is_not_number(self) -> None:
        assert type_tag(True) == "boolean"
        assert type_tag(1) == "number"
        assert type_tag(1.5) == "number"
        assert type_tag("x") == "string"
        assert type_tag([1]) == "object"
