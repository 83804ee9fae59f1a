"""Tests for age and calendar arithmetic."""

import pytest
from datetime import date, datetime

from catchup_src.rules.date_math import (
    DateParseError,
    add_days,
    add_months,
    add_years,
    age_in_days,
    age_in_months,
    age_in_years,
    days_between,
    format_date,
    format_patient_age,
    latest,
    parse_date,
)


class TestParseDate:
    """Test strict YYYY-MM-DD parsing."""

    def test_iso_date(self):
        assert parse_date("2024-02-29") == date(2024, 2, 29)

    def test_surrounding_whitespace(self):
        assert parse_date(" 2020-01-05 ") == date(2020, 1, 5)

    def test_timestamp_truncated(self):
        """An ISO timestamp is accepted and truncated to its date."""
        assert parse_date("2025-07-02T13:45:00Z") == date(2025, 7, 2)

    def test_date_and_datetime_pass_through(self):
        assert parse_date(date(2021, 3, 4)) == date(2021, 3, 4)
        assert parse_date(datetime(2021, 3, 4, 10, 30)) == date(2021, 3, 4)

    @pytest.mark.parametrize("value", [
        "2024-02-30", "02/01/2024", "not a date", "", "2024-13-01",
        "2022-1-5", "20220105", "2022-01-05x",
    ])
    def test_malformed_raises(self, value):
        with pytest.raises(DateParseError):
            parse_date(value, "birthDate")

    def test_none_raises(self):
        with pytest.raises(DateParseError):
            parse_date(None)

    def test_error_names_value_and_field(self):
        with pytest.raises(DateParseError) as exc_info:
            parse_date("2024-99-99", "currentDate")
        assert exc_info.value.value == "2024-99-99"
        assert exc_info.value.field_name == "currentDate"
        assert "currentDate" in str(exc_info.value)

    def test_is_value_error(self):
        """Callers catching ValueError also catch parse failures."""
        with pytest.raises(ValueError):
            parse_date("garbage")


class TestAges:
    """Test truncated age calculations."""

    def test_age_in_days(self):
        assert age_in_days(date(2024, 1, 1), date(2024, 3, 1)) == 60

    def test_days_between_negative(self):
        assert days_between(date(2024, 3, 1), date(2024, 1, 1)) == -60

    def test_age_in_months_truncates(self):
        birth = date(2024, 1, 1)
        assert age_in_months(birth, date(2024, 1, 31)) == 0
        assert age_in_months(birth, date(2024, 2, 1)) == 1

    def test_age_in_years_before_birthday(self):
        birth = date(2010, 9, 21)
        assert age_in_years(birth, date(2015, 2, 1)) == 4
        assert age_in_years(birth, date(2017, 9, 20)) == 6

    def test_age_in_years_on_birthday(self):
        assert age_in_years(date(2009, 1, 1), date(2025, 1, 1)) == 16


class TestCalendarArithmetic:
    """Test date addition helpers."""

    def test_add_days(self):
        assert add_days(date(2024, 12, 30), 3) == date(2025, 1, 2)

    def test_add_months_clamps_to_month_end(self):
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)

    def test_add_months_across_year(self):
        assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)

    def test_add_years_leap_day(self):
        assert add_years(date(2020, 2, 29), 1) == date(2021, 2, 28)

    def test_latest(self):
        assert latest(date(2024, 1, 1), date(2025, 1, 1), date(2023, 6, 1)) == date(2025, 1, 1)

    def test_format_date(self):
        assert format_date(date(2025, 7, 2)) == "2025-07-02"


class TestFormatPatientAge:
    """Test the human-readable age string."""

    def test_infant(self):
        assert format_patient_age(date(2025, 1, 1), date(2025, 3, 5)) == "2 months"

    def test_newborn(self):
        assert format_patient_age(date(2025, 1, 1), date(2025, 1, 10)) == "0 months"

    def test_one_month(self):
        assert format_patient_age(date(2025, 1, 1), date(2025, 2, 5)) == "1 month"

    def test_exact_year(self):
        assert format_patient_age(date(2024, 1, 1), date(2025, 1, 3)) == "1 year"

    def test_years_and_months(self):
        assert format_patient_age(date(2010, 9, 21), date(2015, 2, 1)) == "4 years 4 months"
