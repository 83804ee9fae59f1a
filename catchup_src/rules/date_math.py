"""Age and calendar arithmetic for catch-up scheduling.

CDC schedules are expressed in a mix of days, weeks, months and years.
Intervals between doses are always compared in whole days; ages in
months and years are truncated approximations (30.44 and 365.25 days)
so that a child is never considered older than they are.
"""

import calendar
import re
from datetime import date, datetime, timedelta

DAYS_PER_MONTH = 30.44
DAYS_PER_YEAR = 365.25

_ISO_DATE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


class DateParseError(ValueError):
    """Raised when a date string is not a valid YYYY-MM-DD date."""

    def __init__(self, value, field_name: str | None = None):
        self.value = value
        self.field_name = field_name
        where = f" for {field_name}" if field_name else ""
        super().__init__(f"Invalid date{where}: {value!r} (expected YYYY-MM-DD)")


def parse_date(value: "str | date | datetime", field_name: str | None = None) -> date:
    """Parse an ISO calendar date.

    Accepts date and datetime instances unchanged (datetimes are
    truncated to their date). Strings must be ``YYYY-MM-DD``; an
    ISO timestamp with a time part is accepted and truncated.

    Raises:
        DateParseError: If the value cannot be parsed.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise DateParseError(value, field_name)

    text = value.strip()
    # Exactly YYYY-MM-DD, optionally followed by a time part
    if not _ISO_DATE.match(text) or (len(text) > 10 and text[10] not in "T "):
        raise DateParseError(value, field_name)
    try:
        if len(text) > 10:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        return date.fromisoformat(text)
    except ValueError:
        raise DateParseError(value, field_name) from None


def format_date(value: date) -> str:
    """Format a date as YYYY-MM-DD."""
    return value.isoformat()


def days_between(start: date, end: date) -> int:
    """Whole days from start to end (negative if end precedes start)."""
    return (end - start).days


def age_in_days(birth_date: date, on_date: date) -> int:
    return days_between(birth_date, on_date)


def age_in_months(birth_date: date, on_date: date) -> int:
    return int(age_in_days(birth_date, on_date) // DAYS_PER_MONTH)


def age_in_years(birth_date: date, on_date: date) -> int:
    return int(age_in_days(birth_date, on_date) // DAYS_PER_YEAR)


def add_days(value: date, days: int) -> date:
    return value + timedelta(days=days)


def add_months(value: date, months: int) -> date:
    """Add calendar months, clamping to the last day of the target month.

    Jan 31 + 1 month is Feb 28 (or 29), not March 3.
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(value.day, last_day))


def add_years(value: date, years: int) -> date:
    return add_months(value, years * 12)


def latest(*dates: date) -> date:
    """Return the latest of the given dates."""
    return max(dates)


def format_patient_age(birth_date: date, on_date: date) -> str:
    """Human-readable age such as "4 years 2 months" or "5 months"."""
    days = max(age_in_days(birth_date, on_date), 0)
    years = days // 365
    months = (days % 365) // 30

    if years == 0:
        return f"{months} month{'s' if months != 1 else ''}"

    text = f"{years} year{'s' if years != 1 else ''}"
    if months:
        text += f" {months} month{'s' if months != 1 else ''}"
    return text
