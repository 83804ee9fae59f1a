"""Shared fixtures for catch-up engine tests."""

import pytest
from datetime import datetime

from catchup_src.engine import CatchUpRulesEngine
from catchup_src.models import (
    CatchUpRequest,
    DoseRecord,
    SpecialConditions,
    VaccineHistoryEntry,
)
from catchup_src.rules.date_math import parse_date

FIXED_CLOCK = datetime(2025, 7, 2, 9, 30, 0)


@pytest.fixture
def engine():
    """Engine with a pinned clock and the default grace period."""
    return CatchUpRulesEngine(grace_period_days=4, cdc_version="2025.1", clock=lambda: FIXED_CLOCK)


def build_request(birth, current, history=None, conditions=None, immunity=None):
    """Build a request from compact test data.

    history maps vaccine name to a list of dose dates, or of
    (date, product) tuples.
    """
    entries = []
    for name, doses in (history or {}).items():
        records = []
        for dose in doses:
            if isinstance(dose, tuple):
                records.append(DoseRecord(parse_date(dose[0]), dose[1]))
            else:
                records.append(DoseRecord(parse_date(dose)))
        entries.append(VaccineHistoryEntry(vaccine_name=name, doses=records))

    return CatchUpRequest(
        birth_date=parse_date(birth),
        current_date=parse_date(current),
        vaccine_history=entries,
        special_conditions=SpecialConditions(**(conditions or {})),
        immunity_evidence=immunity or {},
    )


@pytest.fixture
def recommend(engine):
    """Run the engine and return the recommendation for one vaccine."""
    def _recommend(vaccine, birth, current, history=None, conditions=None, immunity=None):
        request = build_request(birth, current, history, conditions, immunity)
        return engine.generate_catchup_recommendations(request).get(vaccine)
    return _recommend


@pytest.fixture
def run(engine):
    """Run the engine and return the full result."""
    def _run(birth, current, history=None, conditions=None, immunity=None):
        request = build_request(birth, current, history, conditions, immunity)
        return engine.generate_catchup_recommendations(request)
    return _run


@pytest.fixture
def make_request():
    return build_request


@pytest.fixture
def fixed_clock():
    return FIXED_CLOCK
