"""Recommender registry and the checks shared by every vaccine.

Each vaccine module registers one recommender function per canonical
identity with the @recommender decorator. A recommender receives a
VaccineContext and returns a Recommendation, or None when the vaccine
does not apply to the patient at all (it is then left out of the
output).

evaluate() wraps a recommender with the checks that are the same for
every vaccine:
- evidence of immunity short-circuits before any vaccine logic runs
- live vaccines are blocked under pregnancy or immunodeficiency
- special-situation advisories and matching precautions are attached
- doses excluded as too early are reported in the notes
- completed series get a schedule-status note
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable

from ..models import DecisionType, DoseRecord, Recommendation, SpecialConditions
from ..rules.cdc_criteria import (
    GRACE_PERIOD_DAYS,
    SCHEDULE_STATUS_TOLERANCE_MONTHS,
    SCHEDULE_WINDOWS_MONTHS,
    CatchUpBucket,
    CDCRule,
    DoseSchedule,
    check_contraindications,
    check_precautions,
    get_special_situation_modifications,
    is_live_vaccine,
)
from ..rules.date_math import (
    add_days,
    add_months,
    age_in_days,
    age_in_months,
    age_in_years,
    format_date,
    latest,
)
from ..rules.name_mapper import to_internal

logger = logging.getLogger(__name__)

# Booster doses of the Hib and PCV series are not given before 12 months
BOOSTER_MIN_AGE_MONTHS = 12

SCHEDULE_NORMAL_NOTE = "Series completed on normal schedule"
SCHEDULE_CATCH_UP_NOTE = "Series completed using catch-up schedule"
SCHEDULE_UNKNOWN_NOTE = "Schedule status could not be determined"

IMMUNITY_TEXT = "Series complete due to evidence of immunity"
IMMUNITY_NOTE = (
    "Immunity confirmed (e.g., lab results or disease history); "
    "no further doses needed per CDC"
)


@dataclass
class VaccineContext:
    """Everything a recommender needs to evaluate one vaccine."""
    vaccine_id: str
    display_name: str
    birth_date: date
    current_date: date
    counted_doses: list[DoseRecord] = field(default_factory=list)
    raw_doses: list[DoseRecord] = field(default_factory=list)
    conditions: SpecialConditions = field(default_factory=SpecialConditions)
    immunity_evidence: dict[str, bool] = field(default_factory=dict)
    grace_period_days: int = GRACE_PERIOD_DAYS

    @property
    def dose_count(self) -> int:
        return len(self.counted_doses)

    @property
    def age_days(self) -> int:
        return age_in_days(self.birth_date, self.current_date)

    @property
    def age_months(self) -> int:
        return age_in_months(self.birth_date, self.current_date)

    @property
    def age_years(self) -> int:
        return age_in_years(self.birth_date, self.current_date)

    @property
    def last_dose(self) -> DoseRecord | None:
        return self.counted_doses[-1] if self.counted_doses else None

    def dose_date(self, number: int) -> date:
        """Date of the nth counted dose (1-indexed)."""
        return self.counted_doses[number - 1].date

    def age_years_at(self, on_date: date) -> int:
        return age_in_years(self.birth_date, on_date)

    def age_months_at(self, on_date: date) -> int:
        return age_in_months(self.birth_date, on_date)

    def has_immunity(self) -> bool:
        return any(
            value and to_internal(key) == self.vaccine_id
            for key, value in self.immunity_evidence.items()
        )


Recommender = Callable[[VaccineContext], "Recommendation | None"]

_RECOMMENDERS: dict[str, Recommender] = {}


def recommender(*vaccine_ids: str):
    """Register a function as the recommender for one or more identities."""
    def decorator(func: Recommender) -> Recommender:
        for vaccine_id in vaccine_ids:
            if vaccine_id in _RECOMMENDERS:
                raise ValueError(f"Recommender already registered for {vaccine_id}")
            _RECOMMENDERS[vaccine_id] = func
        return func
    return decorator


def get_recommender(vaccine_id: str) -> Recommender | None:
    return _RECOMMENDERS.get(vaccine_id)


# =============================================================================
# Recommendation Builders
# =============================================================================

def routine_or_catch_up(ctx: VaccineContext, dose_number: int) -> DecisionType:
    """Catch-up when the patient is past the routine window for this dose."""
    windows = SCHEDULE_WINDOWS_MONTHS.get(ctx.vaccine_id, ())
    if 0 < dose_number <= len(windows):
        if ctx.age_months > windows[dose_number - 1][1]:
            return DecisionType.CATCH_UP
    return DecisionType.ROUTINE


def give_dose(
    ctx: VaccineContext,
    dose_number: int,
    earliest: date | None = None,
    notes: list[str] | None = None,
    decision_type: DecisionType | None = None,
    label: str | None = None,
    suffix: str = "",
) -> Recommendation:
    """Recommendation to give the next dose now, or on/after a date.

    next_dose_date is the date the dose is due: today when it can be
    given now, otherwise the earliest valid date.
    """
    label = label or ctx.display_name
    due = earliest if earliest is not None and earliest > ctx.current_date else None

    if due is None:
        text = f"Give {label} dose {dose_number} now"
    else:
        text = f"Give {label} dose {dose_number} on or after {format_date(due)}"
    if suffix:
        text += f" {suffix}"

    return Recommendation(
        vaccine_name=ctx.display_name,
        recommendation_text=text,
        next_dose_date=due or ctx.current_date,
        series_complete=False,
        notes=list(notes or []),
        decision_type=decision_type or routine_or_catch_up(ctx, dose_number),
    )


def select_catch_up_bucket(ctx: VaccineContext, rule: CDCRule) -> CatchUpBucket | None:
    """Catch-up bucket for the patient's age at first dose (or today if none)."""
    start = ctx.counted_doses[0].date if ctx.counted_doses else ctx.current_date
    return rule.get_catch_up_bucket(ctx.age_months_at(start))


def next_bucket_dose_date(
    ctx: VaccineContext,
    rule: CDCRule,
    bucket: CatchUpBucket | None,
    total_doses: int,
) -> date:
    """Earliest date for the next dose of an age-bucketed series.

    The final dose of a multi-dose series is a booster and is not given
    before 12 months of age.
    """
    if not ctx.counted_doses:
        return add_days(ctx.birth_date, rule.minimum_age_days)

    next_dose = ctx.dose_count + 1
    if bucket is not None:
        interval = bucket.schedule.interval_before(next_dose)
    else:
        interval = DoseSchedule(total_doses, rule.intervals_for(ctx.age_years)).interval_before(next_dose)

    earliest = add_days(ctx.last_dose.date, interval)
    if next_dose == total_doses and total_doses > 1:
        earliest = latest(earliest, add_months(ctx.birth_date, BOOSTER_MIN_AGE_MONTHS))
    return earliest


def complete(
    ctx: VaccineContext,
    text: str | None = None,
    notes: list[str] | None = None,
    decision_type: DecisionType = DecisionType.ROUTINE,
) -> Recommendation:
    return Recommendation(
        vaccine_name=ctx.display_name,
        recommendation_text=text or f"{ctx.display_name} series complete",
        series_complete=True,
        notes=list(notes or []),
        decision_type=decision_type,
    )


def not_recommended(
    ctx: VaccineContext,
    text: str,
    notes: list[str] | None = None,
) -> Recommendation:
    """No dose is indicated for this patient; nothing actionable."""
    return Recommendation(
        vaccine_name=ctx.display_name,
        recommendation_text=text,
        series_complete=True,
        notes=list(notes or []),
        decision_type=DecisionType.NOT_RECOMMENDED,
    )


def unrecognized(ctx: VaccineContext) -> Recommendation:
    return Recommendation(
        vaccine_name=ctx.display_name,
        recommendation_text="No specific recommendation; consult CDC guidelines",
        series_complete=False,
        notes=["Vaccine not in standard catch-up schedule or name not recognized"],
        decision_type=DecisionType.ROUTINE,
    )


# =============================================================================
# Shared Checks
# =============================================================================

def get_schedule_status(ctx: VaccineContext) -> str | None:
    """Whether a completed series followed the routine schedule.

    Returns "normal-schedule", "catch-up-schedule", "unknown", or None
    when no doses were counted.

    Windows are whole calendar months of age: a (2, 4) window runs from
    the 2-month birthday up to the day before the 5-month birthday.
    """
    if not ctx.counted_doses:
        return None
    windows = SCHEDULE_WINDOWS_MONTHS.get(ctx.vaccine_id)
    if not windows:
        return "unknown"

    first_dose = ctx.counted_doses[0].date
    tolerance_end = add_months(
        ctx.birth_date, windows[0][1] + SCHEDULE_STATUS_TOLERANCE_MONTHS + 1
    )
    if first_dose >= tolerance_end:
        return "catch-up-schedule"

    for dose, (min_months, max_months) in zip(ctx.counted_doses, windows):
        window_start = add_months(ctx.birth_date, min_months)
        window_end = add_months(ctx.birth_date, max_months + 1)
        if not window_start <= dose.date < window_end:
            return "catch-up-schedule"
    return "normal-schedule"


_SCHEDULE_NOTES = {
    "normal-schedule": SCHEDULE_NORMAL_NOTE,
    "catch-up-schedule": SCHEDULE_CATCH_UP_NOTE,
    "unknown": SCHEDULE_UNKNOWN_NOTE,
}


def _apply_contraindication_gating(ctx: VaccineContext, rec: Recommendation) -> None:
    contraindications = check_contraindications(ctx.vaccine_id, ctx.conditions)
    if not contraindications:
        return

    rec.contraindications = contraindications
    if rec.decision_type == DecisionType.AGED_OUT:
        return

    rec.decision_type = DecisionType.NOT_RECOMMENDED
    if not rec.series_complete:
        reasons = " and ".join(c.lower() for c in contraindications)
        rec.recommendation_text = (
            f"Do not administer {ctx.display_name}: live vaccine contraindicated "
            f"due to {reasons}"
        )
        rec.next_dose_date = None
        rec.notes.append(
            "Live vaccine: defer until contraindication resolves; consult specialist"
        )


def evaluate(
    ctx: VaccineContext,
    excluded_notes: list[str] | None = None,
) -> Recommendation | None:
    """Run the registered recommender for ctx.vaccine_id with shared checks."""
    if ctx.has_immunity():
        logger.debug(f"{ctx.vaccine_id}: immunity evidence, series complete")
        return complete(
            ctx,
            text=IMMUNITY_TEXT,
            notes=[IMMUNITY_NOTE],
            decision_type=DecisionType.NOT_RECOMMENDED,
        )

    func = get_recommender(ctx.vaccine_id)
    if func is None:
        logger.debug(f"{ctx.vaccine_id}: no recommender registered")
        rec = unrecognized(ctx)
    else:
        rec = func(ctx)

    if rec is None:
        logger.debug(f"{ctx.vaccine_id}: not applicable, excluded")
        return None

    if is_live_vaccine(ctx.vaccine_id):
        _apply_contraindication_gating(ctx, rec)

    situations = get_special_situation_modifications(ctx.vaccine_id, ctx.conditions)
    if situations:
        rec.special_situations = situations

    precautions = check_precautions(ctx.vaccine_id, ctx.conditions)
    if precautions:
        rec.precautions = precautions

    if excluded_notes:
        rec.notes.extend(excluded_notes)

    if rec.series_complete:
        status = get_schedule_status(ctx)
        if status is not None:
            rec.notes.insert(0, _SCHEDULE_NOTES[status])

    return rec
