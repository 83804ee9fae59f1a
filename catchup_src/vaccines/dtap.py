"""DTaP / Tdap recommender.

One canonical series with two schedules:
- under 7 years: 5-dose DTaP series at 2, 4, 6, 15-18 months and 4-6 years
- 7 years and older: Tdap/Td catch-up to 3 primary doses, plus a one-time
  adolescent Tdap booster at 11-18 years

A dose given at 10 years or older counts as the adolescent booster, so a
catch-up dose at exactly 10 satisfies both requirements.
"""

from ..models import DecisionType, Recommendation
from ..rules.date_math import add_days, add_months, add_years, format_date, latest
from ..rules.name_mapper import DTAP_TDAP
from .base import VaccineContext, complete, give_dose, recommender

DTAP_TOTAL_DOSES = 5
DTAP_MIN_AGE_DAYS = 42
DTAP_INTERVALS = (28, 28, 168, 168)
DTAP_DOSE4_MIN_AGE_MONTHS = 12
DTAP_DOSE5_MIN_AGE_YEARS = 4
DTAP_DOSE5_WAIVER_AGE_MONTHS = 48
DTAP_DOSE5_WAIVER_INTERVAL_DAYS = 168

TDAP_AGE_YEARS = 7
TDAP_PRIMARY_DOSES = 3
TDAP_BOOSTER_MIN_AGE_YEARS = 10
ADOLESCENT_BOOSTER_AGES = range(11, 19)


# =============================================================================
# Under 7 years: DTaP
# =============================================================================

def _dose5_waived(ctx: VaccineContext) -> bool:
    dose3, dose4 = ctx.dose_date(3), ctx.dose_date(4)
    return (
        ctx.age_months_at(dose4) >= DTAP_DOSE5_WAIVER_AGE_MONTHS
        and (dose4 - dose3).days >= DTAP_DOSE5_WAIVER_INTERVAL_DAYS
    )


def _dtap_recommendation(ctx: VaccineContext) -> Recommendation:
    if ctx.dose_count >= DTAP_TOTAL_DOSES:
        return complete(
            ctx,
            "DTaP series complete",
            notes=["Five-dose DTaP series provides protection through childhood"],
        )

    if ctx.dose_count == 4:
        if _dose5_waived(ctx):
            return complete(
                ctx,
                "DTaP series complete (dose 5 not needed)",
                notes=["Dose 5 not necessary: dose 4 at ≥4 years AND ≥6 months after dose 3"],
            )
        earliest = latest(
            add_years(ctx.birth_date, DTAP_DOSE5_MIN_AGE_YEARS),
            add_days(ctx.dose_date(4), DTAP_INTERVALS[3]),
        )
        return give_dose(
            ctx, 5,
            earliest=earliest,
            suffix="(final childhood dose)",
            notes=["Fifth dose due at 4-6 years of age and ≥6 months after dose 4"],
        )

    next_dose = ctx.dose_count + 1
    if ctx.dose_count == 0:
        earliest = add_days(ctx.birth_date, DTAP_MIN_AGE_DAYS)
    else:
        earliest = add_days(ctx.last_dose.date, DTAP_INTERVALS[ctx.dose_count - 1])
    if next_dose == 4:
        earliest = latest(earliest, add_months(ctx.birth_date, DTAP_DOSE4_MIN_AGE_MONTHS))

    return give_dose(
        ctx, next_dose,
        earliest=earliest,
        notes=[
            f"DTaP series: {ctx.dose_count} of {DTAP_TOTAL_DOSES} doses completed",
            "Schedule: 2, 4, 6, 15-18 months, 4-6 years",
        ],
    )


# =============================================================================
# 7 years and older: Tdap
# =============================================================================

def _tdap_catch_up_earliest(ctx: VaccineContext):
    """Earliest date for the next primary catch-up dose (ages 7-18)."""
    if ctx.dose_count == 0:
        return ctx.current_date
    if ctx.dose_count == 2:
        # Dose 3: 4 weeks if dose 1 was before the first birthday, else 6 months
        if ctx.age_months_at(ctx.dose_date(1)) < 12:
            return add_days(ctx.last_dose.date, 28)
        return add_months(ctx.last_dose.date, 6)
    return add_days(ctx.last_dose.date, 28)


def _tdap_recommendation(ctx: VaccineContext) -> Recommendation:
    age = ctx.age_years
    dose_ages = [ctx.age_years_at(d.date) for d in ctx.counted_doses]
    booster_received = any(a >= TDAP_BOOSTER_MIN_AGE_YEARS for a in dose_ages)
    late_primary_dose = any(TDAP_AGE_YEARS <= a < TDAP_BOOSTER_MIN_AGE_YEARS for a in dose_ages)

    if ctx.dose_count < TDAP_PRIMARY_DOSES:
        remaining = TDAP_PRIMARY_DOSES - ctx.dose_count
        notes = [
            "Tdap preferred for first dose in catch-up series (age 7-18 years)",
            "If additional doses needed, use Td or Tdap",
            f"{remaining} more dose{'s' if remaining != 1 else ''} needed to complete primary series",
        ]
        if late_primary_dose:
            notes.append("Dose given at age 7-9 years counts as catch-up dose")

        if age < TDAP_BOOSTER_MIN_AGE_YEARS and not booster_received:
            notes.append("Will still need adolescent Tdap booster at 11-12 years")
        elif age == TDAP_BOOSTER_MIN_AGE_YEARS and not booster_received:
            notes.append("This dose counts as adolescent Tdap booster (no additional booster needed)")
        elif not booster_received:
            notes.append("This dose counts as adolescent Tdap booster")

        earliest = _tdap_catch_up_earliest(ctx)
        due = earliest if earliest > ctx.current_date else None
        if due is None:
            text = "Give Tdap now as part of catch-up series"
        else:
            text = f"Give Tdap on or after {format_date(due)} as part of catch-up series"
        return Recommendation(
            vaccine_name=ctx.display_name,
            recommendation_text=text,
            next_dose_date=due or ctx.current_date,
            series_complete=False,
            notes=notes,
            decision_type=DecisionType.CATCH_UP,
        )

    if booster_received:
        notes = ["Primary tetanus-diphtheria-pertussis series complete"]
        if late_primary_dose:
            notes.append("Dose given at age 7-9 years counted as catch-up")
        notes.append("Adolescent Tdap booster received")
        notes.append("Boosters: Td or Tdap every 10 years after initial Tdap")
        return complete(ctx, "Tdap series complete", notes=notes)

    if age < min(ADOLESCENT_BOOSTER_AGES):
        notes = ["Primary tetanus-diphtheria-pertussis series complete"]
        if late_primary_dose:
            notes.append("Dose given at age 7-9 years counted as catch-up")
        notes.append("Adolescent Tdap booster due at 11-12 years")
        return complete(ctx, "Tdap series complete", notes=notes)

    decision = DecisionType.ROUTINE if age <= 12 else DecisionType.CATCH_UP
    if age in ADOLESCENT_BOOSTER_AGES:
        text = "Give Tdap adolescent booster now"
        notes = ["Adolescent Tdap booster dose at age 11-12 years"]
    else:
        text = "Give Tdap booster now (no adolescent dose on record)"
        notes = ["One Tdap dose recommended for anyone who has not received Tdap at ≥10 years"]
    notes.append("Tdap may be given regardless of interval since last Td/DTaP")

    return Recommendation(
        vaccine_name=ctx.display_name,
        recommendation_text=text,
        next_dose_date=ctx.current_date,
        series_complete=False,
        notes=notes,
        decision_type=decision,
    )


@recommender(DTAP_TDAP)
def dtap_tdap_recommendation(ctx: VaccineContext):
    if ctx.age_years >= TDAP_AGE_YEARS:
        return _tdap_recommendation(ctx)
    return _dtap_recommendation(ctx)
