"""Seasonal influenza recommender.

Influenza is annual; seasons run July through June. Children under 9
years who have fewer than 2 lifetime doses need 2 doses 4 weeks apart
in their first vaccinated season. Any dose already received in the
current season marks the vaccine complete for that season.
"""

from datetime import date

from ..models import DecisionType, Recommendation
from ..rules.cdc_criteria import INFLUENZA_SEASON_START_MONTH, INFLUENZA_TWO_DOSE_MAX_AGE_YEARS
from ..rules.date_math import add_months, format_date
from ..rules.name_mapper import INFLUENZA
from .base import VaccineContext, complete, recommender

INFLUENZA_MIN_AGE_MONTHS = 6


def influenza_season(on_date: date) -> str:
    """Season label such as "2024-2025" for a date."""
    if on_date.month >= INFLUENZA_SEASON_START_MONTH:
        return f"{on_date.year}-{on_date.year + 1}"
    return f"{on_date.year - 1}-{on_date.year}"


@recommender(INFLUENZA)
def influenza_recommendation(ctx: VaccineContext):
    season = influenza_season(ctx.current_date)

    if ctx.age_months < INFLUENZA_MIN_AGE_MONTHS:
        eligible = add_months(ctx.birth_date, INFLUENZA_MIN_AGE_MONTHS)
        return Recommendation(
            vaccine_name=ctx.display_name,
            recommendation_text=(
                "Influenza vaccine not recommended under 6 months; "
                f"first dose on or after {format_date(eligible)}"
            ),
            next_dose_date=eligible,
            series_complete=False,
            notes=["Minimum age: 6 months"],
            decision_type=DecisionType.NOT_RECOMMENDED,
        )

    doses_this_season = [d for d in ctx.counted_doses if influenza_season(d.date) == season]
    if doses_this_season:
        return complete(
            ctx,
            "Influenza vaccine for current season already received",
            notes=[f"Current season ({season}) dose complete"],
        )

    notes = []
    if ctx.age_years < INFLUENZA_TWO_DOSE_MAX_AGE_YEARS:
        if ctx.dose_count < 2:
            text = "Give first influenza dose of season now"
            notes.append("First-time recipients <9 years need 2 doses, 4 weeks apart")
        else:
            text = "Give annual influenza vaccine now"
            notes.append("Previously vaccinated: only 1 dose needed this season")
    else:
        text = "Give annual influenza vaccine now"
    notes.append(f"Annual vaccination recommended for {season} season")

    return Recommendation(
        vaccine_name=ctx.display_name,
        recommendation_text=text,
        next_dose_date=ctx.current_date,
        series_complete=False,
        notes=notes,
        decision_type=DecisionType.ROUTINE,
    )
