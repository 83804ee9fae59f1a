"""Rotavirus recommender.

Rotavirus is the most age-restricted vaccine on the schedule: the series
must not start on or after 15 weeks 0 days and no dose may be given
after 8 months 0 days. A patient who never started and is past 8 months
gets no recommendation at all; a patient who started and aged out gets
an explicit aged-out recommendation so the incomplete series stays
visible.
"""

import logging

from ..models import DecisionType, Recommendation
from ..rules.cdc_criteria import (
    ROTAVIRUS_MAX_AGE_MONTHS,
    ROTAVIRUS_MAX_START_AGE_DAYS,
    get_vaccine_rules,
)
from ..rules.date_math import add_days, add_months, format_date
from ..rules.name_mapper import ROTAVIRUS
from .base import VaccineContext, complete, give_dose, not_recommended, recommender

logger = logging.getLogger(__name__)

ROTAVIRUS_MIN_AGE_DAYS = 42
ROTARIX_NOTE = "Rotarix: 2-dose series (2, 4 months)"
ROTATEQ_NOTE = "RotaTeq: 3-dose series (2, 4, 6 months)"


def _series_type(ctx: VaccineContext) -> tuple[str, int]:
    """Product name and dose count for the series.

    Any RotaTeq (RV5) dose, or any dose with an unknown product, means
    the 3-dose series must be completed.
    """
    rule = get_vaccine_rules(ROTAVIRUS)
    for dose in ctx.counted_doses:
        product = (dose.product or "").strip().lower()
        if not product or product == "unknown" or "rotateq" in product or "rv5" in product:
            return "RotaTeq", rule.product_variants["RotaTeq"].dose_count
    return "Rotarix", rule.product_variants["Rotarix"].dose_count


def _aged_out(
    ctx: VaccineContext,
    series: str,
    total_doses: int,
    extra_notes=(),
) -> Recommendation:
    """Started but cannot finish before 8 months 0 days. Nothing further is given."""
    logger.debug(
        f"Rotavirus aged out with {ctx.dose_count} of {total_doses} doses"
    )
    return Recommendation(
        vaccine_name=ctx.display_name,
        recommendation_text="Rotavirus series cannot be completed - patient aged out",
        series_complete=False,
        notes=[
            "Patient aged out: maximum age for final dose is 8 months, 0 days",
            *extra_notes,
            f"Started {series} series: {ctx.dose_count} of {total_doses} doses given",
            "CDC guidelines prohibit giving rotavirus vaccine after 8 months of age",
            "Incomplete series still provides some protection",
            "No further doses should be given at this age",
        ],
        decision_type=DecisionType.AGED_OUT,
    )


@recommender(ROTAVIRUS)
def rotavirus_recommendation(ctx: VaccineContext):
    series, total_doses = _series_type(ctx)

    if ctx.dose_count >= total_doses:
        return complete(
            ctx,
            "Rotavirus series complete",
            notes=[f"{series} {total_doses}-dose series completed"],
        )

    max_age_date = add_months(ctx.birth_date, ROTAVIRUS_MAX_AGE_MONTHS)
    if ctx.current_date > max_age_date:
        if ctx.dose_count == 0:
            return None
        return _aged_out(ctx, series, total_doses)

    if ctx.age_days < ROTAVIRUS_MIN_AGE_DAYS:
        start = add_days(ctx.birth_date, ROTAVIRUS_MIN_AGE_DAYS)
        return Recommendation(
            vaccine_name=ctx.display_name,
            recommendation_text=f"Rotavirus vaccination can begin on or after {format_date(start)}",
            next_dose_date=start,
            series_complete=False,
            notes=["Minimum age: 6 weeks", ROTARIX_NOTE, ROTATEQ_NOTE],
            decision_type=DecisionType.ROUTINE,
        )

    if ctx.dose_count == 0 and ctx.age_days > ROTAVIRUS_MAX_START_AGE_DAYS:
        return not_recommended(
            ctx,
            "Rotavirus vaccination not recommended - too old to start series",
            notes=[
                "Do not start rotavirus series on or after 15 weeks, 0 days",
                "Series cannot be initiated at this age",
            ],
        )

    next_dose = ctx.dose_count + 1
    notes = []
    earliest = None
    if ctx.last_dose is not None:
        earliest = add_days(ctx.last_dose.date, 28)
        if earliest > max_age_date:
            return _aged_out(
                ctx, series, total_doses,
                extra_notes=[
                    f"Minimum interval places dose {next_dose} after "
                    f"{format_date(max_age_date)}"
                ],
            )
        if earliest > ctx.current_date:
            notes.append("Minimum interval: 4 weeks between doses")

    if total_doses == 2:
        notes.append(ROTARIX_NOTE)
    else:
        notes.append(ROTATEQ_NOTE)
        notes.append("If any dose is RotaTeq or unknown, complete as 3-dose series")
    notes.append(f"Dose {next_dose} of {total_doses}")
    notes.append("Maximum age for final dose: 8 months, 0 days")

    return give_dose(
        ctx, next_dose,
        earliest=earliest,
        notes=notes,
        decision_type=DecisionType.ROUTINE,
        label="rotavirus",
    )
