"""COVID-19 recommender.

Dosing by age bracket:
- 6 months-4 years: Moderna 2 doses (4 weeks apart) or Pfizer-BioNTech
  3 doses (3 weeks, then 8 weeks)
- 5-17 years: 1 dose of the current formulation (shared clinical decision)
- 18+ years: 1 dose of the current formulation
Moderately or severely immunocompromised patients need at least 3 doses.
"""

from ..models import DecisionType
from ..rules.date_math import add_days
from ..rules.name_mapper import COVID19
from .base import VaccineContext, complete, give_dose, not_recommended, recommender

COVID_MIN_AGE_MONTHS = 6
COVID_YOUNG_CHILD_MAX_AGE_YEARS = 5
COVID_ADULT_AGE_YEARS = 18
COVID_NOVAVAX_MIN_AGE_YEARS = 12
COVID_IMMUNOCOMPROMISED_MIN_DOSES = 3

MODERNA_INTERVALS = (28,)
PFIZER_INTERVALS = (21, 56)


def _uses_moderna(ctx: VaccineContext) -> bool:
    for dose in ctx.counted_doses:
        product = (dose.product or "").lower()
        if "moderna" in product or "spikevax" in product:
            return True
    return False


def covid_schedule(ctx: VaccineContext) -> tuple[int, tuple[int, ...]]:
    """(doses needed, intervals in days) for this patient."""
    if ctx.age_years < COVID_YOUNG_CHILD_MAX_AGE_YEARS:
        if _uses_moderna(ctx):
            doses, intervals = 2, MODERNA_INTERVALS
        else:
            doses, intervals = 3, PFIZER_INTERVALS
    else:
        doses, intervals = 1, ()

    if ctx.conditions.immunocompromised and doses < COVID_IMMUNOCOMPROMISED_MIN_DOSES:
        intervals = intervals + (28,) * (COVID_IMMUNOCOMPROMISED_MIN_DOSES - doses)
        doses = COVID_IMMUNOCOMPROMISED_MIN_DOSES
    return doses, intervals


def _age_notes(ctx: VaccineContext) -> list[str]:
    age = ctx.age_years
    notes = []
    if ctx.conditions.immunocompromised:
        notes.append("Moderately/severely immunocompromised: follow immunocompromised schedule")
        notes.append("Additional doses may be needed based on immune status")
    elif age < COVID_YOUNG_CHILD_MAX_AGE_YEARS:
        notes.append("Ages 6 months-4 years: shared clinical decision-making with provider")
        notes.append("Unvaccinated: 2 doses Moderna (4-8 weeks apart) OR 3 doses Pfizer-BioNTech")
    elif age < COVID_ADULT_AGE_YEARS:
        notes.append("Ages 5-17 years: shared clinical decision-making with provider")
        if ctx.dose_count == 0:
            notes.append("Unvaccinated: 1 dose 2024-25 vaccine")
    return notes


@recommender(COVID19)
def covid19_recommendation(ctx: VaccineContext):
    if ctx.age_months < COVID_MIN_AGE_MONTHS:
        return not_recommended(
            ctx,
            "COVID-19 vaccination not recommended under 6 months",
            notes=["Minimum age: 6 months (Moderna, Pfizer-BioNTech)"],
        )

    if ctx.conditions.immunocompromised or ctx.age_years >= COVID_ADULT_AGE_YEARS:
        decision = DecisionType.ROUTINE
    else:
        decision = DecisionType.SHARED_CLINICAL_DECISION

    notes = _age_notes(ctx)
    if ctx.age_years < COVID_NOVAVAX_MIN_AGE_YEARS:
        notes.append("Available vaccines: Moderna, Pfizer-BioNTech")
    else:
        notes.append("Available vaccines: Moderna, Pfizer-BioNTech, Novavax")
    notes.append("Use same manufacturer for series when possible")
    notes.append("Current 2024-25 formulation recommended")

    doses_needed, intervals = covid_schedule(ctx)
    if ctx.dose_count >= doses_needed:
        return complete(ctx, "COVID-19 vaccination up to date", notes=notes, decision_type=decision)

    next_dose = ctx.dose_count + 1
    earliest = None
    if ctx.last_dose is not None:
        index = min(next_dose - 2, len(intervals) - 1)
        interval = intervals[index] if intervals else 28
        earliest = add_days(ctx.last_dose.date, interval)

    return give_dose(
        ctx, next_dose,
        earliest=earliest,
        notes=notes,
        decision_type=decision,
        label="COVID-19",
    )
