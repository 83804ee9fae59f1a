"""MMR and varicella recommenders.

Both are 2-dose live vaccines with a minimum age of 12 months. MMR
doses are separated by at least 4 weeks; the varicella interval is 3
months under 13 years and 4 weeks from 13 years on. Contraindication
gating for pregnancy and immunodeficiency is applied by evaluate().
"""

from ..rules.cdc_criteria import get_vaccine_rules
from ..rules.date_math import add_days
from ..rules.name_mapper import MMR, VARICELLA
from .base import VaccineContext, complete, give_dose, recommender

MIN_AGE_DAYS = 365
TOTAL_DOSES = 2
MMR_INTERVAL_DAYS = 28
VARICELLA_ADOLESCENT_AGE_YEARS = 13


def _mmrv_note(age_years: int) -> str | None:
    if 1 <= age_years < 4:
        return "MMRV not recommended for ages 12-47 months (administer MMR and varicella separately)"
    if age_years >= 13:
        return "MMRV not recommended for ages 13-18 years (administer MMR and varicella separately)"
    return None


def _two_dose_live_series(
    ctx: VaccineContext,
    label: str,
    interval_days: int,
    interval_note: str,
    schedule_note: str,
    complete_note: str,
):
    notes = []
    mmrv = _mmrv_note(ctx.age_years)
    if mmrv:
        notes.append(mmrv)

    if ctx.dose_count >= TOTAL_DOSES:
        return complete(ctx, f"{ctx.display_name} series complete", notes=notes + [complete_note])

    if ctx.dose_count == 0:
        earliest = add_days(ctx.birth_date, MIN_AGE_DAYS)
        if earliest > ctx.current_date:
            notes.append("Minimum age: 12 months")
        else:
            notes.append(schedule_note)
        if ctx.age_years <= 6:
            notes.append("Routine schedule: 12-15 months and 4-6 years")
        else:
            notes.append(f"Catch-up vaccination for missed {label} doses")
        return give_dose(ctx, 1, earliest=earliest, notes=notes, label=label)

    notes.append(interval_note)
    return give_dose(
        ctx, 2,
        earliest=add_days(ctx.dose_date(1), interval_days),
        notes=notes,
        label=label,
        suffix="(final dose)",
    )


@recommender(MMR)
def mmr_recommendation(ctx: VaccineContext):
    return _two_dose_live_series(
        ctx,
        label="MMR",
        interval_days=MMR_INTERVAL_DAYS,
        interval_note="Minimum interval: 4 weeks between doses",
        schedule_note="Schedule: Dose 1 at 12-15 months, Dose 2 at 4-6 years (minimum 4 weeks apart)",
        complete_note="Two doses provide lifelong protection",
    )


@recommender(VARICELLA)
def varicella_recommendation(ctx: VaccineContext):
    rule = get_vaccine_rules(VARICELLA)
    interval_days = rule.intervals_for(ctx.age_years)[0]
    if ctx.age_years < VARICELLA_ADOLESCENT_AGE_YEARS:
        interval_note = "Minimum interval: 3 months between doses (age <13 years)"
    else:
        interval_note = "Minimum interval: 4 weeks between doses (age ≥13 years)"

    return _two_dose_live_series(
        ctx,
        label="varicella",
        interval_days=interval_days,
        interval_note=interval_note,
        schedule_note=interval_note.replace("Minimum interval", "Schedule: Dose 1, then Dose 2"),
        complete_note="Two doses provide excellent protection against chickenpox",
    )
