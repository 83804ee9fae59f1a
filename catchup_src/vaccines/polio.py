"""Inactivated poliovirus (IPV) recommender."""

from ..rules.cdc_criteria import get_vaccine_rules
from ..rules.date_math import add_days, add_months, add_years, latest
from ..rules.name_mapper import POLIO
from .base import VaccineContext, complete, give_dose, recommender

IPV_TOTAL_DOSES = 4
IPV_MIN_AGE_DAYS = 42
IPV_FINAL_DOSE_MIN_AGE_YEARS = 4
IPV_FINAL_DOSE_INTERVAL_MONTHS = 6
IPV_LABEL = "polio (IPV)"
IPV_ADULT_NOTE = (
    "Routine IPV catch-up is through age 17; "
    "adults complete the series only if at increased risk of exposure"
)


def _dose_four_waived(ctx: VaccineContext) -> bool:
    """Dose 4 is not needed if dose 3 was at >=4 years and >=6 months after dose 2."""
    if ctx.dose_count != 3:
        return False
    dose2, dose3 = ctx.dose_date(2), ctx.dose_date(3)
    return (
        dose3 >= add_years(ctx.birth_date, IPV_FINAL_DOSE_MIN_AGE_YEARS)
        and dose3 >= add_months(dose2, IPV_FINAL_DOSE_INTERVAL_MONTHS)
    )


@recommender(POLIO)
def polio_recommendation(ctx: VaccineContext):
    if ctx.dose_count >= IPV_TOTAL_DOSES:
        return complete(
            ctx,
            "Polio (IPV) series complete",
            notes=["Four doses provide lifelong protection against polio"],
        )

    if _dose_four_waived(ctx):
        return complete(
            ctx,
            "Polio (IPV) series complete (dose 4 not needed)",
            notes=["Dose 3 given at age 4+ years AND 6 months after dose 2; dose 4 not needed"],
        )

    rec = _next_dose(ctx)
    if ctx.age_years >= get_vaccine_rules(POLIO).maximum_age_years:
        rec.notes.append(IPV_ADULT_NOTE)
    return rec


def _next_dose(ctx: VaccineContext):
    if ctx.dose_count == 0:
        earliest = add_days(ctx.birth_date, IPV_MIN_AGE_DAYS)
        return give_dose(
            ctx, 1,
            earliest=earliest,
            label=IPV_LABEL,
            notes=["Schedule: 2, 4, 6-18 months, 4-6 years", "Minimum age: 6 weeks"],
        )

    if ctx.dose_count in (1, 2):
        next_dose = ctx.dose_count + 1
        return give_dose(
            ctx, next_dose,
            earliest=add_days(ctx.last_dose.date, 28),
            label=IPV_LABEL,
            notes=[f"Minimum interval: 4 weeks between doses {ctx.dose_count}-{next_dose}"],
        )

    earliest = latest(
        add_years(ctx.birth_date, IPV_FINAL_DOSE_MIN_AGE_YEARS),
        add_months(ctx.dose_date(3), IPV_FINAL_DOSE_INTERVAL_MONTHS),
    )
    return give_dose(
        ctx, 4,
        earliest=earliest,
        label=IPV_LABEL,
        suffix="(final dose)",
        notes=["Final dose: must be given at age 4+ years AND 6 months after dose 3"],
    )
