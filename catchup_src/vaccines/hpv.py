"""Human papillomavirus (HPV) recommender."""

from ..models import DecisionType, Recommendation
from ..rules.cdc_criteria import get_vaccine_rules
from ..rules.date_math import add_days, latest
from ..rules.name_mapper import HPV
from .base import VaccineContext, complete, give_dose, not_recommended, recommender

HPV_MIN_AGE_YEARS = 9
HPV_CATCH_UP_AGE_YEARS = 13
HPV_TWO_DOSE_MAX_START_AGE_YEARS = 15
HPV_TWO_DOSE_INTERVAL_DAYS = 150  # 5 months
HPV_THREE_DOSE_INTERVAL_DAYS = 28
HPV_FINAL_AFTER_DOSE2_DAYS = 84  # 12 weeks


def uses_two_dose_schedule(ctx: VaccineContext) -> bool:
    """2 doses if started before the 15th birthday and not immunocompromised."""
    if ctx.conditions.immunocompromised:
        return False
    start = ctx.counted_doses[0].date if ctx.counted_doses else ctx.current_date
    return ctx.age_years_at(start) < HPV_TWO_DOSE_MAX_START_AGE_YEARS


def _final_dose_date(ctx: VaccineContext):
    return latest(
        add_days(ctx.dose_date(1), HPV_TWO_DOSE_INTERVAL_DAYS),
        add_days(ctx.dose_date(2), HPV_FINAL_AFTER_DOSE2_DAYS),
    )


def _two_dose_recommendation(ctx: VaccineContext) -> Recommendation:
    if ctx.dose_count == 1:
        return give_dose(
            ctx, 2,
            earliest=add_days(ctx.dose_date(1), HPV_TWO_DOSE_INTERVAL_DAYS),
            suffix="(final dose)",
            notes=["2-dose schedule: minimum 5 months between doses"],
        )

    gap = (ctx.dose_date(2) - ctx.dose_date(1)).days
    if gap >= HPV_TWO_DOSE_INTERVAL_DAYS - ctx.grace_period_days or ctx.dose_count >= 3:
        return complete(
            ctx,
            "HPV series complete",
            notes=["Provides protection against HPV types that cause most cancers and genital warts"],
        )

    return give_dose(
        ctx, 3,
        earliest=_final_dose_date(ctx),
        suffix="(final dose)",
        notes=[
            "Dose 2 given less than 5 months after dose 1; a third dose is needed",
            "Final dose: minimum 5 months after dose 1 AND 12 weeks after dose 2",
        ],
    )


def _three_dose_recommendation(ctx: VaccineContext) -> Recommendation:
    if ctx.dose_count >= 3:
        return complete(
            ctx,
            "HPV series complete",
            notes=["Provides protection against HPV types that cause most cancers and genital warts"],
        )

    notes = []
    if ctx.conditions.immunocompromised:
        notes.append("Immunocompromised: 3-dose series regardless of age at initiation")

    if ctx.dose_count == 1:
        notes.append("3-dose schedule: minimum 1 month between doses 1-2")
        return give_dose(
            ctx, 2,
            earliest=add_days(ctx.dose_date(1), HPV_THREE_DOSE_INTERVAL_DAYS),
            notes=notes,
        )

    notes.append("Final dose: minimum 5 months after dose 1 AND 12 weeks after dose 2")
    return give_dose(ctx, 3, earliest=_final_dose_date(ctx), suffix="(final dose)", notes=notes)


@recommender(HPV)
def hpv_recommendation(ctx: VaccineContext):
    if ctx.age_years < HPV_MIN_AGE_YEARS:
        return not_recommended(
            ctx,
            "HPV vaccination not recommended under 9 years",
            notes=["Minimum age: 9 years", "Routine recommendation: 11-12 years"],
        )

    two_dose = uses_two_dose_schedule(ctx)

    max_age_years = get_vaccine_rules(HPV).maximum_age_years
    if ctx.age_years > max_age_years and ctx.dose_count < (2 if two_dose else 3):
        return Recommendation(
            vaccine_name=ctx.display_name,
            recommendation_text="Not routinely recommended after 26 years; discuss shared decision",
            series_complete=False,
            notes=[
                "HPV vaccine most effective when given before exposure to HPV",
                "Adults 27-45 years: shared clinical decision-making with provider",
            ],
            decision_type=DecisionType.SHARED_CLINICAL_DECISION,
        )

    if ctx.dose_count == 0:
        notes = []
        if two_dose:
            notes.append("2-dose schedule: Dose 1, then Dose 2 at least 5 months later")
        else:
            notes.append(
                "3-dose schedule: Dose 1, Dose 2 at 1-2 months, Dose 3 at 6 months"
            )
            if ctx.conditions.immunocompromised:
                notes.append("Immunocompromised: 3-dose series regardless of age at initiation")
        if ctx.age_years <= 12:
            notes.append("Routine vaccination: 11-12 years (can start at 9 years)")
        else:
            notes.append("Catch-up vaccination recommended through age 26")
        decision = (
            DecisionType.CATCH_UP if ctx.age_years >= HPV_CATCH_UP_AGE_YEARS
            else DecisionType.ROUTINE
        )
        return give_dose(ctx, 1, notes=notes, decision_type=decision)

    rec = _two_dose_recommendation(ctx) if two_dose else _three_dose_recommendation(ctx)
    if not rec.series_complete and ctx.age_years >= HPV_CATCH_UP_AGE_YEARS:
        rec.decision_type = DecisionType.CATCH_UP
    return rec
