"""Haemophilus influenzae type b (Hib) recommender."""

from ..models import DecisionType, Recommendation
from ..rules.cdc_criteria import HIGH_RISK_CONDITIONS, get_vaccine_rules, has_any_condition
from ..rules.name_mapper import HIB
from .base import (
    VaccineContext,
    complete,
    give_dose,
    next_bucket_dose_date,
    not_recommended,
    recommender,
    select_catch_up_bucket,
)

HIB_FINAL_DOSE_AGE_MONTHS = 15


@recommender(HIB)
def hib_recommendation(ctx: VaccineContext):
    rule = get_vaccine_rules(HIB)
    high_risk = has_any_condition(ctx.conditions, HIGH_RISK_CONDITIONS)

    if ctx.age_years >= rule.maximum_age_years:
        if high_risk and ctx.dose_count == 0:
            return Recommendation(
                vaccine_name=ctx.display_name,
                recommendation_text="Consider HIB vaccine for high-risk condition",
                next_dose_date=ctx.current_date,
                series_complete=False,
                notes=[
                    "Unvaccinated patients ≥5 years with asplenia or immunodeficiency "
                    "should receive 1 dose",
                ],
                decision_type=DecisionType.RISK_BASED,
            )
        if ctx.dose_count > 0:
            return complete(
                ctx,
                "HIB series complete",
                notes=["HIB vaccine not routinely recommended after 5 years"],
            )
        return not_recommended(
            ctx,
            "HIB vaccine not routinely recommended after 5 years",
            notes=["Consult provider if asplenia or immunodeficiency present"],
        )

    bucket = select_catch_up_bucket(ctx, rule)
    total_doses = bucket.schedule.dose_count if bucket else rule.doses_required(ctx.age_days)

    # Any dose given at 15 months or older completes the series
    late_dose = any(
        ctx.age_months_at(d.date) >= HIB_FINAL_DOSE_AGE_MONTHS for d in ctx.counted_doses
    )
    if ctx.dose_count >= total_doses or late_dose:
        return complete(ctx, "HIB series complete")

    next_dose = ctx.dose_count + 1
    notes = []
    if bucket is not None:
        notes.append(f"Catch-up schedule for first dose at age {bucket.key}")
        notes.extend(bucket.schedule.notes)
    notes.append(f"Dose {next_dose} of {total_doses}")

    return give_dose(
        ctx, next_dose,
        earliest=next_bucket_dose_date(ctx, rule, bucket, total_doses),
        notes=notes,
    )
