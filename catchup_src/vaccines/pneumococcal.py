"""Pneumococcal conjugate (PCV) recommender.

Under 24 months the routine 4-dose series (2, 4, 6, 12-15 months) is
caught up by age-at-first-dose buckets. At 24-59 months a single dose,
PCV20 preferred, completes any incomplete series. Healthy children 5
years and older do not need PCV.
"""

from ..models import DecisionType, Recommendation
from ..rules.cdc_criteria import (
    PNEUMOCOCCAL_RISK_CONDITIONS,
    get_vaccine_rules,
    has_any_condition,
)
from ..rules.date_math import add_days, format_date
from ..rules.name_mapper import PNEUMOCOCCAL
from .base import (
    VaccineContext,
    complete,
    give_dose,
    next_bucket_dose_date,
    not_recommended,
    recommender,
    select_catch_up_bucket,
)

PCV_TOTAL_DOSES = 4
PCV_SINGLE_DOSE_AGE_MONTHS = 24
PCV_ROUTINE_MAX_AGE_YEARS = 5
PCV_SINGLE_DOSE_INTERVAL_DAYS = 56


def _high_risk_notes(ctx: VaccineContext) -> list[str]:
    if not has_any_condition(
        ctx.conditions, PNEUMOCOCCAL_RISK_CONDITIONS + ("hiv_infection",)
    ):
        return []

    notes = ["High-risk: additional pneumococcal vaccination may be indicated"]
    any_pcv20 = any("pcv20" in (d.product or "").lower() for d in ctx.counted_doses)
    if any_pcv20:
        notes.append("If PCV20 given, PPSV23 generally not needed")
    else:
        notes.append("If only PCV15/13 given, PPSV23 may be recommended")
    return notes


def _single_dose(ctx: VaccineContext, text: str, notes: list[str], decision_type) -> Recommendation:
    earliest = None
    if ctx.last_dose is not None:
        earliest = add_days(ctx.last_dose.date, PCV_SINGLE_DOSE_INTERVAL_DAYS)
    due = earliest if earliest is not None and earliest > ctx.current_date else None
    if due is not None:
        text = f"{text} on or after {format_date(due)}"
        notes.append("Minimum interval: 8 weeks after previous PCV dose")
    return Recommendation(
        vaccine_name=ctx.display_name,
        recommendation_text=text,
        next_dose_date=due or ctx.current_date,
        series_complete=False,
        notes=notes,
        decision_type=decision_type,
    )


def _pcv_recommendation(ctx: VaccineContext) -> Recommendation:
    rule = get_vaccine_rules(PNEUMOCOCCAL)

    if ctx.dose_count >= PCV_TOTAL_DOSES:
        return complete(
            ctx,
            "Pneumococcal (PCV) series complete",
            notes=["Four-dose PCV series provides protection for healthy children"],
        )

    if ctx.age_years >= PCV_ROUTINE_MAX_AGE_YEARS:
        if has_any_condition(ctx.conditions, PNEUMOCOCCAL_RISK_CONDITIONS):
            return _single_dose(
                ctx,
                "Give 1 dose PCV (prefer PCV20) for high-risk condition",
                ["Children 6-18 years with risk conditions who have not received PCV20 or PCV15"],
                DecisionType.RISK_BASED,
            )
        return not_recommended(
            ctx,
            "PCV generally not needed for healthy children 5+ years",
            notes=["Consult provider if high-risk conditions present"],
        )

    if ctx.age_months >= PCV_SINGLE_DOSE_AGE_MONTHS:
        single_dose_given = any(
            ctx.age_months_at(d.date) >= PCV_SINGLE_DOSE_AGE_MONTHS for d in ctx.counted_doses
        )
        if single_dose_given:
            return complete(
                ctx,
                "Pneumococcal (PCV) series complete",
                notes=["Catch-up dose at ≥24 months completes the series"],
                decision_type=DecisionType.CATCH_UP,
            )
        return _single_dose(
            ctx,
            "Give 1 dose PCV (prefer PCV20) to complete series",
            [
                "Catch-up vaccination for ages 2-4 years: single dose",
                "PCV20 preferred when available; if PCV20 unavailable, give 1 dose PCV15",
            ],
            DecisionType.CATCH_UP,
        )

    bucket = select_catch_up_bucket(ctx, rule)
    total_doses = bucket.schedule.dose_count if bucket else PCV_TOTAL_DOSES
    if ctx.dose_count >= total_doses:
        return complete(ctx, "Pneumococcal (PCV) series complete")

    next_dose = ctx.dose_count + 1
    notes = ["PCV series: 2, 4, 6, 12-15 months"]
    if bucket is not None and bucket.key != "<7m":
        notes.append(f"Catch-up schedule for first dose at age {bucket.key}")
        notes.extend(bucket.schedule.notes)
    notes.append(f"Dose {next_dose} of {total_doses}")

    return give_dose(
        ctx, next_dose,
        earliest=next_bucket_dose_date(ctx, rule, bucket, total_doses),
        notes=notes,
        label="PCV",
    )


@recommender(PNEUMOCOCCAL)
def pneumococcal_recommendation(ctx: VaccineContext):
    rec = _pcv_recommendation(ctx)
    rec.notes.extend(_high_risk_notes(ctx))
    return rec
