"""Meningococcal ACWY and meningococcal B recommenders.

MenACWY:
- routine dose 1 at 11-12 years, booster at 16 years
- a dose at 11-15 years always needs a booster at 16+ (>=8 weeks later)
- starting at 16+ years needs only one dose
- ages 19-21 without a dose at 16+ get one catch-up dose
- not routine before 11 years unless high-risk

MenB:
- shared clinical decision-making at 16-23 years
- not recommended under 10 years; 10-15 years only for high-risk
- dose count and interval depend on the product (Bexsero vs Trumenba)
"""

from ..models import DecisionType, Recommendation
from ..rules.cdc_criteria import (
    HIGH_RISK_CONDITIONS,
    DoseSchedule,
    get_vaccine_rules,
    has_any_condition,
)
from ..rules.date_math import add_days, add_years, latest
from ..rules.name_mapper import MENINGOCOCCAL_ACWY, MENINGOCOCCAL_B
from .base import VaccineContext, complete, give_dose, not_recommended, recommender

MENACWY_ROUTINE_AGE_YEARS = 11
MENACWY_BOOSTER_AGE_YEARS = 16
MENACWY_COLLEGE_MAX_AGE_YEARS = 21
MENACWY_MIN_INTERVAL_DAYS = 56
MENACWY_HIGH_RISK_MIN_AGE_YEARS = 2

MENB_MIN_AGE_YEARS = 10
MENB_SHARED_DECISION_AGE_YEARS = 16
MENB_TRUMENBA_DOSE3_AFTER_DOSE1_DAYS = 183


# =============================================================================
# MenACWY
# =============================================================================

def _menacwy_high_risk(ctx: VaccineContext) -> Recommendation:
    if ctx.age_years < MENACWY_HIGH_RISK_MIN_AGE_YEARS:
        return Recommendation(
            vaccine_name=ctx.display_name,
            recommendation_text="MenACWY recommended for high-risk conditions - consult provider",
            series_complete=False,
            notes=[
                "High-risk conditions: immunodeficiency, asplenia, complement deficiency",
                "Age-specific dosing schedule for high-risk infants",
            ],
            decision_type=DecisionType.RISK_BASED,
        )

    if ctx.dose_count == 0:
        return give_dose(
            ctx, 1,
            suffix="(high-risk)",
            notes=["High-risk conditions require earlier vaccination"],
            decision_type=DecisionType.RISK_BASED,
        )
    if ctx.dose_count == 1:
        return give_dose(
            ctx, 2,
            earliest=add_days(ctx.dose_date(1), MENACWY_MIN_INTERVAL_DAYS),
            notes=["High-risk: 2-dose primary series 8 weeks apart"],
            decision_type=DecisionType.RISK_BASED,
        )
    return complete(
        ctx,
        "MenACWY series complete for high-risk",
        notes=["High-risk individuals may need boosters every 3-5 years"],
        decision_type=DecisionType.RISK_BASED,
    )


def _menacwy_booster(ctx: VaccineContext) -> Recommendation:
    """Booster at 16+ years for a series started at 11-15 years."""
    earliest = latest(
        add_years(ctx.birth_date, MENACWY_BOOSTER_AGE_YEARS),
        add_days(ctx.last_dose.date, MENACWY_MIN_INTERVAL_DAYS),
    )
    rec = give_dose(
        ctx, ctx.dose_count + 1,
        earliest=earliest,
        notes=[
            "Booster dose at 16 years for dose given at 11-15 years",
            "Minimum interval: 8 weeks after previous MenACWY dose",
        ],
        decision_type=DecisionType.ROUTINE,
    )
    rec.recommendation_text = rec.recommendation_text.replace(
        f"dose {ctx.dose_count + 1}", "booster dose"
    )
    return rec


def _menacwy_routine(ctx: VaccineContext) -> Recommendation:
    age = ctx.age_years
    dose_ages = [ctx.age_years_at(d.date) for d in ctx.counted_doses]
    dose_at_16_plus = any(a >= MENACWY_BOOSTER_AGE_YEARS for a in dose_ages)

    if age < MENACWY_ROUTINE_AGE_YEARS:
        if ctx.dose_count:
            return complete(
                ctx,
                "MenACWY not due until 11-12 years",
                notes=["Routine vaccination begins at 11-12 years"],
            )
        if age < 2:
            text = "MenACWY not routinely recommended under 2 years"
        else:
            text = "MenACWY not routinely recommended for healthy children 2-10 years"
        return not_recommended(
            ctx,
            text,
            notes=[
                "Routine vaccination begins at 11-12 years",
                "May be given earlier for high-risk conditions or travel",
            ],
        )

    if age < MENACWY_BOOSTER_AGE_YEARS:
        if ctx.dose_count == 0:
            catch_up = age > 12
            return give_dose(
                ctx, 1,
                suffix="(catch-up)" if catch_up else "(routine)",
                notes=[
                    "Catch-up vaccination for missed first dose" if catch_up
                    else "Routine first dose at 11-12 years",
                    "Booster dose needed at 16 years",
                ],
                decision_type=DecisionType.CATCH_UP if catch_up else DecisionType.ROUTINE,
            )
        if ctx.dose_count >= 2:
            return complete(ctx, "MenACWY series complete")
        return _menacwy_booster(ctx)

    if age <= 18:
        if dose_at_16_plus:
            return complete(
                ctx,
                "MenACWY series complete",
                notes=["Single dose sufficient when given at age 16 or older"],
            )
        if ctx.dose_count == 0:
            return give_dose(
                ctx, 1,
                notes=[
                    "Starting series at 16+ years requires only 1 dose",
                    "CDC guidelines: Single dose sufficient when starting at age 16 or older",
                ],
                decision_type=DecisionType.CATCH_UP,
            )
        return _menacwy_booster(ctx)

    if age <= MENACWY_COLLEGE_MAX_AGE_YEARS:
        if dose_at_16_plus:
            return complete(ctx, "MenACWY series complete")
        rec = give_dose(
            ctx, ctx.dose_count + 1,
            notes=[
                "First-year college students living in residence halls should receive "
                "1 dose if not vaccinated at age 16 or older",
                "Single catch-up dose recommended through age 21 if no dose at 16+",
            ],
            decision_type=DecisionType.CATCH_UP,
        )
        rec.recommendation_text = (
            "Give 1 dose MenACWY now (age 19-21 without a dose at age 16 or older)"
        )
        return rec

    if ctx.dose_count:
        return complete(ctx, "MenACWY series complete")
    return not_recommended(
        ctx,
        "MenACWY not routinely recommended for healthy adults over 21 years",
        notes=["May be indicated for travel, outbreaks, or high-risk conditions"],
    )


@recommender(MENINGOCOCCAL_ACWY)
def meningococcal_acwy_recommendation(ctx: VaccineContext):
    high_risk = has_any_condition(ctx.conditions, HIGH_RISK_CONDITIONS)
    rec = _menacwy_high_risk(ctx) if high_risk else _menacwy_routine(ctx)

    rec.notes.append("May be recommended for travel to endemic areas")
    rec.notes.append("Additional doses may be needed during outbreaks")
    if high_risk:
        rec.notes.append(
            "For persistent risk: boosters every 5 years if vaccinated at age ≥7 years; "
            "every 3 years if primary series completed before age 7"
        )
    return rec


# =============================================================================
# MenB
# =============================================================================

def _menb_schedule(ctx: VaccineContext, high_risk: bool) -> tuple[str, DoseSchedule]:
    """Product name and schedule from the first recorded product."""
    rule = get_vaccine_rules(MENINGOCOCCAL_B)
    for dose in ctx.counted_doses:
        if not dose.product:
            continue
        product = dose.product.lower()
        if "bexsero" in product or "4c" in product:
            return "Bexsero", rule.product_variants["Bexsero"]
        if "trumenba" in product or "fhbp" in product:
            if high_risk:
                return "Trumenba", rule.high_risk_product_variants["Trumenba"]
            return "Trumenba", rule.product_variants["Trumenba"]
    return "Unknown", rule.product_variants["Unknown"]


def _menb_series(ctx: VaccineContext, decision_type: DecisionType, high_risk: bool) -> Recommendation:
    product, schedule = _menb_schedule(ctx, high_risk)

    if ctx.dose_count >= schedule.dose_count:
        return complete(
            ctx,
            "MenB series complete",
            notes=[f"{product} {schedule.dose_count}-dose series completed"],
            decision_type=decision_type,
        )

    notes = list(schedule.notes)
    if ctx.dose_count == 0:
        notes.append("Two vaccines available: Bexsero (2 doses) or Trumenba (2-3 doses)")
        notes.append("All doses must be from the same manufacturer")
        return give_dose(ctx, 1, notes=notes, decision_type=decision_type, label="MenB")

    next_dose = ctx.dose_count + 1
    earliest = add_days(ctx.last_dose.date, schedule.interval_before(next_dose))
    if product == "Trumenba" and next_dose == 3:
        earliest = latest(earliest, add_days(ctx.dose_date(1), MENB_TRUMENBA_DOSE3_AFTER_DOSE1_DAYS))
    notes.append(f"Use {product} to complete the series" if product != "Unknown"
                 else "Product unknown: default to 6-month interval")
    return give_dose(ctx, next_dose, earliest=earliest, notes=notes,
                     decision_type=decision_type, label="MenB")


@recommender(MENINGOCOCCAL_B)
def meningococcal_b_recommendation(ctx: VaccineContext):
    age = ctx.age_years
    high_risk = has_any_condition(ctx.conditions, HIGH_RISK_CONDITIONS)

    if age < MENB_MIN_AGE_YEARS:
        return not_recommended(
            ctx,
            "MenB vaccination not recommended for children under 10 years",
            notes=[
                "MenB vaccine minimum age is 10 years",
                "Routine recommendation begins at 16-23 years with shared clinical decision-making",
            ],
        )

    if high_risk:
        rec = _menb_series(ctx, DecisionType.RISK_BASED, high_risk=True)
        rec.notes.append("High-risk conditions: asplenia, complement deficiency")
        return rec

    if age < MENB_SHARED_DECISION_AGE_YEARS:
        return not_recommended(
            ctx,
            "MenB vaccination not routinely recommended for healthy children 10-15 years",
            notes=[
                "For high-risk conditions: asplenia, complement deficiency",
                "Routine vaccination recommended at 16-23 years",
            ],
        )

    if age > get_vaccine_rules(MENINGOCOCCAL_B).maximum_age_years:
        if ctx.dose_count:
            return complete(ctx, "MenB series complete", decision_type=DecisionType.SHARED_CLINICAL_DECISION)
        return not_recommended(
            ctx,
            "MenB vaccination not routinely recommended after 23 years",
            notes=["Consider only for outbreak response or high-risk conditions"],
        )

    rec = _menb_series(ctx, DecisionType.SHARED_CLINICAL_DECISION, high_risk=False)
    if not rec.series_complete:
        rec.recommendation_text += " (shared clinical decision-making)"
        rec.notes[:0] = [
            "MenB vaccination based on shared clinical decision-making",
            "Preferred age 16-18 years",
            "Discuss benefits and risks with provider",
            "Consider for college students, military recruits, and those at increased risk",
        ]
    return rec
