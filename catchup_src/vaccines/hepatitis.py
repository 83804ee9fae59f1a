"""Hepatitis B and Hepatitis A recommenders."""

from ..rules.date_math import add_days, latest
from ..rules.name_mapper import HEPATITIS_A, HEPATITIS_B
from .base import VaccineContext, complete, give_dose, recommender

HEPB_TOTAL_DOSES = 3
HEPB_DOSE3_MIN_AGE_DAYS = 168  # 24 weeks
HEPB_DOSE3_AFTER_DOSE1_DAYS = 112  # 16 weeks
HEPB_DOSE3_AFTER_DOSE2_DAYS = 56  # 8 weeks

HEPA_TOTAL_DOSES = 2
HEPA_MIN_AGE_DAYS = 365
HEPA_INTERVAL_DAYS = 180


@recommender(HEPATITIS_B)
def hepatitis_b_recommendation(ctx: VaccineContext):
    if ctx.dose_count >= HEPB_TOTAL_DOSES:
        return complete(ctx, "Hepatitis B series complete")

    if ctx.dose_count == 0:
        return give_dose(
            ctx, 1,
            suffix="(birth dose or catch-up)",
            notes=["Hepatitis B should be given at birth or as soon as possible"],
        )

    if ctx.dose_count == 1:
        return give_dose(
            ctx, 2,
            earliest=add_days(ctx.dose_date(1), 28),
            notes=["Minimum 4 weeks after dose 1"],
        )

    earliest = latest(
        add_days(ctx.dose_date(2), HEPB_DOSE3_AFTER_DOSE2_DAYS),
        add_days(ctx.dose_date(1), HEPB_DOSE3_AFTER_DOSE1_DAYS),
        add_days(ctx.birth_date, HEPB_DOSE3_MIN_AGE_DAYS),
    )
    return give_dose(
        ctx, 3,
        earliest=earliest,
        suffix="(final dose)",
        notes=[
            "Final dose: minimum 8 weeks after dose 2, 16 weeks after dose 1, "
            "and at least 24 weeks of age"
        ],
    )


@recommender(HEPATITIS_A)
def hepatitis_a_recommendation(ctx: VaccineContext):
    if ctx.dose_count >= HEPA_TOTAL_DOSES:
        return complete(
            ctx,
            "Hepatitis A series complete",
            notes=["Two doses provide long-term protection"],
        )

    if ctx.dose_count == 0:
        earliest = add_days(ctx.birth_date, HEPA_MIN_AGE_DAYS)
        if earliest > ctx.current_date:
            return give_dose(ctx, 1, earliest=earliest, notes=["Minimum age: 12 months"])
        return give_dose(
            ctx, 1,
            notes=[
                "Hepatitis A recommended for all children ≥12 months",
                "Catch-up vaccination through age 18 years",
            ],
        )

    return give_dose(
        ctx, 2,
        earliest=add_days(ctx.dose_date(1), HEPA_INTERVAL_DAYS),
        suffix="(final dose)",
        notes=["Minimum interval: 6 months between doses"],
    )
