"""Travel vaccines and RSV.

None of these are part of the routine US pediatric and adolescent
schedule, so there is no dosing path: each returns a fixed advisory
with educational notes and series_complete=True. RSV during pregnancy
is the exception and gets a risk-based maternal vaccine recommendation.
"""

from ..models import DecisionType, Recommendation
from ..rules.cdc_criteria import get_vaccine_rules
from ..rules.name_mapper import (
    CHOLERA,
    DENGUE,
    JAPANESE_ENCEPHALITIS,
    RSV,
    TYPHOID,
    YELLOW_FEVER,
)
from .base import VaccineContext, not_recommended, recommender


def _advisory(ctx: VaccineContext, text: str, notes: list[str]) -> Recommendation:
    return Recommendation(
        vaccine_name=ctx.display_name,
        recommendation_text=text,
        series_complete=True,
        notes=notes,
        decision_type=DecisionType.INTERNATIONAL_ADVISORY,
    )


# =============================================================================
# Travel Vaccines
# =============================================================================

@recommender(DENGUE)
def dengue_recommendation(ctx: VaccineContext):
    notes = [
        "Dengue vaccine (Dengvaxia) only recommended for endemic areas: "
        "Puerto Rico, American Samoa, U.S. Virgin Islands, "
        "Federated States of Micronesia, Marshall Islands, Palau",
        "NOT recommended for US mainland residents or travelers",
        "Requires laboratory-confirmed previous dengue infection",
    ]
    rule = get_vaccine_rules(DENGUE)
    min_age_years = rule.minimum_age_days // 365
    if ctx.age_years < min_age_years or ctx.age_years > rule.maximum_age_years:
        notes.append("Age restriction: Only approved for ages 9-16 years in endemic areas")
    notes.append("Can increase severe dengue risk if no previous infection")
    notes.append("Requires pre-vaccination screening for previous dengue exposure")
    return _advisory(ctx, "Dengue vaccination not recommended for US-based patients", notes)


@recommender(JAPANESE_ENCEPHALITIS)
def japanese_encephalitis_recommendation(ctx: VaccineContext):
    notes = [
        "Japanese Encephalitis vaccine (Ixiaro) is a travel vaccine for long-term "
        "residents or frequent travelers to JE endemic areas in Asia",
        "Also for laboratory workers with potential JE virus exposure",
        "NOT recommended for short-term urban travel",
    ]
    if ctx.age_years < 2:
        notes.append("Minimum age: 2 months for travel to endemic areas")
    notes.append("Endemic areas include: rural Asia, parts of Pacific islands")
    notes.append("Consult travel medicine specialist for individual risk assessment")
    return _advisory(
        ctx,
        "Japanese Encephalitis vaccination not routinely recommended for US residents",
        notes,
    )


@recommender(YELLOW_FEVER)
def yellow_fever_recommendation(ctx: VaccineContext):
    notes = [
        "Yellow Fever vaccine (YF-Vax, Stamaril) is required for travel to countries "
        "with YF transmission risk or with YF entry requirements",
        "Endemic areas: sub-Saharan Africa, tropical South America",
        "NOT recommended for US mainland residents without travel",
    ]
    if ctx.age_years < 1:
        notes.append("NOT recommended under 9 months (increased risk of encephalitis)")
        notes.append("Ages 6-8 months: only if high risk of exposure and cannot be avoided")
    elif ctx.age_years >= 60:
        notes.append("Age 60+: Increased risk of serious adverse events")
    notes.append("Must be given at certified Yellow Fever vaccination centers")
    notes.append("Usually provides lifelong immunity (single dose sufficient)")
    notes.append("Contraindicated: immunocompromised, thymus disorders, severe egg allergy")
    return _advisory(
        ctx,
        "Yellow Fever vaccination not routinely recommended for US residents",
        notes,
    )


@recommender(TYPHOID)
def typhoid_recommendation(ctx: VaccineContext):
    notes = [
        "Typhoid vaccine (Typhim Vi, Vivotif) recommended for travel to areas with "
        "poor sanitation/food safety",
        "High-risk destinations: South Asia, Africa, Latin America",
        "NOT recommended for routine US vaccination",
    ]
    if ctx.age_years < 2:
        notes.append("Injectable vaccine (Typhim Vi): minimum age 2 years")
        notes.append("Oral vaccine (Vivotif): minimum age 6 years")
    elif ctx.age_years < 6:
        notes.append("Only injectable vaccine (Typhim Vi) available for ages 2-5")
    else:
        notes.append("Two options: Injectable (Typhim Vi) or oral (Vivotif) vaccine")
    notes.append("Injectable vaccine: protective for 3 years")
    notes.append("Oral vaccine: protective for 5 years")
    notes.append("Take at least 1-2 weeks before travel for full protection")
    return _advisory(
        ctx,
        "Typhoid vaccination not routinely recommended for US residents",
        notes,
    )


@recommender(CHOLERA)
def cholera_recommendation(ctx: VaccineContext):
    notes = [
        "Cholera vaccine (Vaxchora) only recommended for adults 18-64 years "
        "traveling to areas with active cholera transmission",
        "NOT recommended for routine travel or general precaution",
    ]
    if ctx.age_years < 18 or ctx.age_years > 64:
        notes.append("Vaccine only approved for ages 18-64 years")
        notes.append("Children and older adults: focus on food/water precautions")
    notes.append("Single oral dose provides moderate protection (up to 80%)")
    notes.append("Primary prevention: safe food and water practices")
    return _advisory(
        ctx,
        "Cholera vaccination not routinely recommended for US residents or travelers",
        notes,
    )


# =============================================================================
# RSV
# =============================================================================

RSV_INFANT_MAX_AGE_MONTHS = 8
RSV_HIGH_RISK_MAX_AGE_MONTHS = 20


@recommender(RSV)
def rsv_recommendation(ctx: VaccineContext):
    if ctx.conditions.pregnancy:
        return Recommendation(
            vaccine_name=ctx.display_name,
            recommendation_text="Consider maternal RSV vaccine (Abrysvo) at 32-36 weeks gestation",
            series_complete=False,
            notes=[
                "Seasonal administration September through January",
                "Maternal vaccination protects the infant for the first months of life",
            ],
            decision_type=DecisionType.RISK_BASED,
        )

    notes = [
        "Infant protection: nirsevimab for infants under 8 months entering their first RSV season",
        "Maternal protection: Abrysvo at 32-36 weeks gestation",
    ]
    if ctx.age_months < RSV_INFANT_MAX_AGE_MONTHS:
        notes.append("Nirsevimab administered by birth hospital or pediatric clinic; not a catch-up vaccine")
    elif ctx.age_months < RSV_HIGH_RISK_MAX_AGE_MONTHS:
        notes.append("Ages 8-19 months: nirsevimab only for high-risk children entering second RSV season")
    else:
        notes.append("RSV immunization primarily for infants and high-risk young children")
    return not_recommended(ctx, "RSV immunization not part of the catch-up schedule", notes=notes)
