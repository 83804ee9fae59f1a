"""CDC immunization schedule reference data and constants.

This module contains the per-vaccine rules from the CDC Child and
Adolescent Immunization Schedule and its catch-up tables. These should
be updated annually when CDC publishes a new schedule.

Reference: CDC Child and Adolescent Immunization Schedule by Age,
United States, 2025 (Table 2: Catch-up Immunization Schedule)
https://www.cdc.gov/vaccines/hcp/imz-schedules/child-adolescent-age.html

The table is built once at import time and is read-only afterwards:
rules are frozen dataclasses and every mapping is wrapped in a
MappingProxyType.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Mapping

from .name_mapper import (
    CHOLERA,
    COVID19,
    DENGUE,
    DTAP_TDAP,
    HEPATITIS_A,
    HEPATITIS_B,
    HIB,
    HPV,
    INFLUENZA,
    JAPANESE_ENCEPHALITIS,
    MENINGOCOCCAL_ACWY,
    MENINGOCOCCAL_B,
    MMR,
    PNEUMOCOCCAL,
    POLIO,
    ROTAVIRUS,
    RSV,
    TYPHOID,
    VARICELLA,
    YELLOW_FEVER,
)

# =============================================================================
# General Timing Constants
# =============================================================================

# Doses administered up to 4 days before the minimum age or interval
# are counted as valid
GRACE_PERIOD_DAYS = 4

# Interval assumed when a rule does not list one for a dose position
DEFAULT_INTERVAL_DAYS = 28

# A dose given more than this many months after the end of its routine
# window marks the series as completed on the catch-up schedule
SCHEDULE_STATUS_TOLERANCE_MONTHS = 6

# Rotavirus: do not start on or after 15 weeks 0 days; no doses after
# 8 months 0 days
ROTAVIRUS_MAX_START_AGE_DAYS = 104
ROTAVIRUS_MAX_AGE_MONTHS = 8

# Influenza: the season runs July through June
INFLUENZA_SEASON_START_MONTH = 7
INFLUENZA_TWO_DOSE_MAX_AGE_YEARS = 9

# Live attenuated vaccines: contraindicated in pregnancy and severe
# immunodeficiency
LIVE_VACCINES = frozenset({MMR, VARICELLA, ROTAVIRUS})

# Special conditions that make Hib/PCV/meningococcal vaccines indicated
# outside their routine age range
HIGH_RISK_CONDITIONS = ("immunocompromised", "asplenia")
PNEUMOCOCCAL_RISK_CONDITIONS = (
    "immunocompromised",
    "asplenia",
    "cochlear_implant",
    "csf_leak",
)

# Vaccines that are not part of the routine US pediatric schedule
TRAVEL_VACCINES = frozenset({
    DENGUE,
    JAPANESE_ENCEPHALITIS,
    YELLOW_FEVER,
    TYPHOID,
    CHOLERA,
})


# =============================================================================
# Rule Types
# =============================================================================

@dataclass(frozen=True)
class DoseSchedule:
    """Dose count and intervals for a product variant or catch-up bucket."""
    dose_count: int
    intervals: tuple[int, ...] = ()
    notes: tuple[str, ...] = ()

    def interval_before(self, dose_number: int) -> int:
        """Minimum days between dose (n-1) and dose n."""
        index = dose_number - 2
        if 0 <= index < len(self.intervals):
            return self.intervals[index]
        return DEFAULT_INTERVAL_DAYS


@dataclass(frozen=True)
class CatchUpBucket:
    """Catch-up sub-rule selected by age at first dose.

    Lower bound inclusive, upper bound exclusive, in months.
    """
    key: str
    min_months: int
    max_months: int
    schedule: DoseSchedule

    def contains(self, age_months: int) -> bool:
        return self.min_months <= age_months < self.max_months


@dataclass(frozen=True)
class CDCRule:
    """Static CDC rules for one canonical vaccine identity.

    required_doses is either an int or a function of age in days.
    minimum_intervals is either a tuple of days or a function of age in
    years returning one.
    """
    vaccine_id: str
    minimum_age_days: int
    required_doses: int | Callable[[int], int]
    minimum_intervals: tuple[int, ...] | Callable[[int], tuple[int, ...]] = ()
    maximum_age_days: int | None = None
    product_variants: Mapping[str, DoseSchedule] = field(default_factory=dict)
    catch_up_rules: tuple[CatchUpBucket, ...] = ()
    contraindications: tuple[str, ...] = ()
    precautions: tuple[str, ...] = ()
    special_situations: Mapping[str, str] = field(default_factory=dict)
    high_risk_product_variants: Mapping[str, DoseSchedule] = field(default_factory=dict)
    notes: tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(
            self, "product_variants", MappingProxyType(dict(self.product_variants))
        )
        object.__setattr__(
            self, "special_situations", MappingProxyType(dict(self.special_situations))
        )
        object.__setattr__(
            self,
            "high_risk_product_variants",
            MappingProxyType(dict(self.high_risk_product_variants)),
        )

    @property
    def maximum_age_years(self) -> int | None:
        """Maximum age in whole years, as the recommenders compare it."""
        if self.maximum_age_days is None:
            return None
        return self.maximum_age_days // 365

    def doses_required(self, age_days: int) -> int:
        if callable(self.required_doses):
            return self.required_doses(age_days)
        return self.required_doses

    def intervals_for(self, age_years: int) -> tuple[int, ...]:
        if callable(self.minimum_intervals):
            return tuple(self.minimum_intervals(age_years))
        return self.minimum_intervals

    def get_product_variant(
        self,
        product: str | None,
        high_risk: bool = False,
    ) -> DoseSchedule | None:
        """Match a recorded product name to a variant by substring.

        "Rotarix (RV1)" matches the Rotarix variant. For high-risk
        patients a high-risk variant of the product takes precedence.
        """
        if not product:
            return None
        product_lower = product.lower()
        variants = list(self.product_variants.items())
        if high_risk:
            variants = list(self.high_risk_product_variants.items()) + variants
        for name, schedule in variants:
            if name.lower() != "unknown" and name.lower() in product_lower:
                return schedule
        return None

    def get_catch_up_bucket(self, age_months: int) -> CatchUpBucket | None:
        for bucket in self.catch_up_rules:
            if bucket.contains(age_months):
                return bucket
        return None


# =============================================================================
# Age-Dependent Rule Functions
# =============================================================================

def _hib_doses(age_days: int) -> int:
    if age_days < 180:
        return 4
    if age_days < 365:
        return 3
    if age_days < 1825:
        return 1
    return 0


def _pcv_doses(age_days: int) -> int:
    if age_days < 730:
        return 4
    if age_days < 1825:
        return 1
    return 0


def _varicella_intervals(age_years: int) -> tuple[int, ...]:
    # 3 months if <13 years, 4 weeks if >=13 years
    return (90,) if age_years < 13 else (28,)


def _hpv_doses(age_days: int) -> int:
    # 2 doses if started before the 15th birthday
    return 2 if age_days < 5475 else 3


def _menacwy_doses(age_days: int) -> int:
    # Not routine before 11 years unless high-risk
    return 0 if age_days < 4015 else 2


def _covid_doses(age_days: int) -> int:
    return 3 if age_days < 5 * 365 else 1


# =============================================================================
# CDC Rule Table
# =============================================================================

_HIB_PCV_BUCKET_NOTES = {
    "<7m": ("3 primary doses + booster at 12-15 months",),
    "7-11m": ("2 primary doses + booster",),
}

_RULES: tuple[CDCRule, ...] = (
    CDCRule(
        vaccine_id=HEPATITIS_B,
        minimum_age_days=0,
        required_doses=3,
        minimum_intervals=(28, 56),
        contraindications=(
            "Severe allergic reaction (anaphylaxis) after previous dose",
            "Severe allergy to any vaccine component including yeast",
        ),
        precautions=(
            "Moderate or severe acute illness with or without fever",
            "Infant weighing less than 2,000 grams (4 lbs, 6.4 oz)",
        ),
        notes=(
            "Birth dose should be administered within 24 hours of birth",
            "Minimum age for dose 3 is 24 weeks",
            "Minimum interval between dose 1 and 3 is 16 weeks",
        ),
    ),
    CDCRule(
        vaccine_id=ROTAVIRUS,
        minimum_age_days=42,
        required_doses=3,
        minimum_intervals=(28, 28),
        # Maximum age is calendar-based: ROTAVIRUS_MAX_AGE_MONTHS
        product_variants={
            "Rotarix": DoseSchedule(
                2, (28,), ("2-dose series: doses at 2 and 4 months",)
            ),
            "RotaTeq": DoseSchedule(
                3, (28, 28), ("3-dose series: doses at 2, 4, and 6 months",)
            ),
            "Unknown": DoseSchedule(
                3, (28, 28), ("If product unknown or mixed, complete 3-dose series",)
            ),
        },
        contraindications=(
            "Severe allergic reaction to previous dose",
            "Severe combined immunodeficiency (SCID)",
            "History of intussusception",
        ),
        precautions=(
            "Altered immunocompetence other than SCID",
            "Moderate or severe acute gastroenteritis or other illness",
            "Chronic gastrointestinal disease",
            "Spina bifida or bladder exstrophy",
        ),
        notes=(
            "Maximum age for last dose is 8 months 0 days",
            "Do not start series on or after age 15 weeks 0 days",
        ),
    ),
    CDCRule(
        vaccine_id=DTAP_TDAP,
        minimum_age_days=42,
        required_doses=5,
        minimum_intervals=(28, 28, 168, 168),
        contraindications=(
            "Severe allergic reaction to previous dose",
            "Encephalopathy within 7 days after previous dose",
        ),
        precautions=(
            "Progressive neurologic disorder",
            "Temperature ≥105°F (≥40.5°C) within 48 hours after previous dose",
            "Collapse or shock-like state within 48 hours after previous dose",
            "Seizure within 3 days after previous dose",
            "Persistent crying ≥3 hours within 48 hours after previous dose",
            "Guillain-Barré syndrome within 6 weeks after previous dose",
        ),
        special_situations={
            "pregnancy": (
                "Administer 1 dose of Tdap during each pregnancy, "
                "preferably in early third trimester"
            ),
        },
        notes=(
            "Dose 5 not necessary if dose 4 administered at age ≥4 years",
            "If DTaP series incomplete, use Tdap for catch-up starting at age 7",
        ),
    ),
    CDCRule(
        vaccine_id=HIB,
        minimum_age_days=42,
        required_doses=_hib_doses,
        minimum_intervals=(28, 28, 56),
        maximum_age_days=1825,
        catch_up_rules=(
            CatchUpBucket("<7m", 0, 7, DoseSchedule(4, (28, 28, 56), _HIB_PCV_BUCKET_NOTES["<7m"])),
            CatchUpBucket("7-11m", 7, 12, DoseSchedule(3, (28, 56), _HIB_PCV_BUCKET_NOTES["7-11m"])),
            CatchUpBucket("12-14m", 12, 15, DoseSchedule(2, (56,), ("1 dose + booster ≥8 weeks later",))),
            CatchUpBucket("15-59m", 15, 60, DoseSchedule(1, (), ("Single dose if unvaccinated",))),
        ),
        contraindications=(
            "Severe allergic reaction to previous dose",
            "Age less than 6 weeks",
        ),
        precautions=("Moderate or severe acute illness with or without fever",),
        special_situations={
            "immunocompromised": "Administer through age 18 years",
            "asplenia": "Administer through age 18 years",
        },
        notes=(
            "First dose may be given as early as age 6 weeks",
            "Dose 4 at 12-15 months",
        ),
    ),
    CDCRule(
        vaccine_id=PNEUMOCOCCAL,
        minimum_age_days=42,
        required_doses=_pcv_doses,
        minimum_intervals=(28, 28, 56),
        catch_up_rules=(
            CatchUpBucket("<7m", 0, 7, DoseSchedule(4, (28, 28, 56), _HIB_PCV_BUCKET_NOTES["<7m"])),
            CatchUpBucket("7-11m", 7, 12, DoseSchedule(3, (28, 56), _HIB_PCV_BUCKET_NOTES["7-11m"])),
            CatchUpBucket("12-23m", 12, 24, DoseSchedule(2, (56,), ("2 doses ≥8 weeks apart",))),
            CatchUpBucket(
                "24-59m", 24, 60,
                DoseSchedule(1, (), ("Single dose if healthy, 2 doses if risk conditions",)),
            ),
        ),
        contraindications=("Severe allergic reaction to previous dose",),
        precautions=("Moderate or severe acute illness with or without fever",),
        special_situations={
            "immunocompromised": "May need additional doses; consider PPSV23",
            "cochlear_implant": "Complete PCV series and give PPSV23 at ≥2 years",
            "csf_leak": "Complete PCV series and give PPSV23 at ≥2 years",
            "asplenia": "Complete PCV series and give PPSV23 at ≥2 years",
        },
        notes=(
            "Minimum age for dose 4 is 12 months",
            "Dose 3 should be given at 6 months",
        ),
    ),
    CDCRule(
        vaccine_id=POLIO,
        minimum_age_days=42,
        required_doses=4,
        minimum_intervals=(28, 28, 168),
        maximum_age_days=6570,
        contraindications=(
            "Severe allergic reaction to previous dose",
            "Severe allergy to any vaccine component",
        ),
        precautions=(
            "Moderate or severe acute illness with or without fever",
            "Pregnancy",
        ),
        notes=(
            "Dose 4 must be given at ≥4 years AND ≥6 months after dose 3",
            "If dose 3 given at ≥4 years, dose 4 not needed",
        ),
    ),
    CDCRule(
        vaccine_id=INFLUENZA,
        minimum_age_days=180,
        required_doses=1,
        contraindications=(
            "Severe allergic reaction to previous dose",
            "Severe egg allergy for egg-based vaccines (use cell-culture or recombinant)",
        ),
        precautions=(
            "Moderate or severe acute illness with or without fever",
            "History of Guillain-Barré syndrome within 6 weeks of previous influenza vaccine",
        ),
        notes=(
            "Annual vaccination",
            "Children 6 months-8 years need 2 doses in first season of vaccination",
            "Doses separated by ≥4 weeks",
        ),
    ),
    CDCRule(
        vaccine_id=MMR,
        minimum_age_days=365,
        required_doses=2,
        minimum_intervals=(28,),
        contraindications=(
            "Severe allergic reaction to previous dose",
            "Severe immunodeficiency",
            "Pregnancy",
        ),
        precautions=(
            "Recent blood product receipt",
            "Moderate or severe acute illness",
            "History of thrombocytopenia",
        ),
        special_situations={"hiv_infection": "May give if CD4 ≥15%"},
        notes=("Dose 1 at 12-15 months", "Dose 2 at 4-6 years"),
    ),
    CDCRule(
        vaccine_id=VARICELLA,
        minimum_age_days=365,
        required_doses=2,
        minimum_intervals=_varicella_intervals,
        contraindications=(
            "Severe allergic reaction to previous dose",
            "Severe immunodeficiency",
            "Pregnancy",
        ),
        precautions=(
            "Recent blood product receipt",
            "Moderate or severe acute illness",
        ),
        special_situations={"hiv_infection": "May give if CD4 ≥15%"},
        notes=(
            "Dose 1 at 12-15 months",
            "Dose 2 at 4-6 years",
            "Interval: 3 months if <13 years; 4 weeks if ≥13 years",
        ),
    ),
    CDCRule(
        vaccine_id=HEPATITIS_A,
        minimum_age_days=365,
        required_doses=2,
        minimum_intervals=(180,),
        contraindications=("Severe allergic reaction to previous dose",),
        precautions=("Moderate or severe acute illness with or without fever",),
        special_situations={"chronic_liver_disease": "Recommended regardless of age"},
        notes=(
            "2-dose series separated by 6 months",
            "Catch-up vaccination through 18 years",
        ),
    ),
    CDCRule(
        vaccine_id=HPV,
        minimum_age_days=3285,
        required_doses=_hpv_doses,
        # Minimum intervals of the 3-dose schedule; the 2-dose 5-month
        # interval is enforced by the HPV recommender
        minimum_intervals=(28, 84),
        maximum_age_days=9490,
        contraindications=(
            "Severe allergic reaction to previous dose",
            "Severe allergy to any vaccine component",
        ),
        precautions=(
            "Moderate or severe acute illness with or without fever",
            "Pregnancy",
        ),
        special_situations={
            "immunocompromised": "3-dose series regardless of age at initiation",
        },
        notes=(
            "Routine at 11-12 years",
            "2-dose series if started before 15th birthday with 5-month minimum interval",
            "3-dose series if started at ≥15 years or immunocompromised",
        ),
    ),
    CDCRule(
        vaccine_id=MENINGOCOCCAL_ACWY,
        minimum_age_days=60,
        required_doses=_menacwy_doses,
        minimum_intervals=(56,),
        contraindications=("Severe allergic reaction to previous dose",),
        precautions=("Moderate or severe acute illness with or without fever",),
        special_situations={
            "asplenia": "2-dose primary + boosters every 5 years",
            "immunocompromised": "2-dose primary series 8 weeks apart",
        },
    ),
    CDCRule(
        vaccine_id=MENINGOCOCCAL_B,
        minimum_age_days=3650,
        required_doses=2,
        minimum_intervals=(28,),
        maximum_age_days=8395,
        product_variants={
            "Bexsero": DoseSchedule(2, (28,), ("2 doses ≥1 month apart",)),
            "Trumenba": DoseSchedule(
                2, (183,),
                ("2 doses ≥6 months apart", "3 doses for high-risk (0, 1-2, 6 months)"),
            ),
            "Unknown": DoseSchedule(2, (183,), ("Default to 6-month interval",)),
        },
        high_risk_product_variants={
            "Trumenba": DoseSchedule(
                3, (28, 155), ("3 doses for high-risk (0, 1-2, 6 months)",)
            ),
        },
        contraindications=("Severe allergic reaction to previous dose",),
        precautions=("Moderate or severe acute illness with or without fever",),
        special_situations={
            "asplenia": "Recommended; 2 or 3 doses depending on product",
        },
    ),
    CDCRule(
        vaccine_id=COVID19,
        minimum_age_days=180,
        required_doses=_covid_doses,
        minimum_intervals=(21, 28),
        notes=("Dosing varies by product: Moderna 2 doses, Pfizer 3 for <5y",),
    ),
    CDCRule(
        vaccine_id=DENGUE,
        minimum_age_days=3285,
        required_doses=3,
        minimum_intervals=(183, 183),
        maximum_age_days=5840,
        notes=(
            "Recommended for children 9-16 years in dengue-endemic areas "
            "with lab evidence of prior infection",
        ),
    ),
    CDCRule(
        vaccine_id=RSV,
        minimum_age_days=0,
        required_doses=1,
        notes=(
            "Maternal Abrysvo during pregnancy weeks 32-36 or infant "
            "nirsevimab <8 months",
        ),
    ),
)

CDC_RULES: Mapping[str, CDCRule] = MappingProxyType(
    {rule.vaccine_id: rule for rule in _RULES}
)


# =============================================================================
# Routine Schedule Windows (age in months at each dose)
#
# Used to report whether a completed series followed the normal schedule
# or was caught up.
# =============================================================================

SCHEDULE_WINDOWS_MONTHS: Mapping[str, tuple[tuple[int, int], ...]] = MappingProxyType({
    HEPATITIS_B: ((0, 1), (1, 4), (6, 18)),
    DTAP_TDAP: ((2, 4), (4, 6), (6, 8), (15, 18), (48, 72)),
    PNEUMOCOCCAL: ((2, 4), (4, 6), (6, 8), (12, 15)),
    HIB: ((2, 4), (4, 6), (6, 8), (12, 15)),
    POLIO: ((2, 4), (4, 6), (6, 18), (48, 72)),
    MMR: ((12, 15), (48, 72)),
    VARICELLA: ((12, 15), (48, 72)),
    HEPATITIS_A: ((12, 23), (18, 35)),
})


# =============================================================================
# Lookup Helper Functions
# =============================================================================

# Precautions surfaced for an active special condition, matched by keyword
_CONDITION_PRECAUTION_KEYWORDS = {
    "pregnancy": "pregnancy",
    "immunocompromised": "immunocompetence",
}


def get_vaccine_rules(vaccine_id: str) -> CDCRule | None:
    return CDC_RULES.get(vaccine_id)


def is_live_vaccine(vaccine_id: str) -> bool:
    return vaccine_id in LIVE_VACCINES


def is_travel_vaccine(vaccine_id: str) -> bool:
    return vaccine_id in TRAVEL_VACCINES


def has_any_condition(conditions, names: tuple[str, ...]) -> bool:
    """Check whether any of the named special-condition flags is set."""
    if conditions is None:
        return False
    return any(getattr(conditions, name, False) for name in names)


def check_contraindications(vaccine_id: str, conditions) -> list[str]:
    """Contraindications that apply to this patient.

    Only live vaccines under immunodeficiency or pregnancy are flagged;
    without a detailed allergy history the static contraindication text
    is not applied.
    """
    if conditions is None or not is_live_vaccine(vaccine_id):
        return []

    applicable = []
    if conditions.immunocompromised:
        applicable.append("Severe immunodeficiency")
    if conditions.pregnancy:
        applicable.append("Pregnancy")
    return applicable


def check_precautions(vaccine_id: str, conditions) -> list[str]:
    """Precautions matching an active special condition."""
    rule = get_vaccine_rules(vaccine_id)
    if rule is None or conditions is None:
        return []

    matched = []
    for condition, keyword in _CONDITION_PRECAUTION_KEYWORDS.items():
        if not getattr(conditions, condition, False):
            continue
        for precaution in rule.precautions:
            if keyword in precaution.lower() and precaution not in matched:
                matched.append(precaution)
    return matched


def get_special_situation_modifications(vaccine_id: str, conditions) -> list[str]:
    """Advisory text for each special situation whose condition is set."""
    rule = get_vaccine_rules(vaccine_id)
    if rule is None or conditions is None:
        return []

    return [
        modification
        for condition, modification in rule.special_situations.items()
        if getattr(conditions, condition, False)
    ]
