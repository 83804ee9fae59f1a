"""Early-dose validation.

Partitions a chronologically sorted dose history into doses that count
toward the series and doses given too early to count. A dose is too
early when it precedes its permissible date (minimum age for dose 1,
minimum interval after the last counted dose otherwise) by more than
the grace period.

Excluded doses do not shift later comparisons: each dose is compared
against the last dose that was actually counted.
"""

import logging
from dataclasses import dataclass, field
from datetime import date

from .cdc_criteria import (
    DEFAULT_INTERVAL_DAYS,
    GRACE_PERIOD_DAYS,
    HIGH_RISK_CONDITIONS,
    CDCRule,
    get_vaccine_rules,
    has_any_condition,
)
from .date_math import add_days, age_in_years

logger = logging.getLogger(__name__)


@dataclass
class ExcludedDose:
    """A dose that was given too early to count."""
    dose_number: int  # 1-indexed position in the submitted history
    dose: object  # DoseRecord
    earliest_valid_date: date
    days_early: int

    def to_dict(self) -> dict:
        return {
            "dose_number": self.dose_number,
            "date": self.dose.date.isoformat(),
            "earliest_valid_date": self.earliest_valid_date.isoformat(),
            "days_early": self.days_early,
        }


@dataclass
class DoseValidation:
    """Result of validating a dose history against CDC minimums."""
    valid_doses: list = field(default_factory=list)
    excluded_doses: list[ExcludedDose] = field(default_factory=list)

    @property
    def valid_count(self) -> int:
        return len(self.valid_doses)

    @property
    def notes(self) -> list[str]:
        if not self.excluded_doses:
            return []
        numbers = ", ".join(str(e.dose_number) for e in self.excluded_doses)
        return [f"Dose(s) {numbers} given too early per CDC guidelines - not counted"]


def minimum_interval_days(
    rule: CDCRule,
    dose_number: int,
    dose,
    birth_date: date,
    high_risk: bool = False,
) -> int:
    """Minimum days required between the previous counted dose and this one.

    Precedence: the dose's product variant (its high-risk schedule when
    the patient is high-risk), then the rule's intervals (evaluated at
    the patient's age on the dose date when age-dependent). Positions
    beyond the listed intervals default to 4 weeks.
    """
    variant = rule.get_product_variant(getattr(dose, "product", None), high_risk)
    if variant is not None:
        return variant.interval_before(dose_number)

    intervals = rule.intervals_for(age_in_years(birth_date, dose.date))
    index = dose_number - 2
    if 0 <= index < len(intervals):
        return intervals[index]
    return DEFAULT_INTERVAL_DAYS


def validate_doses(
    vaccine_id: str,
    doses: list,
    birth_date: date,
    grace_period_days: int = GRACE_PERIOD_DAYS,
    conditions=None,
) -> DoseValidation:
    """Split sorted doses into counted and too-early doses.

    Args:
        vaccine_id: Canonical vaccine identity.
        doses: DoseRecords sorted ascending by date.
        birth_date: Patient date of birth.
        grace_period_days: Tolerance for early doses.
        conditions: SpecialConditions; high-risk patients are validated
            against high-risk product schedules.

    Returns:
        DoseValidation. Vaccines without a rule count every dose.
    """
    rule = get_vaccine_rules(vaccine_id)
    if rule is None:
        return DoseValidation(valid_doses=list(doses))

    high_risk = has_any_condition(conditions, HIGH_RISK_CONDITIONS)
    result = DoseValidation()
    for position, dose in enumerate(doses, start=1):
        counted = len(result.valid_doses)
        if counted == 0:
            earliest = add_days(birth_date, rule.minimum_age_days)
        else:
            previous = result.valid_doses[-1]
            interval = minimum_interval_days(rule, counted + 1, dose, birth_date, high_risk)
            earliest = add_days(previous.date, interval)

        days_early = (earliest - dose.date).days
        if days_early > grace_period_days:
            logger.debug(
                f"{vaccine_id} dose {position} on {dose.date} is {days_early} days "
                f"before {earliest}; not counted"
            )
            result.excluded_doses.append(
                ExcludedDose(
                    dose_number=position,
                    dose=dose,
                    earliest_valid_date=earliest,
                    days_early=days_early,
                )
            )
        else:
            result.valid_doses.append(dose)

    return result
