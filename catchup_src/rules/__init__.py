"""CDC catch-up rules: date math, name normalization, rule table, validation."""

from .cdc_criteria import (
    CDC_RULES,
    GRACE_PERIOD_DAYS,
    CatchUpBucket,
    CDCRule,
    DoseSchedule,
    check_contraindications,
    check_precautions,
    get_special_situation_modifications,
    get_vaccine_rules,
    is_live_vaccine,
)
from .date_math import DateParseError, parse_date
from .dose_validator import DoseValidation, ExcludedDose, validate_doses
from .name_mapper import (
    VaccineMapping,
    VaccineNameMapper,
    get_age_specific_display,
    get_name_mapper,
    is_recognized,
    to_internal,
)

__all__ = [
    # Rule table
    "CDC_RULES",
    "GRACE_PERIOD_DAYS",
    "CatchUpBucket",
    "CDCRule",
    "DoseSchedule",
    "check_contraindications",
    "check_precautions",
    "get_special_situation_modifications",
    "get_vaccine_rules",
    "is_live_vaccine",
    # Dates
    "DateParseError",
    "parse_date",
    # Validation
    "DoseValidation",
    "ExcludedDose",
    "validate_doses",
    # Names
    "VaccineMapping",
    "VaccineNameMapper",
    "get_age_specific_display",
    "get_name_mapper",
    "is_recognized",
    "to_internal",
]
