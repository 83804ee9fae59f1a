"""CDC vaccine catch-up recommendation engine.

Given a patient's birth date, recorded vaccine history and special
conditions, produces per-vaccine recommendations following the CDC
Child and Adolescent Immunization Schedule and its catch-up tables.

Architecture:
    Vaccine history → Name normalization → Dose validation → Recommenders → Result

Name normalization maps free-text names and brand names to canonical
identities; dose validation drops doses given too early (beyond the
4-day grace period); each vaccine's recommender applies its CDC rules.
"""

from .engine import STANDARD_PANEL, CatchUpRulesEngine, generate_catchup_recommendations
from .models import (
    CatchUpRequest,
    CatchUpResult,
    DateParseError,
    DecisionType,
    DoseRecord,
    Recommendation,
    SpecialConditions,
    VaccineHistoryEntry,
)
from .store import CatchUpStore, NullCatchUpStore, SQLiteCatchUpStore, StoredCatchUp

__all__ = [
    # Engine
    "CatchUpRulesEngine",
    "generate_catchup_recommendations",
    "STANDARD_PANEL",
    # Models
    "CatchUpRequest",
    "CatchUpResult",
    "DateParseError",
    "DecisionType",
    "DoseRecord",
    "Recommendation",
    "SpecialConditions",
    "VaccineHistoryEntry",
    # Storage
    "CatchUpStore",
    "NullCatchUpStore",
    "SQLiteCatchUpStore",
    "StoredCatchUp",
]
