"""Per-vaccine recommenders.

Importing this package registers every recommender with the registry
in base.py.
"""

from . import (  # noqa: F401
    covid19,
    dtap,
    hepatitis,
    hib,
    hpv,
    influenza,
    meningococcal,
    mmr_varicella,
    pneumococcal,
    polio,
    rotavirus,
    travel,
)
from .base import (
    VaccineContext,
    evaluate,
    get_recommender,
    get_schedule_status,
    recommender,
)

__all__ = [
    "VaccineContext",
    "evaluate",
    "get_recommender",
    "get_schedule_status",
    "recommender",
]
