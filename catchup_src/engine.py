"""Catch-up recommendation engine.

Turns a patient's birth date, vaccination history and special
conditions into one recommendation per vaccine:

1. Normalize every history entry to a canonical identity and merge
   synonyms into one timeline (e.g. "DTaP" and "Tdap" doses).
2. Sort each timeline, drop doses given too early, and run the
   vaccine's recommender.
3. Evaluate the rest of the standard panel with an empty history.
4. Sort by display name and stamp the guideline version.

The engine is synchronous and keeps no state between calls, so one
instance can serve any number of concurrent callers.
"""

import logging
from datetime import date, datetime
from typing import Callable

from .config import config
from .models import CatchUpRequest, CatchUpResult, DoseRecord, Recommendation
from .rules.date_math import age_in_years, format_patient_age
from .rules.dose_validator import validate_doses
from .rules.name_mapper import get_age_specific_display, is_recognized, to_internal
from .store import CatchUpStore
from .vaccines import VaccineContext, evaluate

logger = logging.getLogger(__name__)

# Vaccines evaluated for every patient, whether or not any history was given
STANDARD_PANEL = (
    "HepB",
    "Rotavirus",
    "DTaP",
    "Hib",
    "PCV",
    "IPV",
    "COVID-19",
    "Influenza",
    "MMR",
    "VAR",
    "HepA",
    "HPV",
    "MenACWY",
    "MenB",
    "Dengue",
    "RSV",
)


class _MergedHistory:
    """Doses for one canonical identity, merged across name variants."""

    def __init__(self, vaccine_id: str, source_name: str):
        self.vaccine_id = vaccine_id
        self.source_name = source_name
        self.doses: list[DoseRecord] = []

    def sorted_doses(self) -> list[DoseRecord]:
        return sorted(self.doses, key=lambda d: d.date)


class CatchUpRulesEngine:
    """Generates CDC catch-up recommendations for a single patient."""

    def __init__(
        self,
        grace_period_days: int | None = None,
        cdc_version: str | None = None,
        store: CatchUpStore | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """Initialize the engine.

        Args:
            grace_period_days: Early-dose tolerance. Defaults to config.
            cdc_version: Version stamped on results. Defaults to config.
            store: Optional store that receives every request/result pair.
            clock: Source of processed_at timestamps. Defaults to datetime.now.
        """
        self.grace_period_days = (
            grace_period_days if grace_period_days is not None else config.GRACE_PERIOD_DAYS
        )
        self.cdc_version = cdc_version or config.CDC_VERSION
        self.store = store
        self.clock = clock or datetime.now

    def generate_catchup_recommendations(
        self,
        request: CatchUpRequest | dict,
    ) -> CatchUpResult:
        """Generate recommendations for one patient.

        Args:
            request: A CatchUpRequest, or its wire-shaped dict.

        Returns:
            CatchUpResult with recommendations sorted by display name.

        Raises:
            DateParseError: If any date in a dict request is malformed.
            ValueError: If a flag in a dict request is not a boolean.
        """
        if isinstance(request, dict):
            request = CatchUpRequest.from_dict(request)

        birth_date = request.birth_date
        current_date = request.current_date or date.today()
        age_years = age_in_years(birth_date, current_date)

        merged = self._merge_history(request)

        recommendations: list[Recommendation] = []
        processed: set[str] = set()

        for vaccine_id, history in merged.items():
            display = self._display_name(history.source_name, age_years)
            rec = self._evaluate(vaccine_id, display, history.sorted_doses(), request, current_date)
            processed.add(vaccine_id)
            if rec is not None:
                recommendations.append(rec)

        seen_names = {r.vaccine_name.strip().lower() for r in recommendations}
        for panel_name in STANDARD_PANEL:
            vaccine_id = to_internal(panel_name)
            if vaccine_id in processed:
                continue
            processed.add(vaccine_id)

            display = self._display_name(panel_name, age_years)
            rec = self._evaluate(vaccine_id, display, [], request, current_date)
            if rec is None:
                continue
            key = rec.vaccine_name.strip().lower()
            if key in seen_names:
                continue
            seen_names.add(key)
            recommendations.append(rec)

        recommendations.sort(key=lambda r: r.vaccine_name.lower())

        result = CatchUpResult(
            patient_age=format_patient_age(birth_date, current_date),
            recommendations=recommendations,
            cdc_version=self.cdc_version,
            processed_at=self.clock(),
        )

        logger.info(
            f"Generated {len(recommendations)} recommendations for patient "
            f"aged {result.patient_age} as of {current_date.isoformat()}"
        )

        if self.store is not None:
            self.store.save(request, result)

        return result

    def _merge_history(self, request: CatchUpRequest) -> dict[str, _MergedHistory]:
        merged: dict[str, _MergedHistory] = {}
        for entry in request.vaccine_history:
            vaccine_id = to_internal(entry.vaccine_name)
            if not vaccine_id:
                logger.debug("Skipping history entry with no vaccine name")
                continue
            if vaccine_id not in merged:
                merged[vaccine_id] = _MergedHistory(vaccine_id, entry.vaccine_name)
            merged[vaccine_id].doses.extend(entry.doses)
        return merged

    def _display_name(self, name: str, age_years: int) -> str:
        if is_recognized(name):
            return get_age_specific_display(name, age_years)
        return name.strip()

    def _evaluate(
        self,
        vaccine_id: str,
        display_name: str,
        doses: list[DoseRecord],
        request: CatchUpRequest,
        current_date: date,
    ) -> Recommendation | None:
        validation = validate_doses(
            vaccine_id,
            doses,
            request.birth_date,
            self.grace_period_days,
            conditions=request.special_conditions,
        )
        if validation.excluded_doses:
            logger.debug(
                f"{vaccine_id}: {len(validation.excluded_doses)} dose(s) given too early"
            )

        ctx = VaccineContext(
            vaccine_id=vaccine_id,
            display_name=display_name,
            birth_date=request.birth_date,
            current_date=current_date,
            counted_doses=validation.valid_doses,
            raw_doses=doses,
            conditions=request.special_conditions,
            immunity_evidence=request.immunity_evidence,
            grace_period_days=self.grace_period_days,
        )

        try:
            rec = evaluate(ctx, validation.notes)
        except Exception:
            logger.exception(f"Recommender for {vaccine_id} failed")
            raise

        if rec is not None:
            logger.debug(
                f"{vaccine_id}: {rec.decision_type.value if rec.decision_type else 'none'}"
                f" complete={rec.series_complete}"
            )
        return rec


def generate_catchup_recommendations(request: CatchUpRequest | dict) -> CatchUpResult:
    """Generate recommendations with a default engine."""
    return CatchUpRulesEngine().generate_catchup_recommendations(request)
