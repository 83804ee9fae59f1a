"""Data models for the catch-up recommendation engine.

Request-side models (DoseRecord, VaccineHistoryEntry, SpecialConditions,
CatchUpRequest) are parsed from the wire shape produced by the HTTP
layer or the history parser; result-side models (Recommendation,
CatchUpResult) serialize back to it with to_dict(). The wire shape uses
camelCase keys and YYYY-MM-DD dates.
"""

import re
from dataclasses import dataclass, field, fields
from datetime import date, datetime
from enum import Enum

from .rules.date_math import DateParseError, parse_date

__all__ = [
    "DateParseError",
    "DecisionType",
    "DoseRecord",
    "VaccineHistoryEntry",
    "SpecialConditions",
    "Recommendation",
    "CatchUpRequest",
    "CatchUpResult",
]

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def _snake_case(key: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def _camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


_TRUE_STRINGS = {"true", "yes", "1"}
_FALSE_STRINGS = {"false", "no", "0", ""}


def _parse_flag(value, key: str) -> bool:
    """Parse a wire boolean. Strings are matched case-insensitively.

    Raises:
        ValueError: If the value is not a recognizable boolean.
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise ValueError(f"Invalid boolean for {key}: {value!r}")


class DecisionType(str, Enum):
    """Why a recommendation is what it is."""
    ROUTINE = "routine"
    CATCH_UP = "catch-up"
    SHARED_CLINICAL_DECISION = "shared-clinical-decision"
    RISK_BASED = "risk-based"
    NOT_RECOMMENDED = "not-recommended"
    INTERNATIONAL_ADVISORY = "international-advisory"
    AGED_OUT = "aged-out"


@dataclass(frozen=True)
class DoseRecord:
    """A single administered dose."""
    date: date
    product: str | None = None

    def to_dict(self) -> dict:
        data = {"date": self.date.isoformat()}
        if self.product:
            data["product"] = self.product
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "DoseRecord":
        return cls(
            date=parse_date(data.get("date"), "dose date"),
            product=data.get("product") or None,
        )


@dataclass
class VaccineHistoryEntry:
    """Doses recorded under one vaccine name."""
    vaccine_name: str
    doses: list[DoseRecord] = field(default_factory=list)

    def sorted_doses(self) -> list[DoseRecord]:
        return sorted(self.doses, key=lambda d: d.date)

    def to_dict(self) -> dict:
        return {
            "vaccineName": self.vaccine_name,
            "doses": [d.to_dict() for d in self.doses],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "VaccineHistoryEntry":
        return cls(
            vaccine_name=data.get("vaccineName") or data.get("vaccine_name") or "",
            doses=[DoseRecord.from_dict(d) for d in data.get("doses") or []],
        )


@dataclass(frozen=True)
class SpecialConditions:
    """Risk conditions that modify CDC recommendations. All default False."""
    immunocompromised: bool = False
    pregnancy: bool = False
    hiv_infection: bool = False
    asplenia: bool = False
    cochlear_implant: bool = False
    csf_leak: bool = False
    diabetes: bool = False
    chronic_heart_disease: bool = False
    chronic_lung_disease: bool = False
    chronic_liver_disease: bool = False
    chronic_kidney_disease: bool = False

    def active(self) -> list[str]:
        """Names of conditions that are set."""
        return [f.name for f in fields(self) if getattr(self, f.name)]

    def to_dict(self) -> dict:
        return {_camel_case(f.name): getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: dict | None) -> "SpecialConditions":
        """Accepts camelCase (hivInfection) or snake_case (hiv_infection) keys.

        Unknown keys are ignored.
        """
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            name = _snake_case(key)
            if name in known:
                values[name] = _parse_flag(value, key)
        return cls(**values)


@dataclass
class Recommendation:
    """Clinical recommendation for a single vaccine."""
    vaccine_name: str  # Display name, age-sensitive (DTaP vs Tdap)
    recommendation_text: str
    series_complete: bool = False
    next_dose_date: date | None = None
    notes: list[str] = field(default_factory=list)
    decision_type: DecisionType | None = None
    contraindications: list[str] | None = None
    precautions: list[str] | None = None
    special_situations: list[str] | None = None

    def to_dict(self) -> dict:
        data = {
            "vaccineName": self.vaccine_name,
            "recommendationText": self.recommendation_text,
            "seriesComplete": self.series_complete,
            "notes": list(self.notes),
        }
        if self.next_dose_date is not None:
            data["nextDoseDate"] = self.next_dose_date.isoformat()
        if self.decision_type is not None:
            data["decisionType"] = self.decision_type.value
        if self.contraindications:
            data["contraindications"] = list(self.contraindications)
        if self.precautions:
            data["precautions"] = list(self.precautions)
        if self.special_situations:
            data["specialSituations"] = list(self.special_situations)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Recommendation":
        next_dose = data.get("nextDoseDate")
        decision = data.get("decisionType")
        return cls(
            vaccine_name=data["vaccineName"],
            recommendation_text=data["recommendationText"],
            series_complete=bool(data.get("seriesComplete", False)),
            next_dose_date=parse_date(next_dose, "nextDoseDate") if next_dose else None,
            notes=list(data.get("notes") or []),
            decision_type=DecisionType(decision) if decision else None,
            contraindications=data.get("contraindications"),
            precautions=data.get("precautions"),
            special_situations=data.get("specialSituations"),
        )


@dataclass
class CatchUpRequest:
    """Input to the recommendation engine."""
    birth_date: date
    current_date: date | None = None  # Defaults to today
    vaccine_history: list[VaccineHistoryEntry] = field(default_factory=list)
    special_conditions: SpecialConditions = field(default_factory=SpecialConditions)
    immunity_evidence: dict[str, bool] = field(default_factory=dict)

    def to_dict(self) -> dict:
        data = {
            "birthDate": self.birth_date.isoformat(),
            "vaccineHistory": [e.to_dict() for e in self.vaccine_history],
            "specialConditions": self.special_conditions.to_dict(),
            "immunityEvidence": dict(self.immunity_evidence),
        }
        if self.current_date is not None:
            data["currentDate"] = self.current_date.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "CatchUpRequest":
        """Parse the wire shape.

        Raises:
            DateParseError: If birthDate, currentDate or any dose date is
                malformed.
            ValueError: If a special condition or immunity flag is not a
                boolean.
        """
        current = data.get("currentDate")
        return cls(
            birth_date=parse_date(data.get("birthDate"), "birthDate"),
            current_date=parse_date(current, "currentDate") if current else None,
            vaccine_history=[
                VaccineHistoryEntry.from_dict(e) for e in data.get("vaccineHistory") or []
            ],
            special_conditions=SpecialConditions.from_dict(data.get("specialConditions")),
            immunity_evidence={
                str(k): _parse_flag(v, k) for k, v in (data.get("immunityEvidence") or {}).items()
            },
        )


@dataclass
class CatchUpResult:
    """Output of the recommendation engine."""
    patient_age: str
    recommendations: list[Recommendation]
    cdc_version: str
    processed_at: datetime

    def get(self, vaccine_name: str) -> Recommendation | None:
        """Find a recommendation by display name (case-insensitive)."""
        wanted = vaccine_name.strip().lower()
        for rec in self.recommendations:
            if rec.vaccine_name.lower() == wanted:
                return rec
        return None

    def to_dict(self) -> dict:
        return {
            "patientAge": self.patient_age,
            "recommendations": [r.to_dict() for r in self.recommendations],
            "cdcVersion": self.cdc_version,
            "processedAt": self.processed_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CatchUpResult":
        return cls(
            patient_age=data["patientAge"],
            recommendations=[Recommendation.from_dict(r) for r in data.get("recommendations", [])],
            cdc_version=data["cdcVersion"],
            processed_at=datetime.fromisoformat(data["processedAt"]),
        )
