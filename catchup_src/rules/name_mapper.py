"""Vaccine name normalization.

Clinician-entered histories name the same series many ways: brand names
(Pentacel, Prevnar 20), abbreviations (DTaP, PCV13), CVX-style long names
("Pneumococcal Conjugate, Unspecified") or plain free text. Everything is
mapped to one canonical internal code before doses are merged and
evaluated.

Resolution order:
1. Exact, case-insensitive match against standard names, display names,
   abbreviations and product variants.
2. Ordered substring-token fallback. Order is significant: specific
   tokens ("meningococcal b") must be tried before generic ones
   ("meningococcal").
3. The lowercased, trimmed input itself (unrecognized).
"""

from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType


@dataclass(frozen=True)
class VaccineMapping:
    """One recognized vaccine series and all of its known spellings."""
    standard_name: str
    internal_code: str
    display_name: str
    abbreviations: tuple[str, ...] = ()
    variants: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "standard_name": self.standard_name,
            "internal_code": self.internal_code,
            "display_name": self.display_name,
            "abbreviations": list(self.abbreviations),
            "variants": list(self.variants),
        }


# =============================================================================
# Canonical Vaccine Identities
# =============================================================================

HEPATITIS_B = "hepatitis_b"
ROTAVIRUS = "rotavirus"
DTAP_TDAP = "dtap_tdap"
HIB = "hib"
PNEUMOCOCCAL = "pneumococcal"
POLIO = "polio"
INFLUENZA = "influenza"
MMR = "mmr"
VARICELLA = "varicella"
HEPATITIS_A = "hepatitis_a"
HPV = "hpv"
MENINGOCOCCAL_ACWY = "meningococcal_acwy"
MENINGOCOCCAL_B = "meningococcal_b"
COVID19 = "covid19"
RSV = "rsv"
DENGUE = "dengue"
JAPANESE_ENCEPHALITIS = "japanese_encephalitis"
YELLOW_FEVER = "yellow_fever"
TYPHOID = "typhoid"
CHOLERA = "cholera"

# Age (years) at which the combined diphtheria/tetanus/pertussis series
# switches from the pediatric DTaP product to adolescent Tdap
TDAP_DISPLAY_AGE_YEARS = 7


# =============================================================================
# Mapping Table
# =============================================================================

VACCINE_MAPPINGS: tuple[VaccineMapping, ...] = (
    VaccineMapping(
        standard_name="Hepatitis B",
        internal_code=HEPATITIS_B,
        display_name="Hepatitis B",
        abbreviations=("HepB", "Hep B"),
        variants=(
            "hepatitis b", "hep b", "hepb", "hepatitis-b", "hbv", "engerix-b",
            "recombivax hb", "recombivax", "heplisav-b", "heplisav",
        ),
    ),
    VaccineMapping(
        standard_name="Rotavirus",
        internal_code=ROTAVIRUS,
        display_name="Rotavirus",
        abbreviations=("RV", "RV1", "RV5"),
        variants=(
            "rotavirus", "rv", "rv1", "rv5", "rotarix", "rotateq",
            "monovalent", "pentavalent",
        ),
    ),
    VaccineMapping(
        standard_name="Diphtheria, Tetanus, and acellular Pertussis",
        internal_code=DTAP_TDAP,
        display_name="DTaP",
        abbreviations=("DTaP", "DTP"),
        variants=(
            "dtap", "dtp", "diphtheria", "tetanus", "pertussis",
            "diphtheria-tetanus-pertussis", "diphtheria tetanus pertussis",
            "diphtheria, tetanus, and pertussis", "diphtheria tetanus and pertussis",
            "infanrix", "daptacel", "pediarix", "pentacel", "kinrix", "quadracel",
            "vaxelis",
        ),
    ),
    VaccineMapping(
        standard_name="Tetanus, Diphtheria, and acellular Pertussis",
        internal_code=DTAP_TDAP,
        display_name="Tdap",
        abbreviations=("Tdap", "Td"),
        variants=(
            "tdap", "td", "tetanus-diphtheria-pertussis",
            "tetanus diphtheria pertussis", "adacel", "boostrix",
        ),
    ),
    VaccineMapping(
        standard_name="Haemophilus influenzae type b",
        internal_code=HIB,
        display_name="HIB",
        abbreviations=("Hib", "HIB"),
        variants=(
            "hib", "haemophilus", "h influenzae", "haemophilus influenzae",
            "haemophilus influenzae type b", "pedvaxhib", "acthib", "hiberix",
            "menhibrix", "h. influenzae", "h.influenzae",
        ),
    ),
    VaccineMapping(
        standard_name="Pneumococcal",
        internal_code=PNEUMOCOCCAL,
        display_name="Pneumococcal (PCV)",
        abbreviations=("PCV", "PCV13", "PCV15", "PCV20", "PPSV23"),
        variants=(
            "pcv", "pcv13", "pcv15", "pcv20", "pneumococcal", "pneumo",
            "prevnar", "prevnar13", "prevnar 13", "prevnar20", "prevnar 20",
            "vaxneuvance", "ppsv23", "pneumovax", "pneumovax23", "ppsv", "ppv",
        ),
    ),
    VaccineMapping(
        standard_name="Inactivated Poliovirus",
        internal_code=POLIO,
        display_name="Polio (IPV)",
        abbreviations=("IPV", "OPV"),
        variants=(
            "ipv", "polio", "poliovirus", "inactivated polio", "opv",
            "oral polio", "ipol", "poliovax",
        ),
    ),
    VaccineMapping(
        standard_name="Influenza",
        internal_code=INFLUENZA,
        display_name="Influenza",
        abbreviations=("Flu",),
        variants=(
            "influenza", "flu", "flu shot", "seasonal flu", "trivalent",
            "quadrivalent", "tiv", "qiv", "laiv", "flumist", "fluzone",
            "fluarix", "fluvirin", "flucelvax", "afluria",
        ),
    ),
    VaccineMapping(
        standard_name="Measles, Mumps, and Rubella",
        internal_code=MMR,
        display_name="MMR",
        abbreviations=("MMR",),
        variants=(
            "mmr", "measles", "mumps", "rubella", "german measles",
            "m-m-r", "priorix", "measles mumps rubella",
        ),
    ),
    VaccineMapping(
        standard_name="Varicella",
        internal_code=VARICELLA,
        display_name="Varicella",
        abbreviations=("VAR", "VZV"),
        variants=(
            "varicella", "var", "chickenpox", "chicken pox", "vzv",
            "varivax", "proquad", "mmrv",
        ),
    ),
    VaccineMapping(
        standard_name="Hepatitis A",
        internal_code=HEPATITIS_A,
        display_name="Hepatitis A",
        abbreviations=("HepA", "Hep A", "HAV"),
        variants=(
            "hepa", "hepatitis a", "hepatitis-a", "hep a", "hav",
            "havrix", "vaqta", "twinrix", "hepatitis_a",
        ),
    ),
    VaccineMapping(
        standard_name="Human Papillomavirus",
        internal_code=HPV,
        display_name="HPV",
        abbreviations=("HPV",),
        variants=(
            "hpv", "gardasil", "cervarix", "human papillomavirus",
            "hpv9", "hpv4", "hpv2", "gardasil 9", "gardasil9",
        ),
    ),
    VaccineMapping(
        standard_name="Meningococcal ACWY",
        internal_code=MENINGOCOCCAL_ACWY,
        display_name="MenACWY",
        abbreviations=("MenACWY", "MCV4", "MenA"),
        variants=(
            "menacwy", "mena", "menacwy-d", "menacwy-crm", "menveo",
            "menquadfi", "meningococcal", "mcv4", "menactra", "nimenrix",
            "men acwy", "meningococcal acwy",
        ),
    ),
    VaccineMapping(
        standard_name="Meningococcal B",
        internal_code=MENINGOCOCCAL_B,
        display_name="MenB",
        abbreviations=("MenB",),
        variants=(
            "menb", "meningococcal b", "bexsero", "trumenba",
            "men b", "meningococcal serogroup b", "menb-fhbp", "menb-4c",
        ),
    ),
    VaccineMapping(
        standard_name="COVID-19",
        internal_code=COVID19,
        display_name="COVID-19",
        abbreviations=("COVID",),
        variants=(
            "covid", "covid-19", "covid19", "coronavirus", "sars-cov-2",
            "pfizer", "moderna", "johnson", "janssen", "j&j", "novavax",
            "comirnaty", "spikevax", "pfizer-biontech", "bnt162b2",
        ),
    ),
    VaccineMapping(
        standard_name="Respiratory Syncytial Virus",
        internal_code=RSV,
        display_name="RSV",
        abbreviations=("RSV",),
        variants=(
            "rsv", "respiratory syncytial virus", "respiratory syncytial",
            "abrysvo", "arexvy", "synagis", "beyfortus",
        ),
    ),
    VaccineMapping(
        standard_name="Dengue",
        internal_code=DENGUE,
        display_name="Dengue",
        abbreviations=("DEN",),
        variants=("dengue", "denv", "dengvaxia"),
    ),
    VaccineMapping(
        standard_name="Japanese Encephalitis",
        internal_code=JAPANESE_ENCEPHALITIS,
        display_name="Japanese Encephalitis",
        abbreviations=("JE",),
        variants=(
            "japanese encephalitis", "je", "ixiaro", "japanese encephalitis virus",
        ),
    ),
    VaccineMapping(
        standard_name="Yellow Fever",
        internal_code=YELLOW_FEVER,
        display_name="Yellow Fever",
        abbreviations=("YF",),
        variants=(
            "yellow fever", "yf", "yf-vax", "stamaril", "yellow fever vaccine",
        ),
    ),
    VaccineMapping(
        standard_name="Typhoid",
        internal_code=TYPHOID,
        display_name="Typhoid",
        abbreviations=("Vi", "Ty21a"),
        variants=(
            "typhoid", "typhoid fever", "vi", "ty21a", "typhim vi", "vivotif",
        ),
    ),
    VaccineMapping(
        standard_name="Cholera",
        internal_code=CHOLERA,
        display_name="Cholera",
        abbreviations=("CVD",),
        variants=("cholera", "vaxchora", "cholera vaccine", "cvd"),
    ),
)


# =============================================================================
# Substring Token Fallback (ORDER IS SIGNIFICANT)
# =============================================================================

KEY_TOKENS: tuple[tuple[str, str], ...] = (
    # Pneumococcal
    ("pneumococcal conjugate", PNEUMOCOCCAL),
    ("pneumococcal polysaccharide", PNEUMOCOCCAL),
    ("pneumococcal", PNEUMOCOCCAL),
    ("pcv", PNEUMOCOCCAL),
    ("prevnar", PNEUMOCOCCAL),
    ("pneumovax", PNEUMOCOCCAL),

    # Hepatitis B before hepatitis A
    ("hepatitis b", HEPATITIS_B),
    ("hep b", HEPATITIS_B),
    ("hepb", HEPATITIS_B),
    ("hepatitis a", HEPATITIS_A),
    ("hep a", HEPATITIS_A),
    ("hepa", HEPATITIS_A),

    # Polio
    ("poliovirus", POLIO),
    ("polio", POLIO),
    ("ipv", POLIO),

    # Rotavirus
    ("rotavirus", ROTAVIRUS),
    ("rotarix", ROTAVIRUS),
    ("rotateq", ROTAVIRUS),

    # Varicella
    ("varicella", VARICELLA),
    ("chickenpox", VARICELLA),
    ("chicken pox", VARICELLA),

    # MMR
    ("mmr", MMR),
    ("measles", MMR),
    ("mumps", MMR),
    ("rubella", MMR),

    # DTaP/Tdap
    ("dtap", DTAP_TDAP),
    ("tdap", DTAP_TDAP),
    ("diphtheria", DTAP_TDAP),
    ("pertussis", DTAP_TDAP),

    # Hib
    ("haemophilus", HIB),
    ("hib", HIB),

    # Influenza
    ("influenza", INFLUENZA),
    ("flu", INFLUENZA),

    # HPV
    ("papillomavirus", HPV),
    ("hpv", HPV),
    ("gardasil", HPV),

    # Meningococcal B before any ACWY token
    ("meningococcal_b", MENINGOCOCCAL_B),
    ("meningococcal b", MENINGOCOCCAL_B),
    ("meningococcal-b", MENINGOCOCCAL_B),
    ("menb", MENINGOCOCCAL_B),
    ("bexsero", MENINGOCOCCAL_B),
    ("trumenba", MENINGOCOCCAL_B),
    ("serogroup b", MENINGOCOCCAL_B),
    ("meningococcal_acwy", MENINGOCOCCAL_ACWY),
    ("meningococcal acwy", MENINGOCOCCAL_ACWY),
    ("meningococcal-acwy", MENINGOCOCCAL_ACWY),
    ("menacwy", MENINGOCOCCAL_ACWY),
    ("menactra", MENINGOCOCCAL_ACWY),
    ("menveo", MENINGOCOCCAL_ACWY),
    # Generic meningococcal defaults to ACWY; must stay last of the group
    ("meningococcal", MENINGOCOCCAL_ACWY),

    # COVID-19
    ("covid", COVID19),
    ("coronavirus", COVID19),
    ("sars-cov", COVID19),

    # RSV
    ("rsv", RSV),
    ("respiratory syncytial", RSV),

    # Dengue
    ("dengue", DENGUE),
    ("dengvaxia", DENGUE),

    # Travel
    ("japanese encephalitis", JAPANESE_ENCEPHALITIS),
    ("yellow fever", YELLOW_FEVER),
    ("typhoid", TYPHOID),
    ("cholera", CHOLERA),
)


class VaccineNameMapper:
    """Immutable lookup tables built once from VACCINE_MAPPINGS.

    Use get_name_mapper() for the shared instance; the tables are
    read-only so the instance is safe to share across threads.
    """

    def __init__(
        self,
        mappings: tuple[VaccineMapping, ...] = VACCINE_MAPPINGS,
        key_tokens: tuple[tuple[str, str], ...] = KEY_TOKENS,
    ):
        name_to_internal: dict[str, str] = {}
        by_code: dict[str, VaccineMapping] = {}

        for mapping in mappings:
            # First entry for a code wins (DTaP before Tdap)
            by_code.setdefault(mapping.internal_code, mapping)

            spellings = (
                mapping.standard_name,
                mapping.display_name,
                mapping.internal_code,
                *mapping.abbreviations,
                *mapping.variants,
            )
            for spelling in spellings:
                name_to_internal.setdefault(spelling.lower(), mapping.internal_code)

        self._name_to_internal = MappingProxyType(name_to_internal)
        self._by_code = MappingProxyType(by_code)
        self._key_tokens = tuple(key_tokens)

    def to_internal(self, name: str | None) -> str:
        """Resolve any vaccine name to its canonical internal code.

        Never raises; unrecognized names come back lowercased and trimmed.
        """
        if not name:
            return ""
        normalized = name.strip().lower()

        exact = self._name_to_internal.get(normalized)
        if exact:
            return exact

        for token, code in self._key_tokens:
            if token in normalized:
                return code

        return normalized

    def is_recognized(self, name: str | None) -> bool:
        return self.to_internal(name) in self._by_code

    def get_mapping(self, name: str | None) -> VaccineMapping | None:
        return self._by_code.get(self.to_internal(name))

    def to_display(self, name: str | None) -> str:
        """Display name for a vaccine, or the input unchanged if unrecognized."""
        mapping = self.get_mapping(name)
        return mapping.display_name if mapping else (name or "")

    def to_standard(self, name: str | None) -> str:
        """CDC standard name for a vaccine, or the input unchanged."""
        mapping = self.get_mapping(name)
        return mapping.standard_name if mapping else (name or "")

    def display_name(self, name: str | None, age_years: int | None = None) -> str:
        """Age-sensitive display name.

        The combined diphtheria/tetanus/pertussis identity reads "DTaP"
        under 7 years and "Tdap" from 7 years on.
        """
        code = self.to_internal(name)
        if code == DTAP_TDAP and age_years is not None:
            return "Tdap" if age_years >= TDAP_DISPLAY_AGE_YEARS else "DTaP"
        return self.to_display(name)

    def all_mappings(self) -> tuple[VaccineMapping, ...]:
        """One mapping per canonical code."""
        return tuple(self._by_code.values())


@lru_cache(maxsize=1)
def get_name_mapper() -> VaccineNameMapper:
    """Shared read-only mapper instance."""
    return VaccineNameMapper()


def to_internal(name: str | None) -> str:
    return get_name_mapper().to_internal(name)


def is_recognized(name: str | None) -> bool:
    return get_name_mapper().is_recognized(name)


def get_age_specific_display(name: str | None, age_years: int) -> str:
    return get_name_mapper().display_name(name, age_years)
