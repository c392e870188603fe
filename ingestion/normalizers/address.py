"""
Address normalization (identity key) and display formatting (cosmetic)
"""

import re
from typing import Optional

STREET_ABBREVIATIONS = {
    "STREET": "ST",
    "AVENUE": "AVE",
    "BOULEVARD": "BLVD",
    "DRIVE": "DR",
    "ROAD": "RD",
    "LANE": "LN",
    "COURT": "CT",
    "CIRCLE": "CIR",
    "PLACE": "PL",
    "PARKWAY": "PKWY",
    "HIGHWAY": "HWY",
    "TERRACE": "TER",
    "TRAIL": "TRL",
    "NORTH": "N",
    "SOUTH": "S",
    "EAST": "E",
    "WEST": "W",
    "NORTHEAST": "NE",
    "NORTHWEST": "NW",
    "SOUTHEAST": "SE",
    "SOUTHWEST": "SW",
    "APARTMENT": "APT",
    "SUITE": "STE",
    "BUILDING": "BLDG",
    "FLOOR": "FL",
}

_ABBREVIATION_RE = re.compile(r"\b(" + "|".join(STREET_ABBREVIATIONS) + r")\b")
_WHITESPACE_RE = re.compile(r"\s+")
_PUNCTUATION_RE = re.compile(r"[.,#]")
_UNIT_PREFIX_RES = [
    (re.compile(r"\bSUITE\b\s*"), "STE "),
    (re.compile(r"\b(APT|UNIT|BLDG|STE)\s*(?=\d)"), r"\1 "),
]


def normalize_address(raw: Optional[str]) -> str:
    """
    Uppercase, strip punctuation, and abbreviate street types and directions.

    "100 Main Street, Suite 4" -> "100 MAIN ST STE 4"
    """
    if not raw:
        return ""

    normalized = _WHITESPACE_RE.sub(" ", raw.upper().strip())
    normalized = _PUNCTUATION_RE.sub("", normalized)

    for pattern, replacement in _UNIT_PREFIX_RES:
        normalized = pattern.sub(replacement, normalized)

    normalized = _ABBREVIATION_RE.sub(lambda m: STREET_ABBREVIATIONS[m.group(1)], normalized)

    return _WHITESPACE_RE.sub(" ", normalized).strip()


def to_title_case(value: Optional[str]) -> str:
    if not value:
        return ""

    titled = re.sub(r"\b\w", lambda m: m.group().upper(), value.lower())
    titled = re.sub(r"\b(Llc|Inc|Lp|Corp)\b", lambda m: m.group().upper(), titled)
    titled = re.sub(r"\bMc(\w)", lambda m: "Mc" + m.group(1).upper(), titled)
    titled = re.sub(r"\bO'(\w)", lambda m: "O'" + m.group(1).upper(), titled)
    return titled


def format_display_address(
    raw_address: Optional[str],
    raw_city: Optional[str] = None,
    raw_state: Optional[str] = None,
    raw_zip: Optional[str] = None,
) -> str:
    """'100 MAIN ST', 'AUSTIN', 'tx', '78701' -> '100 Main St, Austin, TX 78701'"""
    address = to_title_case(raw_address or "").strip()
    city = to_title_case(raw_city or "").strip()
    state = (raw_state or "").upper().strip()
    zip_code = (raw_zip or "").strip()

    city_state = ", ".join(part for part in (city, state) if part)
    city_state_zip = " ".join(part for part in (city_state, zip_code) if part)

    if not city_state_zip:
        return address
    if not address:
        return city_state_zip
    return f"{address}, {city_state_zip}"
