"""
Facility name normalization (identity key) and display formatting (cosmetic)
"""

import re
from typing import Optional

_WHITESPACE_RE = re.compile(r"\s+")
_QUOTES_RE = re.compile(r"['\"]")
_LEADING_THE_RE = re.compile(r"^THE\s+")
_GENERIC_SUFFIX_RE = re.compile(r"\s+(SWIMMING POOL|AQUATIC CENTER|HOT TUB|POOL|SPA)$")

# Corporate suffixes, matched only as standalone tokens
_CORPORATE_SUFFIXES = [
    (re.compile(r"\bL\.?L\.?C\.?(?=\s|$)"), "LLC"),
    (re.compile(r"\bINC\.?(?=\s|$)"), "INC"),
    (re.compile(r"\bCORP\.?(?=\s|$)"), "CORP"),
    (re.compile(r"\bCO\.?(?=\s|$)"), "CO"),
    (re.compile(r"\bL\.?P\.?(?=\s|$)"), "LP"),
]


def normalize_facility_name(raw: Optional[str]) -> str:
    """
    Identity-key form of a facility name.

    "The Oaks Swimming Pool" -> "OAKS"
    "Acme Pools, L.L.C." -> "ACME POOLS, LLC"
    """
    if not raw:
        return ""

    normalized = _WHITESPACE_RE.sub(" ", raw.upper().strip())
    normalized = _QUOTES_RE.sub("", normalized)
    normalized = _LEADING_THE_RE.sub("", normalized)
    normalized = _GENERIC_SUFFIX_RE.sub("", normalized)

    for pattern, replacement in _CORPORATE_SUFFIXES:
        normalized = pattern.sub(replacement, normalized)

    return normalized.strip()


def format_display_name(raw: Optional[str]) -> str:
    if not raw:
        return ""

    display = re.sub(r"\b\w", lambda m: m.group().upper(), raw.strip().lower())
    display = re.sub(r"\b(Llc|Inc|Lp|Corp|Co)\b", lambda m: m.group().upper(), display)
    display = re.sub(r"\bMc(\w)", lambda m: "Mc" + m.group(1).upper(), display)
    display = re.sub(r"\bO'(\w)", lambda m: "O'" + m.group(1).upper(), display)
    display = re.sub(r"\bHoa\b", "HOA", display)
    display = re.sub(r"\bYmca\b", "YMCA", display)
    return _WHITESPACE_RE.sub(" ", display)
