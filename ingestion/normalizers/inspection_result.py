"""
Controlled vocabularies for inspection outcome and purpose.

Lookup is an exact match on the upper-cased text first, then a whole-word
search for any mapped phrase, longest phrase first. Whole words keep
"UNSATISFACTORY" from reading as SATISFACTORY and "VIOLATIONS FOUND" from
reading as VIOLATION; longest-first keeps "NOT IN COMPLIANCE" from reading
as IN COMPLIANCE.

A phrase found after NOT, NON, NO or NEVER ("Did Not Pass", "Not
Approved") is negated. A negated passing phrase reads as FAIL; any other
negated phrase is ignored and the search moves on, so "No Violation" ends
up as OTHER.
"""

import re
from typing import Dict, List, Optional, Pattern, Tuple, TypeVar
from models.base import InspectionResult, InspectionType

E = TypeVar("E")

RESULT_MAPPINGS: Dict[str, InspectionResult] = {
    "PASS": InspectionResult.PASS,
    "PASSED": InspectionResult.PASS,
    "COMPLIANT": InspectionResult.PASS,
    "APPROVED": InspectionResult.PASS,
    "SATISFACTORY": InspectionResult.PASS,
    "IN COMPLIANCE": InspectionResult.PASS,
    "ADEQUATE": InspectionResult.PASS,

    "FAIL": InspectionResult.FAIL,
    "FAILED": InspectionResult.FAIL,
    "NON-COMPLIANT": InspectionResult.FAIL,
    "NON COMPLIANT": InspectionResult.FAIL,
    "NONCOMPLIANT": InspectionResult.FAIL,
    "NOT IN COMPLIANCE": InspectionResult.FAIL,
    "UNSATISFACTORY": InspectionResult.FAIL,
    "VIOLATION": InspectionResult.FAIL,

    "CLOSED": InspectionResult.CLOSED,
    "CLOSURE": InspectionResult.CLOSED,
    "CLOSED FOR INSPECTION": InspectionResult.CLOSED,
    "SUSPENDED": InspectionResult.CLOSED,

    "CONDITIONAL": InspectionResult.CONDITIONAL_PASS,
    "CONDITIONAL PASS": InspectionResult.CONDITIONAL_PASS,
    "CONDITIONALLY APPROVED": InspectionResult.CONDITIONAL_PASS,
    "PASS WITH CONDITIONS": InspectionResult.CONDITIONAL_PASS,

    "NOT INSPECTED": InspectionResult.NOT_INSPECTED,
    "NO INSPECTION": InspectionResult.NOT_INSPECTED,
    "CANCELLED": InspectionResult.NOT_INSPECTED,
    "CANCELED": InspectionResult.NOT_INSPECTED,
    "NO ACCESS": InspectionResult.NOT_INSPECTED,

    "PENDING": InspectionResult.PENDING,
    "IN PROGRESS": InspectionResult.PENDING,
    "SCHEDULED": InspectionResult.PENDING,
}

TYPE_MAPPINGS: Dict[str, InspectionType] = {
    "ROUTINE": InspectionType.ROUTINE,
    "REGULAR": InspectionType.ROUTINE,
    "ANNUAL": InspectionType.ROUTINE,
    "SCHEDULED": InspectionType.ROUTINE,

    "FOLLOW-UP": InspectionType.FOLLOW_UP,
    "FOLLOW_UP": InspectionType.FOLLOW_UP,
    "FOLLOWUP": InspectionType.FOLLOW_UP,
    "FOLLOW UP": InspectionType.FOLLOW_UP,
    "REINSPECTION": InspectionType.REINSPECTION,
    "RE-INSPECTION": InspectionType.REINSPECTION,

    "COMPLAINT": InspectionType.COMPLAINT,
    "COMPLAINT BASED": InspectionType.COMPLAINT,

    "OPENING": InspectionType.OPENING,
    "PRE-OPENING": InspectionType.OPENING,
    "NEW CONSTRUCTION": InspectionType.OPENING,
    "INITIAL": InspectionType.OPENING,

    "CLOSING": InspectionType.CLOSING,
    "CLOSURE": InspectionType.CLOSING,
}

_CLOSURE_WORDS = ("CLOSED", "CLOSURE", "SUSPENDED")

_NEGATION = re.compile(r"(?:\b(?:NOT|NON|NO|NEVER)|N'T)[\s-]*$")

RESULT_NEGATIONS: Dict[InspectionResult, InspectionResult] = {
    InspectionResult.PASS: InspectionResult.FAIL,
}


def _compile_fallback(mappings: Dict[str, E]) -> List[Tuple[Pattern, E]]:
    keys = sorted(mappings, key=len, reverse=True)
    return [(re.compile(r"\b" + re.escape(key) + r"\b"), mappings[key]) for key in keys]


_RESULT_FALLBACK = _compile_fallback(RESULT_MAPPINGS)
_TYPE_FALLBACK = _compile_fallback(TYPE_MAPPINGS)


def _lookup(
    raw: Optional[str],
    mappings: Dict[str, E],
    fallback: List[Tuple[Pattern, E]],
    default: E,
    negations: Optional[Dict[E, E]] = None,
) -> Optional[E]:
    if raw is None:
        return None

    normalized = " ".join(str(raw).upper().split())
    if not normalized:
        return None

    if normalized in mappings:
        return mappings[normalized]

    for pattern, value in fallback:
        match = pattern.search(normalized)
        if match is None:
            continue
        if not _NEGATION.search(normalized[:match.start()]):
            return value
        if negations and value in negations:
            return negations[value]

    return default


def normalize_inspection_result(raw: Optional[str]) -> Optional[InspectionResult]:
    """
    "PASSED" / "Satisfactory" / "IN COMPLIANCE" -> PASS
    "Closed for Inspection" -> CLOSED
    "Violations Found" -> OTHER
    "Did Not Pass" / "Not Approved" -> FAIL
    None / "" -> None
    """
    return _lookup(raw, RESULT_MAPPINGS, _RESULT_FALLBACK, InspectionResult.OTHER, RESULT_NEGATIONS)


def normalize_inspection_type(raw: Optional[str]) -> Optional[InspectionType]:
    return _lookup(raw, TYPE_MAPPINGS, _TYPE_FALLBACK, InspectionType.OTHER)


def is_closure(result: Optional[InspectionResult], raw_result: Optional[str]) -> bool:
    if result == InspectionResult.CLOSED:
        return True
    if not raw_result:
        return False

    upper = raw_result.upper()
    return any(word in upper for word in _CLOSURE_WORDS)


def is_passing(result: Optional[InspectionResult]) -> Optional[bool]:
    """True / False / None (unknown)"""
    if result in (InspectionResult.PASS, InspectionResult.CONDITIONAL_PASS):
        return True
    if result in (InspectionResult.FAIL, InspectionResult.CLOSED):
        return False
    return None
