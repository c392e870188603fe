"""
Mecklenburg County, NC: environmental-health portal rows.

NC grades pools A/B/C on a demerit score (lower is better). The grade
drives the result text; the city is pulled from the composite address.
"""

import re
from ingestion.transformers.base import build_record, parse_number, require_date, text_or_none
from schemas.ingestion import CanonicalRecord, RawPayload
from schemas.source import SourceConfig

CITY_RE = re.compile(r",\s*([^,]+),?\s*NC\b", re.IGNORECASE)

GRADE_RESULTS = {
    "A": "Pass - Grade A",
    "B": "Pass - Grade B",
    "C": "Conditional - Grade C",
}


def grade_to_result(grade) -> str:
    grade = (grade or "").upper().strip()
    if grade in GRADE_RESULTS:
        return GRADE_RESULTS[grade]
    if grade in ("", "N/A"):
        return "Inspected"
    return f"Grade: {grade}"


def transform_mecklenburg(raw: RawPayload, source: SourceConfig) -> CanonicalRecord:
    d = raw.data

    address = str(d.get("address") or "")
    city_match = CITY_RE.search(address)

    state_id = d.get("stateId") or raw.external_id
    facility_external_id = re.sub(r"[^a-zA-Z0-9_-]", "_", f"mecklenburg-{state_id}")

    score = parse_number(d.get("score"))

    return build_record(
        raw,
        facility={
            "external_id": facility_external_id,
            "raw_name": str(d.get("facilityName") or "Unknown Pool"),
            "raw_address": address,
            "raw_city": city_match.group(1).strip() if city_match else "Charlotte",
            "raw_state": "NC",
        },
        inspection={
            "inspection_date": require_date(raw, "inspectionDate"),
            "raw_inspection_type": text_or_none(d.get("establishmentType")) or "Pool Inspection",
            "raw_result": grade_to_result(d.get("grade")),
            "raw_score": score,
            "demerits": score,
            "source_url": text_or_none(d.get("detailUrl")),
            "report_url": text_or_none(d.get("detailUrl")),
        },
    )
