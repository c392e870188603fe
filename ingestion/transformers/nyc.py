"""
New York City: Socrata pool inspections.

NYC publishes violation counts instead of a result; the result text is
derived from them.
"""

from typing import Any, Dict
from ingestion.transformers.base import build_record, join_address, parse_number, require_date, text_or_none
from schemas.ingestion import CanonicalRecord, RawPayload
from schemas.source import SourceConfig

BOROUGH_NAMES = {
    "MA": "Manhattan",
    "BX": "Bronx",
    "QU": "Queens",
    "BK": "Brooklyn",
    "SI": "Staten Island",
}


def infer_result(data: Dict[str, Any]) -> str:
    all_violations = parse_number(data.get("of_all_violations")) or 0
    critical = parse_number(data.get("of_critical_violations")) or 0
    public_health_hazards = parse_number(data.get("of_phh_violations")) or 0

    if all_violations == 0:
        return "Pass"
    if critical > 0 or public_health_hazards > 0:
        return "Fail - Critical Violations"
    return "Fail - Violations Found"


def transform_nyc(raw: RawPayload, source: SourceConfig) -> CanonicalRecord:
    d = raw.data

    borough = str(d.get("bo") or "").upper()

    return build_record(
        raw,
        facility={
            "external_id": str(d.get("accela") or ""),
            "raw_name": str(d.get("facility_name") or "Unknown Facility"),
            "raw_address": join_address([d.get("address_no"), d.get("address_st")]) or "Unknown Address",
            "raw_city": BOROUGH_NAMES.get(borough, "New York"),
            "raw_state": "NY",
            "raw_zip": text_or_none(d.get("zip")),
            "latitude": parse_number(d.get("lat")),
            "longitude": parse_number(d.get("long")),
        },
        inspection={
            "inspection_date": require_date(raw, "inspection_date"),
            "raw_inspection_type": text_or_none(d.get("inspection_type")),
            "raw_result": infer_result(d),
        },
    )
