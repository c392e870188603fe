"""
Arlington, TX: ArcGIS layer with epoch-millisecond dates.

Scores are out of 100; Texas treats 70 and above as passing, and the
score overrides the free-text Status when both are present.
"""

from ingestion.transformers.base import (
    build_record,
    join_address,
    parse_number,
    require_date,
    text_or_none,
)
from schemas.ingestion import CanonicalRecord, RawPayload
from schemas.source import SourceConfig

PASSING_SCORE = 70


def transform_arlington(raw: RawPayload, source: SourceConfig) -> CanonicalRecord:
    d = raw.data

    address = text_or_none(d.get("PropertyAddress")) or join_address(
        [d.get("PROPHOUSE"), d.get("DIR"), d.get("STREET"), d.get("TYPE")]
    )

    score = parse_number(d.get("InspectionScore"))
    raw_result = text_or_none(d.get("Status"))
    if score is not None:
        raw_result = "PASS" if score >= PASSING_SCORE else "FAIL"

    # XCoord/YCoord are state-plane, not lat/lon; only geometry is usable
    return build_record(
        raw,
        facility={
            "external_id": str(d.get("FOLDERRSN") or d.get("OBJECTID") or ""),
            "raw_name": str(d.get("FacilityName") or "Unknown Pool"),
            "raw_address": address,
            "raw_city": text_or_none(d.get("CITY")) or "Arlington",
            "raw_state": text_or_none(d.get("STATE")) or "TX",
            "raw_zip": text_or_none(d.get("ZIPCODE")),
            "latitude": parse_number(d.get("_geometry_y")),
            "longitude": parse_number(d.get("_geometry_x")),
        },
        inspection={
            "inspection_date": require_date(raw, "InspectionDate"),
            "raw_inspection_type": text_or_none(d.get("Inspection")) or text_or_none(d.get("PoolType")),
            "raw_result": raw_result,
            "raw_score": text_or_none(d.get("InspectionScore")),
        },
    )
