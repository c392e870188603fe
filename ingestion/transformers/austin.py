"""Austin, TX: Socrata pool inspections with ISO dates"""

from ingestion.transformers.base import build_record, parse_number, require_date, text_or_none
from schemas.ingestion import CanonicalRecord, RawPayload
from schemas.source import SourceConfig


def transform_austin(raw: RawPayload, source: SourceConfig) -> CanonicalRecord:
    d = raw.data

    return build_record(
        raw,
        facility={
            "external_id": str(d.get("facility_id") or ""),
            "raw_name": str(d.get("facility_name") or "Unknown Facility"),
            "raw_address": str(d.get("street_address") or ""),
            "raw_city": text_or_none(d.get("city_desc")) or "Austin",
            "raw_state": text_or_none(d.get("state_desc")) or "TX",
            "raw_zip": text_or_none(d.get("zip_code")),
            "latitude": parse_number(d.get("latitude")),
            "longitude": parse_number(d.get("longitude")),
        },
        inspection={
            "inspection_date": require_date(raw, "inspection_date"),
            "raw_inspection_type": text_or_none(d.get("inspection_type")),
            "raw_result": text_or_none(d.get("inspection_result")),
            "raw_score": text_or_none(d.get("score")),
        },
    )
