"""
Pinellas County, FL: document index rows (YYYYMMDD dates).

The index lists inspection reports, not outcomes, so no result is set.
"""

from ingestion.transformers.base import build_record, first_present, require_date, text_or_none
from schemas.ingestion import CanonicalRecord, RawPayload
from schemas.source import SourceConfig


def transform_pinellas(raw: RawPayload, source: SourceConfig) -> CanonicalRecord:
    d = raw.data

    date_field = "inspectionDate" if d.get("inspectionDate") else "docDate"

    return build_record(
        raw,
        facility={
            "external_id": f"pinellas-{d.get('permitNumber') or ''}",
            "raw_name": str(d.get("facilityName") or "Unknown Facility"),
            "raw_address": str(d.get("address") or ""),
            "raw_city": "St. Petersburg",
            "raw_state": "FL",
            "raw_zip": text_or_none(first_present(d, "zipCode")),
        },
        inspection={
            "inspection_date": require_date(raw, date_field),
            "raw_inspection_type": text_or_none(d.get("documentType")) or "Inspection",
        },
    )
