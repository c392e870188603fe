"""
Houston, TX: records produced by the portal scraper.

The portal publishes no explicit result; zero violations reads as a pass
and any violation leaves the outcome undetermined.
"""

from ingestion.transformers.base import US_DATE_RE, build_record, require_date, text_or_none
from schemas.ingestion import CanonicalRecord, RawPayload
from schemas.source import SourceConfig

PORTAL_URL = "https://tx.healthinspections.us/houston"


def transform_houston(raw: RawPayload, source: SourceConfig) -> CanonicalRecord:
    d = raw.data

    date_text = str(d.get("inspectionDate") or "")
    match = US_DATE_RE.search(date_text)
    inspection_date = require_date(raw, "inspectionDate", match.group(0) if match else date_text)

    violations = d.get("violations") or []
    violation_count = len(violations)
    base_url = (source.endpoint or PORTAL_URL).rstrip("/")

    return build_record(
        raw,
        facility={
            "external_id": str(d.get("facilityId") or raw.external_id),
            "raw_name": str(d.get("facilityName") or "Unknown Facility"),
            "raw_address": str(d.get("address") or ""),
            "raw_city": text_or_none(d.get("city")) or "HOUSTON",
            "raw_state": "TX",
            "raw_zip": text_or_none(d.get("zip")),
        },
        inspection={
            "inspection_date": inspection_date,
            "raw_inspection_type": "Routine",
            "raw_result": "Pass" if violation_count == 0 else "Violations Found",
            "raw_score": str(violation_count) if violation_count else None,
            "demerits": float(violation_count),
            "source_url": f"{base_url}/estab.cfm?facilityID={d.get('facilityId')}",
        },
    )
