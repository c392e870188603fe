"""Webster, TX: ArcGIS layer with geometry coordinates"""

from ingestion.transformers.base import (
    build_record,
    first_number,
    first_present,
    parse_number,
    require_date,
    text_or_none,
)
from schemas.ingestion import CanonicalRecord, RawPayload
from schemas.source import SourceConfig


def transform_webster(raw: RawPayload, source: SourceConfig) -> CanonicalRecord:
    d = raw.data

    # The published layer misspells the name column as "Facilty_Name"
    facility_name = first_present(d, "Facilty_Name", "Facility_Name", "FacilityName")
    report_url = first_present(d, "Report_URL", "Hyperlink")

    return build_record(
        raw,
        facility={
            "external_id": str(d.get("OBJECTID") or ""),
            "raw_name": str(facility_name or "Unknown Facility"),
            "raw_address": str(first_present(d, "Address", "STREET_ADDRESS", "Location") or ""),
            "raw_city": text_or_none(d.get("City")) or "Webster",
            "raw_state": text_or_none(d.get("State")) or "TX",
            "raw_zip": text_or_none(d.get("Zip")),
            "latitude": first_number(d.get("_geometry_y"), d.get("Latitude")),
            "longitude": first_number(d.get("_geometry_x"), d.get("Longitude")),
        },
        inspection={
            "inspection_date": require_date(raw, "Inspect_Date"),
            "raw_inspection_type": text_or_none(d.get("Inspection_Type")),
            "raw_result": text_or_none(first_present(d, "Result", "Status")),
            "raw_score": text_or_none(d.get("Score")),
            "demerits": parse_number(d.get("Demerits")),
            "source_url": text_or_none(d.get("Hyperlink")),
            "report_url": text_or_none(report_url),
        },
    )
