"""
Source-agnostic normalizers: pure functions from free text to identity keys
and controlled vocabularies. Display helpers are cosmetic and never feed
identity keys.
"""

from ingestion.normalizers.address import normalize_address, format_display_address, to_title_case
from ingestion.normalizers.name import normalize_facility_name, format_display_name
from ingestion.normalizers.inspection_result import (
    normalize_inspection_result,
    normalize_inspection_type,
    is_closure,
    is_passing,
)

__all__ = [
    "normalize_address",
    "format_display_address",
    "to_title_case",
    "normalize_facility_name",
    "format_display_name",
    "normalize_inspection_result",
    "normalize_inspection_type",
    "is_closure",
    "is_passing",
]
