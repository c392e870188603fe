"""
SQLAlchemy ORM models for database tables.

Models:
    base: Declarative base, portable column types and shared enums
    source: Jurisdiction and Source (provider config, cursor, last-sync summary)
    raw_record: Raw payload storage with content hash for change detection
    facility: Deduplicated physical sites with recomputed aggregates
    inspection: Inspection events, 1:1 with raw records
    sync_log: Audit trail of every ingestion run

Relationships:
    - Jurisdiction -> Source (one-to-many)
    - Source -> RawRecord (one-to-many, keyed by external id)
    - RawRecord -> InspectionEvent (one-to-one)
    - Facility -> InspectionEvent (one-to-many)
    - Source -> SyncLog (one-to-many, append-only)
"""

from models.base import (
    Base,
    AdapterType,
    SyncType,
    SyncStatus,
    InspectionResult,
    InspectionType,
)
from models.source import Jurisdiction, Source
from models.raw_record import RawRecord
from models.facility import Facility
from models.inspection import InspectionEvent
from models.sync_log import SyncLog

__all__ = [
    "Base",
    "AdapterType",
    "SyncType",
    "SyncStatus",
    "InspectionResult",
    "InspectionType",
    "Jurisdiction",
    "Source",
    "RawRecord",
    "Facility",
    "InspectionEvent",
    "SyncLog",
]
