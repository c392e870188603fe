"""
Idempotent persistence of one canonical record
"""

from enum import Enum
from typing import Any, Dict, Optional
from datetime import datetime
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from ingestion.hashing import hash_payload
from ingestion.normalizers import (
    is_closure,
    is_passing,
    normalize_inspection_result,
    normalize_inspection_type,
)
from ingestion.resolver import FacilityResolver
from models.inspection import InspectionEvent
from models.raw_record import RawRecord
from schemas.ingestion import CanonicalRecord
from schemas.source import SourceConfig
import logging

logger = logging.getLogger(__name__)

NO_SYNC = {"synchronize_session": False}


class LoadOutcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"


class RecordLoader:
    """
    Write one canonical record with change detection.

    Ensures:
    - An unchanged payload (same SHA-256) is skipped with no writes
    - RawRecord is unique per (source, external id) and updated in place
    - InspectionEvent is 1:1 with RawRecord, so replays never duplicate it
    - Facility aggregates are recomputed after every inspection write

    The caller owns the transaction: commit after load() returns, roll
    back if it raises.
    """

    def __init__(self, db_session: AsyncSession, resolver: Optional[FacilityResolver] = None):
        self.db = db_session
        self.resolver = resolver or FacilityResolver(db_session)

    async def load(self, record: CanonicalRecord, source: SourceConfig) -> LoadOutcome:
        payload_hash = hash_payload(record.raw_payload)

        # Plain columns, not an ORM instance: the resolver may roll back
        existing = (await self.db.execute(
            select(RawRecord.id, RawRecord.payload_hash).where(
                RawRecord.source_id == source.id,
                RawRecord.external_id == record.external_id,
            )
        )).first()

        if existing is not None and existing.payload_hash == payload_hash:
            return LoadOutcome.SKIPPED

        resolved = await self.resolver.resolve(record.facility, source)
        facility_id = resolved.facility.id
        now = datetime.utcnow()

        if existing is not None:
            raw_record_id = existing.id
            await self.db.execute(
                update(RawRecord)
                .where(RawRecord.id == raw_record_id)
                .values(payload=record.raw_payload, payload_hash=payload_hash, fetched_at=now, processed_at=None),
                execution_options=NO_SYNC,
            )
        else:
            raw = RawRecord(
                source_id=source.id,
                external_id=record.external_id,
                payload=record.raw_payload,
                payload_hash=payload_hash,
                fetched_at=now,
            )
            self.db.add(raw)
            await self.db.flush()
            raw_record_id = raw.id

        previous_facility_id = await self._upsert_inspection(record, raw_record_id, facility_id)
        await self.db.flush()

        await self.resolver.refresh_stats(facility_id)
        if previous_facility_id and previous_facility_id != facility_id:
            await self.resolver.refresh_stats(previous_facility_id)

        await self.db.execute(
            update(RawRecord).where(RawRecord.id == raw_record_id).values(processed_at=datetime.utcnow()),
            execution_options=NO_SYNC,
        )

        return LoadOutcome.UPDATED if existing is not None else LoadOutcome.CREATED

    async def _upsert_inspection(self, record: CanonicalRecord, raw_record_id: int, facility_id: str) -> Optional[str]:
        """Insert or update the event for raw_record_id; return its previous facility id."""
        values = self.inspection_values(record, facility_id)

        event = (await self.db.execute(
            select(InspectionEvent).where(InspectionEvent.raw_record_id == raw_record_id)
        )).scalar_one_or_none()

        if event is None:
            self.db.add(InspectionEvent(raw_record_id=raw_record_id, **values))
            return None

        previous_facility_id = event.facility_id
        for field, value in values.items():
            setattr(event, field, value)
        return previous_facility_id

    @staticmethod
    def inspection_values(record: CanonicalRecord, facility_id: str) -> Dict[str, Any]:
        inspection = record.inspection
        result = normalize_inspection_result(inspection.raw_result)

        return {
            "facility_id": facility_id,
            "inspection_date": inspection.inspection_date,
            "raw_inspection_type": inspection.raw_inspection_type,
            "raw_result": inspection.raw_result,
            "raw_score": inspection.raw_score,
            "inspection_type": normalize_inspection_type(inspection.raw_inspection_type),
            "result": result,
            "demerits": inspection.demerits,
            "is_closure": is_closure(result, inspection.raw_result),
            "is_passing": is_passing(result),
            "source_url": inspection.source_url,
            "report_url": inspection.report_url,
        }
