"""
Facility identity resolution with race-safe creation.

Identity is the exact key (jurisdiction_id, normalized_name,
normalized_address). Creation is optimistic: insert, and on a unique
violation re-read by key. Two concurrent records for the same new
facility therefore converge on one row without a lock.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from core.exceptions import PersistenceConflict
from ingestion.normalizers import (
    format_display_address,
    format_display_name,
    normalize_address,
    normalize_facility_name,
)
from ingestion.slug import generate_unique_slug, random_suffix_slug
from models.facility import Facility
from models.inspection import InspectionEvent
from schemas.ingestion import CanonicalFacility
from schemas.source import SourceConfig
import logging

logger = logging.getLogger(__name__)


class ResolveOutcome(str, Enum):
    FOUND = "found"
    CREATED = "created"
    RECOVERED = "recovered"  # lost a creation race, returned the winner's row


@dataclass
class ResolvedFacility:
    facility: Facility
    outcome: ResolveOutcome

    @property
    def created(self) -> bool:
        return self.outcome == ResolveOutcome.CREATED


@dataclass(frozen=True)
class IdentityKey:
    jurisdiction_id: str
    normalized_name: str
    normalized_address: str


class FacilityResolver:
    """
    Find or create the Facility for a canonical record.

    Must run before anything else is written for the current record:
    recovering from a failed insert rolls the session back.
    """

    def __init__(self, session: AsyncSession):
        self.db = session

    @staticmethod
    def identity_key(canonical: CanonicalFacility, source: SourceConfig) -> IdentityKey:
        name = normalize_facility_name(canonical.raw_name) or canonical.raw_name.upper()
        return IdentityKey(
            jurisdiction_id=source.jurisdiction_id,
            normalized_name=name,
            normalized_address=normalize_address(canonical.raw_address),
        )

    async def resolve(self, canonical: CanonicalFacility, source: SourceConfig) -> ResolvedFacility:
        key = self.identity_key(canonical, source)

        facility = await self._find_by_key(key)
        if facility is not None:
            self._enrich(facility, canonical, source)
            return ResolvedFacility(facility, ResolveOutcome.FOUND)

        slug = await generate_unique_slug(self.db, canonical.raw_name, source.jurisdiction_slug)
        facility = self._build(key, canonical, source, slug)

        if await self._try_insert(facility):
            logger.debug(f"Created facility {facility.slug}")
            return ResolvedFacility(facility, ResolveOutcome.CREATED)

        # Identity-key violation: another writer created it first
        winner = await self._find_by_key(key)
        if winner is not None:
            logger.info(f"Facility creation race lost for {key}; using existing row {winner.id}")
            self._enrich(winner, canonical, source)
            return ResolvedFacility(winner, ResolveOutcome.RECOVERED)

        # Slug-only violation: one retry with a random suffix
        retry_slug = random_suffix_slug(slug)
        logger.info(f"Slug {slug} taken concurrently; retrying as {retry_slug}")
        facility = self._build(key, canonical, source, retry_slug)

        if await self._try_insert(facility):
            return ResolvedFacility(facility, ResolveOutcome.CREATED)

        winner = await self._find_by_key(key)
        if winner is not None:
            self._enrich(winner, canonical, source)
            return ResolvedFacility(winner, ResolveOutcome.RECOVERED)

        raise PersistenceConflict(
            "Could not create facility after slug retry",
            context={
                "jurisdiction_id": key.jurisdiction_id,
                "normalized_name": key.normalized_name,
                "normalized_address": key.normalized_address,
                "slug": retry_slug,
            },
        )

    async def _find_by_key(self, key: IdentityKey) -> Optional[Facility]:
        # populate_existing: another source's run may have enriched the row
        # since this session last loaded it
        result = await self.db.execute(
            select(Facility)
            .where(
                Facility.jurisdiction_id == key.jurisdiction_id,
                Facility.normalized_name == key.normalized_name,
                Facility.normalized_address == key.normalized_address,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _try_insert(self, facility: Facility) -> bool:
        self.db.add(facility)
        try:
            await self.db.flush()
            return True
        except IntegrityError as e:
            logger.debug(f"Facility insert conflict: {e.orig}")
            await self.db.rollback()
            return False

    @staticmethod
    def _build(key: IdentityKey, canonical: CanonicalFacility, source: SourceConfig, slug: str) -> Facility:
        return Facility(
            jurisdiction_id=key.jurisdiction_id,
            external_ids=[_external_ref(canonical, source)] if canonical.external_id else [],
            raw_name=canonical.raw_name,
            raw_address=canonical.raw_address,
            raw_city=canonical.raw_city,
            raw_state=canonical.raw_state,
            raw_zip=canonical.raw_zip,
            normalized_name=key.normalized_name,
            normalized_address=key.normalized_address,
            display_name=format_display_name(canonical.raw_name),
            display_address=format_display_address(
                canonical.raw_address, canonical.raw_city, canonical.raw_state, canonical.raw_zip
            ),
            city=canonical.raw_city,
            state=canonical.raw_state,
            zip_code=canonical.raw_zip,
            latitude=canonical.latitude,
            longitude=canonical.longitude,
            slug=slug,
            total_inspections=0,
        )

    @staticmethod
    def _enrich(facility: Facility, canonical: CanonicalFacility, source: SourceConfig) -> None:
        """Backfill missing coordinates and remember the source's id for this site."""
        if facility.latitude is None and canonical.latitude is not None:
            facility.latitude = canonical.latitude
        if facility.longitude is None and canonical.longitude is not None:
            facility.longitude = canonical.longitude

        if canonical.external_id:
            ref = _external_ref(canonical, source)
            refs = list(facility.external_ids or [])
            if ref not in refs:
                # Reassign so the JSON column is flagged dirty
                facility.external_ids = refs + [ref]

    async def refresh_stats(self, facility_id: str) -> None:
        """Recompute aggregates from the facility's full inspection set."""
        latest = (await self.db.execute(
            select(InspectionEvent.inspection_date, InspectionEvent.result)
            .where(InspectionEvent.facility_id == facility_id)
            .order_by(InspectionEvent.inspection_date.desc(), InspectionEvent.id.desc())
            .limit(1)
        )).first()

        total = (await self.db.execute(
            select(func.count()).select_from(InspectionEvent).where(InspectionEvent.facility_id == facility_id)
        )).scalar_one()

        await self.db.execute(
            update(Facility)
            .where(Facility.id == facility_id)
            .values(
                last_inspection_date=latest.inspection_date if latest else None,
                last_inspection_result=latest.result.value if latest and latest.result else None,
                total_inspections=total,
            ),
            execution_options={"synchronize_session": False},
        )


def _external_ref(canonical: CanonicalFacility, source: SourceConfig) -> dict:
    return {"sourceId": source.id, "externalId": canonical.external_id}
