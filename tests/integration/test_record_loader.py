"""
Integration tests for RecordLoader and FacilityResolver
"""

import pytest
from unittest.mock import AsyncMock, patch
from datetime import datetime
from sqlalchemy import func, select
from core.exceptions import PersistenceConflict
from ingestion.loaders import LoadOutcome, RecordLoader
from ingestion.resolver import FacilityResolver, ResolveOutcome
from models import Facility, InspectionEvent, InspectionResult, RawRecord
from schemas.ingestion import CanonicalFacility, RawPayload


async def load(session_maker, transformer, source, row):
    """Transform and load one row in its own transaction, like the runner does"""
    record = transformer(RawPayload(external_id=row["id"], data=row), source)
    async with session_maker() as session:
        outcome = await RecordLoader(session).load(record, source)
        await session.commit()
    return outcome


async def all_rows(session_maker, model):
    async with session_maker() as session:
        return list((await session.execute(select(model).order_by(model.id))).scalars())


class RacingResolver(FacilityResolver):
    """Misses the existing row on the first lookup, as if it was committed concurrently"""

    def __init__(self, session):
        super().__init__(session)
        self.lookups = 0

    async def _find_by_key(self, key):
        self.lookups += 1
        if self.lookups == 1:
            return None
        return await super()._find_by_key(key)


class TestRecordLoader:

    @pytest.mark.asyncio
    async def test_unchanged_payload_is_skipped(self, session_maker, create_source, transformer, inspection_row):
        source = await create_source()
        row = inspection_row(1)

        assert await load(session_maker, transformer, source, row) == LoadOutcome.CREATED
        assert await load(session_maker, transformer, source, dict(row)) == LoadOutcome.SKIPPED

        [raw] = await all_rows(session_maker, RawRecord)
        assert raw.processed_at is not None

    @pytest.mark.asyncio
    async def test_changed_payload_updates_inspection_in_place(self, session_maker, create_source, transformer, inspection_row):
        source = await create_source()

        await load(session_maker, transformer, source, inspection_row(1, result="Pass"))
        [before] = await all_rows(session_maker, InspectionEvent)

        outcome = await load(session_maker, transformer, source, inspection_row(1, result="Fail"))

        # Assertions
        assert outcome == LoadOutcome.UPDATED
        [after] = await all_rows(session_maker, InspectionEvent)
        assert after.id == before.id
        assert after.raw_record_id == before.raw_record_id
        assert after.result == InspectionResult.FAIL
        assert after.is_passing is False

        [facility] = await all_rows(session_maker, Facility)
        assert facility.last_inspection_result == "FAIL"
        assert facility.total_inspections == 1

        [raw] = await all_rows(session_maker, RawRecord)
        assert raw.payload["result"] == "Fail"

    @pytest.mark.asyncio
    async def test_aggregates_use_latest_date_not_load_order(self, session_maker, create_source, transformer, inspection_row):
        source = await create_source()

        await load(session_maker, transformer, source, inspection_row(1, name="Oak", address="1 Elm St", date="2024-06-01", result="Pass"))
        await load(session_maker, transformer, source, inspection_row(2, name="Oak", address="1 Elm St", date="2023-01-01", result="Fail"))

        [facility] = await all_rows(session_maker, Facility)
        assert facility.total_inspections == 2
        assert facility.last_inspection_date == datetime(2024, 6, 1)
        assert facility.last_inspection_result == "PASS"

    @pytest.mark.asyncio
    async def test_record_moving_facility_recomputes_both(self, session_maker, create_source, transformer, inspection_row):
        source = await create_source()

        await load(session_maker, transformer, source, inspection_row(1, name="Oak Pool", address="1 Elm St"))
        await load(session_maker, transformer, source, inspection_row(1, name="Pine Pool", address="1 Elm St"))

        facilities = {f.normalized_name: f for f in await all_rows(session_maker, Facility)}
        assert facilities["OAK"].total_inspections == 0
        assert facilities["OAK"].last_inspection_date is None
        assert facilities["PINE"].total_inspections == 1

    @pytest.mark.asyncio
    async def test_inspection_values_are_normalized(self, session_maker, create_source, transformer, inspection_row):
        source = await create_source()

        await load(session_maker, transformer, source, inspection_row(1, result="Closed for Inspection", type="Follow-Up"))

        [event] = await all_rows(session_maker, InspectionEvent)
        assert event.raw_result == "Closed for Inspection"
        assert event.result == InspectionResult.CLOSED
        assert event.is_closure is True
        assert event.is_passing is False
        assert event.inspection_type.value == "FOLLOW_UP"


class TestFacilityResolver:

    @pytest.mark.asyncio
    async def test_slugs_are_unique_per_name(self, session_maker, create_source, transformer, inspection_row):
        source = await create_source()

        await load(session_maker, transformer, source, inspection_row(1, name="Oak Pool", address="1 Elm St"))
        await load(session_maker, transformer, source, inspection_row(2, name="Oak Pool", address="9 Ash St"))
        await load(session_maker, transformer, source, inspection_row(3, name="Oak Pool", address="7 Fir St"))

        slugs = [f.slug for f in await all_rows(session_maker, Facility)]
        assert sorted(slugs) == ["oak-pool-test-tx", "oak-pool-test-tx-1", "oak-pool-test-tx-2"]

    @pytest.mark.asyncio
    async def test_existing_facility_is_enriched(self, session_maker, create_source, transformer, inspection_row):
        source = await create_source()

        await load(session_maker, transformer, source, inspection_row(1, name="Oak", address="1 Elm St", facility_id="A-1"))
        await load(session_maker, transformer, source, inspection_row(2, name="Oak", address="1 Elm St", facility_id="A-2", lat=30.1, lon=-97.2))

        [facility] = await all_rows(session_maker, Facility)
        assert facility.latitude == 30.1
        assert facility.longitude == -97.2
        assert facility.external_ids == [
            {"sourceId": source.id, "externalId": "A-1"},
            {"sourceId": source.id, "externalId": "A-2"},
        ]

    @pytest.mark.asyncio
    async def test_enrichment_keeps_refs_written_by_other_sessions(self, session_maker, create_source):
        source = await create_source()

        def oak(external_id):
            return CanonicalFacility(raw_name="Oak Pool", raw_address="1 Elm St", external_id=external_id)

        async with session_maker() as long_lived:
            resolver = FacilityResolver(long_lived)
            await resolver.resolve(oak("A-1"), source)
            await long_lived.commit()

            # Another run enriches the same facility in between
            async with session_maker() as other:
                await FacilityResolver(other).resolve(oak("B-1"), source)
                await other.commit()

            resolved = await resolver.resolve(oak("C-1"), source)
            await long_lived.commit()

        assert resolved.outcome == ResolveOutcome.FOUND
        [facility] = await all_rows(session_maker, Facility)
        assert [ref["externalId"] for ref in facility.external_ids] == ["A-1", "B-1", "C-1"]

    @pytest.mark.asyncio
    async def test_lost_creation_race_returns_existing_row(self, session_maker, create_source):
        source = await create_source()
        canonical = CanonicalFacility(raw_name="Oak Pool", raw_address="1 Elm St")

        async with session_maker() as session:
            winner = await FacilityResolver(session).resolve(canonical, source)
            await session.commit()

        async with session_maker() as session:
            resolver = RacingResolver(session)
            resolved = await resolver.resolve(canonical, source)
            await session.commit()

        # Assertions
        assert resolved.outcome == ResolveOutcome.RECOVERED
        assert resolved.created is False
        assert resolved.facility.id == winner.facility.id
        assert len(await all_rows(session_maker, Facility)) == 1

    @pytest.mark.asyncio
    async def test_concurrent_slug_taken_retries_with_suffix(self, session_maker, create_source):
        source = await create_source()

        async with session_maker() as session:
            await FacilityResolver(session).resolve(CanonicalFacility(raw_name="Oak Pool", raw_address="1 Elm St"), source)
            await session.commit()

        with patch("ingestion.resolver.generate_unique_slug", AsyncMock(return_value="oak-pool-test-tx")):
            async with session_maker() as session:
                resolved = await FacilityResolver(session).resolve(
                    CanonicalFacility(raw_name="Oak Pool", raw_address="9 Ash St"), source
                )
                await session.commit()

        assert resolved.outcome == ResolveOutcome.CREATED
        assert resolved.facility.slug.startswith("oak-pool-test-tx-")
        assert len(await all_rows(session_maker, Facility)) == 2

    @pytest.mark.asyncio
    async def test_repeated_slug_conflict_raises(self, session_maker, create_source):
        source = await create_source()

        async with session_maker() as session:
            await FacilityResolver(session).resolve(CanonicalFacility(raw_name="Oak Pool", raw_address="1 Elm St"), source)
            await session.commit()

        with patch("ingestion.resolver.generate_unique_slug", AsyncMock(return_value="oak-pool-test-tx")), \
                patch("ingestion.resolver.random_suffix_slug", return_value="oak-pool-test-tx"):
            async with session_maker() as session:
                with pytest.raises(PersistenceConflict):
                    await FacilityResolver(session).resolve(
                        CanonicalFacility(raw_name="Oak Pool", raw_address="9 Ash St"), source
                    )

        async with session_maker() as session:
            total = (await session.execute(select(func.count()).select_from(Facility))).scalar_one()
        assert total == 1


@pytest.mark.asyncio
async def test_case_and_punctuation_variants_resolve_to_one_facility(session_maker, create_source):
    source = await create_source()

    async with session_maker() as session:
        resolver = FacilityResolver(session)
        first = await resolver.resolve(CanonicalFacility(raw_name="City Pool", raw_address="100 Main St."), source)
        await session.commit()
        second = await resolver.resolve(CanonicalFacility(raw_name="CITY POOL", raw_address="100 MAIN ST"), source)
        await session.commit()

    assert first.outcome == ResolveOutcome.CREATED
    assert second.outcome == ResolveOutcome.FOUND
    assert second.facility.id == first.facility.id
