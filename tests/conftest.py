"""
Pytest configuration and fixtures
"""

import pytest
import pytest_asyncio
from sqlalchemy import event, select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import selectinload
from sqlalchemy.pool import NullPool
from typing import AsyncGenerator, Any, Dict, List, Optional
from datetime import datetime
from core.database import create_session_maker
from models import Base, AdapterType, Jurisdiction, Source
from schemas.ingestion import CursorState, FetchResult, RawPayload
from schemas.source import SourceConfig
from ingestion.base import SourceAdapter


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """Throw-away SQLite database per test"""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False,
        poolclass=NullPool,  # Disable connection pooling for tests
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _sqlite_pragmas(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA synchronous=OFF")
        cursor.close()

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(test_engine):
    return create_session_maker(test_engine)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for tests"""
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def create_source(session_maker):
    """Factory: insert a jurisdiction + source and return its SourceConfig"""

    async def _create(
        jurisdiction_slug: str = "test-tx",
        adapter_type: AdapterType = AdapterType.MANUAL,
        endpoint: str = "https://data.example.gov/resource/abcd-1234.json",
        config: Optional[Dict[str, Any]] = None,
        requests_per_minute: int = 60,
        cursor: Optional[Dict[str, Any]] = None,
        last_sync_at: Optional[datetime] = None,
    ) -> SourceConfig:
        async with session_maker() as session:
            jurisdiction = Jurisdiction(slug=jurisdiction_slug, name=jurisdiction_slug.title(), state="TX")
            session.add(jurisdiction)
            await session.flush()

            source = Source(
                jurisdiction_id=jurisdiction.id,
                name=f"{jurisdiction_slug} pools",
                adapter_type=adapter_type,
                endpoint=endpoint,
                config=config or {},
                requests_per_minute=requests_per_minute,
                cursor=cursor,
                last_sync_at=last_sync_at,
            )
            session.add(source)
            await session.commit()

            result = await session.execute(
                select(Source)
                .options(selectinload(Source.jurisdiction))
                .where(Source.id == source.id)
                .execution_options(populate_existing=True)
            )
            return SourceConfig.from_orm(result.scalar_one())

    return _create


def make_source_config(**overrides) -> SourceConfig:
    """SourceConfig that never touches the database"""
    values = {
        "id": "source-1",
        "jurisdiction_id": "jurisdiction-1",
        "jurisdiction_slug": "test-tx",
        "name": "Test pools",
        "adapter_type": AdapterType.SOCRATA,
        "endpoint": "https://data.example.gov/resource/abcd-1234.json",
        "config": {},
        "requests_per_minute": 60,
    }
    values.update(overrides)
    return SourceConfig(**values)


def make_inspection_row(index: int, **overrides) -> Dict[str, Any]:
    """Raw row understood by scripted_transformer"""
    row = {
        "id": f"rec-{index}",
        "name": f"Pool {index}",
        "address": f"{100 + index} Main Street",
        "date": "2024-03-01",
        "result": "Pass",
    }
    row.update(overrides)
    return row


def scripted_transformer(raw: RawPayload, source: SourceConfig):
    """Minimal transformer for runner tests; {"boom": true} rows fail"""
    from ingestion.transformers.base import build_record, require_date

    d = raw.data
    if d.get("boom"):
        raise ValueError(f"cannot transform {raw.external_id}")

    return build_record(
        raw,
        facility={
            "external_id": str(d.get("facility_id") or ""),
            "raw_name": d["name"],
            "raw_address": d["address"],
            "raw_city": d.get("city", "Testville"),
            "raw_state": "TX",
            "latitude": d.get("lat"),
            "longitude": d.get("lon"),
        },
        inspection={
            "inspection_date": require_date(raw, "date"),
            "raw_result": d.get("result"),
            "raw_inspection_type": d.get("type"),
        },
    )


def scripted_adapter(batches: List[List[Dict[str, Any]]], fail_on_call: Optional[int] = None):
    """
    Build an offset-cursor adapter class that serves the given batches in
    order. Every instance records the cursors it was asked for.
    """

    class ScriptedAdapter(SourceAdapter):
        adapter_type = AdapterType.MANUAL
        calls: List[Optional[CursorState]] = []

        async def fetch(self, cursor):
            type(self).calls.append(cursor)
            index = int(cursor.value) if cursor is not None and cursor.type == "offset" else 0
            if fail_on_call is not None and len(type(self).calls) == fail_on_call:
                raise ConnectionError("upstream went away")

            rows = batches[index] if index < len(batches) else []
            has_more = index + 1 < len(batches)
            return FetchResult(
                records=[RawPayload(external_id=row["id"], data=row) for row in rows],
                next_cursor=CursorState(type="offset", value=index + 1) if has_more else None,
                has_more=has_more,
            )

        def get_initial_cursor(self):
            return CursorState(type="offset", value=0)

        def get_incremental_cursor(self, last_sync):
            return CursorState(type="offset", value=0)

        async def health_check(self):
            return True

    ScriptedAdapter.calls = []
    return ScriptedAdapter


@pytest.fixture
def source_config():
    """Factory for database-free SourceConfig objects"""
    return make_source_config


@pytest.fixture
def inspection_row():
    return make_inspection_row


@pytest.fixture
def transformer():
    return scripted_transformer


@pytest.fixture
def adapter_factory():
    return scripted_adapter
