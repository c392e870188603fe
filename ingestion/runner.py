"""
Ingestion runner: drives one sync run for one source.

Per run:
1. Load the source (SourceNotFoundError if missing) and open a SyncLog
2. Resolve adapter and transformer from the registry
3. Pick the starting cursor for the sync type
4. Loop: fetch a batch -> transform and load each record in its own
   transaction -> persist the next cursor -> rate-limit sleep
5. Finalize the SyncLog and the source's last-sync summary; a cancelled
   run is finalized as FAILED before the cancellation propagates

Only fetch and cursor-persistence failures escape the loop and fail the
run. A record that fails to transform or load is rolled back, counted
and skipped.
"""

import asyncio
import math
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional
from datetime import datetime
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload
from core.exceptions import IngestionError, SourceNotFoundError
from ingestion.base import SourceAdapter
from ingestion.loaders.record_loader import LoadOutcome, RecordLoader
from ingestion.registry import IngestionRegistry
from ingestion.retry import RetryPolicy
from ingestion.transformers.base import Transformer
from models.base import SyncStatus, SyncType
from models.source import Source
from models.sync_log import SyncLog
from schemas.ingestion import CursorState, IngestionOptions, IngestionResult, RawPayload
from schemas.source import SourceConfig
import logging

logger = logging.getLogger(__name__)

# Bulk updates target rows whose ORM instances may be expired by a rollback
NO_SYNC = {"synchronize_session": False}


@dataclass
class RunStats:
    fetched: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0

    def record(self, outcome: LoadOutcome) -> None:
        if outcome == LoadOutcome.CREATED:
            self.created += 1
        elif outcome == LoadOutcome.UPDATED:
            self.updated += 1
        else:
            self.skipped += 1


def rate_limit_delay(requests_per_minute: int) -> float:
    """Seconds between batches: ceil(60000 / rpm) milliseconds."""
    return math.ceil(60000 / max(requests_per_minute, 1)) / 1000


def _error_message(error: BaseException) -> str:
    if isinstance(error, IngestionError):
        return error.message
    return str(error) or type(error).__name__


class IngestionRunner:
    """
    Production ingestion orchestrator

    Responsibilities:
    - Select the cursor for BACKFILL / RESUME / INCREMENTAL
    - Isolate per-record failures
    - Persist the cursor after every batch
    - Respect the source's requests-per-minute between batches
    - Record an audit SyncLog per run

    One run per source is serial. Runs for different sources may share
    the session maker and run concurrently.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker,
        registry: IngestionRegistry,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.session_maker = session_maker
        self.registry = registry
        self.sleep = sleep
        self.retry_policy = retry_policy

    async def run(self, options: IngestionOptions) -> IngestionResult:
        """
        Run one sync.

        Returns:
            IngestionResult; success is False when the run FAILED

        Raises:
            SourceNotFoundError: If options.source_id does not exist
        """
        async with self.session_maker() as session:
            return await self._run(session, options)

    async def _run(self, session: AsyncSession, options: IngestionOptions) -> IngestionResult:
        source = await self._load_source(session, options.source_id)

        sync_log = SyncLog(
            source_id=source.id,
            sync_type=options.sync_type,
            status=SyncStatus.RUNNING,
            started_at=datetime.utcnow(),
        )
        session.add(sync_log)
        await session.commit()
        sync_log_id, run_id, started_at = sync_log.id, sync_log.run_id, sync_log.started_at

        logger.info(f"Starting {options.sync_type.value} sync for source {source.id} (run {run_id})")

        stats = RunStats()
        cursor_before: Optional[Dict[str, Any]] = None
        cursor_after: Optional[Dict[str, Any]] = None
        error: Optional[BaseException] = None
        adapter: Optional[SourceAdapter] = None

        try:
            adapter = self.registry.get_adapter(source, retry_policy=self.retry_policy)
            transformer = self.registry.get_transformer(source.jurisdiction_slug)
            loader = RecordLoader(session)

            cursor = self.select_cursor(adapter, source, options.sync_type)
            cursor_before = cursor.to_json() if cursor else None
            logger.info(f"Source {source.id} starting from cursor {cursor_before}")

            while True:
                batch = await adapter.fetch(cursor)
                stats.fetched += len(batch.records)
                logger.info(f"Fetched {len(batch.records)} records (total: {stats.fetched})")

                for raw in batch.records:
                    await self._process_record(session, loader, transformer, raw, source, stats)

                if batch.next_cursor is not None:
                    cursor = batch.next_cursor
                    cursor_after = cursor.to_json()
                    await session.execute(
                        update(Source).where(Source.id == source.id).values(cursor=cursor_after),
                        execution_options=NO_SYNC,
                    )
                    await session.commit()

                if not batch.has_more:
                    break

                if batch.next_cursor is None:
                    logger.warning(f"Source {source.id} reported more data without a next cursor; stopping")
                    break

                if options.max_records and stats.fetched >= options.max_records:
                    logger.info(f"Reached max_records={options.max_records}; stopping")
                    break

                await self.sleep(rate_limit_delay(source.requests_per_minute))

        except Exception as e:
            error = e
            await session.rollback()
            logger.error(
                f"Sync run {run_id} failed: {type(e).__name__}: {_error_message(e)}",
                extra={"error_context": e.to_dict() if isinstance(e, IngestionError) else {}},
            )

        except asyncio.CancelledError as e:
            logger.warning(f"Sync run {run_id} cancelled after {stats.fetched} records; marking FAILED")
            await asyncio.shield(
                self._finalize_cancelled(session, source.id, sync_log_id, started_at, stats, cursor_before, cursor_after, e)
            )
            raise

        finally:
            if adapter is not None:
                await adapter.close()

        status = self._final_status(stats, error)
        await self._finalize(session, source.id, sync_log_id, started_at, status, stats, cursor_before, cursor_after, error)

        logger.info(
            f"Sync run {run_id} {status.value}: fetched={stats.fetched} created={stats.created} "
            f"updated={stats.updated} skipped={stats.skipped} failed={stats.failed}"
        )

        return IngestionResult(
            success=error is None,
            records_fetched=stats.fetched,
            records_created=stats.created,
            records_updated=stats.updated,
            records_skipped=stats.skipped,
            records_failed=stats.failed,
            error=_error_message(error) if error is not None else None,
            run_id=run_id,
        )

    async def _load_source(self, session: AsyncSession, source_id: str) -> SourceConfig:
        result = await session.execute(
            select(Source).options(selectinload(Source.jurisdiction)).where(Source.id == source_id)
        )
        source = result.scalar_one_or_none()
        if source is None:
            raise SourceNotFoundError(f"Source not found: {source_id}", context={"source_id": source_id})
        return SourceConfig.from_orm(source)

    @staticmethod
    def select_cursor(adapter: SourceAdapter, source: SourceConfig, sync_type: SyncType) -> Optional[CursorState]:
        if sync_type == SyncType.BACKFILL:
            return adapter.get_initial_cursor()

        if sync_type == SyncType.RESUME:
            saved = CursorState.from_json(source.cursor)
            if saved is not None:
                return saved
            logger.info(f"Source {source.id} has no saved cursor; resuming as backfill")
            return adapter.get_initial_cursor()

        return adapter.get_incremental_cursor(source.last_sync_at)

    async def _process_record(
        self,
        session: AsyncSession,
        loader: RecordLoader,
        transformer: Transformer,
        raw: RawPayload,
        source: SourceConfig,
        stats: RunStats,
    ) -> None:
        """Transform and load one record in its own transaction."""
        try:
            canonical = transformer(raw, source)
            outcome = await loader.load(canonical, source)
            await session.commit()
            stats.record(outcome)

        except Exception as e:
            await session.rollback()
            stats.failed += 1
            logger.error(
                f"Failed to process record {raw.external_id}: {type(e).__name__}: {_error_message(e)}",
                extra={"error_context": e.to_dict() if isinstance(e, IngestionError) else {}},
            )

    @staticmethod
    def _final_status(stats: RunStats, error: Optional[BaseException]) -> SyncStatus:
        if error is not None:
            return SyncStatus.FAILED
        return SyncStatus.SUCCESS if stats.failed == 0 else SyncStatus.PARTIAL

    async def _finalize_cancelled(
        self,
        session: AsyncSession,
        source_id: str,
        sync_log_id: int,
        started_at: datetime,
        stats: RunStats,
        cursor_before: Optional[Dict[str, Any]],
        cursor_after: Optional[Dict[str, Any]],
        error: BaseException,
    ) -> None:
        await session.rollback()
        await self._finalize(
            session, source_id, sync_log_id, started_at, SyncStatus.FAILED, stats, cursor_before, cursor_after, error
        )

    async def _finalize(
        self,
        session: AsyncSession,
        source_id: str,
        sync_log_id: int,
        started_at: datetime,
        status: SyncStatus,
        stats: RunStats,
        cursor_before: Optional[Dict[str, Any]],
        cursor_after: Optional[Dict[str, Any]],
        error: Optional[BaseException],
    ) -> None:
        completed_at = datetime.utcnow()

        if error is not None:
            error_message = _error_message(error)
            error_details = error.to_dict() if isinstance(error, IngestionError) else {
                "error_type": type(error).__name__,
                "message": str(error),
            }
        elif stats.failed:
            error_message = f"{stats.failed} records failed"
            error_details = None
        else:
            error_message = None
            error_details = None

        await session.execute(
            update(SyncLog)
            .where(SyncLog.id == sync_log_id)
            .values(
                status=status,
                completed_at=completed_at,
                duration_seconds=(completed_at - started_at).total_seconds(),
                records_fetched=stats.fetched,
                records_created=stats.created,
                records_updated=stats.updated,
                records_skipped=stats.skipped,
                records_failed=stats.failed,
                cursor_before=cursor_before,
                cursor_after=cursor_after,
                error_message=error_message,
                error_details=error_details,
            ),
            execution_options=NO_SYNC,
        )

        await session.execute(
            update(Source)
            .where(Source.id == source_id)
            .values(
                last_sync_at=completed_at,
                last_sync_status=status,
                last_sync_error=error_message if error is not None else None,
                last_record_count=stats.fetched,
            ),
            execution_options=NO_SYNC,
        )
        await session.commit()


async def run_ingestion(
    options: IngestionOptions,
    session_maker: async_sessionmaker,
    registry: IngestionRegistry,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> IngestionResult:
    """Convenience wrapper: one IngestionRunner, one run."""
    return await IngestionRunner(session_maker, registry, sleep=sleep).run(options)
