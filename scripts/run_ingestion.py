"""
Run an incremental sync for every active source
"""

import asyncio
import sys
import os
import logging

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from sqlalchemy import select
from core.database import create_engine, create_session_maker
from core.exceptions import IngestionError
from core.logging import setup_logging
from ingestion.registry import build_default_registry
from ingestion.runner import IngestionRunner
from models import Source, SyncType
from schemas.ingestion import IngestionOptions

logger = logging.getLogger(__name__)


async def run_all_sources():
    """Sync each active source in turn and log a summary"""
    engine = create_engine()
    session_maker = create_session_maker(engine)
    runner = IngestionRunner(session_maker, build_default_registry())

    failed_sources = []

    try:
        async with session_maker() as session:
            result = await session.execute(
                select(Source.id, Source.name).where(Source.is_active.is_(True)).order_by(Source.name)
            )
            sources = result.all()

        if not sources:
            logger.warning("No active sources configured. Skipping ingestion.")
            return

        for source_id, name in sources:
            logger.info(f"Running ingestion for source: {name}")
            try:
                result = await runner.run(IngestionOptions(source_id=source_id, sync_type=SyncType.INCREMENTAL))
            except IngestionError as e:
                logger.error(f"Ingestion failed for {name}: {e.message}")
                failed_sources.append(name)
                continue

            if not result.success:
                failed_sources.append(name)

            logger.info(
                f"Ingestion completed for {name}: "
                f"Fetched={result.records_fetched}, Created={result.records_created}, "
                f"Updated={result.records_updated}, Skipped={result.records_skipped}, "
                f"Failed={result.records_failed}"
            )

        logger.info(f"All ingestion jobs completed ({len(sources) - len(failed_sources)}/{len(sources)} succeeded)")

    finally:
        await engine.dispose()

    if failed_sources:
        logger.error(f"Failed sources: {', '.join(failed_sources)}")
        sys.exit(1)


if __name__ == "__main__":
    setup_logging()
    asyncio.run(run_all_sources())
