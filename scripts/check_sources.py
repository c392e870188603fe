"""
Health-check every active source's adapter
"""

import asyncio
import sys
import os
import logging

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from sqlalchemy import select
from sqlalchemy.orm import selectinload
from core.database import create_engine, create_session_maker
from core.exceptions import ConfigurationError
from core.logging import setup_logging
from ingestion.registry import build_default_registry
from models import Source
from schemas.source import SourceConfig

logger = logging.getLogger(__name__)


async def check_sources():
    engine = create_engine()
    session_maker = create_session_maker(engine)
    registry = build_default_registry()

    try:
        async with session_maker() as session:
            result = await session.execute(
                select(Source).options(selectinload(Source.jurisdiction)).where(Source.is_active.is_(True))
            )
            sources = [SourceConfig.from_orm(source) for source in result.scalars().all()]
    finally:
        await engine.dispose()

    unreachable = 0
    for source in sources:
        try:
            adapter = registry.get_adapter(source)
        except ConfigurationError as e:
            logger.error(f"[MISCONFIGURED] {source.name}: {e.message}")
            unreachable += 1
            continue

        try:
            healthy = await adapter.health_check()
        finally:
            await adapter.close()

        if healthy:
            logger.info(f"[OK] {source.name} ({source.adapter_type.value}) {source.endpoint}")
        else:
            logger.warning(f"[UNREACHABLE] {source.name} ({source.adapter_type.value}) {source.endpoint}")
            unreachable += 1

    logger.info(f"{len(sources) - unreachable}/{len(sources)} sources reachable")
    return unreachable


if __name__ == "__main__":
    setup_logging()
    sys.exit(1 if asyncio.run(check_sources()) else 0)
