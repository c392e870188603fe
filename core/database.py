"""
Database session management with SQLAlchemy async
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from core.config import settings
import logging

logger = logging.getLogger(__name__)


def create_engine(database_url: str = None) -> AsyncEngine:
    """Create an async engine for the configured database"""
    return create_async_engine(
        database_url or settings.DATABASE_URL,
        echo=settings.ENVIRONMENT == "development",
        pool_pre_ping=True,
        future=True
    )


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    """Session factory shared by every concurrent ingestion run"""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )

