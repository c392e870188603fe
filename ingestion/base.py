"""
Abstract base class for source adapters with the cursor contract
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar
from datetime import datetime, timedelta
from core.config import settings
from ingestion.retry import RetryPolicy, with_retry
from models.base import AdapterType
from schemas.ingestion import CursorState, FetchResult
from schemas.source import SourceConfig
import asyncio
import logging

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SourceAdapter(ABC):
    """
    Abstract base class for all source adapters.

    Responsibilities:
    - Fetch one batch per call, starting from an opaque cursor
    - Provide the backfill and incremental starting cursors
    - Wrap every network call in the retry executor

    fetch() must be safely restartable: a failed call is retried whole,
    never resumed from partial in-page progress.
    """

    adapter_type: AdapterType

    def __init__(
        self,
        source: SourceConfig,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.source = source
        self.config = self.parse_config(dict(source.config or {}))
        self.retry_policy = retry_policy or RetryPolicy.from_settings(source.config)
        self._sleep = sleep

    def parse_config(self, raw: Dict[str, Any]) -> Dict[str, Any]:
        """Apply adapter defaults to the source's config blob."""
        return raw

    @abstractmethod
    async def fetch(self, cursor: Optional[CursorState]) -> FetchResult:
        """
        Fetch a batch of records starting from cursor.

        Args:
            cursor: Position to resume from (None means the very start)

        Returns:
            FetchResult with records, next_cursor and has_more.
            next_cursor is None when has_more is False.
        """
        pass

    @abstractmethod
    def get_initial_cursor(self) -> CursorState:
        """Cursor for a full backfill"""
        pass

    @abstractmethod
    def get_incremental_cursor(self, last_sync: Optional[datetime]) -> CursorState:
        """Cursor for an incremental run, including the look-back overlap"""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Return True if the source is reachable. Never raises."""
        pass

    async def close(self) -> None:
        """Release network resources held by the adapter."""
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def _with_retry(self, fn: Callable[[], Awaitable[T]], description: str) -> T:
        return await with_retry(
            fn,
            self.retry_policy,
            description=f"{self.source.name or self.source.id}: {description}",
            sleep=self._sleep,
        )

    def incremental_since(self, last_sync: Optional[datetime]) -> datetime:
        """
        Watermark for an incremental run.

        last_sync minus the look-back overlap, or now minus the default
        window when the source has never synced. Both are configurable
        per source (lookbackHours / defaultWindowHours).
        """
        if last_sync:
            hours = float(self.source.config.get("lookbackHours", settings.INCREMENTAL_LOOKBACK_HOURS))
            return last_sync - timedelta(hours=hours)

        hours = float(self.source.config.get("defaultWindowHours", settings.INCREMENTAL_DEFAULT_WINDOW_HOURS))
        return datetime.utcnow() - timedelta(hours=hours)
