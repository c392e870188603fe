"""
Adapter for hand-entered records stored on the source itself
"""

from typing import Any, Dict, Optional
from datetime import datetime
from core.config import settings
from core.exceptions import AdapterProtocolError
from ingestion.base import SourceAdapter
from models.base import AdapterType
from schemas.ingestion import CursorState, FetchResult, RawPayload


class ManualAdapter(SourceAdapter):
    """
    Serve the list in config["records"] with offset pagination.

    Each record needs an "externalId" (or "id") key; the whole dict is
    the payload.
    """

    adapter_type = AdapterType.MANUAL

    def parse_config(self, raw: Dict[str, Any]) -> Dict[str, Any]:
        records = raw.get("records") or []
        if not isinstance(records, list):
            raise AdapterProtocolError(
                "Manual source config.records must be a list",
                context={"source_id": self.source.id},
            )
        return {
            **raw,
            "records": records,
            "batchSize": int(raw.get("batchSize") or settings.DEFAULT_BATCH_SIZE),
        }

    async def fetch(self, cursor: Optional[CursorState]) -> FetchResult:
        rows = self.config["records"]
        offset = int(cursor.value) if cursor is not None and cursor.type == "offset" else 0
        batch = rows[offset:offset + self.config["batchSize"]]

        records = []
        for index, row in enumerate(batch, start=offset):
            external_id = row.get("externalId") or row.get("id") or f"manual_{index}"
            records.append(RawPayload(external_id=external_id, data=row))

        has_more = offset + len(records) < len(rows)
        return FetchResult(
            records=records,
            next_cursor=CursorState(type="offset", value=offset + len(records)) if has_more else None,
            has_more=has_more,
        )

    def get_initial_cursor(self) -> CursorState:
        return CursorState(type="offset", value=0)

    def get_incremental_cursor(self, last_sync: Optional[datetime]) -> CursorState:
        return CursorState(type="offset", value=0)

    async def health_check(self) -> bool:
        return True
