"""
CSV file adapter with offset pagination
"""

import asyncio
import io
import pandas as pd
from typing import Any, Dict, List, Optional
from datetime import datetime
from pathlib import Path
from core.config import settings
from core.exceptions import AdapterProtocolError, ResourceNotFoundError
from ingestion.adapters.http import HTTPAdapter
from models.base import AdapterType
from schemas.ingestion import CursorState, FetchResult, RawPayload
import logging

logger = logging.getLogger(__name__)


class CSVAdapter(HTTPAdapter):
    """
    Read inspections from a CSV file path or URL.

    Supports:
    - Local paths and http(s) URLs (downloaded through the retried client)
    - Header normalization (strip, lowercase, spaces to underscores)
    - Offset pagination over rows

    CSV exports carry no change marker, so incremental runs rescan from
    row 0 and rely on dedup.

    Config:
        idColumn: column holding a stable record id (row number if absent)
        batchSize: rows per batch
    """

    adapter_type = AdapterType.CSV

    def __init__(self, source, retry_policy=None, **kwargs):
        super().__init__(source, retry_policy=retry_policy, **kwargs)
        self._rows: Optional[List[Dict[str, Any]]] = None

    def parse_config(self, raw: Dict[str, Any]) -> Dict[str, Any]:
        id_column = raw.get("idColumn")
        return {
            **raw,
            "idColumn": self.normalize_header(id_column) if id_column else None,
            "batchSize": int(raw.get("batchSize") or settings.DEFAULT_BATCH_SIZE),
        }

    @staticmethod
    def normalize_header(name: str) -> str:
        return str(name).strip().lower().replace(" ", "_")

    @property
    def is_remote(self) -> bool:
        return self.source.endpoint.startswith(("http://", "https://"))

    @staticmethod
    def parse_csv(text_or_path) -> List[Dict[str, Any]]:
        """Parse CSV into row dicts; every cell is a string or None."""
        try:
            df = pd.read_csv(text_or_path, dtype=str, keep_default_na=False)
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
            raise AdapterProtocolError("Unreadable CSV", original_exception=e)

        df.columns = df.columns.str.strip().str.lower().str.replace(" ", "_")

        rows = df.to_dict(orient="records")
        return [
            {key: (value.strip() or None) if isinstance(value, str) else value for key, value in row.items()}
            for row in rows
        ]

    async def _load_rows(self) -> List[Dict[str, Any]]:
        if self._rows is not None:
            return self._rows

        if self.is_remote:
            text = await self.get_text(self.source.endpoint)
            self._rows = await asyncio.to_thread(self.parse_csv, io.StringIO(text))
        else:
            path = Path(self.source.endpoint)
            if not path.exists():
                raise ResourceNotFoundError(
                    f"CSV file not found: {path}",
                    context={"path": str(path), "source_id": self.source.id},
                )
            self._rows = await asyncio.to_thread(self.parse_csv, path)

        logger.info(f"Read {len(self._rows)} rows from CSV {self.source.endpoint}")
        return self._rows

    async def fetch(self, cursor: Optional[CursorState]) -> FetchResult:
        rows = await self._load_rows()
        offset = int(cursor.value) if cursor is not None and cursor.type == "offset" else 0
        batch = rows[offset:offset + self.config["batchSize"]]

        id_column = self.config["idColumn"]
        records = []
        for index, row in enumerate(batch, start=offset):
            external_id = row.get(id_column) if id_column else None
            records.append(RawPayload(external_id=external_id or f"row_{index}", data=row))

        has_more = offset + len(records) < len(rows)
        next_cursor = CursorState(type="offset", value=offset + len(records)) if has_more else None

        return FetchResult(
            records=records,
            next_cursor=next_cursor,
            has_more=has_more,
            metadata={"total_rows": len(rows)},
        )

    def get_initial_cursor(self) -> CursorState:
        return CursorState(type="offset", value=0)

    def get_incremental_cursor(self, last_sync: Optional[datetime]) -> CursorState:
        return CursorState(type="offset", value=0)

    async def health_check(self) -> bool:
        if self.is_remote:
            return await self._probe(self.source.endpoint)
        return Path(self.source.endpoint).exists()
