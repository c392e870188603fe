"""
Socrata (SODA) API adapter
"""

from typing import Any, Dict, Optional
from datetime import datetime
from core.config import settings
from core.exceptions import AdapterProtocolError
from ingestion.adapters.http import HTTPAdapter
from ingestion.hashing import hash_payload
from models.base import AdapterType
from schemas.ingestion import CursorState, FetchResult, RawPayload
import logging

logger = logging.getLogger(__name__)


class SocrataAdapter(HTTPAdapter):
    """
    Pull rows from a Socrata dataset endpoint ("/resource/<id>.json").

    Config:
        updatedAtField: column used for incremental watermarks (":updated_at")
        orderByField: stable ordering for offset paging ("inspection_date")
        rowIdField: per-row identifier, used as externalId (":id")
        idField: facility id column, combined with the date into externalId
                 when a row carries no rowIdField value
        batchSize: rows per request (1000)

    Cursors:
        offset    -> $offset paging over the whole dataset
        timestamp -> $where <field> > '<value>', paged by cursor.offset so
                     the watermark filter survives across batches
    """

    adapter_type = AdapterType.SOCRATA

    def parse_config(self, raw: Dict[str, Any]) -> Dict[str, Any]:
        return {
            **raw,
            "updatedAtField": raw.get("updatedAtField") or ":updated_at",
            "orderByField": raw.get("orderByField") or "inspection_date",
            "rowIdField": raw.get("rowIdField") or ":id",
            "idField": raw.get("idField") or "facility_id",
            "dateField": raw.get("dateField") or "inspection_date",
            "batchSize": int(raw.get("batchSize") or settings.DEFAULT_BATCH_SIZE),
        }

    def default_headers(self) -> Dict[str, str]:
        headers = super().default_headers()
        token = self.config.get("appToken") or settings.SOCRATA_APP_TOKEN
        if token:
            headers["X-App-Token"] = token
        return headers

    def build_params(self, cursor: Optional[CursorState]) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "$limit": self.config["batchSize"],
            "$order": self.config["orderByField"],
            # System fields (:id, :updated_at) are only returned when selected
            "$select": ":*, *",
        }

        if cursor is None:
            return params

        if cursor.type == "offset":
            params["$offset"] = int(cursor.value)
        elif cursor.type == "timestamp" and cursor.field:
            params["$where"] = f"{cursor.field} > '{cursor.value}'"
            params["$order"] = f"{cursor.field},{self.config['orderByField']}"
            if cursor.offset:
                params["$offset"] = cursor.offset

        return params

    def extract_external_id(self, record: Dict[str, Any]) -> str:
        row_id = record.get(self.config["rowIdField"])
        if row_id:
            return str(row_id)

        facility_id = record.get(self.config["idField"]) or record.get("facility_id")
        inspection_date = record.get(self.config["dateField"])

        if facility_id is None:
            # No usable natural key; fall back to a content-derived id
            return f"row_{hash_payload(record)[:16]}"

        return f"{facility_id}_{inspection_date}"

    async def fetch(self, cursor: Optional[CursorState]) -> FetchResult:
        data = await self.get_json(self.source.endpoint, params=self.build_params(cursor))

        if isinstance(data, dict) and data.get("error"):
            raise AdapterProtocolError(
                f"Socrata API error: {data.get('message') or data.get('error')}",
                context={"url": self.source.endpoint, "code": data.get("code")},
            )
        if not isinstance(data, list):
            raise AdapterProtocolError(
                "Socrata response is not a list of rows",
                context={"url": self.source.endpoint, "type": type(data).__name__},
            )

        records = [
            RawPayload(external_id=self.extract_external_id(row), data=row)
            for row in data
        ]

        has_more = len(records) == self.config["batchSize"]
        next_cursor = self._next_cursor(cursor, len(records)) if has_more else None

        logger.debug(f"Socrata fetched {len(records)} rows from {self.source.endpoint}")

        return FetchResult(
            records=records,
            next_cursor=next_cursor,
            has_more=has_more,
            metadata={"params": self.build_params(cursor)},
        )

    def _next_cursor(self, cursor: Optional[CursorState], count: int) -> CursorState:
        if cursor is not None and cursor.type == "timestamp":
            return CursorState(
                type="timestamp",
                value=cursor.value,
                field=cursor.field,
                offset=(cursor.offset or 0) + count,
            )

        current = int(cursor.value) if cursor is not None and cursor.type == "offset" else 0
        return CursorState(type="offset", value=current + count)

    def get_initial_cursor(self) -> CursorState:
        return CursorState(type="offset", value=0)

    def get_incremental_cursor(self, last_sync: Optional[datetime]) -> CursorState:
        since = self.incremental_since(last_sync)
        return CursorState(
            type="timestamp",
            value=since.strftime("%Y-%m-%dT%H:%M:%S.000"),
            field=self.config["updatedAtField"],
        )

    async def health_check(self) -> bool:
        return await self._probe(self.source.endpoint, params={"$limit": 1})
