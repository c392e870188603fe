"""
ArcGIS feature-server adapter
"""

from typing import Any, Dict, Optional
from datetime import datetime
from core.exceptions import AdapterProtocolError
from ingestion.adapters.http import HTTPAdapter
from models.base import AdapterType
from schemas.ingestion import CursorState, FetchResult, RawPayload
import logging

logger = logging.getLogger(__name__)

# Feature servers cap resultRecordCount at their maxRecordCount, 1000 or 2000 typically
MAX_BATCH_SIZE = 1000


class ArcGISAdapter(HTTPAdapter):
    """
    Page through a feature layer by OBJECTID high-water mark.

    Feature servers expose no reliable updated-at column, so incremental
    runs rescan the full id range; replays are absorbed by dedup.

    Config:
        objectIdField: monotonic primary key ("OBJECTID")
        whereClause: extra filter ANDed with the paging predicate ("1=1")
        batchSize: rows per request, capped at 1000
    """

    adapter_type = AdapterType.ARCGIS

    def parse_config(self, raw: Dict[str, Any]) -> Dict[str, Any]:
        return {
            **raw,
            "objectIdField": raw.get("objectIdField") or "OBJECTID",
            "whereClause": raw.get("whereClause") or None,
            "batchSize": min(int(raw.get("batchSize") or MAX_BATCH_SIZE), MAX_BATCH_SIZE),
        }

    @property
    def query_url(self) -> str:
        endpoint = self.source.endpoint
        if endpoint.endswith("/query"):
            return endpoint
        return endpoint.rstrip("/") + "/query"

    def build_where(self, cursor: Optional[CursorState]) -> str:
        base_where = self.config["whereClause"] or "1=1"
        if cursor is not None and cursor.type == "objectid":
            return f"({base_where}) AND {self.config['objectIdField']} > {cursor.value}"
        return base_where

    async def fetch(self, cursor: Optional[CursorState]) -> FetchResult:
        params = {
            "where": self.build_where(cursor),
            "outFields": "*",
            "f": "json",
            "resultRecordCount": self.config["batchSize"],
            "orderByFields": self.config["objectIdField"],
            "returnGeometry": "true",
        }

        data = await self.get_json(self.query_url, params=params)

        if not isinstance(data, dict):
            raise AdapterProtocolError(
                "ArcGIS response is not an object",
                context={"url": self.query_url},
            )

        # Feature servers report errors with HTTP 200 and an error body
        if data.get("error"):
            error = data["error"]
            raise AdapterProtocolError(
                f"ArcGIS API error: {error.get('message', error)}",
                context={"url": self.query_url, "code": error.get("code")},
            )

        id_field = self.config["objectIdField"]
        records = []
        for feature in data.get("features") or []:
            attributes = dict(feature.get("attributes") or {})
            geometry = feature.get("geometry")
            if geometry:
                attributes["_geometry_x"] = geometry.get("x")
                attributes["_geometry_y"] = geometry.get("y")
            records.append(RawPayload(external_id=str(attributes.get(id_field)), data=attributes))

        last_object_id = records[-1].data.get(id_field) if records else None
        has_more = bool(data.get("exceededTransferLimit")) or len(records) == self.config["batchSize"]

        if has_more and last_object_id is None:
            logger.warning(f"ArcGIS batch has no {id_field} on its last feature; stopping pagination")
            has_more = False

        next_cursor = CursorState(type="objectid", value=last_object_id) if has_more else None

        return FetchResult(
            records=records,
            next_cursor=next_cursor,
            has_more=has_more,
            metadata={"where": params["where"]},
        )

    def get_initial_cursor(self) -> CursorState:
        return CursorState(type="objectid", value=0)

    def get_incremental_cursor(self, last_sync: Optional[datetime]) -> CursorState:
        return CursorState(type="objectid", value=0)

    async def health_check(self) -> bool:
        endpoint = self.source.endpoint
        if endpoint.endswith("/query"):
            endpoint = endpoint[: -len("/query")]
        return await self._probe(endpoint, params={"f": "json"})
