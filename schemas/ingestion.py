"""
Pydantic schemas for the adapter / transformer / runner contract
"""

from pydantic import BaseModel, Field, validator
from typing import Optional, List, Dict, Any, Literal, Union
from datetime import datetime
from models.base import SyncType


CursorType = Literal["offset", "timestamp", "objectid"]


class CursorState(BaseModel):
    """
    Resumable pagination position.

    - offset: row/page counter (value is an int, or a JSON string for
      browser scrapers that need more than one level of position)
    - timestamp: server-side watermark; field names the updated-at column,
      offset pages through rows newer than the watermark
    - objectid: monotonic primary-key high-water mark

    The runner persists this as opaque JSON and never looks inside value.
    """
    type: CursorType
    value: Union[int, str]
    field: Optional[str] = None
    offset: Optional[int] = None

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)

    @classmethod
    def from_json(cls, data: Optional[Dict[str, Any]]) -> Optional["CursorState"]:
        if not data:
            return None
        return cls.model_validate(data)


class RawPayload(BaseModel):
    """One fetched record, before transformation"""
    external_id: str = Field(..., min_length=1, max_length=255)
    data: Dict[str, Any]

    @validator("external_id", pre=True)
    def coerce_external_id(cls, v):
        if v is None:
            return v
        return str(v)


class FetchResult(BaseModel):
    """One batch returned by Adapter.fetch"""
    records: List[RawPayload] = Field(default_factory=list)
    next_cursor: Optional[CursorState] = None
    has_more: bool = False
    metadata: Dict[str, Any] = Field(default_factory=dict)
    fetched_at: datetime = Field(default_factory=datetime.utcnow)


# ============================================================================
# Canonical record
# ============================================================================

class CanonicalFacility(BaseModel):
    """Facility fields as published by the source"""
    external_id: str = ""
    raw_name: str
    raw_address: str = ""
    raw_city: Optional[str] = None
    raw_state: Optional[str] = None
    raw_zip: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @validator("raw_name")
    def clean_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Facility name cannot be empty")
        return v

    @validator("raw_zip", pre=True)
    def coerce_zip(cls, v):
        if v is None or v == "":
            return None
        return str(v).strip()


class CanonicalInspection(BaseModel):
    """Inspection fields as published by the source"""
    inspection_date: datetime
    raw_inspection_type: Optional[str] = None
    raw_result: Optional[str] = None
    raw_score: Optional[str] = None
    demerits: Optional[float] = None
    source_url: Optional[str] = None
    report_url: Optional[str] = None

    @validator("raw_score", pre=True)
    def coerce_score(cls, v):
        if v is None or v == "":
            return None
        return str(v)


class CanonicalRecord(BaseModel):
    """
    Normalized facility + inspection shape produced by a transformer.

    Never persisted directly: the loader hashes raw_payload, resolves the
    facility and writes the inspection event from it.
    """
    external_id: str
    facility: CanonicalFacility
    inspection: CanonicalInspection
    raw_payload: Dict[str, Any]


# ============================================================================
# Runner invocation
# ============================================================================

class IngestionOptions(BaseModel):
    """Arguments of one sync run"""
    source_id: str
    sync_type: SyncType = SyncType.INCREMENTAL
    max_records: Optional[int] = Field(None, ge=1)


class IngestionResult(BaseModel):
    """Structured outcome of one sync run"""
    success: bool
    records_fetched: int = 0
    records_created: int = 0
    records_updated: int = 0
    records_skipped: int = 0
    records_failed: int = 0
    error: Optional[str] = None
    run_id: Optional[str] = None
