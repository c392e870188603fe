"""
Pydantic schema for a configured source, detached from the ORM session
"""

from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
from datetime import datetime
from models.base import AdapterType, SyncStatus


class SourceConfig(BaseModel):
    """
    Source configuration as consumed by adapters and transformers.

    A plain snapshot: a session rollback mid-run never expires it.
    """
    id: str
    jurisdiction_id: str
    jurisdiction_slug: str
    name: str = ""
    adapter_type: AdapterType
    endpoint: str
    config: Dict[str, Any] = Field(default_factory=dict)
    requests_per_minute: int = Field(60, ge=1)
    is_active: bool = True
    cursor: Optional[Dict[str, Any]] = None
    last_sync_at: Optional[datetime] = None
    last_sync_status: Optional[SyncStatus] = None
    last_sync_error: Optional[str] = None

    @classmethod
    def from_orm(cls, source):
        """Build from a Source row with its jurisdiction loaded"""
        return cls(
            id=source.id,
            jurisdiction_id=source.jurisdiction_id,
            jurisdiction_slug=source.jurisdiction.slug,
            name=source.name or "",
            adapter_type=source.adapter_type,
            endpoint=source.endpoint,
            config=source.config or {},
            requests_per_minute=source.requests_per_minute or 60,
            is_active=source.is_active,
            cursor=source.cursor,
            last_sync_at=source.last_sync_at,
            last_sync_status=source.last_sync_status,
            last_sync_error=source.last_sync_error,
        )
