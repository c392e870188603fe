from sqlalchemy import Column, String, Enum, DateTime, Float, Integer, Text, ForeignKey, Index
from datetime import datetime
import uuid
from models.base import Base, BigIntPK, JSONType, SyncType, SyncStatus


class SyncLog(Base):
    """
    Audit record of one ingestion run.

    Purpose:
    - Audit trail of all sync runs
    - Cursor before/after for replay and debugging
    - Error tracking

    Created at run start, finalized once at run end, never touched again.
    """
    __tablename__ = "sync_logs"

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    run_id = Column(String(36), default=lambda: str(uuid.uuid4()), unique=True, nullable=False)

    source_id = Column(String(36), ForeignKey("sources.id"), nullable=False, index=True)
    sync_type = Column(Enum(SyncType), nullable=False)
    status = Column(Enum(SyncStatus), default=SyncStatus.RUNNING, nullable=False, index=True)

    # Timestamps
    started_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    completed_at = Column(DateTime, nullable=True)
    duration_seconds = Column(Float, nullable=True)

    # Statistics
    records_fetched = Column(Integer, default=0)
    records_created = Column(Integer, default=0)
    records_updated = Column(Integer, default=0)
    records_skipped = Column(Integer, default=0)
    records_failed = Column(Integer, default=0)

    # Cursor info
    cursor_before = Column(JSONType, nullable=True)
    cursor_after = Column(JSONType, nullable=True)

    # Error tracking
    error_message = Column(Text, nullable=True)
    error_details = Column(JSONType, nullable=True)

    __table_args__ = (
        Index("idx_sync_log_source_started", "source_id", "started_at"),
    )
