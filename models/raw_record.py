from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, Index
from datetime import datetime
from models.base import Base, BigIntPK, JSONType


class RawRecord(Base):
    """
    Stores the original payload of every fetched record.

    Purpose:
    - Change detection: a stable payload_hash means the record is skipped
    - Reprocessing capability
    - Data lineage for each inspection event

    Design Decisions:
    - Unique on (source_id, external_id): replay updates in place
    - processed_at is cleared whenever the payload changes
    """
    __tablename__ = "raw_records"

    id = Column(BigIntPK, primary_key=True, autoincrement=True)

    # Source identification
    source_id = Column(String(36), ForeignKey("sources.id"), nullable=False, index=True)
    external_id = Column(String(255), nullable=False)

    # Raw data storage
    payload = Column(JSONType, nullable=False)
    payload_hash = Column(String(64), nullable=False)  # SHA-256 of canonical JSON

    # Processing tracking
    fetched_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    processed_at = Column(DateTime, nullable=True)

    __table_args__ = (
        UniqueConstraint("source_id", "external_id", name="uq_raw_record_source_external"),
        Index("idx_raw_record_unprocessed", "processed_at"),
    )
