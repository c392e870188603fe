from sqlalchemy import Column, String, Integer, Enum, DateTime, Text, Boolean, ForeignKey, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from models.base import Base, JSONType, AdapterType, SyncStatus, new_id


class Jurisdiction(Base):
    """
    A government body publishing inspections (county, city, state agency).

    The slug selects the transformer for every source of the jurisdiction.
    """
    __tablename__ = "jurisdictions"

    id = Column(String(36), primary_key=True, default=new_id)
    slug = Column(String(100), nullable=False, unique=True)
    name = Column(String(200), nullable=False)
    state = Column(String(2), nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    sources = relationship("Source", back_populates="jurisdiction")


class Source(Base):
    """
    One configured external provider.

    Purpose:
    - Holds the adapter type, endpoint and adapter-owned config blob
    - Stores the resumable cursor, rewritten after every batch
    - Summarises the outcome of the latest sync run

    The cursor is opaque JSON owned by the adapter; the runner only
    persists and restores it.
    """
    __tablename__ = "sources"

    id = Column(String(36), primary_key=True, default=new_id)
    jurisdiction_id = Column(String(36), ForeignKey("jurisdictions.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)

    # Adapter configuration
    adapter_type = Column(Enum(AdapterType), nullable=False)
    endpoint = Column(String(2048), nullable=False)
    config = Column(JSONType, nullable=True)
    requests_per_minute = Column(Integer, nullable=False, default=60)
    is_active = Column(Boolean, nullable=False, default=True)

    # Resumable position
    cursor = Column(JSONType, nullable=True)

    # Latest run summary
    last_sync_at = Column(DateTime, nullable=True)
    last_sync_status = Column(Enum(SyncStatus), nullable=True)
    last_sync_error = Column(Text, nullable=True)
    last_record_count = Column(Integer, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    jurisdiction = relationship("Jurisdiction", back_populates="sources")

    __table_args__ = (
        Index("idx_source_active", "is_active"),
    )
