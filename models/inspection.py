from sqlalchemy import Column, String, Float, Boolean, Enum, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from models.base import Base, BigIntPK, InspectionResult, InspectionType


class InspectionEvent(Base):
    """
    One inspection outcome, 1:1 with the raw record it came from.

    Replaying the same external record always updates this row in place.
    """
    __tablename__ = "inspection_events"

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    facility_id = Column(String(36), ForeignKey("facilities.id"), nullable=False, index=True)
    raw_record_id = Column(BigIntPK, ForeignKey("raw_records.id"), nullable=False, unique=True)

    inspection_date = Column(DateTime, nullable=False)

    # As published
    raw_inspection_type = Column(String(200), nullable=True)
    raw_result = Column(String(500), nullable=True)
    raw_score = Column(String(50), nullable=True)

    # Normalized
    inspection_type = Column(Enum(InspectionType), nullable=True)
    result = Column(Enum(InspectionResult), nullable=True)
    demerits = Column(Float, nullable=True)
    is_closure = Column(Boolean, nullable=False, default=False)
    is_passing = Column(Boolean, nullable=True)

    source_url = Column(String(2048), nullable=True)
    report_url = Column(String(2048), nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    facility = relationship("Facility", back_populates="inspections")

    __table_args__ = (
        Index("idx_inspection_facility_date", "facility_id", "inspection_date"),
        Index("idx_inspection_closure", "is_closure", "inspection_date"),
    )
