from sqlalchemy import Column, String, Integer, Float, DateTime, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from models.base import Base, JSONType, new_id


class Facility(Base):
    """
    Deduplicated physical site that inspections attach to.

    Identity:
    - (jurisdiction_id, normalized_name, normalized_address), exact match
    - slug is globally unique and never reassigned once written

    Aggregates (last_inspection_*, total_inspections) are recomputed from
    the full inspection set after every inspection write.
    """
    __tablename__ = "facilities"

    id = Column(String(36), primary_key=True, default=new_id)
    jurisdiction_id = Column(String(36), ForeignKey("jurisdictions.id"), nullable=False, index=True)

    # [{"sourceId": ..., "externalId": ...}]
    external_ids = Column(JSONType, nullable=True)

    # As published by the source
    raw_name = Column(String(500), nullable=False)
    raw_address = Column(String(500), nullable=False)
    raw_city = Column(String(200), nullable=True)
    raw_state = Column(String(50), nullable=True)
    raw_zip = Column(String(20), nullable=True)

    # Identity keys
    normalized_name = Column(String(500), nullable=False)
    normalized_address = Column(String(500), nullable=False)

    # Cosmetic
    display_name = Column(String(500), nullable=False)
    display_address = Column(String(700), nullable=False)
    city = Column(String(200), nullable=True)
    state = Column(String(50), nullable=True)
    zip_code = Column(String(20), nullable=True)

    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    slug = Column(String(300), nullable=False)

    # Aggregates
    last_inspection_date = Column(DateTime, nullable=True)
    last_inspection_result = Column(String(50), nullable=True)
    total_inspections = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    inspections = relationship("InspectionEvent", back_populates="facility")

    __table_args__ = (
        UniqueConstraint(
            "jurisdiction_id", "normalized_name", "normalized_address",
            name="uq_facility_identity",
        ),
        UniqueConstraint("slug", name="uq_facility_slug"),
        Index("idx_facility_last_inspection", "last_inspection_date"),
    )
