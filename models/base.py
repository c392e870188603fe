from sqlalchemy import JSON, BigInteger, Integer
from sqlalchemy.orm import declarative_base
from sqlalchemy.dialects.postgresql import JSONB
import enum
import uuid

Base = declarative_base()

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")

# SQLite only autoincrements INTEGER primary keys
BigIntPK = BigInteger().with_variant(Integer(), "sqlite")


def new_id() -> str:
    return str(uuid.uuid4())


# ============================================================================
# ENUMS
# ============================================================================

class AdapterType(str, enum.Enum):
    """Protocol family a source is reached through"""
    SOCRATA = "SOCRATA"
    ARCGIS = "ARCGIS"
    CSV = "CSV"
    MANUAL = "MANUAL"
    SCRAPER = "SCRAPER"


class SyncType(str, enum.Enum):
    """How a run picks its starting cursor"""
    BACKFILL = "BACKFILL"
    INCREMENTAL = "INCREMENTAL"
    RESUME = "RESUME"


class SyncStatus(str, enum.Enum):
    """Sync run status"""
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    SUCCESS = "SUCCESS"
    PARTIAL = "PARTIAL"
    FAILED = "FAILED"


class InspectionResult(str, enum.Enum):
    """Closed vocabulary for inspection outcomes"""
    PASS = "PASS"
    FAIL = "FAIL"
    CLOSED = "CLOSED"
    CONDITIONAL_PASS = "CONDITIONAL_PASS"
    NOT_INSPECTED = "NOT_INSPECTED"
    PENDING = "PENDING"
    OTHER = "OTHER"


class InspectionType(str, enum.Enum):
    """Closed vocabulary for inspection purpose"""
    ROUTINE = "ROUTINE"
    FOLLOW_UP = "FOLLOW_UP"
    REINSPECTION = "REINSPECTION"
    COMPLAINT = "COMPLAINT"
    OPENING = "OPENING"
    CLOSING = "CLOSING"
    OTHER = "OTHER"
