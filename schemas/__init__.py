"""
Pydantic schemas for data validation at the engine's seams.

Schemas:
    ingestion: cursor, fetch batch, canonical record, run options and result
    source: detached source configuration handed to adapters and transformers

Usage:
    from schemas.ingestion import CursorState, CanonicalRecord, IngestionResult
    from schemas.source import SourceConfig
"""

__all__ = [
    "CursorState",
    "RawPayload",
    "FetchResult",
    "CanonicalFacility",
    "CanonicalInspection",
    "CanonicalRecord",
    "IngestionOptions",
    "IngestionResult",
    "SourceConfig",
]
