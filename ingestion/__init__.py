"""
Ingestion engine: pulls inspection records from public sources into the
normalized store.

Modules:
    base: Adapter contract (fetch / initial cursor / incremental cursor / health)
    retry: Bounded exponential-backoff executor for network calls
    hashing: Canonical JSON + SHA-256 for change detection
    slug: Human-readable, unique facility slugs
    resolver: Facility identity lookup with race-safe creation
    registry: Explicit adapter / scraper / transformer registry
    runner: Orchestrator for one sync run

Subpackages:
    adapters: Socrata, ArcGIS, CSV, manual and browser-scraper adapters
    normalizers: Address, name, result and inspection-type vocabularies
    transformers: Per-jurisdiction raw -> canonical mappings
    loaders: Idempotent upsert of raw records and inspection events

Architecture:
    runner -> registry -> adapter.fetch(cursor)  [retry inside]
           -> for each record: transformer -> loader (dedup -> resolver -> upsert)
           -> persist cursor -> rate-limit sleep -> repeat

    Delivery from sources is at-least-once. Replays are absorbed by the
    payload hash, never by cursor precision.

Usage:
    from core.database import create_engine, create_session_maker
    from ingestion.registry import build_default_registry
    from ingestion.runner import IngestionRunner
    from models import SyncType
    from schemas.ingestion import IngestionOptions

    runner = IngestionRunner(create_session_maker(create_engine()), build_default_registry())
    result = await runner.run(IngestionOptions(source_id=source_id, sync_type=SyncType.BACKFILL))

    print(f"Created {result.records_created} inspections")
"""

__all__ = [
    "base",
    "retry",
    "hashing",
    "slug",
    "resolver",
    "registry",
    "runner",
    "adapters",
    "normalizers",
    "transformers",
    "loaders",
]
