from ingestion.loaders.record_loader import LoadOutcome, RecordLoader

__all__ = ["LoadOutcome", "RecordLoader"]
