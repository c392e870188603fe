"""
Core utilities and configuration for the inspection ingestion engine.

Modules:
    config: Application configuration and environment variable management
    database: Async engine and session factory
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration and utilities

Usage:
    from core.config import settings
    from core.database import create_engine, create_session_maker
    from core.exceptions import TransientNetworkError, MalformedRecordError
    from core.logging import setup_logging
"""

__all__ = [
    "settings",
    "create_engine",
    "create_session_maker",
    "setup_logging",
    # Exceptions
    "IngestionError",
    "RetryableError",
    "NonRetryableError",
    "AdapterError",
    "TransientNetworkError",
    "RateLimitError",
    "AdapterProtocolError",
    "AuthenticationError",
    "ResourceNotFoundError",
    "TransformationError",
    "MalformedRecordError",
    "PersistenceError",
    "PersistenceConflict",
    "ConfigurationError",
    "UnknownAdapterError",
    "UnknownTransformerError",
    "SourceNotFoundError",
]
