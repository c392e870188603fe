"""
Custom exceptions for the ingestion engine with structured error context.

Every error carries a context dict so failures can be logged and stored
on the sync log without losing the upstream details.

Exception Hierarchy:
    IngestionError (base)
    ├── AdapterError
    │   ├── TransientNetworkError   (retryable)
    │   ├── RateLimitError          (retryable)
    │   ├── AdapterProtocolError
    │   ├── AuthenticationError
    │   └── ResourceNotFoundError
    ├── TransformationError
    │   └── MalformedRecordError
    ├── PersistenceError
    │   └── PersistenceConflict
    ├── ConfigurationError
    │   ├── UnknownAdapterError
    │   └── UnknownTransformerError
    ├── SourceNotFoundError
    └── RetryableError / NonRetryableError (mixins)
"""

from typing import Optional, Dict, Any
from datetime import datetime


class IngestionError(Exception):
    """
    Base exception for all ingestion errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (source, url, etc.)
        original_exception: The original exception that was caught (if any)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.utcnow()

        self.context["error_timestamp"] = self.timestamp.isoformat()

        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/storage."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Retry Strategy Mixins
# ============================================================================

class RetryableError(IngestionError):
    """
    Mixin for errors that should trigger retry logic.

    Use this for transient errors like:
    - Network timeouts and connection resets
    - Rate limiting (HTTP 429)
    - Service unavailable (HTTP 5xx)
    """
    pass


class NonRetryableError(IngestionError):
    """
    Mixin for errors that should NOT trigger retry logic.

    The retry executor rethrows these on the first attempt.
    """
    pass


# ============================================================================
# Adapter Errors
# ============================================================================

class AdapterError(IngestionError):
    """Base exception for failures talking to an upstream source."""
    pass


class TransientNetworkError(RetryableError, AdapterError):
    """
    Timeout, connection reset or 5xx from the upstream.

    Context should include:
        - url: The endpoint that failed
        - status_code: HTTP status code (if applicable)
    """
    pass


class RateLimitError(RetryableError, AdapterError):
    """Rate limiting errors (HTTP 429) that should be retried with backoff."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None,
        retry_after: Optional[int] = None
    ):
        super().__init__(message, context, original_exception)
        self.retry_after = retry_after  # Seconds requested by the upstream
        if retry_after:
            self.context["retry_after"] = retry_after


class AdapterProtocolError(NonRetryableError, AdapterError):
    """
    The source answered, but with an explicit error payload or a body
    that cannot be parsed. Fatal for the batch.
    """
    pass


class AuthenticationError(NonRetryableError, AdapterError):
    """Authentication failures (HTTP 401, 403) that should not be retried."""
    pass


class ResourceNotFoundError(NonRetryableError, AdapterError):
    """Resource not found errors (HTTP 404) that should not be retried."""
    pass


# ============================================================================
# Transformation Errors
# ============================================================================

class TransformationError(IngestionError):
    """Base exception for raw -> canonical transformation failures."""
    pass


class MalformedRecordError(NonRetryableError, TransformationError):
    """
    One record is missing or has an unparseable mandatory field.

    Context should include:
        - external_id: Upstream id of the record
        - field_name: Field that failed
        - field_value: Offending value
    """
    pass


# ============================================================================
# Persistence Errors
# ============================================================================

class PersistenceError(IngestionError):
    """Base exception for database write failures."""
    pass


class PersistenceConflict(PersistenceError):
    """
    A unique-constraint race that could not be recovered by re-reading.

    Context should include:
        - jurisdiction_id, normalized_name, normalized_address
        - slug: The slug that collided
    """
    pass


# ============================================================================
# Configuration Errors
# ============================================================================

class ConfigurationError(NonRetryableError):
    """A source is configured in a way the registry cannot serve."""
    pass


class UnknownAdapterError(ConfigurationError):
    """No adapter is registered for the source's adapter type."""
    pass


class UnknownTransformerError(ConfigurationError):
    """No transformer is registered for the jurisdiction slug."""
    pass


class SourceNotFoundError(NonRetryableError):
    """The requested source id does not exist."""
    pass
