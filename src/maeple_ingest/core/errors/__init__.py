"""Unified error hierarchy for maeple-ingest.

All custom exception classes live in domain-specific modules within this
package. This __init__.py re-exports everything for convenient access.

Usage:
    from maeple_ingest.core.errors import CircuitOpenError, QueueFullError
    from maeple_ingest.core.errors import error_to_response
"""

from maeple_ingest.core.errors.base import (
    ERROR_MAPPINGS,
    ErrorCode,
    error_code_for,
    error_to_response,
)
from maeple_ingest.core.errors.parsing import (
    DecodeError,
    ResponseParseError,
    SchemaViolationError,
)
from maeple_ingest.core.errors.provider import (
    ProviderError,
    ProviderResponseError,
    ProviderTimeoutError,
)
from maeple_ingest.core.errors.resilience import CircuitOpenError
from maeple_ingest.core.errors.sync import (
    DeliveryTimeoutError,
    QueueFullError,
    StaleEntryDiscarded,
    StorageError,
    SyncQueueError,
)

__all__ = [
    # Registry
    "ERROR_MAPPINGS",
    "ErrorCode",
    "error_code_for",
    "error_to_response",
    # Parsing
    "ResponseParseError",
    "DecodeError",
    "SchemaViolationError",
    # Provider
    "ProviderError",
    "ProviderResponseError",
    "ProviderTimeoutError",
    # Resilience
    "CircuitOpenError",
    # Sync
    "SyncQueueError",
    "QueueFullError",
    "DeliveryTimeoutError",
    "StaleEntryDiscarded",
    "StorageError",
]
