"""Error-to-ErrorCode mapping registry.

Provides a centralized mapping from exception types to machine-readable
error codes so the CLI (and any other outer surface) reports failures the
same way.

Usage:
    from maeple_ingest.core.errors.base import error_to_response

    try:
        queue.enqueue(record)
    except Exception as e:
        result = error_to_response(e)
        if result is not None:
            return result
        raise  # Unknown error, re-raise
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional, Type

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
)


class ErrorCode(str, Enum):
    """Machine-readable error codes, SCREAMING_SNAKE_CASE."""

    DECODE_ERROR = "DECODE_ERROR"
    SCHEMA_VIOLATION = "SCHEMA_VIOLATION"
    PARSE_ERROR = "PARSE_ERROR"
    CIRCUIT_OPEN = "CIRCUIT_OPEN"
    PROVIDER_ERROR = "PROVIDER_ERROR"
    PROVIDER_TIMEOUT = "PROVIDER_TIMEOUT"
    QUEUE_FULL = "QUEUE_FULL"
    DELIVERY_TIMEOUT = "DELIVERY_TIMEOUT"
    STALE_ENTRY_DISCARDED = "STALE_ENTRY_DISCARDED"
    STORAGE_ERROR = "STORAGE_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    INTERNAL_ERROR = "INTERNAL_ERROR"


ERROR_MAPPINGS: Dict[Type[Exception], ErrorCode] = {
    # --- Parsing errors ---
    ResponseParseError: ErrorCode.PARSE_ERROR,
    DecodeError: ErrorCode.DECODE_ERROR,
    SchemaViolationError: ErrorCode.SCHEMA_VIOLATION,
    # --- Provider errors ---
    ProviderError: ErrorCode.PROVIDER_ERROR,
    ProviderResponseError: ErrorCode.PROVIDER_ERROR,
    ProviderTimeoutError: ErrorCode.PROVIDER_TIMEOUT,
    # --- Resilience errors ---
    CircuitOpenError: ErrorCode.CIRCUIT_OPEN,
    # --- Sync queue errors ---
    QueueFullError: ErrorCode.QUEUE_FULL,
    DeliveryTimeoutError: ErrorCode.DELIVERY_TIMEOUT,
    StaleEntryDiscarded: ErrorCode.STALE_ENTRY_DISCARDED,
    StorageError: ErrorCode.STORAGE_ERROR,
}


def error_code_for(exc: BaseException) -> Optional[ErrorCode]:
    """Return the registered code for ``exc``'s exact type, or None."""
    return ERROR_MAPPINGS.get(type(exc))


def error_to_response(exc: Exception) -> Optional[Dict[str, Any]]:
    """Convert a known exception to a standard error response dict, or None if unknown.

    Looks up the exception's *exact* type in ERROR_MAPPINGS.

    Args:
        exc: The exception to convert.

    Returns:
        ``{"success": False, "error": ..., "error_code": ...}`` plus any
        structured attributes the exception carries, or None when the
        exception type is not registered.
    """
    code = error_code_for(exc)
    if code is None:
        return None

    response: Dict[str, Any] = {
        "success": False,
        "error": str(exc),
        "error_code": code.value,
    }
    if isinstance(exc, CircuitOpenError) and exc.retry_after is not None:
        response["retry_after"] = round(exc.retry_after, 3)
    if isinstance(exc, QueueFullError) and exc.max_size is not None:
        response["max_size"] = exc.max_size
    if isinstance(exc, SchemaViolationError):
        response["violations"] = [v.to_dict() for v in exc.violations]
    return response
