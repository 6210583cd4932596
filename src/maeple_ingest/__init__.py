"""AI-response ingestion and resilience layer for the MAEPLE journaling app.

Turns untrusted LLM text into typed records, guards provider calls with a
circuit breaker, and keeps locally captured records flowing to the remote
store through a bounded, durable sync queue.
"""

import logging

from maeple_ingest.core.parsing import (
    Failure,
    ParseError,
    ParseResult,
    Success,
    normalize,
    safe_parse_response,
    validate,
)
from maeple_ingest.core.resilience import CircuitBreaker, CircuitState
from maeple_ingest.core.sync import SyncEntry, SyncQueue, SyncStatus

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "normalize",
    "validate",
    "safe_parse_response",
    "ParseResult",
    "ParseError",
    "Success",
    "Failure",
    "CircuitBreaker",
    "CircuitState",
    "SyncQueue",
    "SyncEntry",
    "SyncStatus",
]
