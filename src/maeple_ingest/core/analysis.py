"""Capture pipeline: provider call, safe parse, local write and enqueue.

A parse failure never turns into fabricated data. The outcome is labeled
UNAVAILABLE, the user's original input is kept, and the capture is still
queued for sync with ``analysis`` set to null.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic_core import to_jsonable_python

from maeple_ingest.config.domains import ParsingConfig
from maeple_ingest.core.observability.reporter import Reporter, get_default_reporter
from maeple_ingest.core.parsing.facade import safe_parse_response
from maeple_ingest.core.parsing.results import ParseError, Success
from maeple_ingest.core.parsing.validator import Schema
from maeple_ingest.core.providers.base import TextCompletionProvider
from maeple_ingest.core.sync.queue import SyncQueue

logger = logging.getLogger(__name__)


class AnalysisStatus(str, Enum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class AnalysisOutcome:
    """Result of one capture.

    Attributes:
        status: AVAILABLE with a record, or UNAVAILABLE ("analysis unavailable")
        record: Validated record, or None when unavailable
        original_input: The user's input, always preserved
        error: Parse error when unavailable
        entry_id: Sync queue entry holding the capture
        fallback: Caller-supplied default, offered but never applied
    """

    status: AnalysisStatus
    original_input: Any
    entry_id: str
    record: Any = None
    error: Optional[ParseError] = None
    fallback: Any = None

    @property
    def available(self) -> bool:
        return self.status == AnalysisStatus.AVAILABLE

    def to_dict(self) -> Dict[str, Any]:
        record = self.record
        if hasattr(record, "to_record"):
            record = record.to_record()
        elif record is not None:
            record = to_jsonable_python(record)
        return {
            "status": self.status.value,
            "record": record,
            "original_input": self.original_input,
            "error": self.error.to_dict() if self.error else None,
            "entry_id": self.entry_id,
        }


class AnalysisService:
    """Run a prompt through the provider and turn the reply into a queued record.

    ``provider`` is normally a ``GuardedProvider``; ``CircuitOpenError`` and
    provider errors propagate to the caller, as does ``QueueFullError``.
    """

    def __init__(
        self,
        provider: TextCompletionProvider,
        queue: SyncQueue,
        *,
        reporter: Optional[Reporter] = None,
        parsing: Optional[ParsingConfig] = None,
    ) -> None:
        self.provider = provider
        self.queue = queue
        self._reporter = reporter
        self._parsing = parsing

    async def analyze(
        self,
        prompt: str,
        schema: Schema,
        *,
        context: str,
        original_input: Any,
        fallback: Any = None,
    ) -> AnalysisOutcome:
        raw = await self.provider.complete_text(prompt)
        result = safe_parse_response(
            raw,
            schema,
            context=context,
            on_failure_fallback=fallback,
            reporter=self._reporter or get_default_reporter(),
            config=self._parsing,
        )

        if isinstance(result, Success):
            analysis = result.data
            record_json = (
                analysis.to_record()
                if hasattr(analysis, "to_record")
                else to_jsonable_python(analysis)
            )
            error = None
            status = AnalysisStatus.AVAILABLE
        else:
            analysis = None
            record_json = None
            error = result.error
            status = AnalysisStatus.UNAVAILABLE
            logger.info("Analysis unavailable for %s; keeping original input", context)

        entry_id = self.queue.enqueue(
            {
                "context": context,
                "captured_at": datetime.now(timezone.utc).isoformat(),
                "original_input": original_input,
                "analysis": record_json,
                "analysis_status": status.value,
            }
        )
        return AnalysisOutcome(
            status=status,
            original_input=original_input,
            entry_id=entry_id,
            record=analysis,
            error=error,
            fallback=fallback,
        )
