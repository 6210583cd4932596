"""Safe-parse facade: normalize, validate, report.

``safe_parse_response`` is the one call features make to turn provider text
into a typed record. It never raises for bad data; every outcome comes back
as a ``ParseResult`` and is reported as exactly one ``ParseOutcomeEvent``.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

from maeple_ingest.config.domains import ParsingConfig
from maeple_ingest.core.errors.parsing import DecodeError
from maeple_ingest.core.observability.events import ParseOutcomeEvent
from maeple_ingest.core.observability.redaction import preview_for_logging
from maeple_ingest.core.observability.reporter import Reporter, get_default_reporter
from maeple_ingest.core.parsing.normalizer import normalize
from maeple_ingest.core.parsing.results import Failure, ParseError, ParseResult, Success
from maeple_ingest.core.parsing.validator import Schema, validate

logger = logging.getLogger(__name__)


def safe_parse_response(
    raw_response: Any,
    schema: Schema,
    *,
    context: str,
    on_failure_fallback: Optional[Any] = None,
    reporter: Optional[Reporter] = None,
    config: Optional[ParsingConfig] = None,
) -> ParseResult[Any]:
    """Parse raw provider text into a record matching ``schema``.

    Args:
        raw_response: Text exactly as the provider returned it
        schema: Pydantic model class or TypeAdapter for the expected record
        context: Call-site tag attached to the error and the outcome event
        on_failure_fallback: Caller's default value. Carried on ``Failure``
            untouched; never returned as data.
        reporter: Observability sink (defaults to the process-wide reporter)
        config: Log preview settings

    Returns:
        ``Success`` with the validated record, or ``Failure`` whose error
        carries ``context``.

    Example:
        >>> result = safe_parse_response('```json\\n{"mood": "calm"}\\n```', Mood, context="mood")
        >>> result.data.mood
        'calm'
    """
    reporter = reporter or get_default_reporter()
    config = config or ParsingConfig()
    started = time.perf_counter()

    if isinstance(raw_response, str):
        response_length = len(raw_response)
        result = validate(normalize(raw_response), schema, context=context)
    else:
        response_length = 0
        message = f"Response is not text (got {type(raw_response).__name__})"
        result = Failure(
            error=ParseError(
                message=message,
                context=context,
                kind="decode",
                original_cause=DecodeError(message),
            )
        )

    if isinstance(result, Failure) and on_failure_fallback is not None:
        result = Failure(error=result.error, fallback=on_failure_fallback)

    duration_ms = (time.perf_counter() - started) * 1000
    error_kind = None if isinstance(result, Success) else result.error.kind

    if isinstance(result, Success):
        logger.debug(
            "Parsed %s response (%d chars) in %.2fms", context, response_length, duration_ms
        )
    else:
        logger.warning(
            "Failed to parse %s response (%s): %s | preview: %s",
            context,
            error_kind,
            result.error.message,
            preview_for_logging(
                raw_response,
                max_chars=config.log_preview_chars,
                redact=config.redact_previews,
            ),
        )

    reporter.emit(
        ParseOutcomeEvent(
            context=context,
            success=isinstance(result, Success),
            duration_ms=duration_ms,
            response_length=response_length,
            error_kind=error_kind,
        )
    )
    return result
