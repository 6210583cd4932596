"""Provider-response parsing: normalize, validate, and report.

Example:
    from maeple_ingest.core.parsing import safe_parse_response, Success

    result = safe_parse_response(raw_text, MoodAnalysis, context="mood")
    if isinstance(result, Success):
        record = result.data
"""

from maeple_ingest.core.parsing.facade import safe_parse_response
from maeple_ingest.core.parsing.normalizer import normalize
from maeple_ingest.core.parsing.results import (
    Failure,
    FieldViolation,
    ParseError,
    ParseResult,
    Success,
    is_success,
)
from maeple_ingest.core.parsing.validator import Schema, schema_name, validate

__all__ = [
    "normalize",
    "validate",
    "safe_parse_response",
    "schema_name",
    "Schema",
    "ParseResult",
    "ParseError",
    "FieldViolation",
    "Success",
    "Failure",
    "is_success",
]
