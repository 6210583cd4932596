"""Decode a JSON candidate and check it against a declared schema.

Schemas are pydantic models (or ``TypeAdapter`` instances). Validation runs
in strict JSON mode: no type coercion, no tolerance for missing or unknown
fields, and every violation is reported rather than only the first.
"""

from __future__ import annotations

import functools
import json
import logging
from typing import Any, Dict, List, Type, TypeVar, Union

from pydantic import BaseModel, TypeAdapter, ValidationError

from maeple_ingest.core.errors.parsing import DecodeError, SchemaViolationError
from maeple_ingest.core.parsing.results import (
    Failure,
    FieldViolation,
    ParseError,
    ParseResult,
    Success,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

Schema = Union[Type[T], TypeAdapter]

ROOT_FIELD = "<root>"

_EXPECTED_BY_ERROR_TYPE: Dict[str, str] = {
    "missing": "required field",
    "string_type": "string",
    "int_type": "integer",
    "int_from_float": "integer",
    "int_parsing": "integer",
    "float_type": "number",
    "bool_type": "boolean",
    "list_type": "array",
    "tuple_type": "array",
    "dict_type": "object",
    "model_type": "object",
    "model_attributes_type": "object",
    "extra_forbidden": "no such field",
    "datetime_type": "ISO 8601 datetime",
    "datetime_parsing": "ISO 8601 datetime",
    "date_type": "ISO 8601 date",
    "uuid_type": "UUID string",
    "uuid_parsing": "UUID string",
    "frozen_instance": "immutable field",
}

_BOUND_KEYS = (
    ("ge", ">= {}"),
    ("gt", "> {}"),
    ("le", "<= {}"),
    ("lt", "< {}"),
    ("min_length", "length >= {}"),
    ("max_length", "length <= {}"),
    ("pattern", "match {}"),
)


@functools.lru_cache(maxsize=256)
def _cached_adapter(schema: Any) -> TypeAdapter:
    return TypeAdapter(schema)


def _adapter_for(schema: Schema) -> TypeAdapter:
    if isinstance(schema, TypeAdapter):
        return schema
    return _cached_adapter(schema)


def schema_name(schema: Schema) -> str:
    """Human-readable name for a schema, used in failure messages."""
    if isinstance(schema, TypeAdapter):
        inner = getattr(schema, "_type", None)
        return getattr(inner, "__name__", None) or repr(inner)
    return getattr(schema, "__name__", None) or repr(schema)


def json_type_name(value: Any) -> str:
    """Name ``value``'s type in JSON vocabulary."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _describe_actual(error: Dict[str, Any]) -> str:
    if error["type"] == "missing":
        return "missing"
    value = error.get("input")
    kind = json_type_name(value)
    if kind in ("string", "number", "boolean"):
        rendered = repr(value)
        if len(rendered) > 40:
            rendered = rendered[:37] + "..."
        return f"{kind} {rendered}"
    return kind


def _describe_expected(error: Dict[str, Any]) -> str:
    error_type = error["type"]
    ctx = error.get("ctx") or {}
    if error_type in ("enum", "literal_error"):
        return f"one of {ctx.get('expected', '?')}"
    if error_type in _EXPECTED_BY_ERROR_TYPE:
        return _EXPECTED_BY_ERROR_TYPE[error_type]
    for key, template in _BOUND_KEYS:
        if key in ctx:
            return template.format(ctx[key])
    return error_type.replace("_", " ")


def violations_from(exc: ValidationError) -> List[FieldViolation]:
    """Convert every pydantic error into a FieldViolation, in reported order."""
    violations = []
    for error in exc.errors(include_url=False):
        loc = error.get("loc") or ()
        field = ".".join(str(part) for part in loc) or ROOT_FIELD
        violations.append(
            FieldViolation(
                field=field,
                expected=_describe_expected(error),
                actual=_describe_actual(error),
                message=error.get("msg", ""),
            )
        )
    return violations


def _decode_failure(message: str, context: str, cause: DecodeError) -> Failure:
    return Failure(
        error=ParseError(message=message, context=context, kind="decode", original_cause=cause)
    )


def validate(
    candidate_text: str,
    schema: Schema,
    *,
    context: str = "validate",
) -> ParseResult[Any]:
    """Decode ``candidate_text`` and validate it against ``schema``.

    Args:
        candidate_text: Normalized JSON candidate
        schema: Pydantic model class or TypeAdapter describing the record
        context: Call-site tag recorded on any failure

    Returns:
        ``Success`` holding a value of the schema's type, or ``Failure``
        with a decode error or the complete list of schema violations.
    """
    if not isinstance(candidate_text, str) or not candidate_text.strip():
        message = "Empty response: nothing to decode"
        return _decode_failure(message, context, DecodeError(message, position=0))

    try:
        json.loads(candidate_text)
    except json.JSONDecodeError as exc:
        message = f"Malformed JSON at line {exc.lineno} column {exc.colno}: {exc.msg}"
        cause = DecodeError(message, position=exc.pos)
        cause.__cause__ = exc
        return _decode_failure(message, context, cause)
    except RecursionError as exc:
        message = "Malformed JSON: nesting too deep to decode"
        cause = DecodeError(message)
        cause.__cause__ = exc
        return _decode_failure(message, context, cause)

    adapter = _adapter_for(schema)
    try:
        data = adapter.validate_json(candidate_text, strict=True)
    except ValidationError as exc:
        violations = violations_from(exc)
        if violations and all(v.expected == "json invalid" for v in violations):
            # Accepted by json.loads (NaN, Infinity) but not by the strict parser.
            message = f"Malformed JSON: {violations[0].message}"
            cause = DecodeError(message)
            cause.__cause__ = exc
            return _decode_failure(message, context, cause)

        summary = "; ".join(str(v) for v in violations)
        message = (
            f"Response does not match {schema_name(schema)}: "
            f"{len(violations)} violation(s): {summary}"
        )
        cause = SchemaViolationError(message, violations)
        cause.__cause__ = exc
        return Failure(
            error=ParseError(
                message=message,
                context=context,
                kind="schema",
                original_cause=cause,
                violations=tuple(violations),
            )
        )

    return Success(data=data)
