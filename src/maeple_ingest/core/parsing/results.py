"""Tagged-union result types for safe parsing.

A parse either yields ``Success(data)`` or ``Failure(error)``; exactly one is
returned and callers branch on the type (or on ``ok``) before touching data:

    result = safe_parse_response(raw, MoodAnalysis, context="mood")
    if isinstance(result, Success):
        save(result.data)
    else:
        show_unavailable(result.error)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Generic, Literal, Optional, Tuple, TypeGuard, TypeVar, Union

T = TypeVar("T")

ParseErrorKind = Literal["decode", "schema"]


@dataclass(frozen=True)
class FieldViolation:
    """One field that did not match the schema.

    Attributes:
        field: Dotted path to the field (``observations.0.category``), or
            ``<root>`` when the top-level value has the wrong shape
        expected: What the schema declares
        actual: What the response contained
        message: Validator message
    """

    field: str
    expected: str
    actual: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "field": self.field,
            "expected": self.expected,
            "actual": self.actual,
            "message": self.message,
        }

    def __str__(self) -> str:
        return f"{self.field}: expected {self.expected}, got {self.actual}"


@dataclass(frozen=True)
class ParseError:
    """Structured, loggable description of a failed parse.

    ``message`` and ``context`` depend only on the input, so the same
    malformed response always produces the same pair; ``occurred_at`` is
    the only field that varies between calls.
    """

    message: str
    context: str
    kind: ParseErrorKind
    original_cause: Optional[BaseException] = field(default=None, compare=False)
    violations: Tuple[FieldViolation, ...] = ()
    occurred_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc), compare=False
    )

    @property
    def fields(self) -> Tuple[str, ...]:
        return tuple(v.field for v in self.violations)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "context": self.context,
            "kind": self.kind,
            "violations": [v.to_dict() for v in self.violations],
            "cause": type(self.original_cause).__name__ if self.original_cause else None,
            "occurred_at": self.occurred_at.isoformat(),
        }


@dataclass(frozen=True)
class Success(Generic[T]):
    """Parse produced a value that exactly matches the schema."""

    data: T

    @property
    def ok(self) -> Literal[True]:
        return True

    def unwrap(self) -> T:
        return self.data


@dataclass(frozen=True)
class Failure:
    """Parse failed; ``error`` says why.

    ``fallback`` carries the caller-supplied default, untouched. It is never
    substituted for data here; whether a default is acceptable is the
    caller's decision.
    """

    error: ParseError
    fallback: Any = None

    @property
    def ok(self) -> Literal[False]:
        return False

    def unwrap(self) -> Any:
        """Raise the underlying parse exception."""
        cause = self.error.original_cause
        if cause is not None:
            raise cause
        raise ValueError(self.error.message)


ParseResult = Union[Success[T], Failure]


def is_success(result: ParseResult[T]) -> TypeGuard[Success[T]]:
    """Narrow a ParseResult to Success."""
    return isinstance(result, Success)
