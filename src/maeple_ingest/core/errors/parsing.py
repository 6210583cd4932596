"""Response parsing error classes.

These never cross the safe-parse boundary as raised exceptions; they are
attached to a ``ParseError`` as its ``original_cause`` so callers can inspect
or re-raise them deliberately.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence, Tuple

if TYPE_CHECKING:
    from maeple_ingest.core.parsing.results import FieldViolation


class ResponseParseError(Exception):
    """Base class for failures turning provider text into a typed record."""

    kind = "parse"


class DecodeError(ResponseParseError):
    """Provider text is not well-formed structured data.

    Attributes:
        position: Character offset of the decode failure, when known.
    """

    kind = "decode"

    def __init__(self, message: str, *, position: Optional[int] = None):
        super().__init__(message)
        self.position = position


class SchemaViolationError(ResponseParseError):
    """Decoded data does not match the declared schema.

    Attributes:
        violations: Every field-level violation found, in schema order.
    """

    kind = "schema"

    def __init__(self, message: str, violations: Sequence["FieldViolation"] = ()):
        super().__init__(message)
        self.violations: Tuple["FieldViolation", ...] = tuple(violations)

    @property
    def fields(self) -> Tuple[str, ...]:
        return tuple(v.field for v in self.violations)
