"""Redaction of journal content and credentials before it reaches a log.

Provider responses and queued payloads carry journal text, which is health
data, and provider error envelopes occasionally echo credentials. Anything
derived from them goes through these helpers first.
"""

import json
import re
from typing import Any, Final, List, Optional, Pattern, Sequence, Tuple

SENSITIVE_PATTERNS: Final[List[Tuple[str, str]]] = [
    (r"(?i)(api[_-]?key|apikey)\s*[:=]\s*['\"]?([a-zA-Z0-9_\-]{20,})['\"]?", "API_KEY"),
    (r"(?i)bearer\s+([a-zA-Z0-9_\-\.]+)", "BEARER_TOKEN"),
    (r"\bsk-[a-zA-Z0-9_\-]{20,}", "API_KEY"),
    (r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}", "EMAIL"),
    (r"\b\d{3}-\d{2}-\d{4}\b", "SSN"),
    (r"\b(?:\+?1[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}\b", "PHONE"),
]
"""(regex, label) pairs applied in order to every string value."""

SENSITIVE_KEYS: Final[frozenset] = frozenset(
    {
        "api_key",
        "apikey",
        "authorization",
        "token",
        "access_token",
        "password",
        "secret",
        "raw_text",
        "rawtext",
        "notes",
    }
)
"""Mapping keys whose values are masked whole, matched case-insensitively."""

_COMPILED: Final[List[Tuple[Pattern[str], str]]] = [
    (re.compile(pattern), label) for pattern, label in SENSITIVE_PATTERNS
]


def _compile(patterns: Optional[Sequence[Tuple[str, str]]]) -> List[Tuple[Pattern[str], str]]:
    if patterns is None:
        return _COMPILED
    return [(re.compile(pattern), label) for pattern, label in patterns]


def _redact(value: Any, compiled: List[Tuple[Pattern[str], str]], marker: str, depth: int) -> Any:
    if depth <= 0:
        return "[MAX_DEPTH_EXCEEDED]"
    if isinstance(value, str):
        for pattern, label in compiled:
            value = pattern.sub(marker.format(label=label), value)
        return value
    if isinstance(value, dict):
        redacted = {}
        for key, item in value.items():
            normalized = str(key).lower().replace("-", "_")
            if normalized in SENSITIVE_KEYS:
                redacted[key] = f"[REDACTED:{normalized.upper()}]"
            else:
                redacted[key] = _redact(item, compiled, marker, depth - 1)
        return redacted
    if isinstance(value, (list, tuple)):
        items = [_redact(item, compiled, marker, depth - 1) for item in value]
        return tuple(items) if isinstance(value, tuple) else items
    return value


def redact_sensitive_data(
    data: Any,
    *,
    patterns: Optional[List[Tuple[str, str]]] = None,
    redaction_format: str = "[REDACTED:{label}]",
    max_depth: int = 10,
) -> Any:
    """Return a redacted copy of ``data`` (strings, mappings, sequences, nested).

    Args:
        data: Value to redact; never modified in place
        patterns: Replacement (regex, label) pairs; defaults to SENSITIVE_PATTERNS
        redaction_format: Marker template, formatted with ``label``
        max_depth: Nesting limit; deeper values become ``[MAX_DEPTH_EXCEEDED]``
    """
    return _redact(data, _compile(patterns), redaction_format, max_depth)


def preview_for_logging(text: Any, max_chars: int = 200, *, redact: bool = True) -> str:
    """Short, optionally redacted preview of provider text for a log line.

    Non-string input is rendered with ``repr`` so a wrong-typed response
    still produces a useful record.
    """
    if not isinstance(text, str):
        return repr(text)[:max_chars]
    preview = text[:max_chars]
    if redact:
        preview = redact_sensitive_data(preview)
    if len(text) > max_chars:
        preview += f"... [{len(text) - max_chars} more chars]"
    return preview


def redact_for_logging(data: Any) -> str:
    """Redact ``data`` and serialize it as JSON (``str`` if it is not serializable)."""
    redacted = redact_sensitive_data(data)
    try:
        return json.dumps(redacted, default=str)
    except (TypeError, ValueError):
        return str(redacted)
