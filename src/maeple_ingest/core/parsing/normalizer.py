"""Strip non-JSON wrapping from raw provider text.

Providers wrap JSON in markdown fences, prepend "Here is the analysis:",
append closing remarks, or do all three. ``normalize`` peels that off and
returns the JSON candidate. It never raises. When several bracketed spans
are present the first one that decodes wins; if none does, the first span
comes back unchanged so the decode stage reports the failure.
"""

from __future__ import annotations

import json
import re
from typing import List, Optional, Tuple

# Opening fence with an optional language hint (```json, ``` JSON, ```jsonc).
_LEADING_FENCE = re.compile(r"\A```[ \t]*[A-Za-z0-9_+.-]*[ \t]*(?:\r?\n|\Z)")
_TRAILING_FENCE = re.compile(r"(?:\r?\n)?[ \t]*```\s*\Z")
# Fenced block embedded in prose.
_EMBEDDED_FENCE = re.compile(r"```[ \t]*[A-Za-z0-9_+.-]*[ \t]*\r?\n(.*?)\r?\n?[ \t]*```", re.DOTALL)

_CLOSERS = {"{": "}", "[": "]"}


def normalize(text: str) -> str:
    """Return the JSON candidate contained in ``text``.

    Steps:
    1. Trim surrounding whitespace.
    2. Remove a leading code fence (with optional language hint) and its
       matching trailing fence; failing that, take the first fenced block
       embedded in surrounding prose.
    3. Drop prose around the first top-level balanced ``{...}`` or
       ``[...]`` span that decodes as JSON, so bracketed prose such as
       ``[v2]`` before the payload is skipped. If no span decodes, fall
       back to the span starting at the first bracket.

    Args:
        text: Raw provider output, any length including empty

    Returns:
        The extracted candidate, or the trimmed input when no JSON-like
        structure is present.
    """
    if not isinstance(text, str):
        return ""

    trimmed = text.strip()
    if not trimmed:
        return ""

    candidate, fenced = _strip_fences(trimmed)
    if fenced and _is_scalar_literal(candidate):
        return candidate

    starts = _bracket_positions(candidate)
    if not starts:
        return candidate if fenced else trimmed

    skip_until = -1
    for start in starts:
        if start <= skip_until:
            continue
        end = _matching_close(candidate, start)
        if end is None:
            break
        if _decodes(candidate[start : end + 1]):
            return candidate[start : end + 1]
        # Brackets nested in a span that failed to decode are part of it.
        skip_until = end

    start = starts[0]
    end = _matching_close(candidate, start)
    if end is None:
        # Unterminated structure: keep everything from the bracket on so the
        # decoder reports a truncation error at the right place.
        return candidate[start:].rstrip()
    return candidate[start : end + 1]


def _strip_fences(text: str) -> Tuple[str, bool]:
    leading = _LEADING_FENCE.match(text)
    if leading:
        inner = text[leading.end():]
        trailing = _TRAILING_FENCE.search(inner)
        if trailing:
            inner = inner[: trailing.start()]
        return inner.strip(), True

    embedded = _EMBEDDED_FENCE.search(text)
    if embedded:
        return embedded.group(1).strip(), True
    return text, False


def _is_scalar_literal(text: str) -> bool:
    """True for a fenced bare JSON scalar such as ``"calm"``, ``-1.5`` or ``null``."""
    if text in ("true", "false", "null"):
        return True
    return bool(text) and (text[0] == '"' or text[0] == "-" or text[0].isdigit())


def _bracket_positions(text: str) -> List[int]:
    return [i for i, char in enumerate(text) if char in _CLOSERS]


def _decodes(text: str) -> bool:
    try:
        json.loads(text)
    except (ValueError, RecursionError):
        return False
    return True


def _matching_close(text: str, start: int) -> Optional[int]:
    """Index of the bracket closing ``text[start]``, ignoring brackets in strings."""
    stack = [_CLOSERS[text[start]]]
    in_string = False
    escape = False
    for i in range(start + 1, len(text)):
        char = text[i]
        if escape:
            escape = False
            continue
        if in_string:
            if char == "\\":
                escape = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in _CLOSERS:
            stack.append(_CLOSERS[char])
        elif char in ("}", "]"):
            if char != stack[-1]:
                return None
            stack.pop()
            if not stack:
                return i
    return None
