"""Parsing helpers for configuration values taken from the environment."""

import logging
from typing import Any, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"true", "1", "yes", "on"}


def _parse_number(name: str, value: str, cast: Callable[[str], T], default: T) -> T:
    """Cast an env value, logging and keeping ``default`` when it is invalid."""
    try:
        return cast(value.strip())
    except (TypeError, ValueError):
        logger.warning("Invalid %s value '%s'. Keeping %r.", name, value, default)
        return default
