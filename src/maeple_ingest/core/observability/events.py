"""Structured observability events.

Every parse outcome, circuit-breaker transition, queue change and alert is
described by one of these frozen dataclasses and handed to a ``Reporter``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Dict, Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AlertLevel(str, Enum):
    """Parse-health alert levels, ordered by severity."""

    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"
    BREAKER = "breaker"

    @property
    def severity(self) -> int:
        return _ALERT_SEVERITY[self]


_ALERT_SEVERITY = {
    AlertLevel.HEALTHY: 0,
    AlertLevel.WARNING: 1,
    AlertLevel.CRITICAL: 2,
    AlertLevel.BREAKER: 3,
}


@dataclass(frozen=True)
class ObservabilityEvent:
    """Base event; subclasses set ``event_type``."""

    event_type: ClassVar[str] = "event"

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["event_type"] = self.event_type
        for key, value in data.items():
            if isinstance(value, datetime):
                data[key] = value.isoformat()
            elif isinstance(value, Enum):
                data[key] = value.value
        return data


@dataclass(frozen=True)
class ParseOutcomeEvent(ObservabilityEvent):
    """One safe-parse call finished."""

    event_type: ClassVar[str] = "parse_outcome"

    context: str
    success: bool
    duration_ms: float
    response_length: int
    error_kind: Optional[str] = None
    occurred_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class CircuitStateChangeEvent(ObservabilityEvent):
    """A circuit breaker moved between states."""

    event_type: ClassVar[str] = "circuit_state_change"

    breaker: str
    old_state: str
    new_state: str
    consecutive_failures: int
    occurred_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class QueueEvent(ObservabilityEvent):
    """A sync queue mutation or drain milestone.

    ``action`` is one of: enqueued, rejected_full, delivered, delivery_failed,
    stale_discarded, recovered, drain_started, drain_finished, purged.
    """

    event_type: ClassVar[str] = "queue"

    action: str
    size: int
    entry_id: Optional[str] = None
    detail: Optional[str] = None
    occurred_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class AlertEvent(ObservabilityEvent):
    """Parse-health alert level changed for a context."""

    event_type: ClassVar[str] = "alert"

    context: str
    level: AlertLevel
    reason: str
    failure_rate: float
    consecutive_failures: int
    samples: int
    occurred_at: datetime = field(default_factory=_utcnow)
