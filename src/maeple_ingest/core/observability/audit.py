"""Audit trail for operational decisions.

Breaker trips, parse-health alerts and queue evictions change what the user
sees ("analysis unavailable", a discarded capture), so they are written to a
dedicated ``...audit`` logger that can be routed apart from routine logs.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Union


class AuditEventType(Enum):
    CIRCUIT_STATE_CHANGE = "circuit_state_change"
    PARSE_ALERT = "parse_alert"
    STALE_DISCARD = "stale_discard"
    QUEUE_FULL = "queue_full"
    OTHER = "other"


@dataclass(frozen=True)
class AuditEvent:
    event_type: AuditEventType
    details: Dict[str, Any] = field(default_factory=dict)
    recorded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type.value,
            "timestamp": self.recorded_at.isoformat(),
            "details": dict(self.details),
        }


class AuditLogger:
    """Writes ``AUDIT:`` records with the event under ``extra={"audit": ...}``."""

    def __init__(self, name: str = f"{__name__}.audit"):
        self._logger = logging.getLogger(name)

    def log(self, event: AuditEvent) -> None:
        self._logger.info("AUDIT: %s", event.event_type.value, extra={"audit": event.to_dict()})


_audit = AuditLogger()


def get_audit_logger() -> AuditLogger:
    return _audit


def audit_log(event_type: Union[str, AuditEventType], **details: Any) -> AuditEvent:
    """Record an audit event and return it.

    Unknown string types are filed as ``OTHER`` with the original name kept
    under ``details["original_event_type"]``.
    """
    if isinstance(event_type, AuditEventType):
        kind = event_type
    else:
        try:
            kind = AuditEventType(event_type)
        except ValueError:
            kind = AuditEventType.OTHER
            details["original_event_type"] = event_type
    event = AuditEvent(event_type=kind, details=details)
    _audit.log(event)
    return event
