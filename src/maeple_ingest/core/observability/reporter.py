"""Reporter implementations for the observability boundary.

Core components never log alert-worthy outcomes through a global; they take
a ``Reporter`` and call ``emit(event)``. ``LoggingReporter`` is the default
and fans events out to the logger, the metrics collector and the audit log.
"""

from __future__ import annotations

import logging
import threading
from typing import List, Optional, Protocol, Type, TypeVar, runtime_checkable

from maeple_ingest.core.observability.audit import audit_log
from maeple_ingest.core.observability.events import (
    AlertEvent,
    AlertLevel,
    CircuitStateChangeEvent,
    ObservabilityEvent,
    ParseOutcomeEvent,
    QueueEvent,
)
from maeple_ingest.core.observability.metrics import MetricsCollector, get_metrics

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=ObservabilityEvent)


@runtime_checkable
class Reporter(Protocol):
    """Anything that accepts observability events."""

    def emit(self, event: ObservabilityEvent) -> None: ...


class NullReporter:
    """Discards every event."""

    def emit(self, event: ObservabilityEvent) -> None:
        return None


class RecordingReporter:
    """Keeps events in memory, in emission order.

    Used by tests and by diagnostics commands that want to show what a run
    produced.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.events: List[ObservabilityEvent] = []

    def emit(self, event: ObservabilityEvent) -> None:
        with self._lock:
            self.events.append(event)

    def of_type(self, event_cls: Type[E]) -> List[E]:
        with self._lock:
            return [e for e in self.events if isinstance(e, event_cls)]

    def clear(self) -> None:
        with self._lock:
            self.events.clear()


class LoggingReporter:
    """Turns events into log records, metrics and audit entries."""

    def __init__(self, metrics: Optional[MetricsCollector] = None) -> None:
        self._metrics = metrics or get_metrics()

    def emit(self, event: ObservabilityEvent) -> None:
        if isinstance(event, ParseOutcomeEvent):
            self._parse_outcome(event)
        elif isinstance(event, CircuitStateChangeEvent):
            self._circuit_change(event)
        elif isinstance(event, QueueEvent):
            self._queue_event(event)
        elif isinstance(event, AlertEvent):
            self._alert(event)
        else:
            logger.debug("Unhandled observability event %s", event.event_type)

    def _parse_outcome(self, event: ParseOutcomeEvent) -> None:
        labels = {
            "context": event.context,
            "status": "success" if event.success else "failure",
        }
        self._metrics.counter("parse.outcomes", labels=labels)
        self._metrics.timer("parse.duration", event.duration_ms, labels={"context": event.context})
        self._metrics.histogram(
            "parse.response_length",
            event.response_length,
            labels={"context": event.context},
        )

    def _circuit_change(self, event: CircuitStateChangeEvent) -> None:
        logger.info(
            "Circuit breaker %s: %s -> %s (consecutive failures: %d)",
            event.breaker,
            event.old_state,
            event.new_state,
            event.consecutive_failures,
        )
        audit_log(
            "circuit_state_change",
            breaker=event.breaker,
            old_state=event.old_state,
            new_state=event.new_state,
            consecutive_failures=event.consecutive_failures,
        )

    def _queue_event(self, event: QueueEvent) -> None:
        self._metrics.gauge("sync_queue.size", event.size)
        self._metrics.counter("sync_queue.events", labels={"action": event.action})
        if event.action == "stale_discarded":
            audit_log("stale_discard", entry_id=event.entry_id, detail=event.detail)
        elif event.action == "rejected_full":
            audit_log("queue_full", size=event.size)

    def _alert(self, event: AlertEvent) -> None:
        level = logging.INFO if event.level == AlertLevel.HEALTHY else logging.WARNING
        if event.level in (AlertLevel.CRITICAL, AlertLevel.BREAKER):
            level = logging.ERROR
        logger.log(
            level,
            "Parse health for %s is %s: %s (failure rate %.0f%% over %d samples, %d consecutive)",
            event.context,
            event.level.value,
            event.reason,
            event.failure_rate * 100,
            event.samples,
            event.consecutive_failures,
        )
        audit_log(
            "parse_alert",
            context=event.context,
            level=event.level.value,
            reason=event.reason,
            failure_rate=round(event.failure_rate, 4),
            consecutive_failures=event.consecutive_failures,
        )


_default_reporter: Reporter = LoggingReporter()


def get_default_reporter() -> Reporter:
    """Get the process-wide default reporter."""
    return _default_reporter


def set_default_reporter(reporter: Reporter) -> None:
    """Replace the process-wide default reporter."""
    global _default_reporter
    _default_reporter = reporter
