"""Rolling-window parse-health alerting.

``ParseHealthMonitor`` sits in front of another reporter. It forwards every
event unchanged and, for parse outcomes, keeps a per-context window of recent
results. When the context's alert level changes it emits an ``AlertEvent``:

- WARNING at a failure rate >= ``warn_failure_rate`` (default 10%)
- CRITICAL at a failure rate >= ``critical_failure_rate`` (default 25%)
- BREAKER after ``consecutive_failure_alert`` consecutive failures (default 5)

Rate-based levels need ``min_samples`` outcomes in the window first; the
consecutive-failure level does not.
"""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, Optional

from maeple_ingest.config.domains import AlertThresholds
from maeple_ingest.config.settings import IngestConfig, get_config
from maeple_ingest.core.observability.events import (
    AlertEvent,
    AlertLevel,
    ObservabilityEvent,
    ParseOutcomeEvent,
)
from maeple_ingest.core.observability.reporter import LoggingReporter, Reporter, get_default_reporter


@dataclass
class _ContextWindow:
    outcomes: Deque[bool]
    consecutive_failures: int = 0
    level: AlertLevel = AlertLevel.HEALTHY
    total: int = 0
    failures_total: int = 0

    @property
    def failure_rate(self) -> float:
        if not self.outcomes:
            return 0.0
        return sum(1 for ok in self.outcomes if not ok) / len(self.outcomes)


@dataclass
class ContextHealth:
    """Snapshot of one context's parse health."""

    context: str
    level: AlertLevel
    failure_rate: float
    samples: int
    consecutive_failures: int
    total: int
    failures_total: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "context": self.context,
            "level": self.level.value,
            "failure_rate": round(self.failure_rate, 4),
            "samples": self.samples,
            "consecutive_failures": self.consecutive_failures,
            "total": self.total,
            "failures_total": self.failures_total,
        }


class ParseHealthMonitor:
    """Reporter decorator that raises alerts from parse outcomes."""

    def __init__(
        self,
        inner: Optional[Reporter] = None,
        thresholds: Optional[AlertThresholds] = None,
    ) -> None:
        self._inner = inner or get_default_reporter()
        self.thresholds = thresholds or AlertThresholds()
        self._windows: Dict[str, _ContextWindow] = {}
        self._lock = threading.Lock()

    def emit(self, event: ObservabilityEvent) -> None:
        self._inner.emit(event)
        if isinstance(event, ParseOutcomeEvent):
            alert = self._observe(event)
            if alert is not None:
                self._inner.emit(alert)

    def _observe(self, event: ParseOutcomeEvent) -> Optional[AlertEvent]:
        with self._lock:
            window = self._windows.get(event.context)
            if window is None:
                window = _ContextWindow(outcomes=deque(maxlen=self.thresholds.window_size))
                self._windows[event.context] = window

            window.outcomes.append(event.success)
            window.total += 1
            if event.success:
                window.consecutive_failures = 0
            else:
                window.consecutive_failures += 1
                window.failures_total += 1

            new_level, reason = self._evaluate(window)
            if new_level == window.level:
                return None
            window.level = new_level
            return AlertEvent(
                context=event.context,
                level=new_level,
                reason=reason,
                failure_rate=window.failure_rate,
                consecutive_failures=window.consecutive_failures,
                samples=len(window.outcomes),
            )

    def _evaluate(self, window: _ContextWindow) -> tuple[AlertLevel, str]:
        t = self.thresholds
        if window.consecutive_failures >= t.consecutive_failure_alert:
            return AlertLevel.BREAKER, f"{window.consecutive_failures} consecutive parse failures"
        if len(window.outcomes) >= t.min_samples:
            rate = window.failure_rate
            if rate >= t.critical_failure_rate:
                return AlertLevel.CRITICAL, f"failure rate at or above {t.critical_failure_rate:.0%}"
            if rate >= t.warn_failure_rate:
                return AlertLevel.WARNING, f"failure rate at or above {t.warn_failure_rate:.0%}"
        return AlertLevel.HEALTHY, "failure rate below thresholds"

    def get_status(self, context: str) -> Optional[ContextHealth]:
        """Return the health snapshot for ``context``, or None if never seen."""
        with self._lock:
            window = self._windows.get(context)
            if window is None:
                return None
            return ContextHealth(
                context=context,
                level=window.level,
                failure_rate=window.failure_rate,
                samples=len(window.outcomes),
                consecutive_failures=window.consecutive_failures,
                total=window.total,
                failures_total=window.failures_total,
            )

    def get_all_status(self) -> Dict[str, ContextHealth]:
        with self._lock:
            contexts = list(self._windows)
        return {ctx: status for ctx in contexts if (status := self.get_status(ctx)) is not None}

    def reset(self, context: Optional[str] = None) -> None:
        """Forget history for one context, or for all of them."""
        with self._lock:
            if context is None:
                self._windows.clear()
            else:
                self._windows.pop(context, None)


def build_reporter(
    config: Optional[IngestConfig] = None,
    inner: Optional[Reporter] = None,
) -> ParseHealthMonitor:
    """Reporter for a configured process: ``inner`` behind parse-health alerting.

    Args:
        config: Source of the ``[alerts]`` thresholds; the global config if omitted
        inner: Reporter receiving every event and alert; a ``LoggingReporter``
            if omitted
    """
    config = config or get_config()
    return ParseHealthMonitor(inner or LoggingReporter(), thresholds=config.alerts)
