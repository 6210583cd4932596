"""Structured metrics for parse outcomes, provider calls and the sync queue.

Each observation is written as one ``METRIC:`` log record carrying the
metric as ``extra={"metric": {...}}`` so a log shipper can build dashboards
from it. The collector also keeps running totals per (name, labels) series,
which the CLI and tests read through ``snapshot()``.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Tuple, Union

Number = Union[int, float]
_SeriesKey = Tuple[str, FrozenSet[Tuple[str, str]]]


class MetricType(Enum):
    COUNTER = "counter"
    GAUGE = "gauge"
    HISTOGRAM = "histogram"
    TIMER = "timer"


@dataclass(frozen=True)
class Metric:
    """One observation of a named series."""

    name: str
    value: Number
    metric_type: MetricType
    labels: Dict[str, str] = field(default_factory=dict)
    observed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "value": self.value,
            "type": self.metric_type.value,
            "labels": dict(self.labels),
            "timestamp": self.observed_at.isoformat(),
        }


@dataclass
class _Series:
    metric_type: MetricType
    count: int = 0
    total: float = 0.0
    last: Optional[Number] = None
    minimum: Optional[Number] = None
    maximum: Optional[Number] = None

    def observe(self, value: Number) -> None:
        self.count += 1
        self.total += value
        self.last = value
        self.minimum = value if self.minimum is None else min(self.minimum, value)
        self.maximum = value if self.maximum is None else max(self.maximum, value)

    def summary(self) -> Dict[str, Any]:
        if self.metric_type is MetricType.COUNTER:
            return {"type": "counter", "value": self.total}
        if self.metric_type is MetricType.GAUGE:
            return {"type": "gauge", "value": self.last}
        return {
            "type": self.metric_type.value,
            "count": self.count,
            "mean": self.total / self.count if self.count else None,
            "min": self.minimum,
            "max": self.maximum,
        }


class MetricsCollector:
    """Log every observation and keep per-series aggregates.

    Series are keyed by metric name plus label set, so
    ``counter("parse.outcomes", labels={"context": "mood"})`` and the same
    name with ``{"context": "facs"}`` are tracked separately.
    """

    def __init__(self, prefix: str = "maeple_ingest"):
        self.prefix = prefix
        self._logger = logging.getLogger(f"{__name__}.metrics")
        self._lock = threading.Lock()
        self._series: Dict[_SeriesKey, _Series] = {}

    def _record(
        self,
        name: str,
        value: Number,
        metric_type: MetricType,
        labels: Optional[Dict[str, str]],
    ) -> None:
        metric = Metric(name=name, value=value, metric_type=metric_type, labels=labels or {})
        key = (name, frozenset(metric.labels.items()))
        with self._lock:
            series = self._series.get(key)
            if series is None:
                series = self._series[key] = _Series(metric_type)
            series.observe(value)
        self._logger.info("METRIC: %s.%s", self.prefix, name, extra={"metric": metric.to_dict()})

    def counter(self, name: str, value: int = 1, labels: Optional[Dict[str, str]] = None) -> None:
        self._record(name, value, MetricType.COUNTER, labels)

    def gauge(self, name: str, value: Number, labels: Optional[Dict[str, str]] = None) -> None:
        self._record(name, value, MetricType.GAUGE, labels)

    def timer(self, name: str, duration_ms: float, labels: Optional[Dict[str, str]] = None) -> None:
        """Record a duration in milliseconds."""
        self._record(name, duration_ms, MetricType.TIMER, labels)

    def histogram(self, name: str, value: Number, labels: Optional[Dict[str, str]] = None) -> None:
        self._record(name, value, MetricType.HISTOGRAM, labels)

    def value(self, name: str, labels: Optional[Dict[str, str]] = None) -> Optional[Dict[str, Any]]:
        """Aggregate for one series, or None if it was never observed."""
        key = (name, frozenset((labels or {}).items()))
        with self._lock:
            series = self._series.get(key)
            return series.summary() if series is not None else None

    def snapshot(self) -> Dict[str, Any]:
        """All series as ``{"name{k=v,...}": summary}``, sorted by key."""
        with self._lock:
            items = [(key, series.summary()) for key, series in self._series.items()]
        result = {}
        for (name, labels), summary in sorted(items, key=lambda item: (item[0][0], sorted(item[0][1]))):
            label_text = ",".join(f"{k}={v}" for k, v in sorted(labels))
            result[f"{name}{{{label_text}}}" if label_text else name] = summary
        return result

    def reset(self) -> None:
        with self._lock:
            self._series.clear()


_metrics = MetricsCollector()


def get_metrics() -> MetricsCollector:
    """Process-wide collector shared by the default reporter and providers."""
    return _metrics
