"""Tests for the metrics collector and the audit trail."""

import logging

import pytest

from maeple_ingest.core.observability import (
    AuditEventType,
    MetricsCollector,
    audit_log,
)


@pytest.fixture
def metrics():
    return MetricsCollector(prefix="test")


class TestMetricsCollector:
    """Aggregation per series and structured log records."""

    def test_counter_accumulates_per_label_set(self, metrics):
        metrics.counter("parse.outcomes", labels={"context": "mood"})
        metrics.counter("parse.outcomes", labels={"context": "mood"})
        metrics.counter("parse.outcomes", labels={"context": "facs"})

        assert metrics.value("parse.outcomes", {"context": "mood"}) == {"type": "counter", "value": 2}
        assert metrics.value("parse.outcomes", {"context": "facs"})["value"] == 1

    def test_gauge_keeps_last_value(self, metrics):
        metrics.gauge("sync_queue.size", 4)
        metrics.gauge("sync_queue.size", 2)

        assert metrics.value("sync_queue.size") == {"type": "gauge", "value": 2}

    def test_timer_summary(self, metrics):
        for duration in (10.0, 30.0, 20.0):
            metrics.timer("provider.duration", duration)

        summary = metrics.value("provider.duration")

        assert summary == {"type": "timer", "count": 3, "mean": 20.0, "min": 10.0, "max": 30.0}

    def test_unknown_series(self, metrics):
        assert metrics.value("never") is None

    def test_snapshot_keys_include_labels(self, metrics):
        metrics.counter("b")
        metrics.counter("a", labels={"status": "ok", "context": "mood"})

        assert list(metrics.snapshot()) == ["a{context=mood,status=ok}", "b"]

    def test_reset(self, metrics):
        metrics.counter("a")
        metrics.reset()

        assert metrics.snapshot() == {}

    def test_logs_structured_record(self, metrics, caplog):
        caplog.set_level(logging.INFO, logger="maeple_ingest")

        metrics.histogram("parse.response_length", 512, labels={"context": "mood"})

        record = next(r for r in caplog.records if hasattr(r, "metric"))
        assert record.getMessage() == "METRIC: test.parse.response_length"
        assert record.metric["type"] == "histogram"
        assert record.metric["labels"] == {"context": "mood"}


class TestAuditLog:
    def test_known_type(self, caplog):
        caplog.set_level(logging.INFO, logger="maeple_ingest")

        event = audit_log("stale_discard", entry_id="abc")

        assert event.event_type is AuditEventType.STALE_DISCARD
        record = next(r for r in caplog.records if hasattr(r, "audit"))
        assert record.getMessage() == "AUDIT: stale_discard"
        assert record.audit["details"] == {"entry_id": "abc"}

    def test_unknown_type_filed_as_other(self):
        event = audit_log("config_reload", source="toml")

        assert event.event_type is AuditEventType.OTHER
        assert event.details["original_event_type"] == "config_reload"

    def test_enum_type_accepted(self):
        assert audit_log(AuditEventType.QUEUE_FULL, size=100).details == {"size": 100}
