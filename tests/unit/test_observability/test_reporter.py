"""Tests for the reporter implementations."""

import logging

from maeple_ingest.core.observability import (
    AlertEvent,
    AlertLevel,
    CircuitStateChangeEvent,
    LoggingReporter,
    MetricsCollector,
    NullReporter,
    ParseOutcomeEvent,
    QueueEvent,
    RecordingReporter,
    Reporter,
    get_default_reporter,
    set_default_reporter,
)


class TestRecordingReporter:
    def test_records_in_order(self):
        reporter = RecordingReporter()
        first = QueueEvent(action="enqueued", size=1)
        second = ParseOutcomeEvent(context="mood", success=True, duration_ms=1.0, response_length=2)

        reporter.emit(first)
        reporter.emit(second)

        assert reporter.events == [first, second]
        assert reporter.of_type(QueueEvent) == [first]

    def test_clear(self):
        reporter = RecordingReporter()
        reporter.emit(QueueEvent(action="enqueued", size=1))
        reporter.clear()

        assert reporter.events == []

    def test_reporters_satisfy_protocol(self):
        assert isinstance(RecordingReporter(), Reporter)
        assert isinstance(NullReporter(), Reporter)
        assert isinstance(LoggingReporter(), Reporter)


class TestLoggingReporter:
    """Events become log records, metrics and audit entries."""

    def test_parse_outcome_emits_metrics(self, caplog):
        caplog.set_level(logging.INFO, logger="maeple_ingest")
        reporter = LoggingReporter(MetricsCollector(prefix="test"))

        reporter.emit(ParseOutcomeEvent(context="facs", success=False, duration_ms=3.5, response_length=10))

        metrics = [r.metric for r in caplog.records if hasattr(r, "metric")]
        names = {m["name"] for m in metrics}
        assert names == {"parse.outcomes", "parse.duration", "parse.response_length"}
        outcome = next(m for m in metrics if m["name"] == "parse.outcomes")
        assert outcome["labels"] == {"context": "facs", "status": "failure"}

    def test_circuit_change_is_audited(self, caplog):
        caplog.set_level(logging.INFO, logger="maeple_ingest")

        LoggingReporter().emit(
            CircuitStateChangeEvent(
                breaker="openai", old_state="closed", new_state="open", consecutive_failures=5
            )
        )

        assert "Circuit breaker openai: closed -> open" in caplog.text
        audits = [r.audit for r in caplog.records if hasattr(r, "audit")]
        assert audits[0]["event_type"] == "circuit_state_change"
        assert audits[0]["details"]["new_state"] == "open"

    def test_stale_discard_is_audited(self, caplog):
        caplog.set_level(logging.INFO, logger="maeple_ingest")

        LoggingReporter().emit(QueueEvent(action="stale_discarded", size=0, entry_id="abc"))

        audits = [r.audit for r in caplog.records if hasattr(r, "audit")]
        assert audits[0]["event_type"] == "stale_discard"
        assert audits[0]["details"]["entry_id"] == "abc"

    def test_breaker_alert_logs_error(self, caplog):
        caplog.set_level(logging.INFO, logger="maeple_ingest")

        LoggingReporter().emit(
            AlertEvent(
                context="mood",
                level=AlertLevel.BREAKER,
                reason="5 consecutive parse failures",
                failure_rate=1.0,
                consecutive_failures=5,
                samples=5,
            )
        )

        errors = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert len(errors) == 1
        assert "Parse health for mood is breaker" in errors[0].getMessage()


class TestDefaultReporter:
    def test_set_and_restore(self):
        original = get_default_reporter()
        replacement = RecordingReporter()
        try:
            set_default_reporter(replacement)
            assert get_default_reporter() is replacement
        finally:
            set_default_reporter(original)

        assert isinstance(original, LoggingReporter)
