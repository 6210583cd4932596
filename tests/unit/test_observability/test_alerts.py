"""Tests for rolling-window parse-health alerting."""

import pytest

from maeple_ingest.config.domains import AlertThresholds
from maeple_ingest.config.settings import IngestConfig, set_config
from maeple_ingest.core.observability import (
    AlertEvent,
    AlertLevel,
    LoggingReporter,
    ParseHealthMonitor,
    ParseOutcomeEvent,
    QueueEvent,
    build_reporter,
)


def _outcome(success, context="mood"):
    return ParseOutcomeEvent(context=context, success=success, duration_ms=1.0, response_length=42)


@pytest.fixture
def monitor(recorder):
    return ParseHealthMonitor(recorder)


def _feed(monitor, outcomes, context="mood"):
    for success in outcomes:
        monitor.emit(_outcome(success, context))


class TestThresholds:
    """Level transitions."""

    def test_no_rate_alert_before_min_samples(self, monitor, recorder):
        _feed(monitor, [False, True, True])

        assert recorder.of_type(AlertEvent) == []
        assert monitor.get_status("mood").level == AlertLevel.HEALTHY

    def test_warning_at_ten_percent(self, monitor, recorder):
        _feed(monitor, [True] * 9 + [False])

        alerts = recorder.of_type(AlertEvent)
        assert [a.level for a in alerts] == [AlertLevel.WARNING]
        assert alerts[0].failure_rate == pytest.approx(0.10)
        assert alerts[0].samples == 10

    def test_critical_at_twenty_five_percent(self, monitor, recorder):
        _feed(monitor, [True] * 9 + [False, False, False])

        levels = [a.level for a in recorder.of_type(AlertEvent)]
        assert levels == [AlertLevel.WARNING, AlertLevel.CRITICAL]

    def test_breaker_after_consecutive_failures(self, monitor, recorder):
        _feed(monitor, [False] * 5)

        alerts = recorder.of_type(AlertEvent)
        assert [a.level for a in alerts] == [AlertLevel.BREAKER]
        assert alerts[0].consecutive_failures == 5

    def test_recovery_emits_healthy(self, monitor, recorder):
        _feed(monitor, [False] * 5 + [True])

        levels = [a.level for a in recorder.of_type(AlertEvent)]
        assert levels == [AlertLevel.BREAKER, AlertLevel.HEALTHY]

    def test_alert_only_on_level_change(self, monitor, recorder):
        _feed(monitor, [True] * 18 + [False] * 3)

        assert len(recorder.of_type(AlertEvent)) == 1

    def test_custom_thresholds(self, recorder):
        monitor = ParseHealthMonitor(
            recorder,
            AlertThresholds(warn_failure_rate=0.5, critical_failure_rate=0.9, min_samples=2),
        )

        _feed(monitor, [True, False])

        assert [a.level for a in recorder.of_type(AlertEvent)] == [AlertLevel.WARNING]


class TestWindows:
    """Per-context bookkeeping and forwarding."""

    def test_contexts_tracked_separately(self, monitor):
        _feed(monitor, [False] * 5, context="facs")
        _feed(monitor, [True] * 5, context="mood")

        assert monitor.get_status("facs").level == AlertLevel.BREAKER
        assert monitor.get_status("mood").level == AlertLevel.HEALTHY
        assert set(monitor.get_all_status()) == {"facs", "mood"}

    def test_window_rolls(self, recorder):
        monitor = ParseHealthMonitor(recorder, AlertThresholds(window_size=10))
        _feed(monitor, [False] + [True] * 10)

        status = monitor.get_status("mood")
        assert status.samples == 10
        assert status.failure_rate == 0.0
        assert status.total == 11
        assert status.failures_total == 1

    def test_forwards_every_event(self, monitor, recorder):
        queue_event = QueueEvent(action="enqueued", size=1)
        monitor.emit(queue_event)
        monitor.emit(_outcome(True))

        assert recorder.events[0] is queue_event
        assert isinstance(recorder.events[1], ParseOutcomeEvent)

    def test_unknown_context(self, monitor):
        assert monitor.get_status("never-seen") is None

    def test_reset(self, monitor):
        _feed(monitor, [False] * 5)
        monitor.reset("mood")

        assert monitor.get_status("mood") is None

    def test_status_to_dict(self, monitor):
        _feed(monitor, [True, False])

        data = monitor.get_status("mood").to_dict()

        assert data["level"] == "healthy"
        assert data["failure_rate"] == 0.5
        assert data["samples"] == 2


class TestBuildReporter:
    """Monitor built from configuration."""

    def test_uses_configured_thresholds(self, recorder):
        config = IngestConfig()
        config.alerts.consecutive_failure_alert = 2

        monitor = build_reporter(config, inner=recorder)
        _feed(monitor, [False, False])

        assert monitor.thresholds is config.alerts
        assert [a.level for a in recorder.of_type(AlertEvent)] == [AlertLevel.BREAKER]
        assert len(recorder.of_type(ParseOutcomeEvent)) == 2

    def test_defaults_to_global_config_and_logging(self):
        config = IngestConfig()
        config.alerts.window_size = 20
        set_config(config)

        monitor = build_reporter()

        assert monitor.thresholds.window_size == 20
        assert isinstance(monitor._inner, LoggingReporter)
