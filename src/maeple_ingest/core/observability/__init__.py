"""
Observability utilities for maeple-ingest.

Provides the injected reporting boundary (events + reporters), rolling-window
parse-health alerting, structured metrics, audit logging and redaction.

Example:
    from maeple_ingest.config import get_config
    from maeple_ingest.core.observability import build_reporter

    reporter = build_reporter(get_config())
    result = safe_parse_response(raw, MoodAnalysis, context="mood", reporter=reporter)
"""

from maeple_ingest.core.observability.alerts import ContextHealth, ParseHealthMonitor, build_reporter
from maeple_ingest.core.observability.audit import (
    AuditEvent,
    AuditEventType,
    AuditLogger,
    audit_log,
    get_audit_logger,
)
from maeple_ingest.core.observability.events import (
    AlertEvent,
    AlertLevel,
    CircuitStateChangeEvent,
    ObservabilityEvent,
    ParseOutcomeEvent,
    QueueEvent,
)
from maeple_ingest.core.observability.metrics import (
    Metric,
    MetricsCollector,
    MetricType,
    get_metrics,
)
from maeple_ingest.core.observability.redaction import (
    SENSITIVE_PATTERNS,
    preview_for_logging,
    redact_for_logging,
    redact_sensitive_data,
)
from maeple_ingest.core.observability.reporter import (
    LoggingReporter,
    NullReporter,
    RecordingReporter,
    Reporter,
    get_default_reporter,
    set_default_reporter,
)

__all__ = [
    # Events
    "ObservabilityEvent",
    "ParseOutcomeEvent",
    "CircuitStateChangeEvent",
    "QueueEvent",
    "AlertEvent",
    "AlertLevel",
    # Reporters
    "Reporter",
    "LoggingReporter",
    "RecordingReporter",
    "NullReporter",
    "get_default_reporter",
    "set_default_reporter",
    # Alerts
    "ParseHealthMonitor",
    "ContextHealth",
    "build_reporter",
    # Metrics
    "Metric",
    "MetricType",
    "MetricsCollector",
    "get_metrics",
    # Audit
    "AuditEvent",
    "AuditEventType",
    "AuditLogger",
    "audit_log",
    "get_audit_logger",
    # Redaction
    "SENSITIVE_PATTERNS",
    "preview_for_logging",
    "redact_for_logging",
    "redact_sensitive_data",
]
