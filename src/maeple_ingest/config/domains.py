"""Domain-specific configuration dataclasses.

Each section of ``IngestConfig`` is a small dataclass with defaults that
match the documented behavior, plus a ``from_toml_dict`` constructor used by
the loader.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

# Floor applied by the loader to breaker cool-downs, in seconds.
MIN_RECOVERY_TIMEOUT = 10.0


@dataclass
class ParsingConfig:
    """Safe-parse logging behavior.

    Attributes:
        log_preview_chars: How much of a failing response to include in logs
        redact_previews: Run previews through the redaction patterns
    """

    log_preview_chars: int = 200
    redact_previews: bool = True

    @classmethod
    def from_toml_dict(cls, data: Dict[str, Any]) -> "ParsingConfig":
        return cls(
            log_preview_chars=int(data.get("log_preview_chars", 200)),
            redact_previews=bool(data.get("redact_previews", True)),
        )


@dataclass
class CircuitBreakerConfig:
    """Circuit breaker thresholds for provider calls.

    Attributes:
        failure_threshold: Consecutive failures that open the circuit
        recovery_timeout: Base cool-down in seconds before a probe is allowed
        max_recovery_timeout: Ceiling for the cool-down after repeated failed probes
        half_open_max_calls: Probe calls admitted while HALF_OPEN
    """

    failure_threshold: int = 5
    recovery_timeout: float = 30.0
    max_recovery_timeout: float = 300.0
    half_open_max_calls: int = 1

    @classmethod
    def from_toml_dict(cls, data: Dict[str, Any]) -> "CircuitBreakerConfig":
        recovery = float(data.get("recovery_timeout", 30.0))
        return cls(
            failure_threshold=int(data.get("failure_threshold", 5)),
            recovery_timeout=recovery,
            max_recovery_timeout=max(float(data.get("max_recovery_timeout", 300.0)), recovery),
            half_open_max_calls=int(data.get("half_open_max_calls", 1)),
        )


@dataclass
class SyncQueueConfig:
    """Background sync queue limits and drain schedule.

    Attributes:
        max_size: Maximum number of queued entries
        staleness_days: Entries older than this are discarded, never retried
        delivery_timeout: Per-entry bound on one remote apply, in seconds
        storage_dir: Directory for the durable queue (None = in-memory)
        drain_interval: Seconds between scheduled drains when healthy
        backoff_base: First delay after a drain with failures
        backoff_max: Ceiling for the exponential drain backoff
        remote_endpoint: URL records are delivered to
    """

    max_size: int = 100
    staleness_days: float = 7.0
    delivery_timeout: float = 60.0
    storage_dir: Optional[Path] = None
    drain_interval: float = 900.0
    backoff_base: float = 30.0
    backoff_max: float = 900.0
    remote_endpoint: Optional[str] = None

    @property
    def staleness_seconds(self) -> float:
        return self.staleness_days * 86400.0

    @classmethod
    def from_toml_dict(cls, data: Dict[str, Any]) -> "SyncQueueConfig":
        storage_dir = data.get("storage_dir")
        return cls(
            max_size=int(data.get("max_size", 100)),
            staleness_days=float(data.get("staleness_days", 7.0)),
            delivery_timeout=float(data.get("delivery_timeout", 60.0)),
            storage_dir=Path(storage_dir).expanduser() if storage_dir else None,
            drain_interval=float(data.get("drain_interval", 900.0)),
            backoff_base=float(data.get("backoff_base", 30.0)),
            backoff_max=float(data.get("backoff_max", 900.0)),
            remote_endpoint=data.get("remote_endpoint") or None,
        )


@dataclass
class AlertThresholds:
    """Parse-failure alerting thresholds.

    Attributes:
        warn_failure_rate: Failure ratio that raises a WARNING
        critical_failure_rate: Failure ratio that raises a CRITICAL
        consecutive_failure_alert: Consecutive failures (one context) that raise a BREAKER alert
        window_size: Rolling window length, in parse outcomes
        min_samples: Outcomes needed before rate-based levels apply
    """

    warn_failure_rate: float = 0.10
    critical_failure_rate: float = 0.25
    consecutive_failure_alert: int = 5
    window_size: int = 100
    min_samples: int = 10

    @classmethod
    def from_toml_dict(cls, data: Dict[str, Any]) -> "AlertThresholds":
        return cls(
            warn_failure_rate=float(data.get("warn_failure_rate", 0.10)),
            critical_failure_rate=float(data.get("critical_failure_rate", 0.25)),
            consecutive_failure_alert=int(data.get("consecutive_failure_alert", 5)),
            window_size=int(data.get("window_size", 100)),
            min_samples=int(data.get("min_samples", 10)),
        )


@dataclass
class ProviderConfig:
    """Text-completion provider connection settings.

    Attributes:
        name: Label used for the breaker and in logs
        base_url: OpenAI-compatible API root
        model: Model identifier sent with each request
        api_key: Bearer token (never logged)
        request_timeout: Seconds allowed for one completion
    """

    name: str = "default"
    base_url: Optional[str] = None
    model: Optional[str] = None
    api_key: Optional[str] = None
    request_timeout: float = 30.0

    def __repr__(self) -> str:
        key = "***" if self.api_key else None
        return (
            f"ProviderConfig(name={self.name!r}, base_url={self.base_url!r}, "
            f"model={self.model!r}, api_key={key!r}, request_timeout={self.request_timeout!r})"
        )

    @classmethod
    def from_toml_dict(cls, data: Dict[str, Any]) -> "ProviderConfig":
        return cls(
            name=str(data.get("name", "default")),
            base_url=data.get("base_url") or None,
            model=data.get("model") or None,
            api_key=data.get("api_key") or None,
            request_timeout=float(data.get("request_timeout", 30.0)),
        )
