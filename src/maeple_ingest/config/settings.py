"""IngestConfig dataclass, loading, and global configuration state.

Configuration sources, lowest to highest priority:

1. Dataclass defaults
2. TOML file (``maeple-ingest.toml`` in the working directory, or the path in
   ``MAEPLE_INGEST_CONFIG``)
3. ``MAEPLE_*`` environment variables
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_package_version
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # Python < 3.11 fallback

from maeple_ingest.config.domains import (
    MIN_RECOVERY_TIMEOUT,
    AlertThresholds,
    CircuitBreakerConfig,
    ParsingConfig,
    ProviderConfig,
    SyncQueueConfig,
)
from maeple_ingest.config.parsing import _parse_bool, _parse_number

logger = logging.getLogger(__name__)

CONFIG_FILE_ENV_VAR = "MAEPLE_INGEST_CONFIG"
DEFAULT_CONFIG_FILE = "maeple-ingest.toml"
_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
_HANDLER_NAME = "maeple_ingest.console"


def _get_version() -> str:
    """Get package version from metadata (single source of truth: pyproject.toml)."""
    try:
        return get_package_version("maeple-ingest")
    except PackageNotFoundError:
        return "0.3.0"  # Fallback for dev without install


_PACKAGE_VERSION = _get_version()

# env var -> (section attribute or None for top level, field name, caster)
_ENV_FIELDS: Dict[str, Tuple[Optional[str], str, Callable[[str], Any]]] = {
    "MAEPLE_LOG_LEVEL": (None, "log_level", lambda v: v.strip().upper()),
    "MAEPLE_STRUCTURED_LOGGING": (None, "structured_logging", _parse_bool),
    "MAEPLE_PARSE_PREVIEW_CHARS": ("parsing", "log_preview_chars", int),
    "MAEPLE_PARSE_REDACT_PREVIEWS": ("parsing", "redact_previews", _parse_bool),
    "MAEPLE_BREAKER_FAILURE_THRESHOLD": ("breaker", "failure_threshold", int),
    "MAEPLE_BREAKER_RECOVERY_TIMEOUT": ("breaker", "recovery_timeout", float),
    "MAEPLE_BREAKER_MAX_RECOVERY_TIMEOUT": ("breaker", "max_recovery_timeout", float),
    "MAEPLE_QUEUE_MAX_SIZE": ("sync", "max_size", int),
    "MAEPLE_QUEUE_STALENESS_DAYS": ("sync", "staleness_days", float),
    "MAEPLE_QUEUE_DELIVERY_TIMEOUT": ("sync", "delivery_timeout", float),
    "MAEPLE_QUEUE_STORAGE_DIR": ("sync", "storage_dir", lambda v: Path(v).expanduser()),
    "MAEPLE_QUEUE_DRAIN_INTERVAL": ("sync", "drain_interval", float),
    "MAEPLE_SYNC_ENDPOINT": ("sync", "remote_endpoint", str),
    "MAEPLE_ALERT_WARN_RATE": ("alerts", "warn_failure_rate", float),
    "MAEPLE_ALERT_CRITICAL_RATE": ("alerts", "critical_failure_rate", float),
    "MAEPLE_ALERT_CONSECUTIVE_FAILURES": ("alerts", "consecutive_failure_alert", int),
    "MAEPLE_PROVIDER_NAME": ("provider", "name", str),
    "MAEPLE_PROVIDER_BASE_URL": ("provider", "base_url", str),
    "MAEPLE_PROVIDER_MODEL": ("provider", "model", str),
    "MAEPLE_PROVIDER_API_KEY": ("provider", "api_key", str),
    "MAEPLE_PROVIDER_TIMEOUT": ("provider", "request_timeout", float),
}


@dataclass
class IngestConfig:
    """Ingestion layer configuration with support for env vars and TOML overrides."""

    # Logging configuration
    log_level: str = "INFO"
    structured_logging: bool = True

    parsing: ParsingConfig = field(default_factory=ParsingConfig)
    breaker: CircuitBreakerConfig = field(default_factory=CircuitBreakerConfig)
    sync: SyncQueueConfig = field(default_factory=SyncQueueConfig)
    alerts: AlertThresholds = field(default_factory=AlertThresholds)
    provider: ProviderConfig = field(default_factory=ProviderConfig)

    version: str = field(default_factory=lambda: _PACKAGE_VERSION)

    startup_warnings: List[str] = field(default_factory=list, repr=False)

    def _add_startup_warning(self, message: str) -> None:
        if message and message not in self.startup_warnings:
            self.startup_warnings.append(message)
            logger.warning(message)

    @classmethod
    def from_env(cls, config_file: Optional[str] = None) -> "IngestConfig":
        """Build a config from defaults, the TOML file, then the environment.

        Args:
            config_file: Explicit TOML path; overrides ``MAEPLE_INGEST_CONFIG``
        """
        config = cls()

        toml_path = config_file or os.environ.get(CONFIG_FILE_ENV_VAR)
        if toml_path:
            config._load_toml(Path(toml_path))
        elif Path(DEFAULT_CONFIG_FILE).exists():
            config._load_toml(Path(DEFAULT_CONFIG_FILE))

        config._load_env()
        config._validate()
        return config

    @classmethod
    def from_toml(cls, path: Path) -> "IngestConfig":
        """Build a config from a TOML file only (no environment overrides)."""
        config = cls()
        config._load_toml(path)
        config._validate()
        return config

    def _load_toml(self, path: Path) -> None:
        """Apply settings from a TOML file.

        Expected layout::

            [logging]
            level = "DEBUG"
            structured = false

            [breaker]
            failure_threshold = 5

            [sync]
            max_size = 100
            staleness_days = 7
        """
        if not path.exists():
            self._add_startup_warning(f"Config file {path} not found; using defaults")
            return

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as exc:
            self._add_startup_warning(f"Failed to load config file {path}: {exc}")
            return

        logging_section = data.get("logging", {})
        if "level" in logging_section:
            self.log_level = str(logging_section["level"]).upper()
        if "structured" in logging_section:
            self.structured_logging = _parse_bool(logging_section["structured"])

        if "parsing" in data:
            self.parsing = ParsingConfig.from_toml_dict(data["parsing"])
        if "breaker" in data:
            self.breaker = CircuitBreakerConfig.from_toml_dict(data["breaker"])
        if "sync" in data:
            self.sync = SyncQueueConfig.from_toml_dict(data["sync"])
        if "alerts" in data:
            self.alerts = AlertThresholds.from_toml_dict(data["alerts"])
        if "provider" in data:
            self.provider = ProviderConfig.from_toml_dict(data["provider"])

        logger.debug("Loaded configuration from %s", path)

    def _load_env(self) -> None:
        """Apply ``MAEPLE_*`` environment overrides."""
        for env_var, (section, attr, cast) in _ENV_FIELDS.items():
            raw = os.environ.get(env_var)
            if raw is None or raw == "":
                continue
            target = self if section is None else getattr(self, section)
            value = _parse_number(env_var, raw, cast, getattr(target, attr))
            setattr(target, attr, value)

    def _validate(self) -> None:
        """Clamp out-of-range values back to safe ones, recording warnings."""
        if self.log_level not in _VALID_LOG_LEVELS:
            self._add_startup_warning(f"Invalid log level '{self.log_level}'. Falling back to INFO.")
            self.log_level = "INFO"

        if self.breaker.failure_threshold < 1:
            self._add_startup_warning("breaker.failure_threshold must be >= 1; using 5")
            self.breaker.failure_threshold = 5
        if self.breaker.recovery_timeout < MIN_RECOVERY_TIMEOUT:
            self._add_startup_warning(
                f"breaker.recovery_timeout below {MIN_RECOVERY_TIMEOUT}s; clamping"
            )
            self.breaker.recovery_timeout = MIN_RECOVERY_TIMEOUT
        if self.breaker.max_recovery_timeout < self.breaker.recovery_timeout:
            self.breaker.max_recovery_timeout = self.breaker.recovery_timeout
        if self.breaker.half_open_max_calls < 1:
            self.breaker.half_open_max_calls = 1

        if self.sync.max_size < 1:
            self._add_startup_warning("sync.max_size must be >= 1; using 100")
            self.sync.max_size = 100
        if self.sync.staleness_days <= 0:
            self._add_startup_warning("sync.staleness_days must be > 0; using 7")
            self.sync.staleness_days = 7.0
        if self.sync.delivery_timeout <= 0:
            self._add_startup_warning("sync.delivery_timeout must be > 0; using 60")
            self.sync.delivery_timeout = 60.0

        if not 0 < self.alerts.warn_failure_rate <= self.alerts.critical_failure_rate <= 1:
            self._add_startup_warning("Alert failure rates must satisfy 0 < warn <= critical <= 1; using defaults")
            self.alerts.warn_failure_rate = 0.10
            self.alerts.critical_failure_rate = 0.25
        if self.alerts.window_size < 1:
            self._add_startup_warning("alerts.window_size must be >= 1; using 100")
            self.alerts.window_size = 100
        if self.alerts.min_samples < 1:
            self._add_startup_warning("alerts.min_samples must be >= 1; using 10")
            self.alerts.min_samples = 10
        if self.alerts.min_samples > self.alerts.window_size:
            self._add_startup_warning("alerts.min_samples exceeds alerts.window_size; clamping")
            self.alerts.min_samples = self.alerts.window_size
        if self.alerts.consecutive_failure_alert < 1:
            self._add_startup_warning("alerts.consecutive_failure_alert must be >= 1; using 5")
            self.alerts.consecutive_failure_alert = 5

    def setup_logging(self) -> None:
        """Configure logging based on settings."""
        level = getattr(logging, self.log_level, logging.INFO)

        if self.structured_logging:
            # JSON-style structured logging
            formatter = logging.Formatter(
                '{"timestamp":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","message":"%(message)s"}'
            )
        else:
            formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        handler.set_name(_HANDLER_NAME)

        root_logger = logging.getLogger("maeple_ingest")
        for existing in list(root_logger.handlers):
            if existing.get_name() == _HANDLER_NAME:
                root_logger.removeHandler(existing)
        root_logger.setLevel(level)
        root_logger.addHandler(handler)


# Global configuration instance
_config: Optional[IngestConfig] = None


def get_config() -> IngestConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = IngestConfig.from_env()
    return _config


def set_config(config: Optional[IngestConfig]) -> None:
    """Set (or with None, clear) the global configuration instance."""
    global _config
    _config = config
