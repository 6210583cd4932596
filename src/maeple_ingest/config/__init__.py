"""Configuration package for maeple-ingest.

Sub-modules:
    domains:  per-concern dataclasses (parsing, breaker, sync, alerts, provider)
    parsing:  env value parsing helpers
    settings: IngestConfig, TOML/env loading, get_config/set_config
"""

from maeple_ingest.config.domains import (  # noqa: F401
    MIN_RECOVERY_TIMEOUT,
    AlertThresholds,
    CircuitBreakerConfig,
    ParsingConfig,
    ProviderConfig,
    SyncQueueConfig,
)
from maeple_ingest.config.settings import (  # noqa: F401
    CONFIG_FILE_ENV_VAR,
    IngestConfig,
    get_config,
    set_config,
)
