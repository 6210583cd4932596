"""Resilience error classes."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from maeple_ingest.core.resilience import CircuitState


class CircuitOpenError(Exception):
    """Circuit breaker is rejecting calls without contacting the provider.

    Attributes:
        breaker_name: Name of the circuit breaker.
        state: State of the breaker when the call was rejected.
        retry_after: Seconds until the breaker will admit a probe call.
    """

    def __init__(
        self,
        message: str,
        breaker_name: Optional[str] = None,
        state: Optional[CircuitState] = None,
        retry_after: Optional[float] = None,
    ):
        super().__init__(message)
        self.breaker_name = breaker_name
        self.state = state
        self.retry_after = retry_after
