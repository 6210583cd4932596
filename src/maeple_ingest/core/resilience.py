"""Circuit breaker for outbound provider calls.

The breaker observes call outcomes and stops contacting a provider that is
failing. States:

    CLOSED     calls pass through; consecutive failures are counted
    OPEN       calls are rejected with CircuitOpenError until the cool-down ends
    HALF_OPEN  a single probe call is admitted; its outcome decides the next state

Each time a probe fails the cool-down doubles, up to ``max_recovery_timeout``;
a successful probe closes the circuit and restores the base cool-down.

Example:
    breaker = CircuitBreaker(name="provider", failure_threshold=5, recovery_timeout=30.0)
    text = await breaker.execute(lambda: provider.complete_text(prompt))
"""

from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from maeple_ingest.config.domains import CircuitBreakerConfig
from maeple_ingest.core.errors.resilience import CircuitOpenError
from maeple_ingest.core.observability.events import CircuitStateChangeEvent
from maeple_ingest.core.observability.reporter import Reporter, get_default_reporter

logger = logging.getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], float]


class CircuitState(str, Enum):
    """Circuit breaker states."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """Thread-safe circuit breaker.

    All state lives behind ``_lock``; ``admit`` both checks and claims a
    HALF_OPEN probe slot in one critical section, so concurrent callers can
    never both hold the single probe.

    Every state transition bumps ``generation``. ``admit`` hands the current
    generation to the caller, who passes it back with the outcome; an outcome
    from an earlier generation (a call that outlived the state it was admitted
    in) only updates timestamps and never moves the state machine.

    Attributes:
        name: Breaker name used in events and errors
        failure_threshold: Consecutive failures that open the circuit
        recovery_timeout: Base cool-down in seconds
        max_recovery_timeout: Ceiling for the doubled cool-down
        half_open_max_calls: Probe calls admitted while HALF_OPEN
    """

    def __init__(
        self,
        name: str = "default",
        failure_threshold: int = 5,
        recovery_timeout: float = 30.0,
        half_open_max_calls: int = 1,
        *,
        max_recovery_timeout: Optional[float] = None,
        clock: Optional[Clock] = None,
        reporter: Optional[Reporter] = None,
    ) -> None:
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.max_recovery_timeout = max(
            max_recovery_timeout if max_recovery_timeout is not None else recovery_timeout * 10,
            recovery_timeout,
        )
        self.half_open_max_calls = half_open_max_calls
        self._clock: Clock = clock or time.monotonic
        self._reporter = reporter

        self._lock = threading.RLock()
        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.half_open_calls = 0
        self.generation = 1
        self.current_timeout = recovery_timeout
        self.last_failure_time: Optional[float] = None
        self.last_failure_at: Optional[datetime] = None
        self.last_success_at: Optional[datetime] = None

    @classmethod
    def from_config(
        cls,
        name: str,
        config: CircuitBreakerConfig,
        *,
        clock: Optional[Clock] = None,
        reporter: Optional[Reporter] = None,
    ) -> "CircuitBreaker":
        return cls(
            name=name,
            failure_threshold=config.failure_threshold,
            recovery_timeout=config.recovery_timeout,
            half_open_max_calls=config.half_open_max_calls,
            max_recovery_timeout=config.max_recovery_timeout,
            clock=clock,
            reporter=reporter,
        )

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _transition(self, new_state: CircuitState) -> Optional[CircuitStateChangeEvent]:
        """Move to ``new_state``; caller holds ``_lock``."""
        old_state = self.state
        if old_state == new_state:
            return None
        self.state = new_state
        self.half_open_calls = 0
        self.generation += 1
        return CircuitStateChangeEvent(
            breaker=self.name,
            old_state=old_state.value,
            new_state=new_state.value,
            consecutive_failures=self.failure_count,
        )

    def _publish(self, event: Optional[CircuitStateChangeEvent]) -> None:
        if event is None:
            return
        reporter = self._reporter or get_default_reporter()
        reporter.emit(event)

    def _cooldown_elapsed(self) -> bool:
        if self.last_failure_time is None:
            return True
        return self._clock() - self.last_failure_time >= self.current_timeout

    def _refresh(self) -> Optional[CircuitStateChangeEvent]:
        """Promote OPEN to HALF_OPEN once the cool-down has passed."""
        if self.state == CircuitState.OPEN and self._cooldown_elapsed():
            logger.info("Circuit breaker %s cool-down elapsed, admitting a probe", self.name)
            return self._transition(CircuitState.HALF_OPEN)
        return None

    def admit(self) -> Optional[int]:
        """Admit a call, claiming a probe slot if HALF_OPEN.

        Returns:
            The generation to pass back with the outcome, or None if the
            call is rejected. Every admitted call must be followed by exactly
            one of ``record_success``, ``record_failure`` or ``release_probe``.
        """
        with self._lock:
            event = self._refresh()
            if self.state == CircuitState.CLOSED:
                ticket: Optional[int] = self.generation
            elif (
                self.state == CircuitState.HALF_OPEN
                and self.half_open_calls < self.half_open_max_calls
            ):
                self.half_open_calls += 1
                ticket = self.generation
            else:
                ticket = None
        self._publish(event)
        return ticket

    def can_execute(self) -> bool:
        """Boolean form of ``admit`` for callers that do not track generations."""
        return self.admit() is not None

    def _is_stale(self, generation: Optional[int]) -> bool:
        return generation is not None and generation != self.generation

    def record_success(self, generation: Optional[int] = None) -> None:
        """Record a successful call admitted at ``generation`` (current if None)."""
        event = None
        with self._lock:
            self.last_success_at = datetime.now(timezone.utc)
            if self._is_stale(generation) or self.state == CircuitState.OPEN:
                logger.debug("Circuit breaker %s ignoring late success", self.name)
                return
            self.failure_count = 0
            if self.state == CircuitState.HALF_OPEN:
                self.current_timeout = self.recovery_timeout
                event = self._transition(CircuitState.CLOSED)
                logger.info("Circuit breaker %s closed after successful probe", self.name)
        self._publish(event)

    def record_failure(self, generation: Optional[int] = None) -> None:
        """Record a failed call admitted at ``generation`` (current if None)."""
        event = None
        with self._lock:
            self.last_failure_at = datetime.now(timezone.utc)
            if self._is_stale(generation):
                logger.debug("Circuit breaker %s ignoring late failure", self.name)
                return
            self.failure_count += 1
            if self.state == CircuitState.HALF_OPEN:
                self.current_timeout = min(self.current_timeout * 2, self.max_recovery_timeout)
                self.last_failure_time = self._clock()
                event = self._transition(CircuitState.OPEN)
                logger.warning(
                    "Circuit breaker %s probe failed; reopening for %.1fs",
                    self.name,
                    self.current_timeout,
                )
            elif self.state == CircuitState.CLOSED:
                self.last_failure_time = self._clock()
                if self.failure_count >= self.failure_threshold:
                    event = self._transition(CircuitState.OPEN)
                    logger.warning(
                        "Circuit breaker %s opened after %d consecutive failures; cooling down %.1fs",
                        self.name,
                        self.failure_count,
                        self.current_timeout,
                    )
        self._publish(event)

    def release_probe(self, generation: Optional[int] = None) -> None:
        """Give back a claimed probe slot without recording an outcome."""
        with self._lock:
            if self._is_stale(generation):
                return
            if self.state == CircuitState.HALF_OPEN and self.half_open_calls > 0:
                self.half_open_calls -= 1

    def reset(self) -> None:
        """Force the breaker back to CLOSED with a clean history."""
        with self._lock:
            self.failure_count = 0
            self.current_timeout = self.recovery_timeout
            self.last_failure_time = None
            event = self._transition(CircuitState.CLOSED)
        self._publish(event)

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def retry_after(self) -> float:
        """Seconds until an OPEN breaker admits a probe (0 when not OPEN)."""
        with self._lock:
            if self.state != CircuitState.OPEN or self.last_failure_time is None:
                return 0.0
            remaining = self.current_timeout - (self._clock() - self.last_failure_time)
            return max(0.0, remaining)

    def is_available(self) -> bool:
        """Check availability without claiming a probe slot."""
        with self._lock:
            if self.state == CircuitState.CLOSED:
                return True
            if self.state == CircuitState.OPEN:
                return self._cooldown_elapsed()
            return self.half_open_calls < self.half_open_max_calls

    def get_status(self) -> Dict[str, Any]:
        """Snapshot of the breaker for health reporting."""
        with self._lock:
            return {
                "name": self.name,
                "state": self.state.value,
                "failure_count": self.failure_count,
                "failure_threshold": self.failure_threshold,
                "recovery_timeout": self.current_timeout,
                "half_open_calls": self.half_open_calls,
                "last_failure_at": self.last_failure_at.isoformat() if self.last_failure_at else None,
                "last_success_at": self.last_success_at.isoformat() if self.last_success_at else None,
                "retry_after_seconds": self.retry_after(),
            }

    def _open_error(self) -> CircuitOpenError:
        retry_after = self.retry_after()
        return CircuitOpenError(
            f"Circuit breaker '{self.name}' is {self.state.value} (retry after {retry_after:.1f}s)",
            breaker_name=self.name,
            state=self.state,
            retry_after=retry_after,
        )

    # ------------------------------------------------------------------
    # Guarded calls
    # ------------------------------------------------------------------

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run an async operation under the breaker.

        Raises:
            CircuitOpenError: If the circuit rejects the call; ``operation``
                is not invoked.
            Exception: Whatever ``operation`` raised, unchanged.
        """
        generation = self.admit()
        if generation is None:
            raise self._open_error()
        try:
            result = await operation()
        except Exception:
            self.record_failure(generation)
            raise
        except BaseException:
            # Cancellation says nothing about provider health.
            self.release_probe(generation)
            raise
        self.record_success(generation)
        return result

    def call(self, operation: Callable[[], T]) -> T:
        """Synchronous counterpart of ``execute``."""
        generation = self.admit()
        if generation is None:
            raise self._open_error()
        try:
            result = operation()
        except Exception:
            self.record_failure(generation)
            raise
        except BaseException:
            self.release_probe(generation)
            raise
        self.record_success(generation)
        return result
