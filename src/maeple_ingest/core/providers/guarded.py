"""Provider wrapper that enforces a request timeout under a circuit breaker."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional

from maeple_ingest.config.domains import ProviderConfig
from maeple_ingest.core.errors.provider import ProviderTimeoutError
from maeple_ingest.core.errors.resilience import CircuitOpenError
from maeple_ingest.core.observability.metrics import get_metrics
from maeple_ingest.core.providers.base import TextCompletionProvider
from maeple_ingest.core.resilience import CircuitBreaker

logger = logging.getLogger(__name__)

_metrics = get_metrics()


class GuardedProvider:
    """Route every completion through a breaker with a hard time limit.

    A call that outlives ``request_timeout`` is cancelled and surfaces as
    ``ProviderTimeoutError``, which the breaker counts as a failure. A call
    cancelled by the caller is not counted either way.

    Example:
        breaker = CircuitBreaker.from_config("openai", config.breaker)
        provider = GuardedProvider(OpenAICompatibleProvider(config.provider), breaker)
        text = await provider.complete_text(prompt)
    """

    def __init__(
        self,
        provider: TextCompletionProvider,
        breaker: CircuitBreaker,
        request_timeout: float = 30.0,
    ) -> None:
        self._provider = provider
        self.breaker = breaker
        self.request_timeout = request_timeout
        self.name = getattr(provider, "name", breaker.name)

    @classmethod
    def from_config(
        cls,
        provider: TextCompletionProvider,
        breaker: CircuitBreaker,
        config: ProviderConfig,
    ) -> "GuardedProvider":
        return cls(provider, breaker, request_timeout=config.request_timeout)

    async def _attempt(self, prompt: str) -> str:
        start = time.perf_counter()
        try:
            return await asyncio.wait_for(
                self._provider.complete_text(prompt),
                timeout=self.request_timeout,
            )
        except asyncio.TimeoutError as exc:
            elapsed = time.perf_counter() - start
            raise ProviderTimeoutError(
                f"Provider {self.name} did not respond within {self.request_timeout:.1f}s",
                provider=self.name,
                elapsed=elapsed,
                timeout=self.request_timeout,
            ) from exc

    async def complete_text(self, prompt: str) -> str:
        """Complete ``prompt``.

        Raises:
            CircuitOpenError: Breaker is open; the provider was not contacted
            ProviderTimeoutError: The request exceeded ``request_timeout``
            ProviderError: The provider failed
        """
        start = time.perf_counter()
        try:
            text = await self.breaker.execute(lambda: self._attempt(prompt))
        except CircuitOpenError:
            _metrics.counter("provider.calls", labels={"provider": self.name, "status": "circuit_open"})
            raise
        except Exception as exc:
            _metrics.counter("provider.calls", labels={"provider": self.name, "status": "error"})
            logger.warning("Provider %s call failed: %s", self.name, exc)
            raise
        duration_ms = (time.perf_counter() - start) * 1000
        _metrics.counter("provider.calls", labels={"provider": self.name, "status": "success"})
        _metrics.timer("provider.duration", duration_ms, labels={"provider": self.name})
        return text
