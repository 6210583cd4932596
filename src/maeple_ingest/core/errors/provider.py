"""Provider call error classes."""

from typing import Optional


class ProviderError(RuntimeError):
    """Base exception for text-completion provider failures."""

    def __init__(self, message: str, *, provider: Optional[str] = None):
        self.provider = provider
        super().__init__(message)


class ProviderResponseError(ProviderError):
    """Provider answered with an error status or an unusable envelope.

    Attributes:
        status_code: HTTP status returned by the provider, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, provider=provider)
        self.status_code = status_code


class ProviderTimeoutError(ProviderError):
    """Raised when a provider exceeds its allotted request time.

    Attributes:
        provider: Provider that timed out
        elapsed: Actual elapsed time in seconds before timeout
        timeout: Configured timeout value in seconds
    """

    def __init__(
        self,
        message: str,
        *,
        provider: Optional[str] = None,
        elapsed: Optional[float] = None,
        timeout: Optional[float] = None,
    ):
        super().__init__(message, provider=provider)
        self.elapsed = elapsed
        self.timeout = timeout
