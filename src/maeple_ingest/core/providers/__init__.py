"""Text-completion providers and the breaker-guarded wrapper."""

from maeple_ingest.core.providers.base import TextCompletionProvider
from maeple_ingest.core.providers.guarded import GuardedProvider
from maeple_ingest.core.providers.openai_compat import OpenAICompatibleProvider

__all__ = [
    "TextCompletionProvider",
    "GuardedProvider",
    "OpenAICompatibleProvider",
]
