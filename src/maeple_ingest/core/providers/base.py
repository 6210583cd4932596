"""Provider boundary: the one operation the core needs from an LLM service."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class TextCompletionProvider(Protocol):
    """Black-box text completion.

    Implementations may raise ``ProviderError`` subclasses, ``TimeoutError``
    or transport errors; nothing is assumed about the text's formatting.
    """

    name: str

    async def complete_text(self, prompt: str) -> str: ...
