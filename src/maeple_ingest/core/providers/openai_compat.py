"""httpx client for OpenAI-compatible chat-completion endpoints."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from maeple_ingest.config.domains import ProviderConfig
from maeple_ingest.core.errors.provider import (
    ProviderError,
    ProviderResponseError,
    ProviderTimeoutError,
)

logger = logging.getLogger(__name__)

CHAT_COMPLETIONS_PATH = "/chat/completions"


class OpenAICompatibleProvider:
    """Send a single-message chat completion and return the reply text.

    Works against any server exposing ``POST {base_url}/chat/completions``
    (OpenAI, OpenRouter, a local Ollama gateway).
    """

    def __init__(
        self,
        config: ProviderConfig,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        if not config.base_url:
            raise ValueError("Provider base_url is required")
        if not config.model:
            raise ValueError("Provider model is required")
        self.name = config.name
        self._base_url = config.base_url.rstrip("/")
        self._model = config.model
        self._api_key = config.api_key
        self._timeout = config.request_timeout
        self._client = client

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _payload(self, prompt: str) -> dict[str, Any]:
        return {
            "model": self._model,
            "messages": [{"role": "user", "content": prompt}],
        }

    async def _post(self, client: httpx.AsyncClient, prompt: str) -> httpx.Response:
        url = f"{self._base_url}{CHAT_COMPLETIONS_PATH}"
        try:
            return await client.post(url, json=self._payload(prompt), headers=self._headers())
        except httpx.TimeoutException as exc:
            raise ProviderTimeoutError(
                f"Provider {self.name} request timed out: {exc}",
                provider=self.name,
                timeout=self._timeout,
            ) from exc
        except httpx.RequestError as exc:
            raise ProviderError(
                f"Provider {self.name} request failed: {exc}",
                provider=self.name,
            ) from exc

    async def complete_text(self, prompt: str) -> str:
        """Return the first choice's message content, exactly as sent."""
        if self._client is not None:
            response = await self._post(self._client, prompt)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await self._post(client, prompt)

        if response.status_code >= 400:
            raise ProviderResponseError(
                f"Provider {self.name} returned HTTP {response.status_code}: "
                f"{_extract_error_message(response)}",
                provider=self.name,
                status_code=response.status_code,
            )

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise ProviderResponseError(
                f"Provider {self.name} returned an unexpected envelope",
                provider=self.name,
                status_code=response.status_code,
            ) from exc
        if not isinstance(content, str):
            raise ProviderResponseError(
                f"Provider {self.name} returned non-text content",
                provider=self.name,
                status_code=response.status_code,
            )
        logger.debug("Provider %s returned %d chars", self.name, len(content))
        return content


def _extract_error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text[:200] if response.text else "Unknown error"
    if isinstance(data, dict):
        error = data.get("error", data.get("message"))
        if isinstance(error, dict):
            return str(error.get("message", error))[:200]
        if error:
            return str(error)[:200]
    return response.text[:200]
