"""Remote store boundary for queue delivery."""

from __future__ import annotations

import logging
from typing import Dict, Optional, Protocol, runtime_checkable

import httpx

from maeple_ingest.core.sync.models import SyncEntry

logger = logging.getLogger(__name__)


@runtime_checkable
class RemoteStore(Protocol):
    """Applies one queued record remotely.

    ``apply`` returns True when the record is stored and False when the
    store refused it; transport problems may be raised instead.
    """

    async def apply(self, entry: SyncEntry) -> bool: ...


class HttpRemoteStore:
    """POST each record as JSON to a single endpoint.

    The entry ID travels with the record so the server can de-duplicate a
    redelivery; a 409 Conflict is therefore treated as already applied.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.endpoint = endpoint
        self._headers = {"Content-Type": "application/json", **(headers or {})}
        self._timeout = timeout
        self._client = client

    async def _post(self, client: httpx.AsyncClient, entry: SyncEntry) -> httpx.Response:
        body = {
            "id": entry.id,
            "sequence": entry.sequence,
            "enqueued_at": entry.enqueued_at.isoformat(),
            "record": entry.payload,
        }
        return await client.post(self.endpoint, json=body, headers=self._headers)

    async def apply(self, entry: SyncEntry) -> bool:
        if self._client is not None:
            response = await self._post(self._client, entry)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await self._post(client, entry)

        if response.status_code == 409:
            logger.info("Remote already holds entry %s", entry.id)
            return True
        if response.status_code >= 400:
            logger.warning(
                "Remote store rejected entry %s with HTTP %d", entry.id, response.status_code
            )
            return False
        return True
