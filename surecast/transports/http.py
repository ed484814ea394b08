"""JSON-RPC over HTTP call transport."""

from __future__ import annotations

import itertools
import json
import logging
from typing import Any, Optional

import httpx

from ..errors import RecordReadError
from .base import BaseCallTransport

logger = logging.getLogger(__name__)


class HttpCallTransport(BaseCallTransport):
    """Sends ``eth_call`` requests to a public JSON-RPC endpoint."""

    def __init__(
        self,
        url: str,
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None
        self._ids = itertools.count(1)

    async def connect(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True

    async def disconnect(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def eth_call(self, to: str, data: str) -> str:
        if self._client is None:
            await self.connect()

        body = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": "eth_call",
            "params": [{"to": to, "data": data}, "latest"],
        }
        try:
            response = await self._client.post(self.url, json=body)
        except httpx.HTTPError as e:
            raise RecordReadError(f"RPC request to {self.url} failed: {e}") from e

        text = response.text
        if text.lstrip().startswith("<"):
            raise RecordReadError("RPC returned HTML, likely rate-limited")
        if response.status_code >= 400:
            raise RecordReadError(
                f"RPC returned HTTP {response.status_code}: {text[:200]}"
            )

        try:
            payload: Any = json.loads(text)
        except json.JSONDecodeError as e:
            raise RecordReadError(f"Malformed RPC response: {e}") from e

        if not isinstance(payload, dict):
            raise RecordReadError("Malformed RPC response: expected an object")
        if payload.get("error"):
            error = payload["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise RecordReadError(f"RPC error: {message}")

        result = payload.get("result")
        logger.debug(f"eth_call to={to} returned {len(result or '')} hex chars")
        return result or "0x"
