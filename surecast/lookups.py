"""Best-effort side lookups.

These enrich a primary operation (showing the user's name, pre-filling the
saved-workflow list) and must never fail it: errors are logged and returned
inside :class:`LookupResult`.
"""

from __future__ import annotations

import logging
from typing import Generic, Optional, TypeVar

import httpx
from pydantic import BaseModel

from .config import LookupConfig
from .contracts import Manifest
from .errors import SurecastError
from .namehash import name_hash
from .records import TextRecordClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LookupResult(BaseModel, Generic[T]):
    value: Optional[T] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def reverse_lookup(
    address: str,
    config: Optional[LookupConfig] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> LookupResult[str]:
    """Resolve the primary name for ``address``."""
    config = config or LookupConfig()
    url = f"{config.reverse_name_url.rstrip('/')}/{address}"
    try:
        if client is not None:
            response = await client.get(url)
        else:
            async with httpx.AsyncClient(timeout=config.timeout) as owned:
                response = await owned.get(url)
        response.raise_for_status()
        data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Reverse name lookup for {address} failed: {e}")
        return LookupResult[str](error=str(e))

    name = data.get("name") if isinstance(data, dict) else None
    return LookupResult[str](value=name or None)


async def prefetch_manifest(
    records: TextRecordClient, name: str
) -> LookupResult[Manifest]:
    """Read the saved-workflow manifest of ``name``, tolerating any failure."""
    try:
        manifest = await records.read_manifest(name_hash(name))
    except SurecastError as e:
        logger.warning(f"Manifest prefetch failed: {e}")
        return LookupResult[Manifest](error=str(e))
    return LookupResult[Manifest](value=manifest)
