"""Call transport factory and initialization."""

from __future__ import annotations

import os
from typing import Optional

from ..config import SurecastConfig, load_config
from .base import BaseCallTransport
from .http import HttpCallTransport
from .inmemory import InMemoryCallTransport


def get_transport(
    backend: Optional[str] = None, config: Optional[SurecastConfig] = None
) -> BaseCallTransport:
    """Factory function to get the configured call transport."""

    config = config or load_config()
    backend = (
        backend or os.getenv("SURECAST_RPC_BACKEND") or config.rpc.backend
    ).lower()

    if backend == "http":
        return HttpCallTransport(url=config.rpc.url, timeout=config.rpc.timeout)
    elif backend == "inmemory":
        return InMemoryCallTransport()
    else:
        raise ValueError(f"Unsupported transport backend: {backend}")


__all__ = [
    "BaseCallTransport",
    "HttpCallTransport",
    "InMemoryCallTransport",
    "get_transport",
]
