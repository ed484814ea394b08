"""Base interface for read-only contract calls."""

from __future__ import annotations

import abc


class BaseCallTransport(metaclass=abc.ABCMeta):
    """Abstract read-only call transport (``eth_call``)."""

    async def connect(self) -> None:
        """Open underlying connection (no-op by default)."""
        pass

    async def disconnect(self) -> None:
        """Close underlying connection (no-op by default)."""
        pass

    @abc.abstractmethod
    async def eth_call(self, to: str, data: str) -> str:
        """Execute a read-only call against ``to`` and return the hex result.

        Raises:
            RecordReadError: On transport failures, malformed responses or
                JSON-RPC errors.
        """
        raise NotImplementedError
