"""In-memory ENS registry and resolvers for testing."""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Optional, Tuple

from .. import abi
from ..constants import ENS_PUBLIC_RESOLVER, ENS_REGISTRY
from ..errors import RecordReadError
from .base import BaseCallTransport


def _addr(address: str) -> str:
    return address.lower()


class InMemoryCallTransport(BaseCallTransport):
    """Simulates the registry plus store-and-echo resolvers.

    Read calls are decoded with the same codec used to build them, so tests
    exercise the real wire layout. :meth:`execute` applies ``setText`` or
    ``multicall`` payloads the way a submitted transaction would.
    """

    def __init__(self, registry: str = ENS_REGISTRY) -> None:
        self.registry = _addr(registry)
        self._resolvers: Dict[bytes, str] = {}
        self._records: Dict[str, Dict[Tuple[bytes, str], str]] = defaultdict(dict)
        self.calls: List[Tuple[str, str]] = []
        self.fail_with: Optional[str] = None

    # ------------------------------------------------------------------
    # Fixture helpers
    def set_resolver(self, node: bytes, resolver: str) -> None:
        self._resolvers[node] = _addr(resolver)

    def set_text(
        self, node: bytes, key: str, value: str, resolver: str = ENS_PUBLIC_RESOLVER
    ) -> None:
        self._records[_addr(resolver)][(node, key)] = value

    def get_text(
        self, node: bytes, key: str, resolver: str = ENS_PUBLIC_RESOLVER
    ) -> Optional[str]:
        return self._records[_addr(resolver)].get((node, key))

    # ------------------------------------------------------------------
    # Transport API
    async def eth_call(self, to: str, data: str) -> str:
        self.calls.append((to, data))
        if self.fail_with:
            raise RecordReadError(self.fail_with)

        raw = abi.from_hex(data)
        selector = raw[:4]
        if _addr(to) == self.registry and selector == abi.RESOLVER_SELECTOR:
            node = abi.decode_resolver_call(raw)
            resolver = self._resolvers.get(node)
            if resolver is None:
                return abi.to_hex(b"\x00" * abi.WORD)
            return abi.to_hex(abi.encode_address_result(resolver))

        if selector == abi.TEXT_SELECTOR:
            node, key = abi.decode_read_call(raw)
            value = self._records[_addr(to)].get((node, key), "")
            return abi.to_hex(abi.encode_string_result(value))

        return "0x"

    def execute(self, to: str, data: str) -> List[Tuple[bytes, str, str]]:
        """Apply a write payload to the resolver at ``to``.

        Returns the ``(node, key, value)`` writes in the order applied.
        """
        raw = abi.from_hex(data)
        if raw[:4] == abi.MULTICALL_SELECTOR:
            payloads = abi.decode_multicall(raw)
        else:
            payloads = [raw]

        applied = []
        for payload in payloads:
            node, key, value = abi.decode_write_call(payload)
            self._records[_addr(to)][(node, key)] = value
            applied.append((node, key, value))
        return applied
