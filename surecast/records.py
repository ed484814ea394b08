"""Read and prepare writes of ENS text records.

Reads go through a :class:`BaseCallTransport`. Writes are never submitted
here: they are returned as a :class:`PreparedTransaction` for the wallet to
sign, so this layer holds no key material.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple, Union

from . import abi
from .constants import (
    ENS_CHAIN_ID,
    ENS_PUBLIC_RESOLVER,
    ENS_REGISTRY,
    LEGACY_WORKFLOW_KEY,
    MANIFEST_KEY,
)
from .contracts import Manifest, PreparedTransaction, TxTag, Workflow
from .errors import RecordNotFoundError, RecordReadError
from .serialization import (
    deserialize_manifest,
    deserialize_workflow,
    serialize_manifest,
    serialize_workflow,
    slugify,
    workflow_key,
)
from .transports import BaseCallTransport

logger = logging.getLogger(__name__)

Node = Union[bytes, str]


class TextRecordClient:
    """Access layer for string records stored against a namehash."""

    def __init__(
        self,
        transport: BaseCallTransport,
        registry: str = ENS_REGISTRY,
        public_resolver: str = ENS_PUBLIC_RESOLVER,
    ) -> None:
        self._transport = transport
        self.registry = registry
        self.public_resolver = public_resolver

    # ------------------------------------------------------------------
    # Reads
    async def get_resolver(self, node: Node) -> Optional[str]:
        """Return the resolver registered for ``node``, if any."""
        result = await self._transport.eth_call(
            self.registry, abi.to_hex(abi.encode_resolver_call(node))
        )
        try:
            return abi.decode_address_result(result)
        except abi.ABIDecodeError as e:
            raise RecordReadError(f"Malformed resolver lookup result: {e}") from e

    async def _call_text(self, resolver: str, node: Node, key: str) -> Optional[str]:
        result = await self._transport.eth_call(
            resolver, abi.to_hex(abi.encode_read_call(node, key))
        )
        if not result or result == "0x":
            return None
        try:
            return abi.decode_string_result(result)
        except (abi.ABIDecodeError, UnicodeDecodeError) as e:
            raise RecordReadError(f"Malformed text record for {key!r}: {e}") from e

    async def read_record(self, node: Node, key: str) -> Optional[str]:
        """Read ``key`` for ``node``.

        Tries the registered resolver first and falls back to the public
        resolver when the registered one has nothing. Returns ``None`` when
        no record exists anywhere.
        """
        resolver = await self.get_resolver(node)
        if resolver is not None:
            value = await self._call_text(resolver, node, key)
            if value:
                return value
            if resolver.lower() == self.public_resolver.lower():
                return None
            logger.debug(
                f"No {key!r} on resolver {resolver}, retrying public resolver"
            )

        return await self._call_text(self.public_resolver, node, key)

    async def read_manifest(self, node: Node) -> Manifest:
        """Return the saved-workflow index, empty when none is stored."""
        payload = await self.read_record(node, MANIFEST_KEY)
        if payload is None:
            return Manifest()
        return deserialize_manifest(payload)

    async def load_workflow(self, node: Node, slug: Optional[str] = None) -> Workflow:
        """Load a workflow by slug, or from the legacy key when no slug is given."""
        key = workflow_key(slug) if slug else LEGACY_WORKFLOW_KEY
        payload = await self.read_record(node, key)
        if payload is None:
            raise RecordNotFoundError(f"No workflow stored under {key}")
        workflow = deserialize_workflow(payload)
        logger.info(f"Loaded workflow {workflow.name!r} from {key}")
        return workflow

    # ------------------------------------------------------------------
    # Writes
    def prepare_write(
        self,
        node: Node,
        records: Sequence[Tuple[str, str]],
        description: Optional[str] = None,
    ) -> PreparedTransaction:
        """Build a transaction setting ``records`` atomically.

        One record encodes as a plain ``setText``; more are batched into a
        single ``multicall``.
        """
        if not records:
            raise ValueError("At least one record is required")

        calls: List[bytes] = [
            abi.encode_write_call(node, key, value) for key, value in records
        ]
        data = calls[0] if len(calls) == 1 else abi.encode_multicall(calls)
        keys = ", ".join(key for key, _ in records)
        return PreparedTransaction(
            to=self.public_resolver,
            data=abi.to_hex(data),
            value="0x0",
            chain_id=ENS_CHAIN_ID,
            tag=TxTag.ENS_WRITE,
            description=description or f"Set ENS text records ({keys})",
        )

    def prepare_save(
        self,
        node: Node,
        workflow: Workflow,
        slug: Optional[str] = None,
        manifest: Optional[Manifest] = None,
    ) -> Tuple[PreparedTransaction, str]:
        """Prepare the workflow record and the updated manifest in one transaction.

        Args:
            node: Namehash of the owning name.
            workflow: Workflow to store.
            slug: Explicit slug; derived from the workflow name by default.
            manifest: Current manifest, typically from :meth:`read_manifest`.

        Returns:
            The prepared transaction and the slug that was used.
        """
        if not workflow.steps:
            raise ValueError("No workflow with steps to save.")
        workflow_slug = slug or slugify(workflow.name)
        if not workflow_slug:
            raise ValueError(f"Cannot derive a slug from name {workflow.name!r}")

        updated = Manifest(entries=[e.model_copy() for e in (manifest or Manifest()).entries])
        updated.upsert(workflow_slug, workflow.name)

        key = workflow_key(workflow_slug)
        tx = self.prepare_write(
            node,
            [
                (key, serialize_workflow(workflow)),
                (MANIFEST_KEY, serialize_manifest(updated)),
            ],
            description=f'Save workflow "{workflow.name}" to ENS ({key})',
        )
        logger.info(f"Prepared save of {workflow.name!r} under {key}")
        return tx, workflow_slug
