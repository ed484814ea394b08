"""Explicit holder for the composer's session state.

The holder caches one :class:`SessionState` loaded from a repository and
writes it back on :meth:`StateHolder.commit`. It also owns the
single-slot prepared transaction and the one-active-run guard.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from .contracts import PreparedTransaction, SessionState, TxTag
from .errors import PreparedTransactionMismatch, RunInProgressError
from .persistence import StateRepository

logger = logging.getLogger(__name__)


class StateHolder:
    """Owns the current workflow slot, prepared transaction and execution."""

    def __init__(self, repository: StateRepository) -> None:
        self._repository = repository
        self._state: Optional[SessionState] = None
        self._active_run: Optional[str] = None

    @property
    def state(self) -> SessionState:
        if self._state is None:
            raise RuntimeError("State not loaded; call load() first")
        return self._state

    async def load(self) -> SessionState:
        """Return cached state, reading the repository on first use."""
        if self._state is None:
            self._state = await self._repository.load_state() or SessionState()
        return self._state

    async def refresh(self) -> SessionState:
        """Drop the cache and re-read from the repository."""
        self._state = None
        return await self.load()

    async def commit(self) -> None:
        await self._repository.save_state(self.state)

    async def reset(self) -> None:
        self._state = SessionState()
        await self._repository.clear_state()

    # ------------------------------------------------------------------
    # Prepared transaction slot
    def get_prepared(self) -> Optional[PreparedTransaction]:
        return self.state.prepared_tx

    async def set_prepared(self, tx: PreparedTransaction) -> None:
        """Replace the live prepared transaction, invalidating the old one."""
        self.state.prepared_tx = tx
        await self.commit()

    async def clear_prepared(self) -> None:
        self.state.prepared_tx = None
        await self.commit()

    def take_prepared(self, expected_tag: TxTag) -> PreparedTransaction:
        """Return the live transaction if it was produced by ``expected_tag``."""
        tx = self.state.prepared_tx
        if tx is None:
            raise PreparedTransactionMismatch("No prepared transaction")
        if tx.tag != expected_tag:
            raise PreparedTransactionMismatch(
                f"Prepared transaction is tagged {tx.tag.value if tx.tag else None}, "
                f"expected {expected_tag.value}"
            )
        return tx

    # ------------------------------------------------------------------
    # Run guard
    @property
    def run_active(self) -> bool:
        return self._active_run is not None

    @contextmanager
    def exclusive_run(self, workflow_id: str) -> Iterator[None]:
        """Hold the run guard for ``workflow_id``; concurrent runs are rejected."""
        if self._active_run is not None:
            raise RunInProgressError(
                f"A run for workflow {self._active_run} is already active"
            )
        self._active_run = workflow_id
        logger.debug(f"Acquired run guard for workflow {workflow_id}")
        try:
            yield
        finally:
            self._active_run = None
