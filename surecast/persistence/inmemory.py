"""In-memory implementation of the state repository."""

from __future__ import annotations

from ..contracts import SessionState
from .repository import StateRepository


class InMemoryStateRepository(StateRepository):
    """Store session state in local memory.

    Useful for tests or when no database is configured. Data is not
    persisted across process restarts.
    """

    def __init__(self) -> None:
        self._state: SessionState | None = None
        self.saves = 0

    async def load_state(self) -> SessionState | None:
        if self._state is None:
            return None
        return self._state.model_copy(deep=True)

    async def save_state(self, state: SessionState) -> None:
        self._state = state.model_copy(deep=True)
        self.saves += 1

    async def clear_state(self) -> None:
        self._state = None
