"""Repository abstraction for composer state persistence."""

from __future__ import annotations

from typing import Protocol

from ..contracts import SessionState


class StateRepository(Protocol):
    """Protocol for session state persistence backends."""

    async def load_state(self) -> SessionState | None:
        """Return the stored state, or ``None`` when nothing was saved."""

    async def save_state(self, state: SessionState) -> None:
        """Persist ``state`` wholesale."""

    async def clear_state(self) -> None:
        """Remove any stored state."""
