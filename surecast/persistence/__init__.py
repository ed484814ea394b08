"""Persistence layer for composer session state."""

from __future__ import annotations

import os
from typing import Optional

from ..config import SurecastConfig, load_config
from .inmemory import InMemoryStateRepository
from .repository import StateRepository
from .sqlite import SQLiteStateRepository

_repository_instance: StateRepository | None = None


def get_repository(
    database_url: Optional[str] = None, config: Optional[SurecastConfig] = None
) -> StateRepository:
    """Factory function to obtain a state repository.

    The backend is selected based on ``database_url`` which can be provided
    explicitly, via environment variable ``SURECAST_DATABASE_URL``, or from
    loaded configuration. When no database is configured, an in-memory
    repository is returned.
    """

    global _repository_instance
    if _repository_instance is not None and database_url is None and config is None:
        return _repository_instance

    config = config or load_config()
    database_url = (
        database_url
        or os.getenv("SURECAST_DATABASE_URL")
        or getattr(config, "database_url", None)
    )

    if not database_url:
        _repository_instance = InMemoryStateRepository()
        return _repository_instance

    if database_url.startswith("sqlite://"):
        path = database_url.replace("sqlite://", "", 1)
        _repository_instance = SQLiteStateRepository(path)
    else:
        raise ValueError(f"Unsupported database backend: {database_url}")

    return _repository_instance


__all__ = [
    "StateRepository",
    "SQLiteStateRepository",
    "InMemoryStateRepository",
    "get_repository",
]
