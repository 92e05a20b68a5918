"""Persistence layer for workflow steps and agents."""

from __future__ import annotations

import os
from typing import Optional

from ..config import ThinkcodeConfig, load_config
from .inmemory import InMemoryStepRepository
from .models import AgentRecord, StepRecord
from .repository import StepNotFoundError, StepRepository
from .sqlite import SQLiteStepRepository

_ORM_URL_PREFIXES = ("sqlite+aiosqlite://", "postgresql+asyncpg://")

_repository_instance: StepRepository | None = None


def get_repository(
    database_url: Optional[str] = None, config: Optional[ThinkcodeConfig] = None
) -> StepRepository:
    """Factory function to obtain a step repository.

    The backend is selected based on ``database_url`` which can be provided
    explicitly, via environment variable ``THINKCODE_DATABASE_URL`` or
    ``DATABASE_URL``, or from loaded configuration. When no database is
    configured, an in-memory repository is returned.
    """

    global _repository_instance
    if _repository_instance is not None and database_url is None and config is None:
        return _repository_instance

    config = config or load_config()
    database_url = (
        database_url
        or os.getenv("THINKCODE_DATABASE_URL")
        or os.getenv("DATABASE_URL")
        or config.database_url
    )

    if not database_url:
        _repository_instance = InMemoryStepRepository()
        return _repository_instance

    if database_url.startswith(_ORM_URL_PREFIXES):
        from ..db import StepDB

        _repository_instance = StepDB(database_url)
    elif database_url.startswith("sqlite://"):
        path = database_url.replace("sqlite://", "", 1)
        _repository_instance = SQLiteStepRepository(path)
    else:
        raise ValueError(f"Unsupported database backend: {database_url}")

    return _repository_instance


__all__ = [
    "AgentRecord",
    "StepRecord",
    "StepRepository",
    "StepNotFoundError",
    "InMemoryStepRepository",
    "SQLiteStepRepository",
    "get_repository",
]
