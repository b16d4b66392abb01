"""Persistence layer for migration checkpoints."""

from __future__ import annotations

import os
from typing import Optional

from ..config import GtMigrateConfig, load_config
from .file import (
    FileCheckpointRepository,
    checkpoint_path,
    load_checkpoint,
    remove_checkpoint,
    save_checkpoint,
)
from .inmemory import InMemoryCheckpointRepository
from .models import MigrationCheckpoint, StepRun, StepStatus
from .repository import CheckpointRepository


def get_repository(
    backend: Optional[str] = None, config: Optional[GtMigrateConfig] = None
) -> CheckpointRepository:
    """Factory function to obtain a checkpoint repository.

    The backend is taken from ``backend``, the ``GTMIGRATE_CHECKPOINT_BACKEND``
    environment variable, or the loaded configuration, in that order.
    """

    config = config or load_config()
    backend = (
        backend
        or os.getenv("GTMIGRATE_CHECKPOINT_BACKEND")
        or config.checkpoint.backend
    ).lower()

    if backend == "file":
        return FileCheckpointRepository()
    elif backend == "memory":
        return InMemoryCheckpointRepository()
    else:
        raise ValueError(f"Unsupported checkpoint backend: {backend}")


__all__ = [
    "CheckpointRepository",
    "FileCheckpointRepository",
    "InMemoryCheckpointRepository",
    "MigrationCheckpoint",
    "StepRun",
    "StepStatus",
    "checkpoint_path",
    "get_repository",
    "load_checkpoint",
    "remove_checkpoint",
    "save_checkpoint",
]
