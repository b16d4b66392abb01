"""In-memory implementation of the checkpoint repository."""

from __future__ import annotations

from typing import Dict

from ..constants import CHECKPOINT_FILENAME
from ..errors import CheckpointNotFoundError
from .models import MigrationCheckpoint, utcnow
from .repository import CheckpointRepository


class InMemoryCheckpointRepository(CheckpointRepository):
    """Keep checkpoints in local memory.

    Useful for tests and dry runs. Stored values are copies, so later
    mutation of a loaded or saved checkpoint does not leak into the store.
    """

    def __init__(self) -> None:
        self._checkpoints: Dict[str, MigrationCheckpoint] = {}
        self.save_count = 0

    async def load(self, town_root: str) -> MigrationCheckpoint:
        cp = self._checkpoints.get(town_root)
        if cp is None:
            raise CheckpointNotFoundError(f"{town_root}/{CHECKPOINT_FILENAME}")
        return cp.model_copy(deep=True)

    async def save(self, town_root: str, checkpoint: MigrationCheckpoint) -> None:
        checkpoint.updated_at = utcnow()
        self._checkpoints[town_root] = checkpoint.model_copy(deep=True)
        self.save_count += 1

    async def delete(self, town_root: str) -> bool:
        return self._checkpoints.pop(town_root, None) is not None
