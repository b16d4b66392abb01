"""Repository abstraction for migration checkpoint persistence."""

from __future__ import annotations

from typing import Protocol

from .models import MigrationCheckpoint


class CheckpointRepository(Protocol):
    """Protocol for checkpoint persistence backends."""

    async def load(self, town_root: str) -> MigrationCheckpoint:
        """Return the checkpoint for ``town_root``.

        Raises ``CheckpointNotFoundError`` when none exists and
        ``CheckpointParseError`` when the stored state is unreadable.
        """

    async def save(self, town_root: str, checkpoint: MigrationCheckpoint) -> None:
        """Durably persist ``checkpoint``, refreshing its ``updated_at``."""

    async def delete(self, town_root: str) -> bool:
        """Forget the checkpoint for ``town_root``."""
