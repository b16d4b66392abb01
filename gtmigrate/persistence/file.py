"""JSON file implementation of the checkpoint repository."""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from ..constants import CHECKPOINT_FILENAME
from ..errors import CheckpointNotFoundError, CheckpointParseError
from .models import MigrationCheckpoint, utcnow
from .repository import CheckpointRepository

logger = logging.getLogger(__name__)


def checkpoint_path(town_root: str | Path) -> Path:
    """Return the well-known checkpoint location inside ``town_root``."""
    return Path(town_root) / CHECKPOINT_FILENAME


def _atomic_write(path: Path, content: str) -> None:
    """Write ``content`` to ``path`` via temp file, fsync and rename."""
    fd, tmp_path = tempfile.mkstemp(
        dir=str(path.parent), prefix=f"{path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except Exception:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def save_checkpoint(town_root: str | Path, checkpoint: MigrationCheckpoint) -> None:
    """Persist ``checkpoint`` for ``town_root``.

    ``updated_at`` is always refreshed; ``started_at`` is written as given.
    The previous file stays intact until the new one is fully on disk.
    """
    checkpoint.updated_at = utcnow()
    path = checkpoint_path(town_root)
    _atomic_write(path, checkpoint.model_dump_json(indent=2) + "\n")
    logger.debug(f"Saved migration checkpoint to {path}")


def load_checkpoint(town_root: str | Path) -> MigrationCheckpoint:
    """Read the checkpoint for ``town_root``.

    Raises:
        CheckpointNotFoundError: No checkpoint file exists yet.
        CheckpointParseError: The file is empty, not JSON, or not a checkpoint.
    """
    path = checkpoint_path(town_root)
    try:
        data = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise CheckpointNotFoundError(str(path)) from None
    except UnicodeDecodeError as exc:
        raise CheckpointParseError(str(path), str(exc)) from exc

    if not data.strip():
        raise CheckpointParseError(str(path), "file is empty")
    try:
        return MigrationCheckpoint.model_validate_json(data)
    except ValidationError as exc:
        raise CheckpointParseError(str(path), str(exc)) from exc


def remove_checkpoint(town_root: str | Path) -> bool:
    """Delete the checkpoint for ``town_root``. Returns ``False`` if absent."""
    path = checkpoint_path(town_root)
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    logger.info(f"Removed migration checkpoint {path}")
    return True


class FileCheckpointRepository(CheckpointRepository):
    """Store checkpoints as JSON documents inside each town root."""

    async def load(self, town_root: str) -> MigrationCheckpoint:
        return await asyncio.to_thread(load_checkpoint, town_root)

    async def save(self, town_root: str, checkpoint: MigrationCheckpoint) -> None:
        await asyncio.to_thread(save_checkpoint, town_root, checkpoint)

    async def delete(self, town_root: str) -> bool:
        return await asyncio.to_thread(remove_checkpoint, town_root)
