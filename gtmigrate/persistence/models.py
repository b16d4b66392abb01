"""Data models for persisted migration state."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from ..errors import InvalidTransitionError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StepStatus(str, Enum):
    """Lifecycle of a single formula step."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class StepRun(BaseModel):
    """Record of one step's most recent execution."""

    id: str
    title: str = ""
    status: StepStatus = StepStatus.PENDING
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    output: str = ""
    error: Optional[str] = None


class MigrationCheckpoint(BaseModel):
    """Durable progress record for one town root."""

    formula_version: int
    town_root: str
    started_at: datetime
    updated_at: datetime
    steps: dict[str, StepRun] = Field(default_factory=dict)

    @classmethod
    def new(cls, formula_version: int, town_root: str) -> "MigrationCheckpoint":
        now = utcnow()
        return cls(
            formula_version=formula_version,
            town_root=town_root,
            started_at=now,
            updated_at=now,
        )

    # ------------------------------------------------------------------
    def status_of(self, step_id: str) -> StepStatus:
        step = self.steps.get(step_id)
        return step.status if step else StepStatus.PENDING

    def running_steps(self) -> list[str]:
        return [
            step_id
            for step_id, step in self.steps.items()
            if step.status == StepStatus.RUNNING
        ]

    def is_complete(self, step_ids: Iterable[str]) -> bool:
        """Return ``True`` when every id in ``step_ids`` is completed."""
        return all(self.status_of(s) == StepStatus.COMPLETED for s in step_ids)

    # ------------------------------------------------------------------
    def begin_step(self, step_id: str, title: str = "") -> StepRun:
        """Move ``step_id`` to running, resetting any previous attempt."""
        if self.status_of(step_id) == StepStatus.COMPLETED:
            raise InvalidTransitionError(f"step {step_id} is already completed")
        others = [s for s in self.running_steps() if s != step_id]
        if others:
            raise InvalidTransitionError(
                f"cannot start {step_id} while {', '.join(others)} is running"
            )
        step = StepRun(
            id=step_id,
            title=title,
            status=StepStatus.RUNNING,
            started_at=utcnow(),
        )
        self.steps[step_id] = step
        return step

    def complete_step(self, step_id: str, output: str = "") -> StepRun:
        step = self._require_running(step_id)
        step.status = StepStatus.COMPLETED
        step.completed_at = utcnow()
        step.output = output
        step.error = None
        return step

    def fail_step(self, step_id: str, error: str, output: str = "") -> StepRun:
        step = self._require_running(step_id)
        step.status = StepStatus.FAILED
        step.completed_at = utcnow()
        step.output = output
        step.error = error
        return step

    def interrupt_step(self, step_id: str) -> StepRun:
        """Record that a previous run stopped while ``step_id`` was running."""
        step = self._require_running(step_id)
        step.status = StepStatus.FAILED
        step.completed_at = utcnow()
        step.error = "interrupted: previous run stopped while the step was running"
        return step

    def _require_running(self, step_id: str) -> StepRun:
        step = self.steps.get(step_id)
        if step is None or step.status != StepStatus.RUNNING:
            current = step.status.value if step else "absent"
            raise InvalidTransitionError(
                f"step {step_id} is {current}, expected running"
            )
        return step
