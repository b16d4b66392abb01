"""Formula definitions and run results exchanged with callers."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from .errors import StepExecutionError
from .persistence.models import MigrationCheckpoint, StepStatus


class FormulaStep(BaseModel):
    """One step of a migration formula."""

    id: str = Field(min_length=1)
    title: str = ""
    description: str = ""


class Formula(BaseModel):
    """Versioned, ordered list of migration steps."""

    name: str
    version: int
    description: str = ""
    steps: List[FormulaStep] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_step_ids(self) -> "Formula":
        seen: set[str] = set()
        for step in self.steps:
            if step.id in seen:
                raise ValueError(f"duplicate step id: {step.id}")
            seen.add(step.id)
        return self

    @property
    def step_ids(self) -> list[str]:
        return [step.id for step in self.steps]

    def get_step(self, step_id: str) -> Optional[FormulaStep]:
        for step in self.steps:
            if step.id == step_id:
                return step
        return None


class AnomalyKind(str, Enum):
    FORMULA_VERSION_MISMATCH = "formula_version_mismatch"
    TOWN_ROOT_MISMATCH = "town_root_mismatch"
    UNKNOWN_STEP = "unknown_step"
    INTERRUPTED_STEP = "interrupted_step"


class CheckpointAnomaly(BaseModel):
    """A loaded checkpoint disagrees with the current run context."""

    kind: AnomalyKind
    message: str
    step_id: Optional[str] = None

    @property
    def blocking(self) -> bool:
        """Mismatches that a strict run refuses to continue past."""
        return self.kind in (
            AnomalyKind.FORMULA_VERSION_MISMATCH,
            AnomalyKind.TOWN_ROOT_MISMATCH,
        )


class PlannedStep(BaseModel):
    """Dry-run view of a step: its recorded status and what would execute."""

    id: str
    title: str
    status: StepStatus
    commands: List[str] = Field(default_factory=list)

    @property
    def will_run(self) -> bool:
        return self.status != StepStatus.COMPLETED


class MigrationReport(BaseModel):
    """Outcome of one orchestrator invocation."""

    checkpoint: MigrationCheckpoint
    executed: List[str] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)
    failed_step: Optional[str] = None
    error: Optional[str] = None
    anomalies: List[CheckpointAnomaly] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.failed_step is None

    def raise_for_failure(self) -> None:
        """Raise ``StepExecutionError`` if the run stopped on a failed step."""
        if self.failed_step is None:
            return
        step = self.checkpoint.steps.get(self.failed_step)
        raise StepExecutionError(
            self.failed_step,
            self.error or "unknown error",
            step.output if step else None,
        )
