"""Step orchestration for migration formulas."""

from __future__ import annotations

import logging
from typing import Optional

from .config import GtMigrateConfig, load_config
from .constants import TOWN_ROOT_ENV
from .contracts import (
    AnomalyKind,
    CheckpointAnomaly,
    Formula,
    FormulaStep,
    MigrationReport,
    PlannedStep,
)
from .errors import CheckpointMismatchError, CheckpointNotFoundError
from .extract import extract_commands
from .persistence import (
    CheckpointRepository,
    MigrationCheckpoint,
    StepStatus,
    get_repository,
)
from .runner import ProcessRunner, ShellRunner
from .utils.text import truncate_output

logger = logging.getLogger(__name__)


def detect_anomalies(
    checkpoint: MigrationCheckpoint, formula: Formula, town_root: str
) -> list[CheckpointAnomaly]:
    """Compare a loaded checkpoint against the current run context.

    Nothing here rejects the checkpoint; callers decide what a mismatch means.
    """
    anomalies: list[CheckpointAnomaly] = []
    if checkpoint.formula_version != formula.version:
        anomalies.append(
            CheckpointAnomaly(
                kind=AnomalyKind.FORMULA_VERSION_MISMATCH,
                message=(
                    f"checkpoint was written by formula version "
                    f"{checkpoint.formula_version}, current is {formula.version}"
                ),
            )
        )
    if checkpoint.town_root != town_root:
        anomalies.append(
            CheckpointAnomaly(
                kind=AnomalyKind.TOWN_ROOT_MISMATCH,
                message=(
                    f"checkpoint belongs to {checkpoint.town_root}, "
                    f"running against {town_root}"
                ),
            )
        )
    known = set(formula.step_ids)
    for step_id in checkpoint.steps:
        if step_id not in known:
            anomalies.append(
                CheckpointAnomaly(
                    kind=AnomalyKind.UNKNOWN_STEP,
                    message=f"checkpoint records step {step_id} not in formula",
                    step_id=step_id,
                )
            )
    for step_id in checkpoint.running_steps():
        anomalies.append(
            CheckpointAnomaly(
                kind=AnomalyKind.INTERRUPTED_STEP,
                message=f"step {step_id} was interrupted and will be re-run",
                step_id=step_id,
            )
        )
    return anomalies


class MigrationOrchestrator:
    """Drives a formula's steps against one town root, one step at a time."""

    def __init__(
        self,
        town_root: str,
        runner: ProcessRunner | None = None,
        repository: CheckpointRepository | None = None,
        config: Optional[GtMigrateConfig] = None,
    ) -> None:
        self.town_root = town_root
        self._config = config or load_config()
        self._runner = runner or ShellRunner(
            shell=self._config.runner.shell,
            timeout=self._config.runner.command_timeout,
        )
        self._repository = repository or get_repository(config=self._config)

    async def load_or_create(self, formula: Formula) -> tuple[MigrationCheckpoint, bool]:
        """Return the stored checkpoint, or a fresh persisted one.

        The boolean is ``True`` when the checkpoint was newly created.
        """
        try:
            return await self._repository.load(self.town_root), False
        except CheckpointNotFoundError:
            logger.info(
                f"No checkpoint for {self.town_root}; starting formula "
                f"{formula.name} v{formula.version}"
            )
        checkpoint = MigrationCheckpoint.new(formula.version, self.town_root)
        await self._repository.save(self.town_root, checkpoint)
        return checkpoint, True

    async def plan(self, formula: Formula) -> list[PlannedStep]:
        """Describe what ``run`` would do without executing anything."""
        try:
            checkpoint = await self._repository.load(self.town_root)
        except CheckpointNotFoundError:
            checkpoint = MigrationCheckpoint.new(formula.version, self.town_root)
        return [
            PlannedStep(
                id=step.id,
                title=step.title,
                status=checkpoint.status_of(step.id),
                commands=extract_commands(step.description, self.town_root),
            )
            for step in formula.steps
        ]

    async def run(self, formula: Formula, strict: bool = False) -> MigrationReport:
        """Execute every unfinished step of ``formula`` in order.

        Completed steps are skipped. A step found ``running`` was cut off by a
        crash and is replayed from its first command. The run stops at the
        first failed step, which stays recorded with its error and output.

        Raises:
            CheckpointMismatchError: ``strict`` is set and the stored checkpoint
                was written for another formula version or town root.
            CheckpointParseError: The stored checkpoint is corrupt.
        """
        checkpoint, created = await self.load_or_create(formula)
        anomalies = [] if created else detect_anomalies(
            checkpoint, formula, self.town_root
        )
        for anomaly in anomalies:
            logger.warning(anomaly.message)
        if strict:
            blocking = [a for a in anomalies if a.blocking]
            if blocking:
                raise CheckpointMismatchError(blocking)

        interrupted = checkpoint.running_steps()
        if interrupted:
            for step_id in interrupted:
                checkpoint.interrupt_step(step_id)
            await self._repository.save(self.town_root, checkpoint)

        report = MigrationReport(checkpoint=checkpoint, anomalies=anomalies)
        for step in formula.steps:
            status = checkpoint.status_of(step.id)
            if status == StepStatus.COMPLETED:
                logger.info(f"Skipping completed step {step.id}")
                report.skipped.append(step.id)
                continue
            if step.id in interrupted:
                logger.warning(f"Re-running interrupted step {step.id} from scratch")
            elif status == StepStatus.FAILED:
                logger.info(f"Retrying failed step {step.id}")

            report.executed.append(step.id)
            if not await self._run_step(checkpoint, step, report):
                break
        else:
            logger.info(
                f"Formula {formula.name} completed for {self.town_root}"
            )
        return report

    async def _run_step(
        self, checkpoint: MigrationCheckpoint, step: FormulaStep, report: MigrationReport
    ) -> bool:
        # Persisted before any command runs so an interrupted step loads as running.
        checkpoint.begin_step(step.id, step.title)
        await self._repository.save(self.town_root, checkpoint)
        logger.info(f"Running step {step.id}: {step.title}")

        commands = extract_commands(step.description, self.town_root)
        if not commands:
            logger.info(f"Step {step.id} has no executable commands")

        env = {TOWN_ROOT_ENV: self.town_root}
        outputs: list[str] = []
        for index, command in enumerate(commands, start=1):
            try:
                result = await self._runner.run(command, self.town_root, env)
            except OSError as exc:
                error = f"command {index}/{len(commands)} could not start: {exc}"
                return await self._fail(checkpoint, step, report, error, outputs)

            outputs.append(result.output)
            if not result.ok:
                error = (
                    f"command {index}/{len(commands)} failed: "
                    f"{result.error or 'unknown error'}"
                )
                return await self._fail(checkpoint, step, report, error, outputs)

        output = "".join(outputs)
        checkpoint.complete_step(step.id, output)
        await self._repository.save(self.town_root, checkpoint)
        preview = truncate_output(output.strip(), self._config.output_preview_chars)
        logger.info(f"Step {step.id} completed" + (f": {preview}" if preview else ""))
        return True

    async def _fail(
        self,
        checkpoint: MigrationCheckpoint,
        step: FormulaStep,
        report: MigrationReport,
        error: str,
        outputs: list[str],
    ) -> bool:
        checkpoint.fail_step(step.id, error, "".join(outputs))
        await self._repository.save(self.town_root, checkpoint)
        report.failed_step = step.id
        report.error = error
        logger.error(f"Step {step.id} failed: {error}")
        return False
