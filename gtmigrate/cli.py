"""Command line interface for running migration formulas."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer

from gtmigrate import MigrationOrchestrator, get_repository
from gtmigrate.config import load_config
from gtmigrate.errors import (
    CheckpointMismatchError,
    CheckpointNotFoundError,
    CheckpointParseError,
    FormulaError,
)
from gtmigrate.formula import load_formula
from gtmigrate.persistence import checkpoint_path
from gtmigrate.utils.text import truncate_output

app = typer.Typer(help="CLI for resumable workspace migrations")


def _town_root(path: Optional[Path]) -> str:
    return str((path or Path.cwd()).expanduser().resolve())


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_formula_or_exit(formula_path: Path):
    try:
        return load_formula(formula_path)
    except FormulaError as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=1)


@app.callback()
def main() -> None:
    """gtmigrate CLI entry point."""
    pass


@app.command("run")
def run(
    formula_path: Path,
    town_root: Optional[Path] = typer.Option(None, help="Workspace to migrate"),
    strict: bool = typer.Option(
        False, help="Abort if the checkpoint belongs to another formula version or town"
    ),
) -> None:
    """
    Run a migration formula, resuming from the town's checkpoint.

    Completed steps are skipped. A step interrupted by a crash is re-run from
    the beginning. The run stops at the first failing step; run the command
    again to retry it.

    Example:
        gtmigrate run formulas/beads-to-dolt.yaml --town-root ~/gt
    """
    config = load_config()
    _setup_logging(config.log_level)
    formula = _load_formula_or_exit(formula_path)
    root = _town_root(town_root)

    orchestrator = MigrationOrchestrator(root, config=config)
    try:
        report = asyncio.run(orchestrator.run(formula, strict=strict))
    except CheckpointMismatchError as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        typer.echo("Use 'gtmigrate reset' to discard the checkpoint, or drop --strict.")
        raise typer.Exit(code=1)
    except CheckpointParseError as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        typer.echo("The checkpoint is corrupt; repair it or run 'gtmigrate reset'.")
        raise typer.Exit(code=1)

    for anomaly in report.anomalies:
        typer.secho(f"warning: {anomaly.message}", fg=typer.colors.YELLOW)
    for step_id in report.skipped:
        typer.echo(f"- {step_id}: already completed")
    for step_id in report.executed:
        step = report.checkpoint.steps[step_id]
        typer.echo(f"- {step_id}: {step.status.value}")

    if not report.succeeded:
        step = report.checkpoint.steps[report.failed_step]
        typer.secho(f"Step {report.failed_step} failed: {report.error}", fg=typer.colors.RED)
        if step.output:
            typer.echo(truncate_output(step.output, config.output_preview_chars))
        raise typer.Exit(code=1)
    typer.secho(f"Formula {formula.name} completed", fg=typer.colors.GREEN)


@app.command("plan")
def plan(
    formula_path: Path,
    town_root: Optional[Path] = typer.Option(None, help="Workspace to migrate"),
) -> None:
    """Show each step's status and the commands a run would execute."""
    config = load_config()
    formula = _load_formula_or_exit(formula_path)
    root = _town_root(town_root)

    orchestrator = MigrationOrchestrator(root, config=config)
    try:
        planned = asyncio.run(orchestrator.plan(formula))
    except CheckpointParseError as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=1)

    typer.echo(f"Formula {formula.name} v{formula.version} for {root}")
    for step in planned:
        marker = "run" if step.will_run else "skip"
        typer.echo(f"[{marker}] {step.id}: {step.title} ({step.status.value})")
        for command in step.commands:
            for line in command.splitlines():
                typer.echo(f"    {line}")


@app.command("status")
def status(
    town_root: Optional[Path] = typer.Option(None, help="Workspace to inspect"),
) -> None:
    """
    Show the checkpoint recorded for a town.

    Example:
        gtmigrate status --town-root ~/gt
        # Output: Checkpoint for /home/user/gt (formula v1)
        #         - detect: completed
        #         - backup: failed (disk full)
    """
    config = load_config()
    root = _town_root(town_root)
    repo = get_repository(config=config)
    try:
        cp = asyncio.run(repo.load(root))
    except CheckpointNotFoundError:
        typer.echo("No migration checkpoint found")
        raise typer.Exit(code=1)
    except CheckpointParseError as exc:
        typer.secho(str(exc), fg=typer.colors.RED)
        raise typer.Exit(code=1)

    typer.echo(f"Checkpoint for {cp.town_root} (formula v{cp.formula_version})")
    typer.echo(f"Started {cp.started_at.isoformat()}, updated {cp.updated_at.isoformat()}")
    for step in sorted(
        cp.steps.values(), key=lambda s: (s.started_at is None, s.started_at or cp.started_at)
    ):
        line = f"- {step.id}: {step.status.value}"
        if step.error:
            line += f" ({truncate_output(step.error, config.output_preview_chars)})"
        typer.echo(line)


@app.command("reset")
def reset(
    town_root: Optional[Path] = typer.Option(None, help="Workspace to reset"),
    yes: bool = typer.Option(False, "--yes", help="Do not ask for confirmation"),
) -> None:
    """Discard the recorded checkpoint so the next run starts from scratch."""
    root = _town_root(town_root)
    path = checkpoint_path(root)
    if not yes:
        typer.confirm(f"Delete {path}?", abort=True)
    repo = get_repository(config=load_config())
    if not asyncio.run(repo.delete(root)):
        typer.echo("No migration checkpoint found")
        return
    typer.echo(f"Removed {path}")


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
