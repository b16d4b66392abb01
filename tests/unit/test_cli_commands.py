"""Tests for the gtmigrate command line interface."""

import shutil
from pathlib import Path

import pytest
from typer.testing import CliRunner

from gtmigrate.cli import app
from gtmigrate.constants import CHECKPOINT_FILENAME
from gtmigrate.persistence import MigrationCheckpoint, StepRun, StepStatus, save_checkpoint

FIXTURE = Path(__file__).resolve().parents[1] / "fixtures" / "sample_formula.yaml"


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path, monkeypatch):
    monkeypatch.setenv("GTMIGRATE_CONFIG", str(tmp_path / "no-config.yaml"))
    monkeypatch.delenv("GTMIGRATE_CHECKPOINT_BACKEND", raising=False)
    monkeypatch.delenv("GTMIGRATE_SHELL", raising=False)


@pytest.fixture
def town(tmp_path) -> Path:
    root = tmp_path / "town"
    root.mkdir()
    return root


@pytest.mark.skipif(shutil.which("bash") is None, reason="bash not available")
def test_run_command_completes_formula(town):
    runner = CliRunner()
    result = runner.invoke(app, ["run", str(FIXTURE), "--town-root", str(town)])
    assert result.exit_code == 0, result.stdout
    assert "Formula sample-backend-migration completed" in result.stdout
    assert (town / CHECKPOINT_FILENAME).exists()

    again = runner.invoke(app, ["run", str(FIXTURE), "--town-root", str(town)])
    assert again.exit_code == 0, again.stdout
    assert "detect: already completed" in again.stdout


@pytest.mark.skipif(shutil.which("bash") is None, reason="bash not available")
def test_run_command_reports_failure(tmp_path, town):
    formula = tmp_path / "failing.yaml"
    formula.write_text(
        "name: failing\nversion: 1\nsteps:\n"
        "  - id: boom\n    title: Boom\n    description: |\n"
        "      ```bash\n      echo oops; exit 4\n      ```\n"
    )
    result = CliRunner().invoke(app, ["run", str(formula), "--town-root", str(town)])
    assert result.exit_code == 1
    assert "Step boom failed: command 1/1 failed: exit status 4" in result.stdout
    assert "oops" in result.stdout


def test_run_command_strict_mismatch(town):
    save_checkpoint(town, MigrationCheckpoint.new(7, str(town)))
    result = CliRunner().invoke(
        app, ["run", str(FIXTURE), "--town-root", str(town), "--strict"]
    )
    assert result.exit_code == 1
    assert "formula version 7" in result.stdout


def test_run_command_bad_formula(tmp_path, town):
    result = CliRunner().invoke(
        app, ["run", str(tmp_path / "missing.yaml"), "--town-root", str(town)]
    )
    assert result.exit_code == 1
    assert "reading formula" in result.stdout


def test_plan_command_shows_commands(town):
    result = CliRunner().invoke(app, ["plan", str(FIXTURE), "--town-root", str(town)])
    assert result.exit_code == 0, result.stdout
    assert "[run] detect: Detect current state (pending)" in result.stdout
    assert f'echo "detect {town}"' in result.stdout
    assert not (town / CHECKPOINT_FILENAME).exists()


def test_status_command(town):
    cp = MigrationCheckpoint.new(1, str(town))
    cp.steps["detect"] = StepRun(id="detect", status=StepStatus.COMPLETED)
    cp.steps["backup"] = StepRun(id="backup", status=StepStatus.FAILED, error="disk full")
    save_checkpoint(town, cp)

    result = CliRunner().invoke(app, ["status", "--town-root", str(town)])
    assert result.exit_code == 0, result.stdout
    assert f"Checkpoint for {town} (formula v1)" in result.stdout
    assert "- detect: completed" in result.stdout
    assert "- backup: failed (disk full)" in result.stdout


def test_status_command_missing_and_corrupt(town):
    runner = CliRunner()
    missing = runner.invoke(app, ["status", "--town-root", str(town)])
    assert missing.exit_code == 1
    assert "No migration checkpoint found" in missing.stdout

    (town / CHECKPOINT_FILENAME).write_text("{corrupt")
    corrupt = runner.invoke(app, ["status", "--town-root", str(town)])
    assert corrupt.exit_code == 1
    assert "parsing checkpoint" in corrupt.stdout


def test_reset_command(town):
    save_checkpoint(town, MigrationCheckpoint.new(1, str(town)))
    runner = CliRunner()

    declined = runner.invoke(app, ["reset", "--town-root", str(town)], input="n\n")
    assert declined.exit_code == 1
    assert (town / CHECKPOINT_FILENAME).exists()

    result = runner.invoke(app, ["reset", "--town-root", str(town), "--yes"])
    assert result.exit_code == 0
    assert not (town / CHECKPOINT_FILENAME).exists()

    nothing = runner.invoke(app, ["reset", "--town-root", str(town), "--yes"])
    assert "No migration checkpoint found" in nothing.stdout


def test_reset_command_uses_configured_backend(tmp_path, town, monkeypatch):
    config_file = tmp_path / "gtmigrate.yaml"
    config_file.write_text("checkpoint:\n  backend: memory\n")
    monkeypatch.setenv("GTMIGRATE_CONFIG", str(config_file))
    save_checkpoint(town, MigrationCheckpoint.new(1, str(town)))

    result = CliRunner().invoke(app, ["reset", "--town-root", str(town), "--yes"])

    assert result.exit_code == 0
    assert "No migration checkpoint found" in result.stdout
    assert (town / CHECKPOINT_FILENAME).exists()
