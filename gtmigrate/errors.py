"""Exception types raised by the migration engine."""

from __future__ import annotations

from typing import Optional


class MigrationError(Exception):
    """Base class for gtmigrate errors."""


class CheckpointNotFoundError(MigrationError, FileNotFoundError):
    """No checkpoint has been written for the town root yet."""

    def __init__(self, path: str) -> None:
        super().__init__(f"no migration checkpoint at {path}")
        self.path = path


class CheckpointParseError(MigrationError, ValueError):
    """The checkpoint file exists but cannot be decoded."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"parsing checkpoint {path}: {reason}")
        self.path = path
        self.reason = reason


class CheckpointMismatchError(MigrationError):
    """A loaded checkpoint does not belong to the current formula or town."""

    def __init__(self, anomalies: list) -> None:
        details = "; ".join(a.message for a in anomalies)
        super().__init__(f"checkpoint does not match current run: {details}")
        self.anomalies = anomalies


class InvalidTransitionError(MigrationError, ValueError):
    """A step was moved to a status it cannot reach from its current one."""


class FormulaError(MigrationError, ValueError):
    """The formula definition is malformed."""


class StepExecutionError(MigrationError):
    """A command extracted from a step returned a non-success outcome."""

    def __init__(
        self, step_id: str, error: str, output: Optional[str] = None
    ) -> None:
        super().__init__(f"step {step_id} failed: {error}")
        self.step_id = step_id
        self.error = error
        self.output = output or ""
