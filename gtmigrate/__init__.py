"""gtmigrate: resumable, checkpointed migration formulas for workspaces."""

from .contracts import Formula, FormulaStep, MigrationReport
from .execute import MigrationOrchestrator, detect_anomalies
from .extract import extract_commands, is_comment_only
from .formula import load_formula
from .persistence import MigrationCheckpoint, StepRun, StepStatus, get_repository
from .runner import CommandResult, ShellRunner
from .utils.text import truncate_output

__version__ = "0.1.0"
__all__ = [
    "CommandResult",
    "Formula",
    "FormulaStep",
    "MigrationCheckpoint",
    "MigrationOrchestrator",
    "MigrationReport",
    "ShellRunner",
    "StepRun",
    "StepStatus",
    "detect_anomalies",
    "extract_commands",
    "get_repository",
    "is_comment_only",
    "load_formula",
    "truncate_output",
]
