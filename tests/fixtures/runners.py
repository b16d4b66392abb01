"""Test doubles for the process runner."""

from __future__ import annotations

from typing import Mapping, Optional

from gtmigrate.runner import CommandResult


class SimulatedCrash(RuntimeError):
    """Stands in for the process dying in the middle of a command."""


class RecordingRunner:
    """Runner that records commands and answers from a script.

    ``failures`` maps a substring to an exit code; ``crash_on`` names a
    substring that raises ``SimulatedCrash`` the first time it is seen.
    """

    def __init__(
        self,
        failures: Optional[dict[str, int]] = None,
        crash_on: Optional[str] = None,
        spawn_error_on: Optional[str] = None,
    ) -> None:
        self.failures = failures or {}
        self.crash_on = crash_on
        self.spawn_error_on = spawn_error_on
        self.calls: list[tuple[str, str, dict]] = []

    async def run(
        self, command: str, cwd: str, env: Mapping[str, str]
    ) -> CommandResult:
        self.calls.append((command, cwd, dict(env)))
        if self.crash_on and self.crash_on in command:
            self.crash_on = None
            raise SimulatedCrash(command)
        if self.spawn_error_on and self.spawn_error_on in command:
            raise FileNotFoundError(2, "No such file or directory", "bash")
        for marker, code in self.failures.items():
            if marker in command:
                return CommandResult(
                    command=command,
                    exit_code=code,
                    output=f"{marker} failed\n",
                    error=f"exit status {code}",
                )
        return CommandResult(command=command, exit_code=0, output=f"ran {command}\n")

    @property
    def commands(self) -> list[str]:
        return [c for c, _, _ in self.calls]
