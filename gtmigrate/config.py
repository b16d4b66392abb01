from __future__ import annotations

import os
from typing import Literal, Optional

import yaml
from pydantic import BaseModel

from .constants import DEFAULT_OUTPUT_PREVIEW_CHARS


class RunnerConfig(BaseModel):
    """Configuration for the shell command runner."""

    shell: str = "bash"
    command_timeout: Optional[float] = None


class CheckpointConfig(BaseModel):
    """Checkpoint persistence settings."""

    backend: Literal["file", "memory"] = "file"


class GtMigrateConfig(BaseModel):
    """Top-level configuration model."""

    runner: RunnerConfig = RunnerConfig()
    checkpoint: CheckpointConfig = CheckpointConfig()
    output_preview_chars: int = DEFAULT_OUTPUT_PREVIEW_CHARS
    log_level: str = "INFO"


def load_config(path: Optional[str] = None) -> GtMigrateConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to GTMIGRATE_CONFIG env
            variable or 'gtmigrate.yaml' in the current directory.
    """

    config_path = path or os.getenv("GTMIGRATE_CONFIG", "gtmigrate.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = GtMigrateConfig(**data)
    else:
        config = GtMigrateConfig()

    env_shell = os.getenv("GTMIGRATE_SHELL")
    if env_shell:
        config.runner.shell = env_shell
    env_level = os.getenv("GTMIGRATE_LOG_LEVEL")
    if env_level:
        config.log_level = env_level.upper()
    return config
