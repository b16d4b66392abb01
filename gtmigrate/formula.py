"""Loading migration formulas from YAML files."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import ValidationError

from .contracts import Formula
from .errors import FormulaError


def parse_formula(text: str, source: str = "<string>") -> Formula:
    """Build a :class:`Formula` from YAML ``text``.

    Expected layout::

        name: beads-sqlite-to-dolt
        version: 1
        steps:
          - id: detect
            title: Detect current state
            description: |
              ...prose with fenced bash blocks...
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise FormulaError(f"parsing formula {source}: {exc}") from exc
    if not isinstance(data, dict):
        raise FormulaError(f"parsing formula {source}: expected a mapping")
    try:
        return Formula.model_validate(data)
    except ValidationError as exc:
        raise FormulaError(f"invalid formula {source}: {exc}") from exc


def load_formula(path: str | Path) -> Formula:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise FormulaError(f"reading formula {path}: {exc}") from exc
    return parse_formula(text, source=str(path))
