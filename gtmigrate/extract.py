"""Extraction of executable shell blocks from formula step descriptions."""

from __future__ import annotations

from typing import Optional

from .constants import EXECUTABLE_LANGUAGES, TOWN_ROOT_PLACEHOLDER

FENCE = "```"


def is_comment_only(block: str) -> bool:
    """Return ``True`` if ``block`` has no line other than blanks and ``#`` comments."""
    for line in block.split("\n"):
        stripped = line.strip()
        if stripped and not stripped.startswith("#"):
            return False
    return True


def _fence_language(line: str) -> Optional[str]:
    """Return the language tag if ``line`` opens a fenced block, else ``None``.

    An untagged fence yields an empty string.
    """
    stripped = line.strip()
    if not stripped.startswith(FENCE):
        return None
    return stripped[len(FENCE) :].strip()


def extract_commands(description: str, town_root: str) -> list[str]:
    """Return the executable ``bash``/``sh`` blocks found in ``description``.

    Each surviving block becomes one command with ``{{town_root}}`` replaced
    verbatim by ``town_root``. A block ends at the first following line that
    contains a fence, even if that fence was meant as block content (nested
    fences are not supported), and a block left open at the end of the text
    is dropped.
    """
    commands: list[str] = []
    lines = description.split("\n")
    i = 0
    while i < len(lines):
        language = _fence_language(lines[i])
        if language is None:
            i += 1
            continue

        body: list[str] = []
        closed = False
        i += 1
        while i < len(lines):
            if FENCE in lines[i]:
                closed = True
                break
            body.append(lines[i])
            i += 1
        # step past the closing fence
        i += 1

        if not closed or language not in EXECUTABLE_LANGUAGES:
            continue
        block = "\n".join(body)
        if is_comment_only(block):
            continue
        commands.append(block.replace(TOWN_ROOT_PLACEHOLDER, town_root))
    return commands
