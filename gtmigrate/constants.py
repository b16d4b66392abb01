"""Shared constants for gtmigrate."""

CHECKPOINT_FILENAME = ".migration-checkpoint.json"
TOWN_ROOT_PLACEHOLDER = "{{town_root}}"
TOWN_ROOT_ENV = "GT_TOWN_ROOT"
EXECUTABLE_LANGUAGES = frozenset({"bash", "sh"})
DEFAULT_OUTPUT_PREVIEW_CHARS = 200
