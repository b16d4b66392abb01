"""Small helpers shared across gtmigrate."""

from .text import truncate_output

__all__ = ["truncate_output"]
