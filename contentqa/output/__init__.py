"""Output formatting for check results."""

from .formatter import format_passes

__all__ = ["format_passes"]
