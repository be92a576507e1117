"""
Exception types raised by ledmap.

Library code raises these; only the CLI catches them and turns them into
exit codes.
"""

from typing import Optional


class LedmapError(Exception):
    """Base class for all ledmap errors."""


class ProjectFormatError(LedmapError, ValueError):
    """The project document could not be parsed into the typed model."""


class LevelNotFoundError(LedmapError, LookupError):
    """Requested level index is outside the project's level list."""

    def __init__(self, index: int, count: int):
        self.index = index
        self.count = count
        super().__init__(
            f"Level {index} not found in project (project has {count} level(s))"
        )


class EmptyLevelError(LedmapError, ValueError):
    """Level has no layer instances, so grid dimensions are unknown."""

    def __init__(self, level_identifier: Optional[str]):
        self.level_identifier = level_identifier
        super().__init__(
            f"Level {level_identifier!r} has no layer instances"
        )


class AtlasError(LedmapError, ValueError):
    """Atlas image is missing, unreadable, or too small for a tile."""
