"""Exception hierarchy.

Per-post problems (``ParseError``, ``HighlightError``) are caught close to
where they happen and logged; ``BuildError`` and ``ConfigError`` reach the
CLI, which reports them and exits with status 1.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class BlogsmithError(Exception):
    """Base class for all blogsmith errors."""


class ConfigError(BlogsmithError):
    """Invalid or unreadable site configuration."""


class ParseError(BlogsmithError):
    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        if path is not None:
            message = f"{path}: {message}"
        super().__init__(message)


class HighlightError(BlogsmithError):
    def __init__(self, message: str, language: str = ""):
        self.language = language
        super().__init__(message)


class BuildError(BlogsmithError):
    """A shared build step failed and the run cannot continue."""
