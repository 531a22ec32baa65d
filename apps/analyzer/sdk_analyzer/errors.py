"""Exception types raised by the analyzer.

Only two failures are fatal: a workspace that cannot be loaded and an
output file that cannot be written. Everything else is recorded as a
warning on the analysis result and the run continues.
"""

from pathlib import Path
from typing import Optional


class AnalyzerError(Exception):
    """Base class for all fatal analyzer errors."""


class WorkspaceError(AnalyzerError):
    """Raised when no manifest graph is found or a manifest is malformed.

    Carries the path that was being inspected for upstream logging.
    """

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        super().__init__(f"{message}: {path}" if path else message)


class OutputWriteError(AnalyzerError):
    """Raised when the metadata document cannot be written.

    The destination is left untouched when this is raised.
    """

    def __init__(self, path: Path, message: str, cause: Optional[Exception] = None):
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to write {path}: {message}")
