"""Infer code generator metadata from a cloud SDK's Cargo workspace."""

__version__ = "0.3.5"

from sdk_analyzer.analyzer import AnalysisResult, AnalysisWarning, analyze  # noqa: E402
from sdk_analyzer.errors import AnalyzerError, OutputWriteError, WorkspaceError  # noqa: E402

__all__ = [
    "analyze",
    "AnalysisResult",
    "AnalysisWarning",
    "AnalyzerError",
    "OutputWriteError",
    "WorkspaceError",
]
