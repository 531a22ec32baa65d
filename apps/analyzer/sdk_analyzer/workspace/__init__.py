"""Workspace module for loading a Cargo manifest graph.

Public API:
    load_workspace(path) -> WorkspaceModel
"""

from sdk_analyzer.workspace.cargo import load_workspace
from sdk_analyzer.workspace.types import PackageInfo, WorkspaceModel, WorkspaceWarning

__all__ = ["load_workspace", "PackageInfo", "WorkspaceModel", "WorkspaceWarning"]
