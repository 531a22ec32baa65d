"""Cargo workspace loader.

Uses stdlib tomllib (Python 3.11+) to read the manifest graph.
Handles both virtual workspaces (root manifest with only [workspace])
and single-crate layouts, including member globs like "sdk/*".
"""

import logging
import tomllib
from pathlib import Path
from typing import Any, Optional

from sdk_analyzer.errors import WorkspaceError
from sdk_analyzer.workspace.types import PackageInfo, WorkspaceModel, WorkspaceWarning

logger = logging.getLogger(__name__)

MANIFEST_NAME = "Cargo.toml"
DEFAULT_VERSION = "0.0.0"

_GLOB_CHARS = ("*", "?", "[")


def load_workspace(path: Path) -> WorkspaceModel:
    """Load the workspace containing `path`.

    Looks for Cargo.toml at `path` and then in its ancestors. The nearest
    manifest wins unless an ancestor declares a [workspace] that lists it
    as a member, in which case the ancestor is the root.

    Raises WorkspaceError when no manifest is found or any manifest in
    the graph is malformed.
    """
    path = Path(path).resolve()
    if not path.exists():
        raise WorkspaceError("Workspace path does not exist", path)

    start = path if path.is_dir() else path.parent
    manifests = [
        directory / MANIFEST_NAME
        for directory in (start, *start.parents)
        if (directory / MANIFEST_NAME).is_file()
    ]
    if not manifests:
        raise WorkspaceError("No Cargo.toml found at or above", path)

    root_manifest = manifests[0]
    root_data = parse_manifest(root_manifest)

    if "workspace" not in root_data:
        for candidate in manifests[1:]:
            data = parse_manifest(candidate)
            if "workspace" not in data:
                continue
            members = _expand_members(candidate.parent, data["workspace"])
            if root_manifest.parent in members:
                root_manifest, root_data = candidate, data
            break

    workspace = _build_model(root_manifest, root_data)
    logger.info(
        "Loaded workspace %s: %d packages (virtual=%s)",
        workspace.root,
        len(workspace.packages),
        workspace.is_virtual,
    )
    return workspace


def parse_manifest(manifest_path: Path) -> dict:
    """Parse a Cargo.toml and return the raw dict.

    Unlike the soft parsers elsewhere, a broken manifest is fatal here:
    without it there is no package graph to analyze.
    """
    try:
        with open(manifest_path, "rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise WorkspaceError(f"Malformed manifest ({exc})", manifest_path) from exc
    except OSError as exc:
        raise WorkspaceError(f"Unreadable manifest ({exc})", manifest_path) from exc


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _build_model(root_manifest: Path, root_data: dict) -> WorkspaceModel:
    root_dir = root_manifest.parent
    workspace_table = root_data.get("workspace")
    is_virtual = "package" not in root_data

    if workspace_table is not None and not isinstance(workspace_table, dict):
        raise WorkspaceError("[workspace] must be a table", root_manifest)

    shared_package = {}
    if workspace_table:
        shared_package = workspace_table.get("package", {})
        if not isinstance(shared_package, dict):
            shared_package = {}

    packages: list[PackageInfo] = []
    skipped: list[WorkspaceWarning] = []
    if not is_virtual:
        packages.append(
            _package_from_manifest(root_manifest, root_data, shared_package, is_root=True)
        )

    if workspace_table is not None:
        for member_dir in _expand_members(root_dir, workspace_table, skipped):
            if member_dir == root_dir:
                continue
            manifest = member_dir / MANIFEST_NAME
            packages.append(
                _package_from_manifest(
                    manifest, parse_manifest(manifest), shared_package, is_root=False
                )
            )

    version = shared_package.get("version")
    if not isinstance(version, str):
        version = packages[0].version if packages else DEFAULT_VERSION

    return WorkspaceModel(
        root=root_dir,
        packages=tuple(packages),
        is_virtual=is_virtual,
        version=version,
        warnings=tuple(skipped),
    )


def _expand_members(
    root_dir: Path,
    workspace_table: Any,
    skipped: Optional[list[WorkspaceWarning]] = None,
) -> list[Path]:
    """Resolve [workspace].members into package directories.

    Literal members must exist; glob members silently skip directories
    without a manifest, matching Cargo's behavior for "crates/*".
    Members outside the workspace root are dropped and, when `skipped`
    is given, recorded there.
    """
    if not isinstance(workspace_table, dict):
        return []

    members = workspace_table.get("members", [])
    excludes = workspace_table.get("exclude", [])
    if not isinstance(members, list) or not isinstance(excludes, list):
        raise WorkspaceError(
            "[workspace] members/exclude must be arrays", root_dir / MANIFEST_NAME
        )

    excluded = {(root_dir / str(entry)).resolve() for entry in excludes}
    resolved: list[Path] = []
    seen: set[Path] = set()

    for entry in members:
        if not isinstance(entry, str):
            raise WorkspaceError(
                f"Workspace member entry is not a string: {entry!r}",
                root_dir / MANIFEST_NAME,
            )

        if any(ch in entry for ch in _GLOB_CHARS):
            candidates = sorted(
                p for p in root_dir.glob(entry)
                if p.is_dir() and (p / MANIFEST_NAME).is_file()
            )
        else:
            member_dir = root_dir / entry
            if not (member_dir / MANIFEST_NAME).is_file():
                raise WorkspaceError("Workspace member has no Cargo.toml", member_dir)
            candidates = [member_dir]

        for candidate in candidates:
            candidate = candidate.resolve()
            if not candidate.is_relative_to(root_dir):
                logger.warning("Skipping member outside workspace root: %s", candidate)
                if skipped is not None:
                    skipped.append(
                        WorkspaceWarning(candidate, "member outside workspace root skipped")
                    )
                continue
            if candidate in excluded or candidate in seen:
                continue
            seen.add(candidate)
            resolved.append(candidate)

    return resolved


def _package_from_manifest(
    manifest_path: Path,
    data: dict,
    shared_package: dict,
    is_root: bool,
) -> PackageInfo:
    package = data.get("package")
    if not isinstance(package, dict) or not isinstance(package.get("name"), str):
        raise WorkspaceError("Manifest has no [package] name", manifest_path)

    name = package["name"]
    package_dir = manifest_path.parent

    version = package.get("version", DEFAULT_VERSION)
    # version.workspace = true inherits from [workspace.package]
    if isinstance(version, dict) and version.get("workspace"):
        version = shared_package.get("version", DEFAULT_VERSION)
    if not isinstance(version, str):
        version = DEFAULT_VERSION

    lib = data.get("lib", {})
    if not isinstance(lib, dict):
        lib = {}
    lib_name = lib.get("name") or name.replace("-", "_")

    if isinstance(lib.get("path"), str):
        lib_path = package_dir / lib["path"]
    elif not (package_dir / "src" / "lib.rs").exists() and (package_dir / "src" / "main.rs").exists():
        # Binary-only crate
        lib_path = package_dir / "src" / "main.rs"
    else:
        lib_path = package_dir / "src" / "lib.rs"

    return PackageInfo(
        name=name,
        path=package_dir,
        version=version,
        dependencies=_dependency_names(data.get("dependencies", {})),
        is_root=is_root,
        lib_name=lib_name,
        lib_path=lib_path,
    )


def _dependency_names(table: Any) -> tuple[str, ...]:
    """Collect dependency package names, honoring `package = "..."` renames."""
    if not isinstance(table, dict):
        return ()

    names: list[str] = []
    for key, spec in table.items():
        if isinstance(spec, dict) and isinstance(spec.get("package"), str):
            names.append(spec["package"])
        else:
            names.append(key)
    return tuple(names)
