"""Types for the workspace module.

A WorkspaceModel is built once per analysis run from the manifest graph
on disk and is never mutated afterwards. Detectors only read it.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class PackageInfo:
    """A single member package of the workspace.

    name: Package name as declared in its manifest (e.g. "aws-sdk-s3").
    path: Directory holding the package manifest.
    lib_name: Name the crate is imported under (e.g. "aws_sdk_s3").
    lib_path: Root source file of the library target.
    is_root: True when the package manifest is the workspace root manifest.
    """

    name: str
    path: Path
    version: str = "0.0.0"
    dependencies: tuple[str, ...] = ()
    is_root: bool = False
    lib_name: str = ""
    lib_path: Optional[Path] = None

    @property
    def crate_name(self) -> str:
        return self.lib_name or self.name.replace("-", "_")

    @property
    def src_dir(self) -> Path:
        if self.lib_path is not None:
            return self.lib_path.parent
        return self.path / "src"

    @property
    def root_source(self) -> Path:
        return self.lib_path if self.lib_path is not None else self.path / "src" / "lib.rs"

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "path": str(self.path),
            "version": self.version,
            "dependencies": list(self.dependencies),
            "is_root": self.is_root,
        }


@dataclass(frozen=True)
class WorkspaceWarning:
    """An input the loader skipped instead of failing on."""

    path: Path
    message: str

    def to_dict(self) -> dict:
        return {"path": str(self.path), "message": self.message}


@dataclass(frozen=True)
class WorkspaceModel:
    """Ordered, immutable view of a workspace's member packages.

    Root package first (when the root manifest declares one), then
    members in manifest declaration order with glob matches sorted.
    """

    root: Path
    packages: tuple[PackageInfo, ...] = field(default_factory=tuple)
    is_virtual: bool = False
    version: str = "0.0.0"
    warnings: tuple[WorkspaceWarning, ...] = ()

    @property
    def names(self) -> list[str]:
        return [p.name for p in self.packages]

    @property
    def is_workspace(self) -> bool:
        return len(self.packages) > 1 or self.is_virtual

    def get(self, name: str) -> Optional[PackageInfo]:
        for package in self.packages:
            if package.name == name:
                return package
        return None

    def to_dict(self) -> dict:
        return {
            "root": str(self.root),
            "is_virtual": self.is_virtual,
            "version": self.version,
            "packages": [p.to_dict() for p in self.packages],
            "warnings": [w.to_dict() for w in self.warnings],
        }
