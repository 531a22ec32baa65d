"""Types for the scanner module.

The scanner turns a package's Rust sources into syntax trees and small
signature records the detectors work from. Failures never raise out of
the scanner; they become PackageParseWarning records instead.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import tree_sitter

from sdk_analyzer.workspace.types import PackageInfo


@dataclass(frozen=True)
class PackageParseWarning:
    """A non-fatal failure to read or parse one package source file.

    The affected file (or, for a root module, the whole package) is
    excluded from the detector's sample.
    """

    package: str
    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.package}: {self.path}: {self.message}"

    def to_dict(self) -> dict:
        return {"package": self.package, "path": self.path, "message": self.message}


@dataclass(frozen=True)
class SourceTree:
    """A parsed source file.

    module_path: Module segments from the crate root (e.g. ("error", "metadata")
    for src/error/metadata.rs; empty for the root module).
    """

    path: Path
    module_path: tuple[str, ...]
    tree: tree_sitter.Tree

    @property
    def root_node(self) -> tree_sitter.Node:
        return self.tree.root_node


@dataclass(frozen=True)
class Parameter:
    pattern: str
    type: str


@dataclass(frozen=True)
class FunctionSignature:
    """A function or method definition.

    owner: Type name of the enclosing impl block, or None for free functions.
    module_path: Module segments within the file (inline `mod` blocks).
    """

    name: str
    owner: Optional[str]
    is_public: bool
    is_async: bool
    parameters: tuple[Parameter, ...] = ()
    return_type: str = ""
    module_path: tuple[str, ...] = ()


@dataclass
class PackageSources:
    """Everything the scanner managed to parse for one package.

    root_ok is False when the package's root module could not be read or
    parsed; detectors treat such packages as unparsable.
    """

    package: PackageInfo
    trees: list[SourceTree] = field(default_factory=list)
    warnings: list[PackageParseWarning] = field(default_factory=list)
    root_ok: bool = False

    @property
    def root(self) -> Optional[SourceTree]:
        for tree in self.trees:
            if not tree.module_path and tree.path == self.package.root_source:
                return tree
        return None
