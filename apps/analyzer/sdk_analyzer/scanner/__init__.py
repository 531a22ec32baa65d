"""Scanner module for parsing package sources into syntax trees.

Public API:
    parse_root(package) -> PackageSources
    parse_package(package, settings) -> PackageSources
"""

from sdk_analyzer.scanner.orchestrator import parse_package, parse_root
from sdk_analyzer.scanner.types import PackageParseWarning, PackageSources, SourceTree

__all__ = ["parse_package", "parse_root", "PackageParseWarning", "PackageSources", "SourceTree"]
