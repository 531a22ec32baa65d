"""Scanner orchestrator: collects and parses a package's Rust sources.

This is the entry point detectors use to read source code. It:
1. Parses the package's root module (src/lib.rs or [lib] path)
2. Optionally collects the remaining .rs files under src/, depth-bounded
3. Parses each file with tree-sitter
4. Records read/parse failures as PackageParseWarning, never raising
"""

import logging
from pathlib import Path

from sdk_analyzer.core.config import AnalyzerSettings
from sdk_analyzer.scanner.rust_ast import RustSyntaxError, parse_rust
from sdk_analyzer.scanner.types import PackageParseWarning, PackageSources, SourceTree
from sdk_analyzer.workspace.types import PackageInfo

logger = logging.getLogger(__name__)

# Directories under src/ that never hold the library's public surface
SKIP_DIRS = {"bin", "tests", "benches", "examples", "target", ".git"}


def parse_root(package: PackageInfo) -> PackageSources:
    """Parse only the package's root module."""
    sources = PackageSources(package=package)
    tree = _parse_file(package, package.root_source, (), sources.warnings)
    if tree is not None:
        sources.trees.append(tree)
        sources.root_ok = True
    return sources


def parse_package(package: PackageInfo, settings: AnalyzerSettings) -> PackageSources:
    """Parse the root module and every other collected source file.

    A file that fails to parse is skipped with a warning; the package
    stays usable as long as its root module parsed.
    """
    sources = parse_root(package)
    if not sources.root_ok:
        return sources

    for path in collect_source_files(package, settings, sources.warnings):
        if path == package.root_source:
            continue
        tree = _parse_file(package, path, module_path_for(package, path), sources.warnings)
        if tree is not None:
            sources.trees.append(tree)

    logger.debug(
        "Parsed %s: %d files, %d warnings",
        package.name,
        len(sources.trees),
        len(sources.warnings),
    )
    return sources


def collect_source_files(
    package: PackageInfo,
    settings: AnalyzerSettings,
    warnings: list[PackageParseWarning] | None = None,
) -> list[Path]:
    """Collect .rs files under the package's source directory.

    Files dropped for size or because they cannot be stat'ed are
    appended to `warnings` when it is given.
    """
    src_dir = package.src_dir
    if not src_dir.is_dir():
        return []

    files: list[Path] = []
    for path in sorted(src_dir.rglob("*.rs")):
        relative = path.relative_to(src_dir)

        if len(relative.parts) > settings.max_source_depth:
            continue

        if any(part in SKIP_DIRS for part in relative.parts[:-1]):
            continue

        if not path.is_file():
            continue

        # Skip very large files (generated model dumps)
        try:
            size = path.stat().st_size
        except OSError as exc:
            logger.warning("Failed to stat %s: %s", path, exc)
            _skipped(warnings, package, path, f"unreadable: {exc}")
            continue
        if size > settings.max_file_size and path != package.root_source:
            logger.debug("Skipping large file: %s", path)
            _skipped(
                warnings,
                package,
                path,
                f"skipped: {size} bytes exceeds max_file_size ({settings.max_file_size})",
            )
            continue

        files.append(path)

    return sorted(files)


def module_path_for(package: PackageInfo, path: Path) -> tuple[str, ...]:
    """Map a source file to its module path.

    src/lib.rs -> (), src/client.rs -> ("client",),
    src/error/mod.rs -> ("error",), src/error/metadata.rs -> ("error", "metadata")
    """
    if path == package.root_source:
        return ()
    try:
        relative = path.relative_to(package.src_dir)
    except ValueError:
        return ()

    parts = list(relative.with_suffix("").parts)
    if parts and parts[-1] == "mod":
        parts.pop()
    if parts in (["lib"], ["main"]):
        return ()
    return tuple(parts)


def _parse_file(
    package: PackageInfo,
    path: Path,
    module_path: tuple[str, ...],
    warnings: list[PackageParseWarning],
) -> SourceTree | None:
    rel_path = _display_path(package, path)

    try:
        content = path.read_bytes()
    except OSError as exc:
        logger.warning("Failed to read %s: %s", path, exc)
        warnings.append(PackageParseWarning(package.name, rel_path, f"unreadable: {exc}"))
        return None

    try:
        tree = parse_rust(content)
    except RustSyntaxError as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        warnings.append(PackageParseWarning(package.name, rel_path, str(exc)))
        return None

    return SourceTree(path=path, module_path=module_path, tree=tree)


def _skipped(
    warnings: list[PackageParseWarning] | None,
    package: PackageInfo,
    path: Path,
    message: str,
) -> None:
    if warnings is not None:
        warnings.append(PackageParseWarning(package.name, _display_path(package, path), message))


def _display_path(package: PackageInfo, path: Path) -> str:
    try:
        return str(path.relative_to(package.path))
    except ValueError:
        return str(path)
