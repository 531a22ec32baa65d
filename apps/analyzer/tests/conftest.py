"""Shared fixtures: Cargo workspaces written to tmp_path."""

from pathlib import Path

import pytest

from sdk_analyzer.core.config import AnalyzerSettings

FIXTURES_DIR = Path(__file__).resolve().parents[3] / "fixtures" / "workspaces"


def write_crate(
    directory: Path,
    name: str,
    files: dict[str, str] | None = None,
    version: str = "0.1.0",
    manifest_extra: str = "",
) -> Path:
    """Write a package manifest plus source files under `directory`."""
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "Cargo.toml").write_text(
        f'[package]\nname = "{name}"\nversion = "{version}"\nedition = "2021"\n'
        + manifest_extra,
        encoding="utf-8",
    )
    for rel_path, content in (files or {"src/lib.rs": ""}).items():
        path = directory / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return directory


@pytest.fixture
def settings() -> AnalyzerSettings:
    return AnalyzerSettings(_env_file=None)


@pytest.fixture
def make_workspace(tmp_path):
    """Factory: virtual workspace with one crate per entry under crates/.

    `crates` maps package name -> source files (relative to the crate dir).
    """
    def _make(crates: dict[str, dict[str, str] | None]) -> Path:
        members = ", ".join(f'"crates/{name}"' for name in crates)
        (tmp_path / "Cargo.toml").write_text(
            f"[workspace]\nmembers = [{members}]\n", encoding="utf-8"
        )
        for name, files in crates.items():
            write_crate(tmp_path / "crates" / name, name, files)
        return tmp_path

    return _make


@pytest.fixture
def crate_writer():
    """The write_crate helper, for tests that lay out packages by hand."""
    return write_crate


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR
