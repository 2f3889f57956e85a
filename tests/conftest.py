"""Shared test fixtures."""

from __future__ import annotations

import json
import shutil
import subprocess
from collections.abc import Callable
from pathlib import Path

import pytest
import tomlkit

from monobump.models import Package

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


@pytest.fixture
def tmp_pyproject(tmp_path: Path) -> Path:
    """Create a temporary pyproject.toml file with workspace-sourced deps."""
    content = """\
# Package manifest
[project]
name = "test-package"
version = "1.0.0"  # bumped by monobump
dependencies = [
    "requests>=2.0",
    "internal-dep",
]

[project.optional-dependencies]
dev = ["pytest>=8.0", "another-internal"]

[dependency-groups]
test = ["pytest>=8.0", "group-internal", {include-group = "lint"}]
lint = ["ruff"]

[tool.uv.sources]
internal-dep = { workspace = true }
another-internal = { workspace = true }
group-internal = { workspace = true }
"""
    pyproject = tmp_path / "pyproject.toml"
    pyproject.write_text(content)
    return pyproject


@pytest.fixture
def sample_toml_doc() -> tomlkit.TOMLDocument:
    """Create a sample TOML document."""
    content = """\
[project]
name = "my-package"
version = "2.0.0"
dependencies = ["click>=8.0", "pydantic>=2.0"]

[project.optional-dependencies]
dev = ["pytest>=8.0"]
docs = ["sphinx>=7.0"]

[dependency-groups]
test = ["hypothesis>=6.0"]

[tool.uv.workspace]
members = ["packages/*", "libs/*"]
exclude = ["packages/legacy"]

[tool.monobump]
release-message = "release:"
jobs = 2
"""
    return tomlkit.parse(content)


def pkg(name: str, version: str = "1.0.0", private: bool = False) -> Package:
    """A Package value for tests that never touch the filesystem."""
    return Package(name=name, version=version, path=Path("/ws/packages") / name, private=private)


def write_uv_package(
    root: Path,
    name: str,
    version: str = "1.0.0",
    deps: list[str] | None = None,
    private: bool = False,
    sources: bool = True,
) -> Path:
    """Write packages/<name>/pyproject.toml depending on ``deps``.

    With ``sources`` the member declares its own ``workspace = true`` links;
    without it the links must come from the workspace root.
    """
    pkg_dir = root / "packages" / name
    pkg_dir.mkdir(parents=True, exist_ok=True)
    deps = deps or []
    lines = ["[project]", f'name = "{name}"', f'version = "{version}"']
    if private:
        lines.append('classifiers = ["Private :: Do Not Upload"]')
    lines.append("dependencies = [" + ", ".join(f'"{d}"' for d in deps) + "]")
    if deps and sources:
        lines += ["", "[tool.uv.sources]"]
        lines += [f"{d} = {{ workspace = true }}" for d in deps]
    (pkg_dir / "pyproject.toml").write_text("\n".join(lines) + "\n")
    return pkg_dir


def write_package_json(directory: Path, data: dict) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / "package.json"
    path.write_text(json.dumps(data, indent=2) + "\n")
    return path


def _git(root: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args], cwd=root, capture_output=True, text=True, check=True
    )
    return result.stdout.strip()


@pytest.fixture
def uv_repo(tmp_path: Path) -> Callable[..., Path]:
    """Factory for a committed uv workspace in a fresh git repository.

    Usage: ``root = uv_repo({"pkg-a": [], "pkg-b": ["pkg-a"]}, private={"x"})``

    With ``root_sources=True`` every package is linked once in the root
    [tool.uv.sources] and members carry no sources table.
    """

    def make(
        layout: dict[str, list[str]],
        private: set[str] | None = None,
        root_sources: bool = False,
    ) -> Path:
        root = tmp_path / "repo"
        root.mkdir()
        lines = ["[tool.uv.workspace]", 'members = ["packages/*"]']
        if root_sources:
            lines += ["", "[tool.uv.sources]"]
            lines += [f"{name} = {{ workspace = true }}" for name in layout]
        (root / "pyproject.toml").write_text("\n".join(lines) + "\n")
        for name, deps in layout.items():
            write_uv_package(
                root,
                name,
                deps=deps,
                private=name in (private or set()),
                sources=not root_sources,
            )
        _git(root, "init", "-q")
        _git(root, "config", "user.email", "test@example.com")
        _git(root, "config", "user.name", "Test User")
        _git(root, "config", "commit.gpgsign", "false")
        _git(root, "config", "tag.gpgsign", "false")
        commit_all(root, "Initial commit")
        return root

    return make


def commit_all(root: Path, message: str) -> None:
    _git(root, "add", ".")
    _git(root, "commit", "-q", "-m", message)


def write_and_commit(root: Path, rel_path: str, content: str, message: str) -> None:
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    commit_all(root, message)


def tag(root: Path, name: str) -> None:
    _git(root, "tag", name)


def git_output(root: Path, *args: str) -> str:
    return _git(root, *args)
