"""TOML reading utilities.

Uses tomlkit to preserve formatting and comments when modifying pyproject.toml
files, so a version bump produces a one-line diff.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomlkit
from packaging.utils import canonicalize_name
from tomlkit.exceptions import TOMLKitError

from .errors import ManifestError, WorkspaceError

PRIVATE_CLASSIFIER = "Private :: Do Not Upload"


def load_pyproject(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a pyproject.toml file.

    Returns a TOMLDocument that preserves formatting when modified and saved.

    Raises:
        ManifestError: If the file is missing or is not valid TOML.
    """
    try:
        return tomlkit.parse(path.read_text())
    except OSError as exc:
        raise ManifestError(f"Cannot read {path}: {exc.strerror}") from exc
    except TOMLKitError as exc:
        raise ManifestError(f"Invalid TOML in {path}: {exc}") from exc


def get_project_name(doc: tomlkit.TOMLDocument, fallback: str) -> str:
    """Extract the canonical package name from [project].name.

    Names are normalized per PEP 503 (lowercase, hyphens instead of
    underscores) for consistent comparison.

    Args:
        doc: Parsed pyproject.toml document.
        fallback: Value to return if name is not specified.
    """
    return canonicalize_name(doc.get("project", {}).get("name", fallback))


def get_project_version(doc: tomlkit.TOMLDocument) -> str:
    """Extract version from [project].version, defaulting to '0.0.0'."""
    return str(doc.get("project", {}).get("version", "0.0.0"))


def is_private(doc: tomlkit.TOMLDocument) -> bool:
    """Whether the project opts out of publishing via its classifiers."""
    classifiers = doc.get("project", {}).get("classifiers", [])
    return PRIVATE_CLASSIFIER in [str(c) for c in classifiers]


def get_dependency_strings_by_category(
    doc: tomlkit.TOMLDocument,
) -> dict[str, list[str]]:
    """Collect dependency strings from a pyproject.toml, grouped by category.

    Categories:
    - "runtime": [project].dependencies
    - "optional": [project].optional-dependencies.* (extras)
    - "development": [dependency-groups].* (PEP 735)

    ``{include-group = ...}`` tables inside dependency groups are skipped.
    Returns raw PEP 508 strings like "requests>=2.0" or "pkg[extra]~=1.0".
    """
    project = doc.get("project", {})
    optional: list[str] = []
    for group_deps in project.get("optional-dependencies", {}).values():
        optional.extend(str(d) for d in group_deps)
    development: list[str] = []
    for group_deps in doc.get("dependency-groups", {}).values():
        development.extend(str(d) for d in group_deps if isinstance(d, str))
    return {
        "runtime": [str(d) for d in project.get("dependencies", [])],
        "optional": optional,
        "development": development,
    }


def get_uv_sources(doc: tomlkit.TOMLDocument) -> dict[str, bool]:
    """Every [tool.uv.sources] entry, mapped to whether it is a workspace link.

    ``{ workspace = true }`` is the uv spelling of "resolve this dependency
    from the workspace". Any other source (git, path, index, or
    ``workspace = false``) maps to False, so it can override a link
    inherited from the workspace root.
    """
    sources = doc.get("tool", {}).get("uv", {}).get("sources", {})
    return {
        canonicalize_name(name): isinstance(source, dict)
        and bool(source.get("workspace", False))
        for name, source in sources.items()
    }


def get_workspace_member_globs(doc: tomlkit.TOMLDocument) -> list[str]:
    """Extract workspace member glob patterns from [tool.uv.workspace].

    These patterns (e.g., "packages/*", "libs/*") define which directories
    contain workspace packages.

    Raises:
        WorkspaceError: If no workspace members are defined.
    """
    members = doc.get("tool", {}).get("uv", {}).get("workspace", {}).get("members")
    if not members:
        raise WorkspaceError(
            "No [tool.uv.workspace] members defined in root pyproject.toml"
        )
    return [str(m) for m in members]


def get_workspace_exclude_globs(doc: tomlkit.TOMLDocument) -> list[str]:
    """Extract [tool.uv.workspace].exclude patterns (may be empty)."""
    exclude = doc.get("tool", {}).get("uv", {}).get("workspace", {}).get("exclude", [])
    return [str(e) for e in exclude]


def has_uv_workspace(doc: tomlkit.TOMLDocument) -> bool:
    return "workspace" in doc.get("tool", {}).get("uv", {})


def get_tool_table(doc: tomlkit.TOMLDocument, name: str) -> dict[str, Any]:
    """Return [tool.<name>] as a plain dict (empty if absent)."""
    table = doc.get("tool", {}).get(name, {})
    return table.unwrap() if hasattr(table, "unwrap") else dict(table)
