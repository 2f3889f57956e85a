"""Package manifest reading and version rewriting.

Two manifest formats are supported:

- ``pyproject.toml`` (uv workspaces), edited through tomlkit so that only
  ``[project].version`` changes and every comment and blank line survives.
- ``package.json`` (pnpm workspaces), re-serialized with 2-space indentation,
  the original key order and a trailing newline.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Union

import tomlkit

from .deps import linked_package_json_deps, linked_requirements
from .errors import ManifestError
from .toml import (
    get_dependency_strings_by_category,
    get_project_name,
    get_project_version,
    get_uv_sources,
    is_private,
    load_pyproject,
)

PYPROJECT = "pyproject.toml"
PACKAGE_JSON = "package.json"


class PyprojectManifest:
    """A parsed pyproject.toml."""

    filename = PYPROJECT

    def __init__(self, path: Path, doc: tomlkit.TOMLDocument) -> None:
        self.path = path
        self.doc = doc

    @classmethod
    def load(cls, path: Path) -> PyprojectManifest:
        return cls(path, load_pyproject(path))

    def name(self, fallback: str) -> str:
        return get_project_name(self.doc, fallback)

    @property
    def version(self) -> str:
        return get_project_version(self.doc)

    @property
    def private(self) -> bool:
        return is_private(self.doc)

    def workspace_dependencies(
        self, inherited_sources: Mapping[str, bool] | None = None
    ) -> set[str]:
        """Dependencies (any category) that are sourced from the workspace.

        Args:
            inherited_sources: The workspace root's [tool.uv.sources], as
                returned by get_uv_sources(). Entries in this manifest's own
                table take precedence over inherited ones.
        """
        sources = {**(inherited_sources or {}), **get_uv_sources(self.doc)}
        return linked_requirements(
            get_dependency_strings_by_category(self.doc),
            {name for name, linked in sources.items() if linked},
        )

    def render(self, new_version: str) -> str:
        """Return the file contents with [project].version replaced."""
        doc = tomlkit.parse(tomlkit.dumps(self.doc))
        project = doc.get("project")
        if project is None or "version" not in project:
            raise ManifestError(
                f"{self.path} has no static [project].version to rewrite",
                hint="dynamic versions are not supported",
            )
        project["version"] = new_version
        return tomlkit.dumps(doc)


class PackageJsonManifest:
    """A parsed package.json."""

    filename = PACKAGE_JSON

    def __init__(self, path: Path, data: dict[str, Any]) -> None:
        self.path = path
        self.data = data

    @classmethod
    def load(cls, path: Path) -> PackageJsonManifest:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise ManifestError(f"Cannot read {path}: {exc.strerror}") from exc
        except json.JSONDecodeError as exc:
            raise ManifestError(f"Invalid JSON in {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ManifestError(f"{path} does not contain a JSON object")
        return cls(path, data)

    def name(self, fallback: str) -> str:
        return str(self.data.get("name", fallback))

    @property
    def version(self) -> str:
        return str(self.data.get("version", "0.0.0"))

    @property
    def private(self) -> bool:
        return self.data.get("private") is True

    def workspace_dependencies(
        self, inherited_sources: Mapping[str, bool] | None = None
    ) -> set[str]:
        return linked_package_json_deps(self.data)

    def render(self, new_version: str) -> str:
        data = dict(self.data)
        data["version"] = new_version
        return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


Manifest = Union[PyprojectManifest, PackageJsonManifest]


def load_manifest(path: Path) -> Manifest:
    """Load a manifest, choosing the format from the file name.

    Raises:
        ManifestError: For unknown file names or unreadable/invalid files.
    """
    if path.name == PYPROJECT:
        return PyprojectManifest.load(path)
    if path.name == PACKAGE_JSON:
        return PackageJsonManifest.load(path)
    raise ManifestError(f"Unsupported manifest: {path}")

