"""Workspace discovery.

Finds the workspace root and lists its packages. Two workspace kinds are
recognized:

- uv: a root pyproject.toml with [tool.uv.workspace].members globs
- pnpm: a root pnpm-workspace.yaml; packages come from ``pnpm list``
"""

from __future__ import annotations

import glob
import json
from pathlib import Path

from .errors import WorkspaceError
from .manifests import PACKAGE_JSON, PYPROJECT, PyprojectManifest
from .models import Package
from .shell import debug, run, step
from .toml import (
    get_workspace_exclude_globs,
    get_uv_sources,
    get_workspace_member_globs,
    has_uv_workspace,
    load_pyproject,
)

PNPM_WORKSPACE_FILE = "pnpm-workspace.yaml"


def _is_workspace_root(directory: Path) -> bool:
    if (directory / PNPM_WORKSPACE_FILE).exists():
        return True
    pyproject = directory / PYPROJECT
    return pyproject.exists() and has_uv_workspace(load_pyproject(pyproject))


def find_workspace_root(start: Path) -> Path:
    """Locate the workspace root.

    Searches ``start`` and its parents first, then the immediate
    subdirectories of ``start`` (for a workspace nested one level down).

    Raises:
        WorkspaceError: If no workspace root is found.
    """
    start = start.resolve()
    for directory in (start, *start.parents):
        if _is_workspace_root(directory):
            return directory

    for child in sorted(start.iterdir()):
        if child.is_dir() and _is_workspace_root(child):
            return child

    raise WorkspaceError(
        f"No workspace found from {start}",
        hint=f"expected [tool.uv.workspace] in pyproject.toml or {PNPM_WORKSPACE_FILE}",
    )


def discover_packages(root: Path) -> list[Package]:
    """Scan the workspace and return its packages in discovery order.

    Raises:
        WorkspaceError: If the workspace is empty or names collide.
    """
    step("Discovering workspace packages")

    if (root / PNPM_WORKSPACE_FILE).exists():
        packages = discover_pnpm_packages(root)
    else:
        packages = discover_uv_packages(root)

    if not packages:
        raise WorkspaceError(f"No packages found in workspace {root}")

    seen: set[str] = set()
    for pkg in packages:
        if pkg.name in seen:
            raise WorkspaceError(f"Duplicate package name in workspace: {pkg.name}")
        seen.add(pkg.name)

    public = sum(1 for p in packages if not p.private)
    for pkg in packages:
        private = " (private)" if pkg.private else ""
        print(f"  {pkg.name} {pkg.version}{private}")
    print(f"  Found {len(packages)} packages ({public} public)")
    return packages


def root_sources(root: Path) -> dict[str, bool]:
    """The workspace root's [tool.uv.sources], inherited by every uv member.

    Empty when the root has no pyproject.toml (a plain pnpm workspace).
    """
    pyproject = root / PYPROJECT
    if not pyproject.exists():
        return {}
    return get_uv_sources(load_pyproject(pyproject))


def discover_uv_packages(root: Path) -> list[Package]:
    """List uv workspace members.

    Reads [tool.uv.workspace].members from the root pyproject.toml, expands
    the globs (sorted, for a stable discovery order) and reads name, version
    and privacy from each member's pyproject.toml.
    """
    root_doc = load_pyproject(root / PYPROJECT)

    excluded: set[Path] = set()
    for pattern in get_workspace_exclude_globs(root_doc):
        excluded.update(Path(m).resolve() for m in glob.glob(str(root / pattern)))

    member_dirs: list[Path] = []
    for pattern in get_workspace_member_globs(root_doc):
        for match in sorted(glob.glob(str(root / pattern))):
            p = Path(match).resolve()
            if p in excluded or p in member_dirs:
                continue
            if (p / PYPROJECT).exists():
                member_dirs.append(p)

    packages: list[Package] = []
    for d in member_dirs:
        manifest = PyprojectManifest.load(d / PYPROJECT)
        packages.append(
            Package(
                name=manifest.name(d.name),
                version=manifest.version,
                path=d,
                private=manifest.private,
                manifest=PYPROJECT,
            )
        )
    return packages


def discover_pnpm_packages(root: Path) -> list[Package]:
    """List pnpm workspace projects via ``pnpm list``."""
    output = run("pnpm", "list", "--json", "--recursive", "--only-projects", cwd=root)
    entries = parse_pnpm_list(output)
    debug(f"pnpm reported {len(entries)} projects")
    return [
        Package(
            name=entry["name"],
            version=entry.get("version") or "0.0.0",
            path=Path(entry["path"]),
            private=bool(entry.get("private", False)),
            manifest=PACKAGE_JSON,
        )
        for entry in entries
        if entry.get("name")
    ]


def parse_pnpm_list(output: str) -> list[dict]:
    """Parse ``pnpm list --json`` output.

    Run from the workspace root, pnpm prints exactly one JSON array. More
    than one array means it ran outside the workspace root.

    Raises:
        WorkspaceError: On empty, invalid, or multi-array output.
    """
    text = output.strip()
    if not text:
        raise WorkspaceError("pnpm output is empty or invalid")

    decoder = json.JSONDecoder()
    try:
        entries, end = decoder.raw_decode(text)
    except json.JSONDecodeError as exc:
        raise WorkspaceError(f"Failed to parse pnpm output: {text[:200]}") from exc

    if text[end:].strip():
        raise WorkspaceError(
            "pnpm output contains more than one JSON array",
            hint=f"ensure {PNPM_WORKSPACE_FILE} exists in your repository",
        )
    if not isinstance(entries, list):
        raise WorkspaceError("pnpm output is empty or invalid")
    return entries
