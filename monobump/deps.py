"""Dependency string handling.

Parses PEP 508 requirement strings and decides which of a package's
declared dependencies are workspace links.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import canonicalize_name

from .errors import ManifestError

WORKSPACE_PROTOCOL = "workspace:"
PACKAGE_JSON_SECTIONS = ("dependencies", "devDependencies", "peerDependencies")


def dep_canonical_name(dep_str: str) -> str:
    """Extract the canonical package name from a PEP 508 dependency string.

    Handles version specifiers, extras, and markers, and normalizes the name
    per PEP 503 (lowercase, hyphens instead of underscores).

    Examples:
        "requests>=2.0" → "requests"
        "My_Package[extra]~=1.0" → "my-package"

    Raises:
        ManifestError: If the string is not a valid requirement.
    """
    try:
        return canonicalize_name(Requirement(dep_str).name)
    except InvalidRequirement as exc:
        raise ManifestError(f"Invalid dependency {dep_str!r}: {exc}") from exc


def linked_requirements(
    categories: Mapping[str, Iterable[str]], workspace_sources: set[str]
) -> set[str]:
    """Names of requirements that resolve from the workspace.

    Args:
        categories: Dependency strings grouped by category (runtime,
            optional, development).
        workspace_sources: Canonical names declared ``workspace = true``.
            A requirement on any other name is a registry dependency.
    """
    linked: set[str] = set()
    for deps in categories.values():
        for dep_str in deps:
            name = dep_canonical_name(dep_str)
            if name in workspace_sources:
                linked.add(name)
    return linked


def linked_package_json_deps(manifest: Mapping[str, object]) -> set[str]:
    """Names whose specifier uses the ``workspace:`` protocol.

    Looks at dependencies, devDependencies and peerDependencies. Published
    ranges such as ``^1.2.0`` are not links.
    """
    linked: set[str] = set()
    for section in PACKAGE_JSON_SECTIONS:
        deps = manifest.get(section)
        if not isinstance(deps, dict):
            continue
        for name, spec in deps.items():
            if isinstance(spec, str) and spec.startswith(WORKSPACE_PROTOCOL):
                linked.add(name)
    return linked
