"""Dependency graph construction.

Builds the internal dependency graph of a workspace from its manifests.
Only workspace links count as edges; a dependency on a published version
of a sibling package is a registry dependency and is ignored.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from .manifests import load_manifest
from .models import Package
from .shell import debug

DependencyGraph = dict[str, set[str]]


def build_dependency_graph(
    packages: Sequence[Package], root_sources: Mapping[str, bool] | None = None
) -> DependencyGraph:
    """Map each package name to the names of its workspace dependencies.

    All dependency categories are considered (runtime, optional/peer,
    development). Private packages are included as both sources and
    targets; deciding which packages take part in a cascade is the
    resolver's job.

    ``root_sources`` is the workspace root's [tool.uv.sources]; uv members
    inherit it and may override single entries in their own table.

    Raises:
        ManifestError: If any manifest cannot be read.

    Example:
        If pkg-b's manifest links pkg-a:
        build_dependency_graph([a, b]) → {"pkg-a": set(), "pkg-b": {"pkg-a"}}
    """
    graph: DependencyGraph = {}
    for pkg in packages:
        deps = load_manifest(pkg.manifest_path).workspace_dependencies(root_sources)
        deps.discard(pkg.name)
        graph[pkg.name] = deps
        if deps:
            debug(f"{pkg.name} → [{', '.join(sorted(deps))}]")
    return graph

