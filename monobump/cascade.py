"""Cascade resolution.

Expands a set of changed (or requested) packages into the full set of
packages to bump. Two directions are supported:

- Upward (nothing requested): every public package that depends, directly
  or transitively, on a changed public package is bumped too.
- Downward (packages requested): the requested packages are bumped along
  with those of their dependencies, transitively, that have unreleased
  changes. Unchanged dependencies are assumed to be published already.

Private packages never enter the result, not even as links in a chain.
Both directions iterate to a fixed point in snapshot passes: a pass only
sees the set as it was when the pass started, so every package is
attributed to a shortest path, with ties broken by the smallest name.
"""

from __future__ import annotations

from collections.abc import Collection, Mapping, Sequence

from .errors import UnknownPackageError
from .models import (
    BumpReason,
    CascadeResult,
    Changed,
    DependencyOf,
    DependsOnChain,
    Package,
    Specified,
)
from .shell import debug


def public_names(packages: Sequence[Package]) -> set[str]:
    return {pkg.name for pkg in packages if not pkg.private}


def find_dependents(
    graph: Mapping[str, Collection[str]],
    candidates: Collection[str],
    seeds: Collection[str],
) -> dict[str, str]:
    """Grow ``seeds`` upward through ``graph`` until nothing more is added.

    Args:
        graph: Package name → names of its workspace dependencies.
        candidates: Packages allowed to join (the public ones).
        seeds: Packages already selected.

    Returns:
        Map of each newly added package → the dependency that triggered it.
    """
    selected = set(seeds)
    triggers: dict[str, str] = {}
    while True:
        added: dict[str, str] = {}
        for name in sorted(candidates):
            if name in selected:
                continue
            hits = sorted(dep for dep in graph.get(name, ()) if dep in selected)
            if hits:
                added[name] = hits[0]
        if not added:
            return triggers
        selected.update(added)
        triggers.update(added)


def dependency_chain(name: str, triggers: Mapping[str, str]) -> tuple[str, ...]:
    """Follow trigger links from ``name`` back to a changed package.

    For c → b → a (c triggered by b, b by a) the chain of c is ("b", "a").
    """
    chain: list[str] = []
    current = name
    while current in triggers:
        current = triggers[current]
        chain.append(current)
    return tuple(chain)


def resolve_upward(
    packages: Sequence[Package],
    graph: Mapping[str, Collection[str]],
    changed: Collection[str],
) -> CascadeResult:
    """Bump changed public packages and everything that depends on them."""
    public = public_names(packages)
    seeds = public & set(changed)
    triggers = find_dependents(graph, public, seeds)

    reasons: dict[str, BumpReason] = {name: Changed() for name in seeds}
    for name in triggers:
        reasons[name] = DependsOnChain(chain=dependency_chain(name, triggers))
        debug(f"{name}: {reasons[name]}")
    return CascadeResult(to_bump=frozenset(reasons), reasons=reasons)


def validate_requested(
    packages: Sequence[Package], requested: Collection[str]
) -> None:
    """Fail if any requested name is not a workspace package.

    Raises:
        UnknownPackageError: Listing every unknown name, sorted.
    """
    known = {pkg.name for pkg in packages}
    unknown = sorted(set(requested) - known)
    if unknown:
        raise UnknownPackageError(unknown)


def resolve_downward(
    packages: Sequence[Package],
    graph: Mapping[str, Collection[str]],
    changed: Collection[str],
    requested: Collection[str],
) -> CascadeResult:
    """Bump the requested packages plus their changed dependencies.

    Raises:
        UnknownPackageError: Before any other work, for unknown names.
    """
    validate_requested(packages, requested)
    public = public_names(packages)
    eligible = public & set(changed)

    reasons: dict[str, BumpReason] = {
        name: Specified() for name in sorted(set(requested) & public)
    }
    while True:
        added: dict[str, str] = {}
        for requester in sorted(reasons):
            for dep in sorted(graph.get(requester, ())):
                if dep in eligible and dep not in reasons and dep not in added:
                    added[dep] = requester
        if not added:
            break
        for dep, requester in added.items():
            reasons[dep] = DependencyOf(requester=requester)
            debug(f"{dep}: {reasons[dep]}")

    return CascadeResult(to_bump=frozenset(reasons), reasons=reasons)


def resolve_cascade(
    packages: Sequence[Package],
    graph: Mapping[str, Collection[str]],
    changed: Collection[str],
    requested: Collection[str] = (),
) -> CascadeResult:
    """Pick the cascade direction: downward when packages were requested."""
    if requested:
        return resolve_downward(packages, graph, changed, requested)
    return resolve_upward(packages, graph, changed)
