"""Text rendering of bump results.

Renders straight from the structured BumpReason; reason text is display
only and is never parsed back.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from .detect import commits_for_paths, package_pathspec
from .models import BumpResult, Changed, DependsOnChain, Package


def format_results(results: Sequence[BumpResult]) -> str:
    """Format bump results for display.

    Directly changed packages are marked ``*``, everything else ``^``.
    """
    if not results:
        return "No packages to bump."

    lines = ["", "Packages to bump:", ""]
    for r in results:
        icon = "*" if isinstance(r.reason, Changed) else "^"
        lines.append(
            f"  {icon} {r.package}: {r.old_version} -> {r.new_version} ({r.reason})"
        )
    return "\n".join(lines) + "\n"


def _trigger(result: BumpResult) -> str | None:
    if isinstance(result.reason, DependsOnChain) and result.reason.chain:
        return result.reason.chain[0]
    return None


def format_changelog(
    results: Sequence[BumpResult],
    packages: Sequence[Package],
    since: str | None,
    git_root: Path,
) -> str:
    """Markdown changelog with one section per bumped package.

    Packages with their own changes list the commits touching their
    directory since ``since``; packages bumped only because a dependency
    was bumped name that dependency and its new version.
    """
    if not results:
        return "No packages to bump.\n"

    by_name = {pkg.name: pkg for pkg in packages}
    new_versions = {r.package: r.new_version for r in results}
    sections: list[str] = []

    for result in results:
        lines = [f"## {result.package}"]
        trigger = _trigger(result)
        if trigger is None:
            path = package_pathspec(by_name[result.package], git_root)
            for commit in commits_for_paths([path], since, git_root):
                lines.append(f"- {commit.hash} {commit.message}")
        elif trigger in new_versions:
            lines.append(f"- Dependency: {trigger} {new_versions[trigger]}")
        sections.append("\n".join(lines))

    return "\n\n".join(sections) + "\n"
