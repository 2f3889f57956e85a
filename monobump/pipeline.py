"""Bump pipeline: discover → detect → cascade → bump → commit → tag → push.

This module orchestrates a monobump run:
1. Discover all packages in the workspace
2. Detect which packages changed since their own last release tag
3. Resolve the cascade (upward to dependents, or downward from the
   requested packages to their changed dependencies)
4. Compute new versions and rewrite manifests
5. Commit the rewritten manifests, tag each bumped package, push

Steps 4-5 write nothing on a dry run.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from .bump import plan_bumps, release_commit_message, release_tags, write_bumps
from .cascade import resolve_cascade, validate_requested
from .changelog import format_changelog, format_results
from .config import BumpConfig
from .detect import detect_changed_packages, find_git_root, find_last_release_commit
from .errors import VcsQueryError, WorkspaceError
from .graph import build_dependency_graph
from .models import BumpResult, CascadeResult, DetectionResult, Package
from .shell import git, step
from .versions import BumpType
from .workspace import discover_packages, root_sources


class ReleasePlan(BaseModel):
    """Everything known before any version is computed."""

    model_config = ConfigDict(frozen=True)

    git_root: Path
    packages: list[Package]
    detection: DetectionResult
    cascade: CascadeResult


def plan_release(
    root: Path, requested: Sequence[str], config: BumpConfig
) -> ReleasePlan:
    """Discover, detect and resolve the cascade. Writes nothing.

    Raises:
        UnknownPackageError: Before detection, if a requested name is unknown.
    """
    git_root = find_git_root(root)
    packages = discover_packages(root)
    validate_requested(packages, requested)

    detection = detect_changed_packages(packages, git_root, jobs=config.jobs)

    step("Computing dependency cascade")
    graph = build_dependency_graph(packages, root_sources(root))
    cascade = resolve_cascade(packages, graph, detection.changed, requested)
    return ReleasePlan(
        git_root=git_root, packages=packages, detection=detection, cascade=cascade
    )


def check_tags(tags: Sequence[str], git_root: Path) -> None:
    """Fail early if git would reject any tag name (e.g. odd scoped names)."""
    for tag in tags:
        try:
            git("check-ref-format", f"refs/tags/{tag}", cwd=git_root)
        except VcsQueryError as exc:
            raise WorkspaceError(
                f"{tag!r} is not a valid git tag name",
                hint="rename the package or run with --no-tag",
            ) from exc


def commit_bumps(
    packages: Sequence[Package],
    results: Sequence[BumpResult],
    message: str,
    git_root: Path,
) -> None:
    """Stage the rewritten manifests and commit them."""
    step("Creating release commit")
    by_name = {pkg.name: pkg for pkg in packages}
    paths = [
        by_name[r.package].manifest_path.resolve().relative_to(git_root).as_posix()
        for r in results
    ]
    git("add", "--", *paths, cwd=git_root)

    staged = git("diff", "--cached", "--name-only", cwd=git_root)
    if not staged:
        print("  No changes to commit")
        return

    git("commit", "-m", message, cwd=git_root)
    print(f"  {message.splitlines()[0]}")


def tag_bumped_packages(results: Sequence[BumpResult], git_root: Path) -> None:
    """Create an annotated ``<name>@<newVersion>`` tag per bumped package."""
    step("Creating package tags")
    for tag in release_tags(results):
        git("tag", "-a", tag, "-m", tag, cwd=git_root)
        print(f"  {tag}")


def push_release(git_root: Path, *, follow_tags: bool) -> None:
    step("Pushing to remote")
    if follow_tags:
        git("push", "--follow-tags", cwd=git_root)
    else:
        git("push", cwd=git_root)
    print("  Pushed")


def run_bump(
    root: Path,
    *,
    bump: BumpType | str = BumpType.PATCH,
    requested: Sequence[str] = (),
    dry_run: bool = False,
    changelog: bool = False,
    config: BumpConfig | None = None,
) -> list[BumpResult]:
    """Execute the full bump pipeline.

    Args:
        root: Workspace root directory.
        bump: Bump directive applied to every selected package.
        requested: Package names to bump explicitly (downward cascade);
            empty to auto-detect (upward cascade).
        dry_run: Compute and report only; never write, commit or tag.
        changelog: Also print a markdown changelog.
        config: Settings; commit/tag/push and jobs come from here.

    Returns:
        The bump results, in workspace discovery order.
    """
    config = config or BumpConfig()
    bump = BumpType(bump)
    plan = plan_release(root, requested, config)

    if not plan.detection.changed and not requested:
        print("\nNo changes detected. Nothing to bump!")
        return []
    if not plan.cascade.to_bump:
        print("\nNo public packages affected. Nothing to bump!")
        return []

    step("Bumping versions" + (" (dry run)" if dry_run else ""))
    results = plan_bumps(
        plan.packages, plan.cascade.to_bump, plan.cascade.reasons, bump
    )
    if not dry_run:
        if config.commit and config.tag:
            check_tags(release_tags(results), plan.git_root)
        write_bumps(plan.packages, results)
    print(format_results(results))

    if changelog:
        since = find_last_release_commit(config.release_message, plan.git_root)
        print("Changelog:\n")
        print(format_changelog(results, plan.packages, since, plan.git_root))

    if dry_run:
        print("Dry run - no changes made.")
        return results

    if config.commit:
        message = release_commit_message(results, config.release_message)
        commit_bumps(plan.packages, results, message, plan.git_root)
        if config.tag:
            tag_bumped_packages(results, plan.git_root)
        if config.push:
            push_release(plan.git_root, follow_tags=config.tag)

    print(f"\n{'=' * 60}\nDone!\n{'=' * 60}")
    return results
