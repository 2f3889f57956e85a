"""Change detection.

Each package is compared against its own last release tag
(``<name>@<version>``): it is changed when ``git diff`` restricted to the
package directory is non-empty between that tag and HEAD. A package that
was never tagged is compared against the root commit.
"""

from __future__ import annotations

from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from .errors import WorkspaceError
from .models import CommitInfo, DetectionResult, Package
from .shell import debug, git, step
from .versions import is_valid_semver, semver_key

DEFAULT_RELEASE_MESSAGE = "chore: release"


def find_git_root(cwd: Path | None = None) -> Path:
    """Return the resolved top-level directory of the git repository."""
    return Path(git("rev-parse", "--show-toplevel", cwd=cwd)).resolve()


def find_last_package_tag(name: str, cwd: Path | None = None) -> str | None:
    """Find the highest release tag for a package.

    Tags are formatted as ``<name>@<version>``; only tags whose suffix is a
    valid semver string are considered, ordered by semver precedence (so
    ``pkg@1.0.0`` sorts above ``pkg@1.0.0-rc1``).

    Returns:
        The tag, or None if the package has never been released.

    Raises:
        VcsQueryError: If the tag query itself fails.
    """
    prefix = f"{name}@"
    output = git("tag", "--list", f"{prefix}*", cwd=cwd)
    versions = [
        tag[len(prefix):]
        for tag in output.splitlines()
        if tag.startswith(prefix) and is_valid_semver(tag[len(prefix):])
    ]
    if not versions:
        return None
    return prefix + max(versions, key=semver_key)


def find_root_commit(cwd: Path | None = None) -> str:
    """Return the first commit of history (the first root if several)."""
    return git("rev-list", "--max-parents=0", "HEAD", cwd=cwd).splitlines()[0]


def _range(since: str | None, cwd: Path | None) -> str:
    start = since if since is not None else find_root_commit(cwd)
    return f"{start}..HEAD"


def changed_paths(
    since: str | None, paths: Sequence[str], cwd: Path | None = None
) -> list[str]:
    """Files under ``paths`` that differ between ``since`` and HEAD.

    Deleted and renamed files are included. ``since=None`` compares
    against the root commit.
    """
    output = git("diff", "--name-only", _range(since, cwd), "--", *paths, cwd=cwd)
    return [line for line in output.splitlines() if line]


def package_pathspec(pkg: Package, git_root: Path) -> str:
    """The package's symlink-resolved directory, relative to the git root."""
    real = pkg.path.resolve()
    try:
        rel = real.relative_to(git_root)
    except ValueError as exc:
        raise WorkspaceError(f"{pkg.name} ({real}) is outside {git_root}") from exc
    return rel.as_posix() or "."


def package_has_changes(pkg: Package, last_tag: str | None, git_root: Path) -> bool:
    """Whether any file in the package changed since ``last_tag``."""
    return bool(changed_paths(last_tag, [package_pathspec(pkg, git_root)], git_root))


def _inspect(pkg: Package, git_root: Path) -> tuple[str, str | None, bool]:
    tag = find_last_package_tag(pkg.name, git_root)
    changed = package_has_changes(pkg, tag, git_root)
    debug(f"{pkg.name}: last tag {tag or '<none>'}, changed={changed}")
    return pkg.name, tag, changed


def detect_changed_packages(
    packages: Sequence[Package],
    git_root: Path,
    *,
    jobs: int = 4,
) -> DetectionResult:
    """Determine which packages changed since their last release.

    Every package (private ones included) is inspected independently;
    up to ``jobs`` git queries run at once. Any failed query aborts
    detection with VcsQueryError.

    Args:
        packages: Workspace packages.
        git_root: Resolved repository root.
        jobs: Maximum number of concurrent package inspections.
    """
    step("Detecting changes since last release")

    if jobs <= 1:
        inspected = [_inspect(pkg, git_root) for pkg in packages]
    else:
        with ThreadPoolExecutor(max_workers=jobs) as pool:
            inspected = list(pool.map(lambda p: _inspect(p, git_root), packages))

    changed: set[str] = set()
    last_tags: dict[str, str | None] = {}
    for name, tag, has_changes in inspected:
        last_tags[name] = tag
        if has_changes:
            changed.add(name)
            print(f"  {name}: changed since {tag or 'first commit'}")

    return DetectionResult(changed=frozenset(changed), last_tags=last_tags)


def find_last_release_commit(
    message: str = DEFAULT_RELEASE_MESSAGE, cwd: Path | None = None
) -> str | None:
    """Hash of the newest commit whose message contains ``message``."""
    output = git(
        "log", "--fixed-strings", f"--grep={message}", "-1", "--format=%H", cwd=cwd
    )
    return output or None


def _parse_log(output: str) -> list[CommitInfo]:
    commits: list[CommitInfo] = []
    for line in output.splitlines():
        hash_, _, message = line.partition(" ")
        if hash_ and message:
            commits.append(CommitInfo(hash=hash_, message=message))
    return commits


def commits_for_paths(
    paths: Sequence[str], since: str | None, cwd: Path | None = None
) -> list[CommitInfo]:
    """Commits after ``since`` that touched any of ``paths``."""
    if not paths:
        return []
    output = git("log", "--format=%h %s", _range(since, cwd), "--", *paths, cwd=cwd)
    return _parse_log(output)
