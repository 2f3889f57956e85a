"""Release planning: compute new versions and persist them.

Planning is split into a pure compute phase and a write phase so that an
invalid version anywhere aborts the run before a single manifest is
touched. The write phase renders every new manifest in memory before
writing any of them; only an OS error during the final writes can leave
a subset of manifests updated.
"""

from __future__ import annotations

from collections.abc import Collection, Mapping, Sequence

from .errors import ManifestError
from .manifests import load_manifest
from .models import BumpReason, BumpResult, Changed, Package
from .versions import BumpType, bump_version


def plan_bumps(
    packages: Sequence[Package],
    to_bump: Collection[str],
    reasons: Mapping[str, BumpReason],
    bump: BumpType | str,
) -> list[BumpResult]:
    """Compute the new version of every package in ``to_bump``.

    Results follow workspace discovery order, not cascade order. A package
    without a recorded reason is reported as Changed.

    Raises:
        InvalidVersionError: If any current version cannot be parsed.
    """
    bump = BumpType(bump)
    return [
        BumpResult(
            package=pkg.name,
            old_version=pkg.version,
            new_version=bump_version(pkg.version, bump),
            reason=reasons.get(pkg.name, Changed()),
        )
        for pkg in packages
        if pkg.name in to_bump
    ]


def write_bumps(packages: Sequence[Package], results: Sequence[BumpResult]) -> None:
    """Write each result's new version into its package manifest.

    Raises:
        ManifestError: If a manifest cannot be read or rendered (nothing is
            written), or cannot be written (earlier writes remain).
    """
    by_name = {pkg.name: pkg for pkg in packages}
    rendered = []
    for result in results:
        path = by_name[result.package].manifest_path
        rendered.append((path, load_manifest(path).render(result.new_version)))

    for path, text in rendered:
        try:
            path.write_text(text, encoding="utf-8")
        except OSError as exc:
            raise ManifestError(
                f"Cannot write {path}: {exc.strerror}",
                hint="some manifests may already have been updated",
            ) from exc


def release_tags(results: Sequence[BumpResult]) -> list[str]:
    """One ``<name>@<newVersion>`` tag per bumped package."""
    return [result.tag for result in results]


def release_commit_message(results: Sequence[BumpResult], phrase: str) -> str:
    """Commit message: the release phrase, then one line per package."""
    summary = "\n".join(
        f"{r.package}: {r.old_version} -> {r.new_version}" for r in results
    )
    return f"{phrase}\n\n{summary}" if summary else phrase
