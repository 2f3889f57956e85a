"""CLI entry point for monobump."""

from __future__ import annotations

from pathlib import Path

import click

from .config import BumpConfig, load_config
from .errors import MonobumpError
from .pipeline import plan_release, run_bump
from .shell import set_verbose
from .versions import BumpType
from .workspace import find_workspace_root

BUMP_TYPES = [b.value for b in BumpType]


class MonobumpCommand(click.Command):
    """Runs a command, turning MonobumpError into ``Error: ...`` and exit 1."""

    def invoke(self, ctx: click.Context):
        try:
            return super().invoke(ctx)
        except MonobumpError as exc:
            raise click.ClickException(exc.pretty()) from exc


def _config(root: Path, **overrides: object) -> BumpConfig:
    """Config from pyproject.toml with CLI flags (when given) on top."""
    config = load_config(root)
    changes = {key: value for key, value in overrides.items() if value is not None}
    return config.model_copy(update=changes)


@click.group()
@click.version_option(package_name="monobump", prog_name="monobump")
def cli() -> None:
    """Smart version bumping for uv and pnpm monorepos.

    \b
    Prerelease behavior:
      alpha/beta/rc from stable     bumps minor, starts at 1 (0.7.0 -> 0.8.0-a1)
      alpha/beta/rc, same channel   increments (0.8.0-a1 -> 0.8.0-a2)
      alpha/beta/rc, other channel  restarts (0.8.0-a2 -> 0.8.0-b1)
      patch from prerelease         graduates (0.8.0-b1 -> 0.8.0)
    """


@cli.command(cls=MonobumpCommand)
@click.argument("packages", nargs=-1)
@click.option(
    "-t",
    "--type",
    "bump_type",
    type=click.Choice(BUMP_TYPES),
    default="patch",
    show_default=True,
    help="Bump type.",
)
@click.option("--dry-run", is_flag=True, help="Report only, change nothing.")
@click.option("--changelog", is_flag=True, help="Print a markdown changelog.")
@click.option("--commit/--no-commit", default=None, help="Create a release commit.")
@click.option("--tag/--no-tag", default=None, help="Create one tag per bumped package.")
@click.option("--push/--no-push", default=None, help="Push commit and tags.")
@click.option(
    "-j",
    "--jobs",
    type=click.IntRange(min=1),
    default=None,
    help="Concurrent git queries.",
)
@click.option("-v", "--verbose", is_flag=True, help="Show verbose output.")
def bump(
    packages: tuple[str, ...],
    bump_type: str,
    dry_run: bool,
    changelog: bool,
    commit: bool | None,
    tag: bool | None,
    push: bool | None,
    jobs: int | None,
    verbose: bool,
) -> None:
    """Bump versions of changed packages and their dependents.

    With PACKAGES, bump only those packages plus any of their workspace
    dependencies that have unreleased changes.
    """
    set_verbose(verbose)
    root = find_workspace_root(Path.cwd())
    config = _config(root, commit=commit, tag=tag, push=push, jobs=jobs)
    run_bump(
        root,
        bump=bump_type,
        requested=list(packages),
        dry_run=dry_run,
        changelog=changelog,
        config=config,
    )


@cli.command(cls=MonobumpCommand)
@click.argument("packages", nargs=-1)
@click.option(
    "-j",
    "--jobs",
    type=click.IntRange(min=1),
    default=None,
    help="Concurrent git queries.",
)
@click.option("-v", "--verbose", is_flag=True, help="Show verbose output.")
def status(packages: tuple[str, ...], jobs: int | None, verbose: bool) -> None:
    """Show which packages would be bumped and why. Writes nothing."""
    set_verbose(verbose)
    root = find_workspace_root(Path.cwd())
    plan = plan_release(root, list(packages), _config(root, jobs=jobs))

    if not plan.cascade.to_bump:
        click.echo("\nNothing to bump.")
        return
    click.echo()
    for pkg in plan.packages:
        if pkg.name in plan.cascade.to_bump:
            reason = plan.cascade.reasons[pkg.name]
            click.echo(f"  {pkg.name} {pkg.version} ({reason})")
