"""Shell and git utilities.

Provides thin wrappers around subprocess calls for git and other external
tools, plus the console helpers used to print pipeline progress.
"""

from __future__ import annotations

import shlex
import subprocess
from pathlib import Path

from .errors import VcsQueryError, WorkspaceError

GIT_TIMEOUT_SECONDS = 30.0
COMMAND_TIMEOUT_SECONDS = 120.0

_verbose = False


def git(*args: str, cwd: Path | str | None = None) -> str:
    """Run a git command and return stripped stdout.

    Args:
        *args: Arguments to pass to git (e.g., "tag", "--list").
        cwd: Directory to run in. Defaults to the process working directory.

    Returns:
        Stripped stdout. An empty string is a legitimate answer (no tags,
        no changed files), never a disguised failure.

    Raises:
        VcsQueryError: On a non-zero exit, a timeout, or a missing git binary.
    """
    command = shlex.join(["git", *args])
    debug(f"$ {command}")
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT_SECONDS,
        )
    except FileNotFoundError as exc:
        raise VcsQueryError(command, "git executable not found") from exc
    except subprocess.TimeoutExpired as exc:
        raise VcsQueryError(command, f"timed out after {exc.timeout:g}s") from exc

    if result.returncode != 0:
        message = result.stderr.strip() or f"exit status {result.returncode}"
        raise VcsQueryError(command, message, result.returncode)
    return result.stdout.strip()


def run(*args: str, cwd: Path | str | None = None) -> str:
    """Run an arbitrary command and return its stdout.

    Used for package manager queries such as ``pnpm list``.

    Raises:
        WorkspaceError: If the command is missing, times out, or fails.
    """
    command = shlex.join(args)
    debug(f"$ {command}")
    try:
        result = subprocess.run(
            args,
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=COMMAND_TIMEOUT_SECONDS,
        )
    except FileNotFoundError as exc:
        raise WorkspaceError(f"{args[0]} executable not found") from exc
    except subprocess.TimeoutExpired as exc:
        raise WorkspaceError(f"`{command}` timed out after {exc.timeout:g}s") from exc

    if result.returncode != 0:
        raise WorkspaceError(f"`{command}` failed: {result.stderr.strip()}")
    return result.stdout


def set_verbose(enabled: bool) -> None:
    """Enable or disable debug() output."""
    global _verbose
    _verbose = enabled


def debug(msg: str) -> None:
    """Print a detail line, only in verbose mode."""
    if _verbose:
        print(f"  · {msg}")


def step(msg: str) -> None:
    """Print a visually distinct step header.

    Used to separate major phases of the bump pipeline in terminal output.
    """
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")
