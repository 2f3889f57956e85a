"""Error types raised by monobump.

Library code raises these; only the CLI turns them into an exit status.
"""

from __future__ import annotations


class MonobumpError(Exception):
    """Base class for every hard failure that aborts a run.

    Attributes:
        message: Human readable description of the failing condition.
        hint: Optional suggestion shown after the message.
    """

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message


class InvalidVersionError(MonobumpError):
    """A version string is not MAJOR.MINOR.PATCH[-{a|b|rc}N]."""

    def __init__(self, version: str) -> None:
        super().__init__(
            f"Invalid version: {version!r}",
            hint="expected MAJOR.MINOR.PATCH or MAJOR.MINOR.PATCH-{a|b|rc}N",
        )
        self.version = version


class UnknownPackageError(MonobumpError):
    """One or more requested packages are not part of the workspace."""

    def __init__(self, names: list[str]) -> None:
        super().__init__(f"Unknown package(s): {', '.join(names)}")
        self.names = names


class VcsQueryError(MonobumpError):
    """A git command failed, timed out, or git is not installed."""

    def __init__(
        self, command: str, message: str, returncode: int | None = None
    ) -> None:
        super().__init__(f"`{command}` failed: {message}")
        self.command = command
        self.returncode = returncode


class ManifestError(MonobumpError):
    """A package manifest could not be read, parsed, or written."""


class WorkspaceError(MonobumpError):
    """The workspace root or its package list could not be determined."""
