"""Version parsing and bumping.

Versions are strict ``MAJOR.MINOR.PATCH`` with an optional prerelease suffix
``-aN``, ``-bN`` or ``-rcN`` (N >= 1). Arithmetic is delegated to ``semver``.

Transitions:
    stable     + major/minor/patch -> standard increment
    prerelease + major/minor       -> increment, prerelease dropped
    prerelease + patch             -> prerelease dropped (graduation)
    stable     + alpha/beta/rc     -> next minor, prerelease number 1
    prerelease + same channel      -> prerelease number + 1
    prerelease + other channel     -> same base, new channel number 1
"""

from __future__ import annotations

import re
from enum import Enum

import semver
from pydantic import BaseModel, ConfigDict, Field

from .errors import InvalidVersionError

_VERSION_RE = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)(?:-(a|b|rc)([1-9]\d*))?$"
)


class BumpType(str, Enum):
    """Bump directive accepted by bump_version()."""

    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"
    ALPHA = "alpha"
    BETA = "beta"
    RC = "rc"


class Channel(str, Enum):
    """Prerelease channel. Ordered by convention only."""

    ALPHA = "alpha"
    BETA = "beta"
    RC = "rc"

    @property
    def prefix(self) -> str:
        return _CHANNEL_PREFIXES[self]

    @classmethod
    def from_prefix(cls, prefix: str) -> Channel:
        for channel, value in _CHANNEL_PREFIXES.items():
            if value == prefix:
                return channel
        raise ValueError(f"Unknown prerelease prefix: {prefix!r}")


_CHANNEL_PREFIXES = {Channel.ALPHA: "a", Channel.BETA: "b", Channel.RC: "rc"}


class Prerelease(BaseModel):
    """Prerelease part of a version, e.g. ``rc2``."""

    model_config = ConfigDict(frozen=True)

    channel: Channel
    number: int = Field(ge=1)

    def __str__(self) -> str:
        return f"{self.channel.prefix}{self.number}"


class ParsedVersion(BaseModel):
    """A version split into its numeric parts and optional prerelease."""

    model_config = ConfigDict(frozen=True)

    major: int = Field(ge=0)
    minor: int = Field(ge=0)
    patch: int = Field(ge=0)
    prerelease: Prerelease | None = None

    @property
    def is_prerelease(self) -> bool:
        return self.prerelease is not None

    def to_semver(self) -> semver.Version:
        return semver.Version(
            self.major,
            self.minor,
            self.patch,
            prerelease=str(self.prerelease) if self.prerelease else None,
        )

    def __str__(self) -> str:
        base = f"{self.major}.{self.minor}.{self.patch}"
        return f"{base}-{self.prerelease}" if self.prerelease else base


def parse_version(version_str: str) -> ParsedVersion:
    """Parse a version string.

    Examples:
        "1.2.3"     -> 1.2.3, stable
        "0.8.0-b2"  -> 0.8.0, beta 2

    Raises:
        InvalidVersionError: For any other shape ("1.2", "1.2.3-a0",
            "1.2.3-alpha.1", "v1.2.3", ...).
    """
    match = _VERSION_RE.fullmatch(version_str)
    if match is None:
        raise InvalidVersionError(version_str)

    major, minor, patch, prefix, number = match.groups()
    prerelease = None
    if prefix is not None:
        prerelease = Prerelease(channel=Channel.from_prefix(prefix), number=int(number))
    return ParsedVersion(
        major=int(major), minor=int(minor), patch=int(patch), prerelease=prerelease
    )


def bump_version(version_str: str, bump: BumpType | str) -> str:
    """Return the next version for a bump directive.

    Examples:
        bump_version("1.2.3", "minor")    -> "1.3.0"
        bump_version("1.2.3-a7", "patch") -> "1.2.3"
        bump_version("0.7.0", "alpha")    -> "0.8.0-a1"
        bump_version("0.8.0-a1", "alpha") -> "0.8.0-a2"
        bump_version("0.8.0-a2", "rc")    -> "0.8.0-rc1"
    """
    bump = BumpType(bump)
    current = parse_version(version_str)
    version = current.to_semver()

    if bump is BumpType.MAJOR:
        return str(version.bump_major())
    if bump is BumpType.MINOR:
        return str(version.bump_minor())
    if bump is BumpType.PATCH:
        if current.is_prerelease:
            return str(version.finalize_version())
        return str(version.bump_patch())

    channel = Channel(bump.value)
    if current.prerelease is None:
        nxt = Prerelease(channel=channel, number=1)
        return str(version.bump_minor().replace(prerelease=str(nxt)))
    if current.prerelease.channel is channel:
        nxt = Prerelease(channel=channel, number=current.prerelease.number + 1)
    else:
        nxt = Prerelease(channel=channel, number=1)
    return str(version.replace(prerelease=str(nxt)))


def is_valid_semver(version_str: str) -> bool:
    """Whether a string is any valid SemVer 2.0 version (used for tag suffixes)."""
    return semver.Version.is_valid(version_str)


def semver_key(version_str: str) -> semver.Version:
    """Sort key ordering version strings by SemVer precedence."""
    return semver.Version.parse(version_str)
