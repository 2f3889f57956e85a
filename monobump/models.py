"""Data models for monobump.

These Pydantic models represent the values passed between the stages of
the bump pipeline. All of them are immutable once built.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class Package(BaseModel):
    """A single package in the workspace.

    Attributes:
        name: Unique package name.
        version: Current version string from the manifest.
        path: Absolute path to the package directory.
        private: Private packages are never bumped.
        manifest: File name of the manifest inside ``path``
            (``pyproject.toml`` or ``package.json``).
    """

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    path: Path
    private: bool = False
    manifest: str = "pyproject.toml"

    @property
    def manifest_path(self) -> Path:
        return self.path / self.manifest


class Changed(BaseModel):
    """The package itself has changes since its last release tag."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["changed"] = "changed"

    def __str__(self) -> str:
        return "changed"


class Specified(BaseModel):
    """The package was requested explicitly."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["specified"] = "specified"

    def __str__(self) -> str:
        return "specified"


class DependencyOf(BaseModel):
    """A changed dependency pulled in by a requested (or pulled-in) package."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["dependency_of"] = "dependency_of"
    requester: str

    def __str__(self) -> str:
        return f"dependency of {self.requester}"


class DependsOnChain(BaseModel):
    """A dependent bumped because something it depends on was bumped.

    ``chain`` starts at the direct trigger and ends at the changed root:
    for c -> b -> a with only ``a`` changed, c's chain is ``("b", "a")``.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["depends_on_chain"] = "depends_on_chain"
    chain: tuple[str, ...]

    def __str__(self) -> str:
        return f"depends on {' -> '.join(self.chain)}"


BumpReason = Annotated[
    Union[Changed, Specified, DependencyOf, DependsOnChain],
    Field(discriminator="kind"),
]


class CascadeResult(BaseModel):
    """Packages selected for bumping and why each one was selected."""

    model_config = ConfigDict(frozen=True)

    to_bump: frozenset[str]
    reasons: dict[str, BumpReason]


class BumpResult(BaseModel):
    """Records a version change for a package.

    Attributes:
        package: Package name.
        old_version: The version before bumping.
        new_version: The version after bumping.
        reason: Why the package was bumped.
    """

    model_config = ConfigDict(frozen=True)

    package: str
    old_version: str
    new_version: str
    reason: BumpReason

    @property
    def tag(self) -> str:
        """Release tag for the new version: ``<name>@<version>``."""
        return f"{self.package}@{self.new_version}"


class CommitInfo(BaseModel):
    """A commit from ``git log``."""

    model_config = ConfigDict(frozen=True)

    hash: str
    message: str


class DetectionResult(BaseModel):
    """Outcome of change detection.

    Attributes:
        changed: Names of packages with changes since their last release tag.
        last_tags: Each package's last release tag, or None if never released.
    """

    model_config = ConfigDict(frozen=True)

    changed: frozenset[str]
    last_tags: dict[str, Optional[str]]
