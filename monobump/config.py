"""Configuration from the [tool.monobump] table of the root pyproject.toml.

Example:

    [tool.monobump]
    release-message = "chore: release"
    jobs = 8
    push = true
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .detect import DEFAULT_RELEASE_MESSAGE
from .errors import WorkspaceError
from .toml import get_tool_table, load_pyproject


class BumpConfig(BaseModel):
    """Settings for a bump run. CLI flags override these."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    release_message: str = Field(
        default=DEFAULT_RELEASE_MESSAGE, alias="release-message", min_length=1
    )
    jobs: int = Field(default=4, ge=1)
    commit: bool = True
    tag: bool = True
    push: bool = False


def load_config(root: Path) -> BumpConfig:
    """Read [tool.monobump] from ``root/pyproject.toml``.

    A missing file or table yields the defaults.

    Raises:
        WorkspaceError: If the table holds unknown keys or invalid values.
    """
    pyproject = root / "pyproject.toml"
    if not pyproject.exists():
        return BumpConfig()
    table = get_tool_table(load_pyproject(pyproject), "monobump")
    try:
        return BumpConfig.model_validate(table)
    except ValidationError as exc:
        raise WorkspaceError(f"Invalid [tool.monobump] in {pyproject}:\n{exc}") from exc
