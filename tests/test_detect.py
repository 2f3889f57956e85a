"""Tests for monobump.detect."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from monobump.detect import (
    changed_paths,
    commits_for_paths,
    detect_changed_packages,
    find_last_package_tag,
    find_last_release_commit,
    package_has_changes,
    package_pathspec,
)
from monobump.errors import VcsQueryError, WorkspaceError
from monobump.models import CommitInfo, Package

ROOT = Path("/repo")


def fake_git(
    tags: dict[str, str] | None = None,
    diffs: dict[str, str] | None = None,
    fail_on: str | None = None,
):
    """Build a git() stand-in answering from canned tag and diff output."""
    tags = tags or {}
    diffs = diffs or {}

    def run(*args: str, cwd: Path | None = None) -> str:
        if fail_on and fail_on in args:
            raise VcsQueryError(f"git {' '.join(args)}", "fatal: boom", 128)
        if args[:2] == ("tag", "--list"):
            return tags.get(args[2].rstrip("*").rstrip("@"), "")
        if args[0] == "rev-list":
            return "root000"
        if args[0] == "diff":
            return diffs.get(args[-1], "")
        raise AssertionError(f"unexpected git call: {args}")

    return run


@pytest.fixture
def packages() -> list[Package]:
    return [
        Package(name="pkg-a", version="1.0.0", path=ROOT / "packages" / "a"),
        Package(name="pkg-b", version="1.0.0", path=ROOT / "packages" / "b"),
        Package(name="secret", version="1.0.0", path=ROOT / "packages" / "s", private=True),
    ]


class TestFindLastPackageTag:
    @patch("monobump.detect.git")
    def test_highest_semver_wins(self, mock_git: MagicMock) -> None:
        mock_git.return_value = "pkg-a@1.0.0\npkg-a@1.10.0\npkg-a@1.9.0\npkg-a@1.10.0-rc1"

        assert find_last_package_tag("pkg-a") == "pkg-a@1.10.0"
        mock_git.assert_called_once_with("tag", "--list", "pkg-a@*", cwd=None)

    @patch("monobump.detect.git")
    def test_prerelease_below_release(self, mock_git: MagicMock) -> None:
        mock_git.return_value = "pkg-a@0.8.0-a1\npkg-a@0.8.0-b2\npkg-a@0.7.0"

        assert find_last_package_tag("pkg-a") == "pkg-a@0.8.0-b2"

    @patch("monobump.detect.git")
    def test_ignores_non_semver_suffixes(self, mock_git: MagicMock) -> None:
        mock_git.return_value = "pkg-a@latest\npkg-a@1.0\npkg-a@0.1.0"

        assert find_last_package_tag("pkg-a") == "pkg-a@0.1.0"

    @patch("monobump.detect.git")
    def test_scoped_name(self, mock_git: MagicMock) -> None:
        mock_git.return_value = "@scope/pkg@2.0.0"

        assert find_last_package_tag("@scope/pkg") == "@scope/pkg@2.0.0"

    @patch("monobump.detect.git")
    def test_none_when_never_released(self, mock_git: MagicMock) -> None:
        mock_git.return_value = ""

        assert find_last_package_tag("pkg-a") is None

    @patch("monobump.detect.git")
    def test_query_failure_propagates(self, mock_git: MagicMock) -> None:
        mock_git.side_effect = VcsQueryError("git tag", "not a git repository", 128)

        with pytest.raises(VcsQueryError):
            find_last_package_tag("pkg-a")


class TestChangedPaths:
    @patch("monobump.detect.git")
    def test_since_tag(self, mock_git: MagicMock) -> None:
        mock_git.return_value = "packages/a/x.py\npackages/a/y.py"

        result = changed_paths("pkg-a@1.0.0", ["packages/a"], ROOT)

        assert result == ["packages/a/x.py", "packages/a/y.py"]
        mock_git.assert_called_once_with(
            "diff", "--name-only", "pkg-a@1.0.0..HEAD", "--", "packages/a", cwd=ROOT
        )

    @patch("monobump.detect.git")
    def test_without_tag_uses_root_commit(self, mock_git: MagicMock) -> None:
        mock_git.side_effect = ["abc123", ""]

        assert changed_paths(None, ["packages/a"], ROOT) == []
        assert mock_git.call_args_list[1].args == (
            "diff",
            "--name-only",
            "abc123..HEAD",
            "--",
            "packages/a",
        )


class TestPackagePathspec:
    def test_relative_to_root(self, tmp_path: Path) -> None:
        pkg_dir = tmp_path / "packages" / "a"
        pkg_dir.mkdir(parents=True)
        pkg = Package(name="a", version="1.0.0", path=pkg_dir)

        assert package_pathspec(pkg, tmp_path.resolve()) == "packages/a"

    def test_resolves_symlinks(self, tmp_path: Path) -> None:
        real = tmp_path / "libs" / "real-a"
        real.mkdir(parents=True)
        (tmp_path / "packages").mkdir()
        link = tmp_path / "packages" / "a"
        link.symlink_to(real, target_is_directory=True)
        pkg = Package(name="a", version="1.0.0", path=link)

        assert package_pathspec(pkg, tmp_path.resolve()) == "libs/real-a"

    def test_package_at_root(self, tmp_path: Path) -> None:
        pkg = Package(name="a", version="1.0.0", path=tmp_path)
        assert package_pathspec(pkg, tmp_path.resolve()) == "."

    def test_outside_root(self, tmp_path: Path) -> None:
        pkg = Package(name="a", version="1.0.0", path=tmp_path)
        with pytest.raises(WorkspaceError, match="outside"):
            package_pathspec(pkg, (tmp_path / "elsewhere").resolve())


class TestPackageHasChanges:
    @patch("monobump.detect.package_pathspec", return_value="packages/a")
    @patch("monobump.detect.git")
    def test_true_when_diff_nonempty(self, mock_git: MagicMock, _spec: MagicMock) -> None:
        mock_git.return_value = "packages/a/removed.py"
        pkg = Package(name="pkg-a", version="1.0.0", path=ROOT / "packages" / "a")

        assert package_has_changes(pkg, "pkg-a@1.0.0", ROOT)

    @patch("monobump.detect.package_pathspec", return_value="packages/a")
    @patch("monobump.detect.git")
    def test_false_when_diff_empty(self, mock_git: MagicMock, _spec: MagicMock) -> None:
        mock_git.return_value = ""
        pkg = Package(name="pkg-a", version="1.0.0", path=ROOT / "packages" / "a")

        assert not package_has_changes(pkg, "pkg-a@1.0.0", ROOT)


@patch("monobump.detect.package_pathspec", side_effect=lambda pkg, root: f"packages/{pkg.path.name}")
@patch("monobump.detect.step")
class TestDetectChangedPackages:
    """Tests for detect_changed_packages()."""

    @pytest.mark.parametrize("jobs", [1, 4])
    def test_each_package_against_its_own_tag(
        self,
        mock_step: MagicMock,
        _spec: MagicMock,
        packages: list[Package],
        jobs: int,
    ) -> None:
        git = fake_git(
            tags={"pkg-a": "pkg-a@1.0.0", "pkg-b": "pkg-b@1.0.0"},
            diffs={"packages/a": "packages/a/src.py", "packages/s": "packages/s/x"},
        )
        with patch("monobump.detect.git", side_effect=git):
            result = detect_changed_packages(packages, ROOT, jobs=jobs)

        assert result.changed == {"pkg-a", "secret"}
        assert result.last_tags == {
            "pkg-a": "pkg-a@1.0.0",
            "pkg-b": "pkg-b@1.0.0",
            "secret": None,
        }

    def test_runs_no_history_queries(
        self, mock_step: MagicMock, _spec: MagicMock, packages: list[Package]
    ) -> None:
        mock_git = MagicMock(side_effect=fake_git(tags={"pkg-a": "pkg-a@1.0.0"}))
        with patch("monobump.detect.git", mock_git):
            detect_changed_packages(packages, ROOT, jobs=1)

        commands = [c.args[0] for c in mock_git.call_args_list]
        assert "log" not in commands
        assert set(commands) == {"tag", "diff", "rev-list"}

    @pytest.mark.parametrize("jobs", [1, 4])
    def test_tag_query_failure_is_fatal(
        self,
        mock_step: MagicMock,
        _spec: MagicMock,
        packages: list[Package],
        jobs: int,
    ) -> None:
        with patch("monobump.detect.git", side_effect=fake_git(fail_on="tag")):
            with pytest.raises(VcsQueryError, match="boom"):
                detect_changed_packages(packages, ROOT, jobs=jobs)


class TestHistory:
    @patch("monobump.detect.git")
    def test_find_last_release_commit(self, mock_git: MagicMock) -> None:
        mock_git.return_value = "0123abcd"

        assert find_last_release_commit("chore: release", ROOT) == "0123abcd"
        mock_git.assert_called_once_with(
            "log",
            "--fixed-strings",
            "--grep=chore: release",
            "-1",
            "--format=%H",
            cwd=ROOT,
        )

    @patch("monobump.detect.git")
    def test_no_release_commit(self, mock_git: MagicMock) -> None:
        mock_git.return_value = ""
        assert find_last_release_commit() is None

    @patch("monobump.detect.git")
    def test_commits_for_paths(self, mock_git: MagicMock) -> None:
        mock_git.return_value = "abc1234 touch a"

        assert commits_for_paths(["packages/a"], "v1", ROOT) == [
            CommitInfo(hash="abc1234", message="touch a")
        ]
        mock_git.assert_called_once_with(
            "log", "--format=%h %s", "v1..HEAD", "--", "packages/a", cwd=ROOT
        )

    @patch("monobump.detect.git")
    def test_commits_for_no_paths(self, mock_git: MagicMock) -> None:
        assert commits_for_paths([], None, ROOT) == []
        mock_git.assert_not_called()
