"""
Tests for the end-to-end root resolution pipeline.
"""

from pathlib import Path

import pytest

from conftest import commit_all, requires_git, write_files
from kustroots.config import ResolverConfig
from kustroots.gitdiff import GitDiffError
from kustroots.models import ResolveMode
from kustroots.resolver import RootResolver, resolve_roots
from kustroots.scanner import ScanError


def _no_changes(_repo_root: Path) -> list[str]:
    raise AssertionError("change list should not be requested")


class TestBuildAll:
    """Build-everything mode."""

    def test_all_roots_are_returned(self, tmp_path: Path):
        """Test that every discovered root is in the worklist."""
        write_files(tmp_path, ["base/kustomization.yaml", "overlay/kustomization.yaml"])
        cfg = ResolverConfig(repo_root=tmp_path, build_all=True)

        res = RootResolver(cfg, changed_files_provider=_no_changes).resolve()

        assert res.mode is ResolveMode.ALL
        assert res.roots == ["base", "overlay"]
        assert res.all_roots == ["base", "overlay"]
        assert res.changed_files is None

    def test_build_all_wins_over_changed_only(self, tmp_path: Path):
        """Test that build_all takes precedence over changed_only."""
        cfg = ResolverConfig(repo_root=tmp_path, build_all=True, changed_only=True)
        assert RootResolver(cfg).mode() is ResolveMode.ALL

    def test_neither_flag_builds_all(self, tmp_path: Path):
        """Test that turning both flags off still builds everything."""
        cfg = ResolverConfig(repo_root=tmp_path, build_all=False, changed_only=False)
        assert RootResolver(cfg).mode() is ResolveMode.ALL

    def test_output_dir_inside_tree_is_skipped(self, tmp_path: Path):
        """Test that only the top-level output directory is excluded."""
        write_files(tmp_path, [
            "kustomize-builds/kustomization.yaml",
            "apps/kustomize-builds/kustomization.yaml",
            "apps/other/kustomization.yaml",
        ])
        cfg = ResolverConfig(repo_root=tmp_path, build_all=True)

        res = resolve_roots(cfg)

        assert res.roots == ["apps/kustomize-builds", "apps/other"]

    def test_absolute_output_dir_is_skipped(self, tmp_path: Path):
        """Test that an absolute output directory inside the tree is excluded."""
        write_files(tmp_path, ["build/out/kustomization.yaml", "app/kustomization.yaml"])
        cfg = ResolverConfig(repo_root=tmp_path, output_dir=str(tmp_path / "build" / "out"), build_all=True)

        assert resolve_roots(cfg).roots == ["app"]

    def test_extra_exclusions(self, tmp_path: Path):
        """Test that configured exclusions are skipped while scanning."""
        write_files(tmp_path, ["vendor/x/kustomization.yaml", "app/kustomization.yaml"])
        cfg = ResolverConfig(repo_root=tmp_path, build_all=True, exclude=["vendor"])

        assert resolve_roots(cfg).roots == ["app"]

    def test_scan_root_is_listed_first(self, tmp_path: Path):
        """Test that the working directory root sorts ahead of punctuated siblings."""
        write_files(tmp_path, ["deploy/kustomization.yaml", "deploy/-x/kustomization.yaml"])
        cfg = ResolverConfig(repo_root=tmp_path, working_dir="deploy", build_all=True)

        assert resolve_roots(cfg).roots == ["deploy", "deploy/-x"]


class TestWorkingDirectory:
    """Scanning below a working directory."""

    def test_roots_are_prefixed_with_working_dir(self, tmp_path: Path):
        """Test that roots are reported with the working directory prefix."""
        write_files(tmp_path, [
            "deploy/kustomization.yaml",
            "deploy/apps/a/kustomization.yaml",
            "other/kustomization.yaml",
        ])
        cfg = ResolverConfig(repo_root=tmp_path, working_dir="./deploy/", build_all=True)

        assert resolve_roots(cfg).roots == ["deploy", "deploy/apps/a"]

    def test_absolute_working_dir_inside_repo(self, tmp_path: Path):
        """Test that an absolute working directory is made repo-relative."""
        write_files(tmp_path, ["deploy/apps/a/kustomization.yaml"])
        cfg = ResolverConfig(repo_root=tmp_path, working_dir=str(tmp_path / "deploy"), build_all=True)

        assert resolve_roots(cfg).roots == ["deploy/apps/a"]

    def test_absolute_working_dir_outside_repo(self, tmp_path: Path):
        """Test that a working directory outside the repository is rejected."""
        repo = tmp_path / "repo"
        elsewhere = tmp_path / "elsewhere"
        write_files(elsewhere, ["kustomization.yaml"])
        repo.mkdir()
        cfg = ResolverConfig(repo_root=repo, working_dir=str(elsewhere), build_all=True)

        with pytest.raises(ValueError, match="outside"):
            resolve_roots(cfg)

    def test_missing_working_dir_raises(self, tmp_path: Path):
        """Test that a missing working directory raises ScanError."""
        cfg = ResolverConfig(repo_root=tmp_path, working_dir="missing", build_all=True)

        with pytest.raises(ScanError):
            resolve_roots(cfg)


class TestTopLevelOnly:
    """Collapsing nested roots."""

    def test_nested_roots_are_collapsed(self, tmp_path: Path):
        """Test that nested roots are dropped in favour of their ancestor."""
        write_files(tmp_path, [
            "apps/kustomization.yaml",
            "apps/foo/kustomization.yaml",
            "cluster/kustomization.yaml",
        ])
        cfg = ResolverConfig(repo_root=tmp_path, build_all=True, top_level_only=True)

        assert resolve_roots(cfg).roots == ["apps", "cluster"]

    def test_scan_root_kustomization_owns_everything(self, tmp_path: Path):
        """Test that a kustomization at the scan root replaces all others."""
        write_files(tmp_path, ["deploy/kustomization.yaml", "deploy/apps/kustomization.yaml"])
        cfg = ResolverConfig(repo_root=tmp_path, working_dir="deploy", build_all=True, top_level_only=True)

        assert resolve_roots(cfg).roots == ["deploy"]


class TestChangedOnly:
    """Change-filtered mode."""

    def test_explicit_change_list(self, tmp_path: Path):
        """Test deepest-match selection against a supplied change list."""
        write_files(tmp_path, [
            "apps/kustomization.yaml",
            "apps/foo/kustomization.yaml",
            "apps/foo/overlays/dev/kustomization.yaml",
            "cluster/kustomization.yaml",
        ])
        cfg = ResolverConfig(repo_root=tmp_path)

        res = RootResolver(cfg, changed_files_provider=_no_changes).resolve([
            "apps/foo/overlays/dev/kustomization.yaml",
            "apps/foo/base/deploy.yaml",
            "cluster/ns.yaml",
            "README.md",
        ])

        assert res.mode is ResolveMode.CHANGED
        assert res.roots == ["apps/foo", "apps/foo/overlays/dev", "cluster"]
        assert len(res.all_roots) == 4

    def test_provider_is_called_with_repo_root(self, tmp_path: Path):
        """Test that the change list provider receives the repository root."""
        write_files(tmp_path, ["a/kustomization.yaml", "b/kustomization.yaml"])
        seen: list[Path] = []

        def provider(repo_root: Path) -> list[str]:
            seen.append(repo_root)
            return ["b/deploy.yaml"]

        res = RootResolver(ResolverConfig(repo_root=tmp_path), changed_files_provider=provider).resolve()

        assert seen == [tmp_path]
        assert res.roots == ["b"]
        assert res.changed_files == ["b/deploy.yaml"]

    def test_unavailable_change_list_selects_nothing(self, tmp_path: Path, caplog):
        """Test that a GitDiffError is logged and yields an empty worklist."""
        write_files(tmp_path, ["a/kustomization.yaml"])

        def provider(repo_root: Path) -> list[str]:
            raise GitDiffError("no HEAD~1")

        with caplog.at_level("WARNING", logger="kustroots"):
            res = RootResolver(ResolverConfig(repo_root=tmp_path), changed_files_provider=provider).resolve()

        assert res.roots == []
        assert res.changed_files == []
        assert "no HEAD~1" in caplog.text

    def test_working_dir_roots_match_repo_relative_changes(self, tmp_path: Path):
        """Test that working-directory roots match repo-relative changed paths."""
        write_files(tmp_path, ["deploy/apps/a/kustomization.yaml", "deploy/apps/b/kustomization.yaml"])
        cfg = ResolverConfig(repo_root=tmp_path, working_dir="deploy")

        res = resolve_roots(cfg, ["deploy/apps/b/svc.yaml", "apps/a/unrelated.yaml"])

        assert res.roots == ["deploy/apps/b"]

    def test_to_dict_serializes_empty_list(self, tmp_path: Path):
        """Test that an empty selection serializes as a list, not None."""
        write_files(tmp_path, ["a/kustomization.yaml"])
        res = resolve_roots(ResolverConfig(repo_root=tmp_path), [])

        d = res.to_dict()

        assert d["roots"] == []
        assert d["mode"] == "changed"
        assert d["all_roots"] == ["a"]


@requires_git
class TestAgainstGitRepository:
    """Change-filtered mode backed by a real git history."""

    def test_only_root_changed_in_last_commit(self, git_repo: Path):
        """Test that only the root touched by the last commit is selected."""
        write_files(git_repo, ["base/kustomization.yaml"])
        commit_all(git_repo, "initial commit")
        write_files(git_repo, ["overlay/kustomization.yaml"])
        commit_all(git_repo, "add overlay")

        res = resolve_roots(ResolverConfig(repo_root=git_repo))

        assert res.roots == ["overlay"]
        assert res.all_roots == ["base", "overlay"]

    def test_repo_root_below_git_top_level(self, git_repo: Path):
        """Test that a repo_root inside the git checkout still matches changed files."""
        write_files(git_repo, ["deploy/apps/a/kustomization.yaml", "deploy/apps/b/kustomization.yaml"])
        commit_all(git_repo, "base")
        write_files(git_repo, ["deploy/apps/a/svc.yaml", "docs/readme.md"], "x")
        commit_all(git_repo, "change")

        res = resolve_roots(ResolverConfig(repo_root=git_repo / "deploy"))

        assert res.all_roots == ["apps/a", "apps/b"]
        assert res.roots == ["apps/a"]
        assert res.changed_files == ["apps/a/svc.yaml"]

    def test_quoted_file_name_still_selects_root(self, git_repo: Path):
        """Test that a changed file with a double quote in its name selects its root."""
        write_files(git_repo, ["apps/a/kustomization.yaml", "apps/b/kustomization.yaml"])
        commit_all(git_repo, "base")
        write_files(git_repo, ['apps/a/we"ird.yaml'], "x")
        commit_all(git_repo, "odd name")

        assert resolve_roots(ResolverConfig(repo_root=git_repo)).roots == ["apps/a"]
