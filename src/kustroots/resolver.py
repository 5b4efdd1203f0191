"""Root resolution pipeline: scan, dedupe, map to repo root, filter by change list."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

from .config import ResolverConfig
from .gitdiff import GitDiffError, get_changed_files_last_commit
from .models import Resolution, ResolveMode
from .paths import CURRENT_DIR, is_within, normalize_dir, relpath
from .roots import dedupe_top_level_dirs, map_roots_to_repo_root_relative, select_roots_for_changed_files
from .scanner import DEFAULT_EXCLUDES, find_kustomization_files_with_exclusions, kustomization_dirs_from_files

logger = logging.getLogger(__name__)

ChangedFilesProvider = Callable[[Path], list[str]]


def changed_below_repo_root(repo_root: Path) -> list[str]:
    """Files changed by the last commit, relative to `repo_root` and limited to it."""
    return get_changed_files_last_commit(repo_root, relative=True)


@dataclass
class RootResolver:
    """Turns a repository checkout into the list of roots to build."""

    cfg: ResolverConfig
    changed_files_provider: ChangedFilesProvider = changed_below_repo_root

    def mode(self) -> ResolveMode:
        if self.cfg.build_all:
            return ResolveMode.ALL
        if self.cfg.changed_only:
            return ResolveMode.CHANGED
        return ResolveMode.ALL

    def working_dir(self) -> str:
        """The working directory relative to the repository root."""
        wd = Path(self.cfg.working_dir)
        if not wd.is_absolute():
            return normalize_dir(self.cfg.working_dir)
        if not is_within(self.cfg.repo_root, wd):
            raise ValueError(f"Working directory {wd} is outside the repository root {self.cfg.repo_root}")
        return normalize_dir(relpath(self.cfg.repo_root, wd))

    def exclusions(self) -> list[str]:
        """Directories skipped while scanning, relative to the scan root."""
        excluded = list(DEFAULT_EXCLUDES)

        out = Path(self.cfg.output_dir)
        if not out.is_absolute():
            out = self.cfg.repo_root / out
        scan_root = self.cfg.scan_root
        if is_within(scan_root, out):
            rel = relpath(scan_root, out)
            if normalize_dir(rel) != CURRENT_DIR:
                excluded.append(rel)
        else:
            logger.debug(f"Output directory {out} is outside {scan_root}; not excluded")

        excluded.extend(self.cfg.exclude)
        return excluded

    def discover(self) -> list[str]:
        """Every root below the working directory, repo-root relative."""
        scan_root = self.cfg.scan_root
        files = find_kustomization_files_with_exclusions(scan_root, self.exclusions())
        dirs = kustomization_dirs_from_files(files, scan_root)

        if self.cfg.top_level_only:
            # The scan root owns the whole tree when it is a root itself.
            dirs = [CURRENT_DIR] if CURRENT_DIR in dirs else dedupe_top_level_dirs(dirs)

        roots = map_roots_to_repo_root_relative(self.working_dir(), dirs)
        logger.info(f"Discovered {len(roots)} kustomization roots under {scan_root}")
        return roots

    def changed_files(self) -> list[str]:
        try:
            return self.changed_files_provider(self.cfg.repo_root)
        except GitDiffError as e:
            logger.warning(f"Could not list changed files, nothing will be selected: {e}")
            return []

    def resolve(self, changed_files: Sequence[str] | None = None) -> Resolution:
        mode = self.mode()
        all_roots = self.discover()

        if mode is ResolveMode.ALL:
            return Resolution(mode=mode, all_roots=all_roots, roots=list(all_roots))

        changed = list(changed_files) if changed_files is not None else self.changed_files()
        selected = select_roots_for_changed_files(all_roots, changed)
        logger.info(f"{len(selected)} of {len(all_roots)} roots affected by {len(changed)} changed files")
        for root in selected:
            logger.debug(f"Selected root: {root}")
        return Resolution(mode=mode, all_roots=all_roots, roots=selected, changed_files=changed)


def resolve_roots(cfg: ResolverConfig, changed_files: Sequence[str] | None = None) -> Resolution:
    return RootResolver(cfg).resolve(changed_files)
