from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from .paths import normalize_path

logger = logging.getLogger(__name__)

PREVIOUS_COMMIT = "HEAD~1"


class GitDiffError(RuntimeError):
    pass


def _git(repo_dir: Path, *args: str) -> subprocess.CompletedProcess[str]:
    cmd = ["git", *args]
    try:
        return subprocess.run(
            cmd,
            cwd=str(repo_dir),
            capture_output=True,
            text=True,
            check=False,
        )
    except FileNotFoundError as exc:
        raise GitDiffError("git is not installed or not available in PATH") from exc


def get_changed_files_last_commit(repo_dir: str | Path = ".", relative: bool = False) -> list[str]:
    """List files changed by the last commit.

    Paths are relative to the top of the git repository, or, with `relative`, to
    `repo_dir`; in that case files outside `repo_dir` are left out.

    Added, modified and deleted files are included; for renames both the old and
    the new path are reported.
    """
    repo_dir = Path(repo_dir)

    check = _git(repo_dir, "rev-parse", "--verify", "--quiet", f"{PREVIOUS_COMMIT}^{{commit}}")
    if check.returncode != 0:
        raise GitDiffError(
            f"Cannot compare with {PREVIOUS_COMMIT}: the previous commit is not available. "
            "If this is a shallow checkout, fetch more history (e.g. actions/checkout with fetch-depth: 2)."
        )

    args = ["diff", "-z", "--name-only", "--no-renames"]
    if relative:
        args.append("--relative")
    proc = _git(repo_dir, *args, PREVIOUS_COMMIT, "HEAD")
    if proc.returncode != 0:
        stderr = (proc.stderr or "").strip()
        raise GitDiffError(f"git diff {PREVIOUS_COMMIT} HEAD failed: {stderr or 'unknown error'}")

    # NUL-separated output is never C-quoted
    out: list[str] = []
    seen: set[str] = set()
    for entry in (proc.stdout or "").split("\0"):
        p = normalize_path(entry)
        if p and p not in seen:
            seen.add(p)
            out.append(str(p))

    logger.debug(f"{len(out)} files changed since {PREVIOUS_COMMIT}")
    return out
