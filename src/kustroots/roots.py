"""Root set operations: nesting dedupe, repo-root mapping and change selection.

All functions here are pure and total over their string inputs.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from .paths import CURRENT_DIR, NormalizedFilePath, NormalizedRoot, normalize_dir, normalize_path


def dedupe_top_level_dirs(paths: Iterable[str]) -> list[str]:
    """Drop every path that lies below another path in the input.

    Lexical order puts an ancestor before all of its descendants, so one pass over
    the sorted input is enough.
    """
    keep: list[str] = []
    for p in sorted(paths):
        p = p.rstrip("/")
        if any(p == k or p.startswith(k + "/") for k in keep):
            continue
        keep.append(p)
    return keep


def map_roots_to_repo_root_relative(working_dir: str, roots: Iterable[str]) -> list[NormalizedRoot]:
    """Express roots found under `working_dir` relative to the repository root.

    Input order is preserved. A root equal to CURRENT_DIR (or empty) maps to the
    working directory itself.
    """
    wd = normalize_dir(working_dir)
    out: list[NormalizedRoot] = []
    for r in roots:
        root = normalize_dir(r)
        if root.is_current:
            out.append(wd)
        elif wd.is_current:
            out.append(root)
        else:
            out.append(NormalizedRoot(f"{wd}/{root}"))
    return out


def root_prefixes_file(root: str, file: str) -> bool:
    """Whether `file` lies at or below `root`. CURRENT_DIR owns every file."""
    root = normalize_dir(root)
    file = normalize_path(file)

    if root.is_current:
        return True
    if not file or file == CURRENT_DIR:
        return False
    return file == root or file.startswith(root + "/")


def _deepest_root(roots: Sequence[NormalizedRoot], file: NormalizedFilePath) -> NormalizedRoot | None:
    best: NormalizedRoot | None = None
    best_len = -1
    for root in roots:
        if not root_prefixes_file(root, file):
            continue
        length = 0 if root.is_current else len(root)
        if length > best_len:
            best, best_len = root, length
    return best


def select_roots_for_changed_files(roots: Sequence[str], changed_files: Iterable[str]) -> list[NormalizedRoot]:
    """Return the roots that own at least one changed file.

    Each file is attributed only to its deepest owning root. The result keeps the
    order of `roots` and is always a list, empty when nothing matches.
    """
    normalized = [normalize_dir(r) for r in roots]
    changed = [normalize_path(f) for f in changed_files]
    if not normalized or not changed:
        return []

    hit: set[NormalizedRoot] = set()
    for file in changed:
        best = _deepest_root(normalized, file)
        if best is not None:
            hit.add(best)

    out: list[NormalizedRoot] = []
    seen: set[NormalizedRoot] = set()
    for root in normalized:
        if root in hit and root not in seen:
            seen.add(root)
            out.append(root)
    return out
