"""Discovery of kustomization descriptor files below a directory."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable

from .paths import CURRENT_DIR, NormalizedRoot, normalize_dir, rel_dir

logger = logging.getLogger(__name__)

DESCRIPTOR_NAMES = frozenset({"kustomization.yaml", "kustomization.yml"})

# Only this name is matched by basename anywhere in the tree.
VCS_DIR = ".git"
DEFAULT_EXCLUDES: tuple[str, ...] = (VCS_DIR,)

YAML_SUFFIXES = (".yaml", ".yml")
ERROR_ARTIFACT_MARKER = "_kustomization-err"


class ScanError(RuntimeError):
    pass


def _split_exclusions(excluded_dirs: Iterable[str]) -> tuple[set[str], set[str]]:
    """Split exclusion rules into basename rules and full relative-path rules."""
    by_base: set[str] = set()
    by_rel: set[str] = set()
    for e in excluded_dirs:
        e = e.strip()
        if not e:
            continue
        clean = os.path.normpath(e)
        if os.path.basename(clean) == VCS_DIR:
            by_base.add(VCS_DIR)
        rel = clean.replace("\\", "/").removeprefix("./").strip("/")
        if rel and rel != CURRENT_DIR:
            by_rel.add(rel)
    return by_base, by_rel


def _walk(root: Path, prune=None):
    """os.walk that tolerates unreadable entries but not an unreadable root."""
    top = os.fspath(root)

    def on_error(err: OSError) -> None:
        if err.filename == top:
            raise ScanError(f"Cannot scan {top}: {err.strerror or err}") from err
        logger.debug(f"Skipping unreadable entry {err.filename}: {err}")

    for dirpath, dirnames, filenames in os.walk(top, onerror=on_error):
        if prune is not None:
            dirnames[:] = [d for d in dirnames if not prune(dirpath, d)]
        yield dirpath, dirnames, filenames


def find_kustomization_files(root: str | Path) -> list[Path]:
    """Find descriptor files below `root`, skipping only `.git` directories."""
    return find_kustomization_files_with_exclusions(root, DEFAULT_EXCLUDES)


def find_kustomization_files_with_exclusions(root: str | Path, excluded_dirs: Iterable[str]) -> list[Path]:
    """Find descriptor files below `root`, skipping excluded subtrees.

    `.git` is skipped wherever it appears. Every other rule is matched against the
    directory path relative to `root`, so excluding "kustomize-builds" skips
    `<root>/kustomize-builds` but not `<root>/apps/kustomize-builds`.

    Returns the full paths of the files found, sorted lexically.
    """
    root = Path(root)
    by_base, by_rel = _split_exclusions(excluded_dirs)

    def prune(dirpath: str, name: str) -> bool:
        if name in by_base:
            return True
        rel = rel_dir(root, os.path.join(dirpath, name))
        return bool(rel) and rel in by_rel

    files: list[str] = []
    for dirpath, _dirnames, filenames in _walk(root, prune):
        for name in filenames:
            if name in DESCRIPTOR_NAMES:
                files.append(os.path.join(dirpath, name))

    files.sort()
    logger.debug(f"Found {len(files)} kustomization files under {root}")
    return [Path(f) for f in files]


def kustomization_dirs_from_files(files: Iterable[str | Path], base: str | Path) -> list[NormalizedRoot]:
    """Convert descriptor file paths to unique, sorted directories relative to `base`.

    The base directory itself is reported as CURRENT_DIR.
    """
    dirs = {normalize_dir(rel_dir(base, os.path.dirname(os.fspath(f)))) for f in files}
    return sorted(dirs, key=lambda d: "" if d == CURRENT_DIR else d)


def find_root_kustomizations(root: str | Path) -> list[NormalizedRoot]:
    return kustomization_dirs_from_files(find_kustomization_files(root), root)


def is_error_artifact(name: str) -> bool:
    stem, ext = os.path.splitext(name)
    return ext in YAML_SUFFIXES and stem.endswith(ERROR_ARTIFACT_MARKER)


def count_yaml_files(directory: str | Path) -> int:
    """Count YAML files anywhere below `directory`, ignoring build error artifacts."""
    count = 0
    for _dirpath, _dirnames, filenames in _walk(Path(directory)):
        for name in filenames:
            if name.endswith(YAML_SUFFIXES) and not is_error_artifact(name):
                count += 1
    return count
