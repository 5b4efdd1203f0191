from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable

logger = logging.getLogger(__name__)

# Canonical form of "the base directory itself".
CURRENT_DIR = "."


def _settle(step: Callable[[str], str], value: str) -> str:
    # Repeat until stable so inputs like "././a" or "/./a" fully collapse.
    while True:
        nxt = step(value)
        if nxt == value:
            return value
        value = nxt


def _dir_step(path: str) -> str:
    d = path.strip()
    if not d:
        return CURRENT_DIR
    d = d.replace("\\", "/")
    d = d.removeprefix("./")
    d = d.strip("/")
    if not d or d == CURRENT_DIR:
        return CURRENT_DIR
    return d


def _path_step(path: str) -> str:
    p = path.strip()
    p = p.replace("\\", "/")
    p = p.removeprefix("./")
    return p.strip("/")


class NormalizedRoot(str):
    """A directory path in canonical, repo-relative, slash-separated form.

    The empty path and "." both become CURRENT_DIR.
    """

    __slots__ = ()

    def __new__(cls, path: str = "") -> "NormalizedRoot":
        if isinstance(path, NormalizedRoot):
            return path
        return super().__new__(cls, _settle(_dir_step, str(path)))

    @property
    def is_current(self) -> bool:
        return self == CURRENT_DIR

    def __repr__(self) -> str:
        return f"NormalizedRoot({str.__repr__(self)})"


class NormalizedFilePath(str):
    """A file path in canonical, repo-relative, slash-separated form.

    Unlike NormalizedRoot, an empty path stays empty.
    """

    __slots__ = ()

    def __new__(cls, path: str = "") -> "NormalizedFilePath":
        if isinstance(path, NormalizedFilePath):
            return path
        return super().__new__(cls, _settle(_path_step, str(path)))

    def __repr__(self) -> str:
        return f"NormalizedFilePath({str.__repr__(self)})"


def normalize_dir(path: str) -> NormalizedRoot:
    return NormalizedRoot(path)


def normalize_path(path: str) -> NormalizedFilePath:
    return NormalizedFilePath(path)


def rel_dir(base: str | Path, directory: str | Path) -> str:
    """Return `directory` relative to `base`, slash-separated and trimmed.

    The base directory itself is returned as "".
    """
    try:
        rel = os.path.relpath(directory, base)
    except ValueError:
        # Different drives on Windows
        rel = os.fspath(directory)
    rel = rel.replace(os.sep, "/").replace("\\", "/")
    rel = rel.removeprefix("./").strip("/")
    if rel == CURRENT_DIR:
        rel = ""
    return rel


def relpath(root: Path, path: Path) -> str:
    return str(path.resolve().relative_to(root.resolve())).replace("\\", "/")


def is_within(root: Path, path: Path) -> bool:
    try:
        path.resolve().relative_to(root.resolve())
        return True
    except (ValueError, OSError):
        logger.debug(f"Path {path} is not within {root}")
        return False
