from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ResolveMode(str, Enum):
    ALL = "all"
    CHANGED = "changed"


@dataclass(frozen=True)
class Resolution:
    """Outcome of one root resolution.

    all_roots: every discovered root, repo-root relative
    roots: the worklist handed to the build step (a subset of all_roots)
    changed_files: the change list used for selection, None when building all
    """
    mode: ResolveMode
    all_roots: list[str] = field(default_factory=list)
    roots: list[str] = field(default_factory=list)
    changed_files: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode.value,
            "roots": list(self.roots),
            "all_roots": list(self.all_roots),
            "changed_files": None if self.changed_files is None else list(self.changed_files),
        }
