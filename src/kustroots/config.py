from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import os
import re
import tomllib
from typing import Any, Mapping

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off")


def _expand(p: str) -> str:
    return os.path.expandvars(os.path.expanduser(p))


def _parse_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    v = str(value).strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise ValueError(f"Invalid boolean for {name}: {value!r}. Use true or false.")


def _parse_log_level(value: str) -> str:
    level = str(value).strip().upper()
    if level not in VALID_LOG_LEVELS:
        raise ValueError(f"Invalid log level: {value}. Must be one of {VALID_LOG_LEVELS}.")
    return level


def _split_list(value: str) -> list[str]:
    return [item.strip() for item in re.split(r"[,\n]", value) if item.strip()]


def _read_input(environ: Mapping[str, str], name: str) -> str | None:
    """Look up an action input by its hyphenated name.

    Tries INPUT_<NAME-WITH-HYPHENS>, INPUT_<NAME_WITH_UNDERSCORES>, then the bare
    legacy <NAME_WITH_UNDERSCORES> used for local runs.
    """
    upper = name.upper()
    underscored = upper.replace("-", "_")
    for key in (f"INPUT_{upper}", f"INPUT_{underscored}", underscored):
        value = environ.get(key)
        if value is not None and value.strip() != "":
            return value.strip()
    return None


@dataclass(frozen=True)
class ResolverConfig:
    """Settings for one root resolution run.

    working_dir and output_dir are interpreted relative to repo_root unless absolute.
    """

    repo_root: Path = field(default_factory=Path.cwd)
    working_dir: str = "."
    output_dir: str = "kustomize-builds"

    build_all: bool = False
    changed_only: bool = True
    top_level_only: bool = False
    exclude: list[str] = field(default_factory=list)

    log_level: str = "INFO"

    def __post_init__(self):
        """Convert repo_root to a Path and expand ~ and environment variables."""
        if isinstance(self.repo_root, str):
            object.__setattr__(self, 'repo_root', Path(_expand(self.repo_root)))

    @property
    def scan_root(self) -> Path:
        return self.repo_root / self.working_dir

    @staticmethod
    def from_toml(path: str | Path) -> "ResolverConfig":
        data = tomllib.loads(Path(path).read_text(encoding="utf-8"))
        res = data.get("resolver", {})
        log = data.get("logging", {})

        repo_root = Path(_expand(res.get("repo_root", "."))).resolve()

        exclude = res.get("exclude", [])
        if isinstance(exclude, str):
            exclude = _split_list(exclude)
        if not isinstance(exclude, list) or not all(isinstance(e, str) for e in exclude):
            raise ValueError(f"Invalid exclude: {exclude!r}. Must be a list of directory paths.")

        return ResolverConfig(
            repo_root=repo_root,
            working_dir=_expand(str(res.get("working_dir", "."))),
            output_dir=_expand(str(res.get("output_dir", "kustomize-builds"))),
            build_all=_parse_bool("build_all", res.get("build_all", False)),
            changed_only=_parse_bool("changed_only", res.get("changed_only", True)),
            top_level_only=_parse_bool("top_level_only", res.get("top_level_only", False)),
            exclude=list(exclude),
            log_level=_parse_log_level(log.get("level", "INFO")),
        )

    @staticmethod
    def from_env(environ: Mapping[str, str] | None = None) -> "ResolverConfig":
        env = os.environ if environ is None else environ

        def get(name: str, default: str) -> str:
            value = _read_input(env, name)
            return default if value is None else value

        workspace = env.get("GITHUB_WORKSPACE")
        repo_root = Path(workspace) if workspace else Path.cwd()

        return ResolverConfig(
            repo_root=repo_root,
            working_dir=get("working-directory", "."),
            output_dir=get("output-dir", "kustomize-builds"),
            build_all=_parse_bool("build-all", get("build-all", "false")),
            changed_only=_parse_bool("changed-only", get("changed-only", "true")),
            top_level_only=_parse_bool("top-level-only", get("top-level-only", "false")),
            exclude=_split_list(get("exclude", "")),
            log_level=_parse_log_level(get("log-level", "INFO")),
        )


def load_config(path: str | Path | None = None) -> ResolverConfig:
    """Load configuration from a TOML file, or from the environment when no path is given."""
    if path is None:
        return ResolverConfig.from_env()
    return ResolverConfig.from_toml(path)
