from __future__ import annotations

import dataclasses
import json
import logging
import sys
from pathlib import Path

import typer

from .config import ResolverConfig, load_config
from .gitdiff import GitDiffError, get_changed_files_last_commit
from .outputs import set_output
from .resolver import RootResolver
from .scanner import ScanError, count_yaml_files

app = typer.Typer(add_completion=False, no_args_is_help=True)


def _setup_logging(log_level: str, verbose: bool) -> None:
    """Configure the kustroots logger on stderr."""
    level = logging.DEBUG if verbose else getattr(logging, log_level.upper(), logging.INFO)

    fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"

    # stdout carries the JSON result
    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(logging.Formatter(fmt, datefmt))

    logger = logging.getLogger("kustroots")
    logger.setLevel(level)
    for h in list(logger.handlers):
        logger.removeHandler(h)
    logger.addHandler(console)


def _fail(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(code=1)


def _cfg(config: str | None) -> ResolverConfig:
    try:
        return load_config(config)
    except (OSError, ValueError) as e:
        _fail(f"Invalid configuration: {e}")


@app.command()
def init(out: str = typer.Option("kustroots.toml", help="Write example config to this path"),
         working_dir: str = typer.Option(".", help="Directory to scan, relative to the repository root")):
    """Write a starter kustroots.toml."""
    outp = Path(out)
    outp.write_text(f"""[resolver]
repo_root = "."
working_dir = "{working_dir}"
# Build output; excluded from scanning when it lies under working_dir
output_dir = "kustomize-builds"
# build_all wins over changed_only
build_all = false
changed_only = true
# Collapse nested roots into their top-most ancestor
top_level_only = false
# Extra directories to skip, relative to working_dir
exclude = []

[logging]
level = "INFO"
""", encoding="utf-8")
    typer.echo(f"Wrote {outp}")


@app.command()
def roots(
    config: str = typer.Option(None, help="TOML config file (default: read action inputs from the environment)"),
    repo_root: str = typer.Option(None, help="Override repository root"),
    working_dir: str = typer.Option(None, help="Override directory to scan, relative to the repository root"),
    output_dir: str = typer.Option(None, help="Override build output directory"),
    build_all: bool = typer.Option(None, "--all/--changed", help="Build every root, or only roots touched by the last commit"),
    top_level_only: bool = typer.Option(None, help="Drop roots nested inside other roots"),
    github_output: bool = typer.Option(False, help="Also write the roots to $GITHUB_OUTPUT"),
    log_level: str = typer.Option(None, "--log-level", help="Log level: DEBUG, INFO, WARNING, ERROR"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose (DEBUG) logging"),
):
    """Print the kustomization roots to build as a JSON array."""
    cfg = _cfg(config)

    if repo_root is not None:
        cfg = dataclasses.replace(cfg, repo_root=Path(repo_root))
    if working_dir is not None:
        cfg = dataclasses.replace(cfg, working_dir=working_dir)
    if output_dir is not None:
        cfg = dataclasses.replace(cfg, output_dir=output_dir)
    if build_all is not None:
        cfg = dataclasses.replace(cfg, build_all=build_all, changed_only=not build_all)
    if top_level_only is not None:
        cfg = dataclasses.replace(cfg, top_level_only=top_level_only)

    _setup_logging(log_level or cfg.log_level, verbose)

    try:
        resolution = RootResolver(cfg).resolve()
    except (ScanError, ValueError) as e:
        _fail(str(e))

    payload = json.dumps(resolution.roots)
    if github_output:
        set_output("roots", payload)
        set_output("mode", resolution.mode.value)
    typer.echo(payload)


@app.command()
def changed(repo_root: str = typer.Option(".", help="Repository root")):
    """Print the files changed by the last commit as a JSON array."""
    try:
        files = get_changed_files_last_commit(repo_root)
    except GitDiffError as e:
        _fail(str(e))
    typer.echo(json.dumps(files))


@app.command()
def count(directory: str = typer.Argument(..., help="Directory to count YAML files in")):
    """Count YAML files below a directory, ignoring build error artifacts."""
    try:
        n = count_yaml_files(directory)
    except ScanError as e:
        _fail(str(e))
    typer.echo(str(n))


if __name__ == "__main__":
    app()
