from __future__ import annotations

import logging
import os
import uuid
from pathlib import Path

logger = logging.getLogger(__name__)


def format_output(name: str, value: str, delimiter: str | None = None) -> str:
    """Render one output in the heredoc form accepted by $GITHUB_OUTPUT."""
    delimiter = delimiter or f"GH_OUTPUT_{uuid.uuid4().hex}"
    if delimiter in value:
        raise ValueError(f"Output delimiter {delimiter} occurs in the value of {name}")
    return f"{name}<<{delimiter}\n{value}\n{delimiter}\n"


def set_output(name: str, value: str, path: str | Path | None = None) -> bool:
    """Append an output to the GitHub Actions output file.

    Returns False without writing anything when no output file is configured.
    """
    target = path or os.environ.get("GITHUB_OUTPUT")
    if not target:
        logger.debug(f"No output file configured; skipping output {name}")
        return False
    with open(target, "a", encoding="utf-8") as fh:
        fh.write(format_output(name, value))
    return True
