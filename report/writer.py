"""
Report writer: persist a ranked leaderboard to disk.
"""
import os
import logging
from typing import List, Optional

from errors import EmptyResultError, PersistenceError
from normalize.models import AggregatedContributor
from report.renderer import render

logger = logging.getLogger(__name__)

DEFAULT_OUT_FILE = "gh-contributors-leaderboard.csv"

WRITE_OVERWRITE = "overwrite"
WRITE_APPEND = "append"
WRITE_MODES = (WRITE_OVERWRITE, WRITE_APPEND)


def _has_content(path: str) -> bool:
    return os.path.exists(path) and os.path.getsize(path) > 0


def write_leaderboard(
    contributors: List[AggregatedContributor],
    path: str = DEFAULT_OUT_FILE,
    mode: str = WRITE_OVERWRITE,
    fmt: str = "csv",
    owner: Optional[str] = None,
    generated_at: Optional[str] = None,
) -> str:
    """Write the leaderboard and return the path written.

    overwrite replaces the file each run. append (CSV only) adds rows after any existing content and
    writes the header only when the file is new or empty.
    Raises EmptyResultError for an empty leaderboard and PersistenceError when the file cannot be written.
    """
    if not contributors:
        raise EmptyResultError("Refusing to write an empty leaderboard")
    if mode not in WRITE_MODES:
        raise ValueError(f"Unknown write mode '{mode}'; expected one of {', '.join(WRITE_MODES)}")
    if mode == WRITE_APPEND and fmt != "csv":
        raise ValueError("append mode is only supported for csv output")

    try:
        append = mode == WRITE_APPEND and _has_content(path)
        content = render(contributors, fmt=fmt, owner=owner, generated_at=generated_at, header=not append)
        out_dir = os.path.dirname(path)
        if out_dir:
            os.makedirs(out_dir, exist_ok=True)
        # newline='' keeps the csv module's line endings as written
        with open(path, "a" if append else "w", encoding="utf-8", newline="") as fh:
            fh.write(content)
    except OSError as exc:
        raise PersistenceError(f"Could not write leaderboard to {path}: {exc}", path=path) from exc

    logger.info("Wrote %d contributors to %s (%s)", len(contributors), path, "appended" if append else "written")
    return path
