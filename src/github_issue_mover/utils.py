"""
Utility functions for the GitHub issue migration tool.
"""

from __future__ import annotations

import logging
import sys


def setup_logging(*, verbose: bool = False, log_file: str | None = "migration.log") -> None:
    """Configure logging for the migration process.

    Log records go to stdout, the stream progress is printed to, and are
    appended to ``log_file``.
    """
    level = logging.DEBUG if verbose else logging.INFO
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="a"))
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=handlers,
        force=True,
    )
    # PyGithub logs every request at DEBUG
    logging.getLogger("github").setLevel(logging.DEBUG if verbose else logging.WARNING)
