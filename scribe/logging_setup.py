"""Logging configuration for scribe.

- File: full logs, timestamped, at the configured level
- Console: only with --verbose, to stderr so it doesn't mix with status lines
"""

import logging
import sys
from pathlib import Path
from typing import Optional

FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
CONSOLE_FORMAT = "[%(levelname)s] %(name)s: %(message)s"


def setup_logging(
    log_level: str, log_file: Optional[Path] = None, verbose: bool = False
) -> None:
    """Configure the root logger.

    Args:
        log_level: Level name for the log file (DEBUG, INFO, ...).
        log_file: Where to write the log, None for no file.
        verbose: Also log everything to stderr at DEBUG level.
    """
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()

    level = logging.getLevelName(log_level.upper())
    root.setLevel(logging.DEBUG if verbose else level)

    if log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
        except OSError as e:
            print(f"Warning: Could not open log file {log_file}: {e}", file=sys.stderr)
        else:
            file_handler.setLevel(level)
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
            root.addHandler(file_handler)

    if verbose:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        root.addHandler(console_handler)

    if not root.handlers:
        root.addHandler(logging.NullHandler())
