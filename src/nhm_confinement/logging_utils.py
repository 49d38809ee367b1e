"""
Root logger setup for the nhm-confinement command.

Modules under nhm_confinement log through `logging.getLogger(__name__)` and
leave handlers alone; `cli.main` is the one caller of setup_logging().
"""

import logging
import sys
from pathlib import Path
from typing import Optional

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Geometry libraries that flood the log at DEBUG
QUIET_LOGGERS = ('fiona', 'pyogrio', 'shapely')


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    verbose: bool = False,
    format_string: Optional[str] = None
) -> None:
    """
    Send pipeline log records to stdout and, optionally, to a file.

    Args:
        level: Root level when `verbose` is off
        log_file: Also append records here; parent folders are created
        verbose: Shorthand for level=DEBUG (per-segment gap-fill detail)
        format_string: Record format, DEFAULT_FORMAT when omitted
    """
    if verbose:
        level = logging.DEBUG

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    # Replaces handlers left by earlier calls
    logging.basicConfig(
        level=level,
        format=format_string or DEFAULT_FORMAT,
        handlers=handlers,
        force=True
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))
