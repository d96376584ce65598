"""
loguru sinks for tailmesh runs.

The console sink goes to stderr with a short ``HH:mm:ss | LEVEL | message``
line. Runs that print JSON on stdout pass ``console=False`` so nothing but the
payload reaches the terminal; the file sinks in the output directory are kept
either way.
"""

import sys
from pathlib import Path

from loguru import logger

CONSOLE_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"

# (file name, minimum level, retention)
LOG_FILES = (
    ("tailmesh.log", "DEBUG", "30 days"),
    ("tailmesh_errors.log", "ERROR", "90 days"),
)


def setup_logging(output_dir: Path, verbose: bool = False, console: bool = True):
    """
    Route loguru to stderr and to the log files in ``output_dir``.

    Args:
        output_dir: Directory holding tailmesh.log and tailmesh_errors.log
        verbose: Show DEBUG lines (executed commands) on the console
        console: Attach the stderr sink at all

    Returns:
        The configured loguru logger
    """
    logger.remove()

    if console:
        logger.add(sys.stderr, level="DEBUG" if verbose else "INFO", format=CONSOLE_FORMAT)

    for name, level, retention in LOG_FILES:
        logger.add(output_dir / name, rotation="10 MB", retention=retention, level=level, format=FILE_FORMAT)

    logger.debug(f"tailmesh logging to {output_dir}")
    return logger
