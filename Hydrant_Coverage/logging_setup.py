"""
Logging setup for the coverage engine.

All module loggers live under the "HydrantCoverage" hierarchy
(e.g. "HydrantCoverage.Engine", "HydrantCoverage.Parallel.Worker"),
so configuring that one logger covers the whole package.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

ROOT_LOGGER_NAME = "HydrantCoverage"


def setup_logging(
    level: Union[str, int] = "INFO", log_file: Optional[Union[str, Path]] = None
) -> logging.Logger:
    """Configure console (and optional file) handlers on the package logger.

    Calling it again replaces the handlers, so the worker process can call
    it on startup without duplicating output.

    Args:
        level: Level name ("DEBUG", "INFO", ...) or logging constant
        log_file: Optional path for a UTF-8 log file (parent dirs created)

    Returns:
        The configured "HydrantCoverage" logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()

    # File handler
    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_path, encoding="utf-8")
        fh.setLevel(level)
        fh.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(fh)

    # Console handler
    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(level)
    ch.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(ch)

    return logger
