"""Package logger for the leave roadmap engine."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional, Union

LOGGER_NAME = "leave_roadmap"

logger = logging.getLogger(LOGGER_NAME)
logger.addHandler(logging.NullHandler())


def get_logger(name: str) -> logging.Logger:
    """Return a child of the package logger for a module."""

    return logger.getChild(name.rsplit(".", 1)[-1])


def configure_logging(
    level: Union[int, str] = logging.INFO,
    log_path: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    """Attach stdout and optional file handlers to the package logger."""

    logger.setLevel(level)

    # Prevent duplicate handlers if configured more than once
    if not any(getattr(handler, "_leave_roadmap", False) for handler in logger.handlers):
        stream_handler = logging.StreamHandler(sys.stdout)
        stream_handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
        stream_handler._leave_roadmap = True  # type: ignore[attr-defined]
        logger.addHandler(stream_handler)

        if log_path is not None:
            path = Path(log_path)
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(path, encoding="utf-8")
            file_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
                    datefmt="%Y-%m-%d %H:%M:%S",
                )
            )
            file_handler._leave_roadmap = True  # type: ignore[attr-defined]
            logger.addHandler(file_handler)
    return logger


__all__ = ["logger", "get_logger", "configure_logging", "LOGGER_NAME"]
