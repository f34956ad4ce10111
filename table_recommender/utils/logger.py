"""Process-wide logging setup for the training workflow."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from table_recommender.utils.config import resolve_log_level


_LOGGER_INITIALIZED = False


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging once; later calls are ignored.

    Every module logs through the same pipe-delimited format so stage
    boundaries of a training run read as one timeline on stdout.
    """

    global _LOGGER_INITIALIZED
    if _LOGGER_INITIALIZED:
        return

    resolved_level = (level or resolve_log_level()).upper()

    logging.basicConfig(
        level=resolved_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )
    _LOGGER_INITIALIZED = True


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    return logging.getLogger(name)
