"""Structured logging utilities."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from training_planner.utils.config import get_settings


PACKAGE_LOGGER = "training_planner"

_LOGGER_INITIALIZED = False


def configure_logging(level: Optional[str] = None) -> None:
    """Configure process-wide logging once.

    uvicorn may install root handlers before this runs, in which case
    `basicConfig` is a no-op; the package logger level is set either way.
    """
    global _LOGGER_INITIALIZED
    if _LOGGER_INITIALIZED:
        return

    settings = get_settings()
    resolved_level = (level or settings.log_level).upper()

    logging.basicConfig(
        level=resolved_level,
        format=settings.log_format,
        stream=sys.stdout,
    )
    logging.getLogger(PACKAGE_LOGGER).setLevel(resolved_level)
    _LOGGER_INITIALIZED = True


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    return logging.getLogger(name)
