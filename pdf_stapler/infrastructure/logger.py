"""Central logging configuration for the stapler."""
from __future__ import annotations

import logging

from pdf_stapler.infrastructure.config import AppConfig

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-level logger with default configuration applied."""
    logger = logging.getLogger(name)
    if not logging.getLogger().handlers:
        configure_logging(AppConfig().log_level)
    return logger


def configure_logging(level: str) -> None:
    numeric = getattr(logging, level, logging.WARNING)
    logging.basicConfig(level=numeric, format=_FORMAT)
    logging.getLogger().setLevel(numeric)
