"""Shared logging utilities for the Roster Dashboard application."""
from __future__ import annotations

import logging

LOGGER_NAME = "rosterdashboard"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def get_logger() -> logging.Logger:
    """Return the shared application logger instance."""
    return logging.getLogger(LOGGER_NAME)


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT)
