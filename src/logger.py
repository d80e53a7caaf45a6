"""Logging setup shared by the engine and scripts."""

from __future__ import annotations

import logging
import os
import sys


def setup_logger(name: str) -> logging.Logger:
    """Return a logger with the ladder's console formatting attached once."""
    logger = logging.getLogger(name)

    if logger.handlers:
        return logger

    debug = os.getenv("LADDER_DEBUG", "").strip().lower() in {"1", "true", "yes"}
    log_level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(log_level)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger
