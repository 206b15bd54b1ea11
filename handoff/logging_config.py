"""Unified logging configuration for the handoff pipeline."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

# Log directory: configurable via LOG_DIR env var
LOG_DIR = Path(os.getenv("LOG_DIR", str(Path.cwd() / "logs")))

# Prevent duplicate handlers
_configured_loggers: set[str] = set()


def setup_logger(name: str, filename: Optional[str] = None) -> logging.Logger:
    """Setup a logger with a console handler and an optional file handler.

    Args:
        name: Logger name (e.g., 'handoff.pipeline', 'handoff.api')
        filename: Log file name under LOG_DIR (e.g., 'pipeline.log').
            When omitted only the console handler is installed.

    Returns:
        Configured logger instance
    """
    if name in _configured_loggers:
        return logging.getLogger(name)

    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    logger.propagate = False  # Prevent duplicate logs

    if filename:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(LOG_DIR / filename, encoding="utf-8")
        fh.setLevel(logging.INFO)
        fh.setFormatter(logging.Formatter(
            "%(asctime)s [%(name)s] [%(levelname)s] %(message)s"
        ))
        logger.addHandler(fh)

    sh = logging.StreamHandler()
    sh.setLevel(logging.INFO)
    sh.setFormatter(logging.Formatter(
        "%(asctime)s [%(name)s] %(message)s"
    ))
    logger.addHandler(sh)

    _configured_loggers.add(name)
    return logger


# Pre-configured loggers
def get_pipeline_logger() -> logging.Logger:
    """Logger for the correction pipeline (CLI side)."""
    return setup_logger("handoff", os.getenv("HANDOFF_LOG_FILE") or None)


def get_api_logger() -> logging.Logger:
    """Logger for API requests."""
    return setup_logger("handoff_api", os.getenv("HANDOFF_API_LOG_FILE") or None)
