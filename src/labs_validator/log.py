"""Logging helpers for the labs validator."""

import logging
import os

DEFAULT_LOG_LEVEL = os.getenv("LABS_LOG_LEVEL", "WARNING").upper()

LOG_FORMAT = "labs-validator: %(levelname)s %(name)s: %(message)s"


def setup_logging(level=None):
    """Configure standard logging for CLI use. Only the CLI calls this."""
    effective_level = (level or DEFAULT_LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, effective_level, logging.WARNING),
        format=LOG_FORMAT,
    )


__all__ = ["setup_logging"]
