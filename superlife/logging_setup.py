"""Logging configuration for scripts and interactive use."""

import logging
import os
from typing import Optional, Union

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def configure_logging(level: Optional[Union[int, str]] = None) -> None:
    """Configure root logging.

    Args:
        level: Log level name or number; falls back to SUPERLIFE_LOG_LEVEL,
            then INFO
    """
    if level is None:
        level = os.getenv('SUPERLIFE_LOG_LEVEL', 'INFO')
    if isinstance(level, str):
        name = level.upper()
        level = logging.getLevelName(name)
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {name}")
    logging.basicConfig(level=level, format=LOG_FORMAT)
