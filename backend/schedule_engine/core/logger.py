"""
Logging setup.

Every module obtains its logger through setup_logger(__name__).
"""

import logging
import sys
from typing import Optional

from schedule_engine.core.config import get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_root_configured = False


def _configure_root(level: str) -> None:
    global _root_configured
    if _root_configured:
        return
    package_logger = logging.getLogger("schedule_engine")
    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(handler)
    package_logger.setLevel(level)
    _root_configured = True


def setup_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Create (or fetch) a named logger under the package logger.

    Args:
        name: Logger name, usually the module's __name__
        level: Optional level override (defaults to settings.LOG_LEVEL)

    Returns:
        logging.Logger: Configured logger
    """
    settings = get_settings()
    _configure_root(settings.LOG_LEVEL.upper())
    logger = logging.getLogger(name)
    if level:
        logger.setLevel(level.upper())
    return logger


logger = setup_logger("schedule_engine")
