"""
Logging setup for the Organogram Service.

Modules obtain their logger through get_logger(__name__); setup_logging()
is called once from the application lifespan.
"""

import logging
import sys
from typing import Optional

from app.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure the root logger with a single stdout handler.

    Args:
        level: Log level name, defaults to settings.LOG_LEVEL
    """
    level_name = (level or settings.LOG_LEVEL).upper()
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level_name, logging.INFO))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(console_handler)

    # redis-py is chatty about reconnects at DEBUG
    logging.getLogger("redis").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
