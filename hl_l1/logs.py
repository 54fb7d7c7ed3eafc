"""
Logging setup for scripts and services embedding the client.
The library itself only creates module loggers; handlers are the caller's choice.
"""

import logging
import os
from logging.handlers import TimedRotatingFileHandler
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> None:
    """Configure root logging; with `log_file`, also rotate it daily (keep 7 days)."""
    logging.basicConfig(level=level, format=LOG_FORMAT)

    if not log_file:
        return

    directory = os.path.dirname(log_file)
    if directory:
        os.makedirs(directory, exist_ok=True)

    handler = TimedRotatingFileHandler(
        filename=log_file,
        when="midnight",
        interval=1,
        backupCount=7,
        encoding="utf-8"
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.getLogger().addHandler(handler)

    logging.getLogger(__name__).info("Log rotation configured (daily, keep 7 days)")
