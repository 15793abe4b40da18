"""
Logging configuration for CallFlow

All application loggers live under the ``callflow`` namespace. Provider
client libraries log every HTTP exchange at INFO; they are held at WARNING
so call lifecycle events stay readable.
"""

import logging
import sys
from typing import Optional

APP_LOGGER = "callflow"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

NOISY_LOGGERS = ("httpx", "openai", "twilio.http_client")


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Install a single stdout handler and set levels

    Args:
        level: Log level name; defaults to LOG_LEVEL from settings

    Returns:
        The ``callflow`` application logger
    """
    from .config import settings

    log_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(log_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    app_logger = logging.getLogger(APP_LOGGER)
    app_logger.setLevel(log_level)
    return app_logger


def get_logger(name: str) -> logging.Logger:
    """Logger for a module, placed under the ``callflow`` namespace"""
    if name == APP_LOGGER or name.startswith(f"{APP_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{APP_LOGGER}.{name}")
