"""Logging setup for the gateway's diagnostic log sink."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from sms_gateway.core.settings import Settings

LOG_FILE_NAME = "smsserver.log"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
PACKAGE_LOGGER = "sms_gateway"


def log_file_path(log_path: str) -> Path:
    """Return the log file location for a configured log directory."""
    return Path(log_path) / LOG_FILE_NAME


def configure_logging(config: Settings) -> logging.Logger:
    """Attach the gateway's handler to the package logger.

    Logs are appended to `<log_path>/smsserver.log` when a log path is
    configured and written to stderr otherwise. Calling this again replaces
    the handler installed by the previous call.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if getattr(handler, "_sms_gateway_handler", False):
            logger.removeHandler(handler)
            handler.close()

    handler: logging.Handler
    if config.log_path:
        path = log_file_path(config.log_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._sms_gateway_handler = True  # type: ignore[attr-defined]

    logger.addHandler(handler)
    logger.setLevel(config.log_level.upper())
    return logger
