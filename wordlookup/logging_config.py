"""Logging setup shared by the API server and the CLI."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import TextIO

from wordlookup.config import LogLevel, Settings, settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FORMAT_DETAILED = (
    "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"
)

# Request-level chatter from the HTTP client and the SQLite driver
NOISY_LOGGERS = ("httpx", "httpcore", "aiosqlite")


def _file_handler(config: Settings) -> RotatingFileHandler:
    log_path = config.resolved_log_file_path
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=log_path,
        maxBytes=config.log_file_max_bytes,
        backupCount=config.log_file_backup_count,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT_DETAILED))
    return handler


def setup_logging(
    config: Settings | None = None,
    level: LogLevel | None = None,
    stream: TextIO | None = None,
) -> None:
    """Replace the root handlers with a stream handler and an optional rotating file.

    The server logs to stdout at LOG_LEVEL. CLI commands pass stderr and a
    quieter level so log lines stay out of rich output.
    """
    config = config or settings
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level or config.log_level))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    stream_handler = logging.StreamHandler(stream or sys.stdout)
    stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(stream_handler)

    if config.log_file_enabled:
        root_logger.addHandler(_file_handler(config))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
