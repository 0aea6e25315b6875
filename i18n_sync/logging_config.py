"""Handlers for the ``i18n_sync`` package logger."""
import logging
import os
import sys
from typing import List, Optional

from tqdm import tqdm

LOGGER_NAME = "i18n_sync"
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


class TqdmLoggingHandler(logging.StreamHandler):
    """Console handler that prints through ``tqdm.write`` so an open progress bar is redrawn below each record."""

    def __init__(self, stream=None):
        super().__init__(stream or sys.stderr)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            tqdm.write(self.format(record), file=self.stream)
        except RecursionError:
            raise
        except Exception:
            self.handleError(record)


def resolve_level(log_level_str: str) -> int:
    """Map a level name such as ``'debug'`` to its number; unknown names mean INFO."""
    level = logging.getLevelName(log_level_str.upper())
    return level if isinstance(level, int) else logging.INFO


def _open_log_file(log_file_path: str) -> logging.FileHandler:
    os.makedirs(os.path.dirname(os.path.abspath(log_file_path)), exist_ok=True)
    return logging.FileHandler(log_file_path, encoding='utf-8')


def setup_logger(log_level_str: str, log_file_path: Optional[str], log_to_console: bool) -> logging.Logger:
    """
    Configure the package logger used by every i18n_sync module.

    Module loggers (``logging.getLogger(__name__)``) propagate into this one,
    which does not propagate further. Calling it again replaces and closes
    the handlers of the previous call.

    Args:
        log_level_str: Level name, e.g. 'INFO' or 'DEBUG'.
        log_file_path: Log file location. Falsy disables file logging.
        log_to_console: Whether to add the tqdm-aware console handler.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(resolve_level(log_level_str))
    logger.propagate = False

    for old_handler in list(logger.handlers):
        logger.removeHandler(old_handler)
        old_handler.close()

    handlers: List[logging.Handler] = []
    if log_file_path:
        handlers.append(_open_log_file(log_file_path))
    if log_to_console:
        handlers.append(TqdmLoggingHandler())

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
