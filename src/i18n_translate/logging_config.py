"""
Logging for translation runs.

Every module logs through a child of the ``i18n_translate`` logger. The log
file gets full records with timestamps and the emitting module; the console
gets short lines written through ``tqdm`` so they land above the per-language
progress bar instead of tearing it.
"""
import logging
import os
import sys
from typing import Optional, TextIO

from tqdm import tqdm

LOGGER_NAME = "i18n_translate"

FILE_LOG_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'
CONSOLE_LOG_FORMAT = '%(levelname)s - %(message)s'


class TqdmLoggingHandler(logging.Handler):
    """Console handler that writes through ``tqdm.write`` to keep the progress bar intact."""

    def __init__(self, stream: Optional[TextIO] = None, level=logging.NOTSET):
        super().__init__(level)
        self.stream = stream

    def emit(self, record):
        try:
            msg = self.format(record)
            # Resolved per record so a replaced sys.stderr is honoured.
            tqdm.write(msg, file=self.stream or sys.stderr)
        except (KeyboardInterrupt, SystemExit):
            raise
        except Exception:
            self.handleError(record)


def resolve_log_level(log_level_str: Optional[str]) -> int:
    """Map a level name such as 'debug' to its value; unknown names give INFO."""
    level = getattr(logging, (log_level_str or '').upper(), None)
    return level if isinstance(level, int) else logging.INFO


def _close_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def _file_handler(log_file_path: str) -> logging.Handler:
    log_dir = os.path.dirname(log_file_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    handler = logging.FileHandler(log_file_path, encoding='utf-8')
    handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))
    return handler


def _console_handler() -> logging.Handler:
    handler = TqdmLoggingHandler()
    handler.setFormatter(logging.Formatter(CONSOLE_LOG_FORMAT))
    return handler


def setup_logger(log_level_str: str, log_file_path: Optional[str], log_to_console: bool) -> logging.Logger:
    """
    Configure the package logger for one run.

    Calling it again replaces the handlers of the previous call, so a CLI run
    inside a long-lived process never logs twice.

    Args:
        log_level_str: Level name (e.g. 'INFO', 'debug').
        log_file_path: Log file; empty or None disables file logging.
        log_to_console: Whether to log to stderr above the progress bar.

    Returns:
        The ``i18n_translate`` logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(resolve_log_level(log_level_str))
    _close_handlers(logger)
    # Records stay out of the root logger; the handlers below are the only output.
    logger.propagate = False

    if log_file_path:
        logger.addHandler(_file_handler(log_file_path))
    if log_to_console:
        logger.addHandler(_console_handler())

    return logger
