"""Centralized logging configuration for autoretry.

The library itself only creates module loggers; applications (and the
developer CLI) call `setup_logging` once at startup.
"""

import logging
import sys
from typing import List, Optional, Tuple, Union

DEFAULT_LOG_LEVEL = logging.INFO
DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def parse_log_level(level: Union[int, str]) -> int:
    """Turns 'debug', 'WARNING' or logging.DEBUG into a numeric level.

    Names that are not registered logging levels fall back to
    DEFAULT_LOG_LEVEL.
    """
    if isinstance(level, int) and not isinstance(level, bool):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    # getLevelName answers unknown names with the string "Level <name>"
    if isinstance(resolved, int):
        return resolved
    return DEFAULT_LOG_LEVEL


def _build_handlers(log_file: Optional[str]) -> Tuple[List[logging.Handler], Optional[OSError]]:
    """Returns the handlers to install and the error raised opening log_file, if any."""
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if not log_file:
        return handlers, None
    try:
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))
    except OSError as e:
        return handlers, e
    return handlers, None


def setup_logging(
    log_level: Union[int, str] = DEFAULT_LOG_LEVEL,
    log_format: str = DEFAULT_LOG_FORMAT,
    log_file: Optional[str] = None
) -> None:
    """Replaces the root logger's handlers with a stdout handler and, optionally, a file handler.

    Args:
        log_level: Numeric level or level name (e.g. 'info').
        log_format: The format string for log messages.
        log_file: Optional path to a file for logging output. A path that
            cannot be opened is logged as an error and skipped.
    """
    level = parse_log_level(log_level)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)

    formatter = logging.Formatter(log_format)
    handlers, file_error = _build_handlers(log_file)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    if file_error is not None:
        logging.error(f"Failed to set up file logging to {log_file}: {file_error}")
    elif log_file:
        logging.info(f"Logging to file: {log_file}")
    logging.debug(f"Logging configured. Level={logging.getLevelName(level)}")
