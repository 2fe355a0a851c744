#!/usr/bin/env python3
"""
Logger setup shared by every locsync module.

The level comes from ATJ_LOG_LEVEL (debug, info, warning, error or off)
unless the CLI sets one with set_log_level().
"""

import logging
import os

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Cache for log mode to avoid repeated environment reads
_log_mode_cache = None

_LEVELS = {
    'debug': logging.DEBUG,
    'info': logging.INFO,
    'warning': logging.WARNING,
    'error': logging.ERROR,
}


def _get_log_mode() -> str:
    """Get log mode from the ATJ_LOG_LEVEL environment variable."""
    global _log_mode_cache
    if _log_mode_cache is not None:
        return _log_mode_cache

    log_mode = os.environ.get('ATJ_LOG_LEVEL', 'info').strip().lower()
    if log_mode != 'off' and log_mode not in _LEVELS:
        log_mode = 'info'
    _log_mode_cache = log_mode
    return log_mode


def _level_for(log_mode: str) -> int:
    if log_mode == 'off':
        # Higher than CRITICAL disables everything
        return logging.CRITICAL + 1
    return _LEVELS.get(log_mode, logging.INFO)


def set_log_level(log_mode: str) -> None:
    """Change the log mode and update every logger created by get_logger."""
    global _log_mode_cache
    _log_mode_cache = log_mode.strip().lower()
    target_level = _level_for(_log_mode_cache)

    # Only loggers with handlers were created by get_logger
    for logger_name in list(logging.Logger.manager.loggerDict.keys()):
        logger = logging.getLogger(logger_name)
        if logger.handlers and logger_name.startswith('locsync'):
            logger.setLevel(target_level)
            for handler in logger.handlers:
                handler.setLevel(target_level)


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    level = _level_for(_get_log_mode())

    # Prevent duplicate handlers if logger already configured
    if logger.handlers:
        logger.setLevel(level)
        return logger

    logger.setLevel(level)

    c_handler = logging.StreamHandler()
    c_handler.setLevel(level)
    c_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(c_handler)

    return logger
