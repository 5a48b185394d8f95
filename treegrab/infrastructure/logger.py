"""
Package-wide logger for TreeGrab.
"""

import logging


LOGGER_NAME = 'TreeGrab'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def get_logger(name: str = LOGGER_NAME, level: int = logging.INFO) -> logging.Logger:
    """
    Return the named logger, attaching a stream handler the first time.

    Args:
        name: Logger name
        level: Initial logging level

    Returns:
        Configured logger instance
    """
    _logger = logging.getLogger(name)

    if not _logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        _logger.addHandler(handler)
        _logger.setLevel(level)

    return _logger


logger = get_logger()


__all__ = ["logger", "get_logger", "LOGGER_NAME"]
