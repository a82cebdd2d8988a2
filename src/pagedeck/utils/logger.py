"""
PageDeck - Logger Module

This module sets up logging for the application.
"""

import logging

from pagedeck import config

DEFAULT_LOG_LEVEL = logging.INFO
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_LOGGER_NAME = "PageDeck"


def setup_logger(log_level=None, log_format=None, logger_name=None):
    """Set up and configure the application logger

    Args:
        log_level: Logging level to use (default: config.LOG_LEVEL)
        log_format: Logging format string (default: config.LOG_FORMAT)
        logger_name: Name for the logger (default: config.LOGGER_NAME)

    Returns:
        A configured Logger instance
    """
    if log_level is None:
        log_level = getattr(config, "LOG_LEVEL", DEFAULT_LOG_LEVEL)

    if log_format is None:
        log_format = getattr(config, "LOG_FORMAT", DEFAULT_LOG_FORMAT)

    if logger_name is None:
        logger_name = getattr(config, "LOGGER_NAME", DEFAULT_LOGGER_NAME)

    # Only configures the root handler if the host application has not done so
    logging.basicConfig(level=log_level, format=log_format)

    logger = logging.getLogger(logger_name)
    logger.setLevel(log_level)
    return logger


# Create a singleton logger instance
logger = setup_logger()
