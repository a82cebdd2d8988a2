"""
PageDeck - Utils Package

Utility modules for the application.
"""

from pagedeck.utils.config_manager import ConfigManager, get_config_manager
from pagedeck.utils.exceptions import (
    ConfigurationError,
    InvalidPdfError,
    MergeError,
    PageDeckError,
    RenderCancelledError,
    RenderError,
)
from pagedeck.utils.logger import logger

__all__ = [
    "logger",
    "ConfigManager",
    "get_config_manager",
    "PageDeckError",
    "InvalidPdfError",
    "MergeError",
    "RenderError",
    "RenderCancelledError",
    "ConfigurationError",
]
