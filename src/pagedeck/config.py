"""
PageDeck - Configuration Module

This module contains all configuration constants and paths used by the application.
"""

import logging
import os
from typing import Final

# ============================================================================
# Application Constants
# ============================================================================

APP_NAME: Final[str] = "PageDeck"
APP_VERSION: Final[str] = "1.0.0"
APP_DESCRIPTION: Final[str] = "Combine, reorder, rotate and delete pages from several PDF files"


# ============================================================================
# Configuration Directory
# ============================================================================

CONFIG_DIR: Final[str] = os.path.expanduser("~/.config/pagedeck")


# ============================================================================
# Editing Defaults
# ============================================================================

# Number of undoable actions kept before the oldest one is dropped
DEFAULT_MAX_HISTORY_SIZE: Final[int] = 50

# Canonical page rotations, in degrees clockwise
VALID_ROTATIONS: Final[tuple[int, ...]] = (0, 90, 180, 270)
ROTATION_STEP: Final[int] = 90


# ============================================================================
# Rendering Defaults
# ============================================================================

DEFAULT_RENDER_CACHE_SIZE: Final[int] = 200
DEFAULT_RENDER_WORKERS: Final[int] = 4
# pdftoppm resolution at scale 1.0 (one PDF point per pixel)
DEFAULT_RENDER_BASE_DPI: Final[int] = 72
RENDER_TIMEOUT_SECONDS: Final[int] = 30


# ============================================================================
# Logging Configuration
# ============================================================================

LOG_LEVEL: int = logging.INFO
LOG_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOGGER_NAME: Final[str] = "PageDeck"
