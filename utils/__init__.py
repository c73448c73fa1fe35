"""
Utility modules.

This package contains shared utility functions and configurations:
- File I/O operations and backup utilities
- Logging configuration
- Shared constants and configurations
"""

from .file_operations import FileHandler
from .logging_config import setup_logging, get_logger, set_log_level
from .constants import (
    SubtitleFormat,
    FORMAT_SELECTORS,
    AUTO_FORMAT,
    PROBE_LINE_LIMIT,
    UTF8_BOM,
    DEFAULT_MICROSECONDS_PER_FRAME,
    SPEED_ADJUST_FPS,
    MIN_SPEED_FIT_INTERVAL,
    MIN_SPEED_REFIT_INTERVAL,
    SPEED_RATIO_TOLERANCE,
    ADJUSTED_EXPORT_SUFFIX,
    BACKUP_DIR_NAME,
    DEFAULT_LOG_FORMAT,
    DEFAULT_LOG_DATE_FORMAT,
    APP_NAME,
    APP_VERSION,
    APP_DESCRIPTION,
)

__all__ = [
    'FileHandler',
    'setup_logging',
    'get_logger',
    'set_log_level',
    'SubtitleFormat',
    'FORMAT_SELECTORS',
    'AUTO_FORMAT',
    'PROBE_LINE_LIMIT',
    'UTF8_BOM',
    'DEFAULT_MICROSECONDS_PER_FRAME',
    'SPEED_ADJUST_FPS',
    'MIN_SPEED_FIT_INTERVAL',
    'MIN_SPEED_REFIT_INTERVAL',
    'SPEED_RATIO_TOLERANCE',
    'ADJUSTED_EXPORT_SUFFIX',
    'BACKUP_DIR_NAME',
    'DEFAULT_LOG_FORMAT',
    'DEFAULT_LOG_DATE_FORMAT',
    'APP_NAME',
    'APP_VERSION',
    'APP_DESCRIPTION',
]
