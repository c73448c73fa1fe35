"""
Core subtitle processing modules.

This package contains the fundamental components for subtitle processing:
- Line buffering and encoding detection
- Format detection and the per-dialect parsers
- Cue storage and track description
- Timing conversion and synchronization state
"""

from .exceptions import (
    SubtitleResyncError, UnrecognizedFormatError, EmptyStreamError,
    UnsupportedQueryError, InvalidSelectorError
)
from .encoding_detection import EncodingDetector
from .language_detection import LanguageDetector
from .line_buffer import LineBuffer
from .format_detection import FormatDetector, DetectionResult
from .format_parsers import ParserContext, SubtitleFormatFactory
from .subtitle_formats import Cue, CueStore, SubtitleTrackInfo
from .sync_state import SPEED_ADJUSTS, SpeedDelay, BookmarkPair, SyncState
from .timing_utils import TimeConverter

__all__ = [
    'SubtitleResyncError',
    'UnrecognizedFormatError',
    'EmptyStreamError',
    'UnsupportedQueryError',
    'InvalidSelectorError',
    'EncodingDetector',
    'LanguageDetector',
    'LineBuffer',
    'FormatDetector',
    'DetectionResult',
    'ParserContext',
    'SubtitleFormatFactory',
    'Cue',
    'CueStore',
    'SubtitleTrackInfo',
    'SPEED_ADJUSTS',
    'SpeedDelay',
    'BookmarkPair',
    'SyncState',
    'TimeConverter',
]
