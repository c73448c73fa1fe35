"""
Time conversion and manipulation utilities for subtitle processing.

This module provides functions for:
- Converting clock fields and frame counts to microseconds
- Formatting microsecond timestamps as SubRip and readable strings
- Mapping raw cue times onto the adjusted timeline
"""

import math
from typing import Union
from utils.constants import MICROSECONDS_PER_SECOND
from utils.logging_config import get_logger

logger = get_logger(__name__)


class TimeConverter:
    """Handles time format conversions and manipulations for subtitles."""

    @staticmethod
    def hms_to_microseconds(hours: int, minutes: int, seconds: int,
                            fraction_us: int = 0) -> int:
        """
        Convert clock fields to microseconds.

        Args:
            hours: Hours
            minutes: Minutes
            seconds: Whole seconds
            fraction_us: Sub-second part already expressed in microseconds

        Returns:
            Time in microseconds

        Example:
            >>> TimeConverter.hms_to_microseconds(0, 1, 2, 500_000)
            62500000
        """
        return (hours * 3600 + minutes * 60 + seconds) * MICROSECONDS_PER_SECOND + fraction_us

    @staticmethod
    def frames_to_microseconds(frames: Union[int, float], microseconds_per_frame: int) -> int:
        """Convert a frame number to microseconds."""
        return int(frames * microseconds_per_frame)

    @staticmethod
    def microseconds_per_frame(fps: float) -> int:
        """Frame duration in microseconds for a frame rate."""
        return int(MICROSECONDS_PER_SECOND / fps)

    @staticmethod
    def adjust_subtitle_time(raw: int, delay: int, speed_ratio: float) -> int:
        """
        Map a raw cue time onto the adjusted timeline.

        Args:
            raw: Raw time in microseconds
            delay: Signed delay in microseconds
            speed_ratio: Speed ratio from the speed adjust table

        Returns:
            floor(raw / speed_ratio) + delay
        """
        if speed_ratio == 1.0:
            return raw + delay
        return math.floor(raw / speed_ratio) + delay

    @staticmethod
    def microseconds_to_srt(us: int) -> str:
        """
        Format microseconds as a SubRip timestamp.

        Negative values are clamped to zero.

        Example:
            >>> TimeConverter.microseconds_to_srt(3_825_678_000)
            '01:03:45,678'
        """
        if us < 0:
            us = 0

        total_ms = (us + 500) // 1000
        ms = total_ms % 1000
        total_s = total_ms // 1000
        s = total_s % 60
        m = (total_s // 60) % 60
        h = total_s // 3600
        return f"{h:02d}:{m:02d}:{s:02d},{ms:03d}"

    @staticmethod
    def milliseconds_to_readable(ms: int) -> str:
        """
        Convert milliseconds to readable format (HH:MM:SS.mmm).

        Example:
            >>> TimeConverter.milliseconds_to_readable(3825678)
            '01:03:45.678'
        """
        sign = "-" if ms < 0 else ""
        ms = abs(ms)
        hours = ms // 3600000
        ms %= 3600000
        minutes = ms // 60000
        ms %= 60000
        seconds = ms // 1000
        milliseconds = ms % 1000
        return f"{sign}{hours:02d}:{minutes:02d}:{seconds:02d}.{milliseconds:03d}"

    @staticmethod
    def format_duration(us: int) -> str:
        """
        Format a microsecond duration as a human-readable string.

        Example:
            >>> TimeConverter.format_duration(3_825_500_000)
            '1h 3m 45.5s'
        """
        seconds = us / MICROSECONDS_PER_SECOND
        if seconds < 60:
            return f"{seconds:.1f}s"
        elif seconds < 3600:
            minutes = int(seconds // 60)
            return f"{minutes}m {seconds % 60:.1f}s"
        else:
            hours = int(seconds // 3600)
            remaining_seconds = seconds % 3600
            minutes = int(remaining_seconds // 60)
            return f"{hours}h {minutes}m {remaining_seconds % 60:.1f}s"
