"""
Timing adjustment processor for subtitle files.

This module provides functionality for shifting a subtitle file by a fixed
offset and an optional speed ratio, writing the result as SubRip.
"""

import re
from pathlib import Path
from typing import Optional
from utils.constants import MICROSECONDS_PER_MILLISECOND, MICROSECONDS_PER_SECOND
from utils.logging_config import get_logger
from core.sync_state import SPEED_ADJUSTS
from core.timing_utils import TimeConverter
from processors.session import SessionHost, SessionOptions, SubtitleSession

logger = get_logger(__name__)

_TIMESTAMP = re.compile(r'^([+-]?)(\d+):(\d{1,2}):(\d{1,2})(?:[,.](\d{1,3}))?$')


class TimingAdjuster:
    """Handles offset and speed adjustments for subtitle files."""

    def __init__(self, create_backup: bool = True):
        """
        Initialize the timing adjuster.

        Args:
            create_backup: Whether to back up an existing output file
        """
        self.create_backup = create_backup

    def adjust_file(self, input_path: Path, delay: int, speed_index: int = 0,
                    output_path: Optional[Path] = None,
                    options: Optional[SessionOptions] = None,
                    host: Optional[SessionHost] = None) -> Path:
        """
        Write an adjusted SubRip copy of a subtitle file.

        Args:
            input_path: Path to input subtitle file, in any supported dialect
            delay: Offset in microseconds (positive = later, negative = earlier)
            speed_index: Index into the speed ratio table
            output_path: Path for the output file, next to the input by default
            options: Format and frame-rate overrides
            host: Receiver of the delay change notification

        Returns:
            Path of the written file

        Example:
            >>> adjuster = TimingAdjuster()
            >>> adjuster.adjust_file(Path("movie.sub"), -2_470_000)
            PosixPath('movie_adjusted.srt')
        """
        session = SubtitleSession.open_file(input_path, options, host=host)
        logger.info(f"Loaded {len(session.store)} cues from {input_path.name}")

        session.set_speed_delay(delay, speed_index)

        target = session.save_export(output_path, create_backup=self.create_backup)
        direction = "delayed" if delay > 0 else "advanced"
        logger.info(f"Successfully {direction} {len(session.store)} cues by "
                    f"{abs(delay) // MICROSECONDS_PER_MILLISECOND}ms in {target.name}")
        return target

    @staticmethod
    def parse_offset_string(offset_str: str) -> int:
        """
        Parse offset string to microseconds.

        Args:
            offset_str: Offset string (e.g., "2.5s", "-1500ms", "00:00:02,500")

        Returns:
            Offset in microseconds

        Raises:
            ValueError: If offset string format is invalid

        Example:
            >>> TimingAdjuster.parse_offset_string("-1.5s")
            -1500000
        """
        offset_str = offset_str.strip()

        # Handle timestamp format (HH:MM:SS,mmm or HH:MM:SS.mmm)
        match = _TIMESTAMP.match(offset_str)
        if match:
            sign, hours, minutes, seconds, millis = match.groups()
            fraction = int((millis or "0").ljust(3, "0")) * MICROSECONDS_PER_MILLISECOND
            value = TimeConverter.hms_to_microseconds(
                int(hours), int(minutes), int(seconds), fraction)
            return -value if sign == '-' else value

        lowered = offset_str.lower()
        try:
            # Handle milliseconds (e.g., "1500ms", "-2470ms")
            if lowered.endswith('ms'):
                return round(float(lowered[:-2]) * MICROSECONDS_PER_MILLISECOND)

            # Handle seconds (e.g., "2.5s", "-1.5s")
            if lowered.endswith('s'):
                return round(float(lowered[:-1]) * MICROSECONDS_PER_SECOND)

            # Handle plain numbers (assume milliseconds)
            return int(lowered) * MICROSECONDS_PER_MILLISECOND
        except ValueError:
            pass

        # Handle decimal numbers (assume seconds)
        try:
            return round(float(lowered) * MICROSECONDS_PER_SECOND)
        except ValueError:
            pass

        raise ValueError(f"Invalid offset format: {offset_str}. "
                         f"Supported formats: '1500ms', '2.5s', '00:00:02,500', or plain numbers")

    @staticmethod
    def parse_speed(speed_str: str) -> int:
        """
        Resolve a speed ratio table entry.

        Args:
            speed_str: Table index ("8") or description ("25->24", "25->24 fps")

        Returns:
            Index into the speed ratio table

        Raises:
            ValueError: If nothing in the table matches
        """
        speed_str = speed_str.strip()
        if speed_str.isdigit():
            index = int(speed_str)
            if index < len(SPEED_ADJUSTS):
                return index
            raise ValueError(f"Speed index out of range: {index}")

        wanted = speed_str.lower().replace(' ', '')
        if not wanted.endswith('fps'):
            wanted += 'fps'
        for index, adjust in enumerate(SPEED_ADJUSTS):
            if adjust.description.replace(' ', '') == wanted:
                return index

        choices = ", ".join(a.description for a in SPEED_ADJUSTS if a.description)
        raise ValueError(f"Unknown speed adjustment: {speed_str}. Choices: {choices}")
