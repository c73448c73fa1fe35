"""
Subtitle data structures.

This module provides:
- The Cue record produced by every format parser
- The CueStore holding a whole file's cues in start order
- Track metadata describing the emitted subtitle stream
"""

from dataclasses import dataclass, field
from typing import Iterator, List, Optional
from utils.constants import SubtitleFormat
from utils.logging_config import get_logger
from core.timing_utils import TimeConverter

logger = get_logger(__name__)


@dataclass
class Cue:
    """Represents a single subtitle cue."""
    start: int       # Start time in microseconds
    stop: int = -1   # Stop time in microseconds, -1 when unknown
    text: str = ""   # Display text, lines separated by "\n"

    @property
    def has_stop(self) -> bool:
        return self.stop >= 0

    def format_time_range(self) -> str:
        """
        Format the raw time range as a readable string.

        Example:
            >>> Cue(1_500_000, 2_000_000, "Hi").format_time_range()
            '00:00:01.500 --> 00:00:02.000'
        """
        start_str = TimeConverter.milliseconds_to_readable(self.start // 1000)
        if self.stop < 0:
            return f"{start_str} --> ?"
        end_str = TimeConverter.milliseconds_to_readable(self.stop // 1000)
        return f"{start_str} --> {end_str}"


class CueStore:
    """
    Ordered collection of the cues parsed from one file.

    Cues are appended in parse order; fix() then sorts them by start time.
    The sort is stable so cues sharing a start keep their file order.
    """

    def __init__(self, cues: Optional[List[Cue]] = None):
        self.cues: List[Cue] = list(cues) if cues else []

    def append(self, cue: Cue) -> None:
        self.cues.append(cue)

    def fix(self) -> None:
        """Sort cues ascending by start time."""
        self.cues.sort(key=lambda cue: cue.start)

    @property
    def length(self) -> int:
        """
        Total duration in microseconds.

        The last cue's stop when it is positive, otherwise its start plus one.
        An empty store has length 0.
        """
        if not self.cues:
            return 0
        last = self.cues[-1]
        if last.stop > 0:
            return last.stop
        return last.start + 1

    def __len__(self) -> int:
        return len(self.cues)

    def __iter__(self) -> Iterator[Cue]:
        return iter(self.cues)

    def __getitem__(self, index: int) -> Cue:
        return self.cues[index]


@dataclass
class SubtitleTrackInfo:
    """Describes the subtitle track presented to the host."""
    format: SubtitleFormat
    codec: str = "subt"
    language: str = ""
    description: str = ""
    encoding: str = ""
    header: str = ""   # SSA script header, empty for other dialects
    is_file_subtitle: bool = True

    def __str__(self) -> str:
        """String representation of the track."""
        parts = [f"Track {self.format.display_name}"]
        if self.language:
            parts.append(f"lang={self.language}")
        if self.description:
            parts.append(f"title='{self.description}'")
        parts.append(f"codec={self.codec}")
        if self.encoding:
            parts.append(f"encoding={self.encoding}")
        return f"<{' '.join(parts)}>"
