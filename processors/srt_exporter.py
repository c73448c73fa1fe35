"""
SubRip export of the adjusted timeline.

Renders every cue of a CueStore with the current delay and speed applied,
so the file can be saved and used without resynchronizing again.
"""

from pathlib import Path
from typing import List
from utils.file_operations import FileHandler
from utils.logging_config import get_logger
from core.subtitle_formats import CueStore
from core.sync_state import SyncState
from core.timing_utils import TimeConverter

logger = get_logger(__name__)


class SRTExporter:
    """Serializes cues as CRLF terminated SubRip text."""

    @staticmethod
    def strip_final_newline(text: str) -> str:
        """Drop one line terminator ending the cue text."""
        if text.endswith('\n'):
            text = text[:-1]
            if text.endswith('\r'):
                text = text[:-1]
        return text

    @staticmethod
    def render(store: CueStore, state: SyncState) -> str:
        """
        Render the adjusted SubRip text.

        Cues without a stop time end where the next cue starts; the last one
        ends at its own start.

        Args:
            store: Sorted cues
            state: Delay and speed to apply

        Returns:
            SubRip content with CRLF line endings

        Example:
            >>> SRTExporter.render(CueStore([Cue(0, 1_000_000, "Hello")]), SyncState())
            '1\\r\\n00:00:00,000 --> 00:00:01,000\\r\\nHello\\r\\n\\r\\n'
        """
        blocks: List[str] = []
        cues = list(store)
        for index, cue in enumerate(cues):
            start = state.adjust(cue.start)
            if cue.has_stop:
                stop = state.adjust(cue.stop)
            elif index + 1 < len(cues):
                stop = state.adjust(cues[index + 1].start)
            else:
                stop = start

            blocks.append(
                f"{index + 1}\r\n"
                f"{TimeConverter.microseconds_to_srt(start)} --> "
                f"{TimeConverter.microseconds_to_srt(stop)}\r\n"
                f"{SRTExporter.strip_final_newline(cue.text)}\r\n\r\n"
            )
        return "".join(blocks)

    @staticmethod
    def save(content: str, output_path: Path, create_backup: bool = False) -> Path:
        """
        Write rendered content to disk.

        Raises:
            IOError: If the file cannot be written
        """
        FileHandler.safe_write(output_path, content, create_backup=create_backup)
        logger.info(f"Saved adjusted subtitles to {output_path}")
        return output_path
