"""
In-memory line buffer for subtitle parsing.

The whole stream is loaded up front so parsers can read forward and push
back exactly one line when a grammar needs to peek at what follows.
"""

from typing import BinaryIO, List, Optional
from core.encoding_detection import EncodingDetector
from core.exceptions import EmptyStreamError
from utils.logging_config import get_logger

logger = get_logger(__name__)


class LineBuffer:
    """Ordered lines of a subtitle file with a one-step backtracking cursor."""

    def __init__(self, lines: List[str]):
        self.lines = lines
        self.position = 0

    @classmethod
    def load(cls, stream: BinaryIO, encoding: Optional[str] = None) -> 'LineBuffer':
        """
        Read the rest of ``stream`` into a line buffer.

        Args:
            stream: Binary stream positioned at the first byte to parse
            encoding: Known encoding, detected when omitted

        Returns:
            Loaded LineBuffer

        Raises:
            EmptyStreamError: If the stream holds no line at all
        """
        data = stream.read()
        text, used = EncodingDetector.decode(data, encoding)
        buffer = cls.from_text(text)
        logger.debug(f"Loaded {len(buffer)} lines ({used})")
        return buffer

    @classmethod
    def from_text(cls, text: str) -> 'LineBuffer':
        """
        Split decoded text into lines.

        Lines end at ``\\n``; one trailing ``\\r`` is dropped. A final line
        terminator does not produce an extra empty line.

        Raises:
            EmptyStreamError: If ``text`` is empty
        """
        if not text:
            raise EmptyStreamError("Stream contains no lines")

        lines = text.split('\n')
        if lines[-1] == '':
            lines.pop()
        lines = [line[:-1] if line.endswith('\r') else line for line in lines]
        return cls(lines)

    def next_line(self) -> Optional[str]:
        """Return the next line, or None at end of input."""
        if self.position >= len(self.lines):
            return None
        line = self.lines[self.position]
        self.position += 1
        return line

    def push_back(self) -> None:
        """Rewind the cursor by one line."""
        if self.position > 0:
            self.position -= 1

    @property
    def exhausted(self) -> bool:
        return self.position >= len(self.lines)

    def __len__(self) -> int:
        return len(self.lines)
