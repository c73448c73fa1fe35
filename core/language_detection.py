"""
Language guessing for subtitle files.

Subtitle files commonly carry their language as the last dotted part of
the name before the extension, as in ``movie.en.srt``.
"""

from pathlib import Path
from typing import Optional, Union
from utils.logging_config import get_logger

logger = get_logger(__name__)


class LanguageDetector:
    """Handles language detection for subtitle files."""

    @staticmethod
    def language_from_filename(path: Union[str, Path]) -> Optional[str]:
        """
        Guess the language tag from a file name.

        Args:
            path: Subtitle file path

        Returns:
            The part between the last two dots of the file name, or None when
            the name has fewer than two dots

        Example:
            >>> LanguageDetector.language_from_filename("/media/movie.fr.srt")
            'fr'
        """
        parts = Path(path).name.split('.')
        if len(parts) < 3 or not parts[-2]:
            return None
        logger.debug(f"Language from file name: {parts[-2]}")
        return parts[-2]
