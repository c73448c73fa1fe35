"""
Encoding detection utilities for subtitle streams.

This module detects the UTF-8 byte order mark that tags a transcript as
Unicode, and decodes raw subtitle bytes into text with charset-normalizer
as the fallback when the data is not valid UTF-8.
"""

from typing import Optional, Tuple
from charset_normalizer import from_bytes
from utils.constants import UTF8_BOM
from utils.logging_config import get_logger

logger = get_logger(__name__)


class EncodingDetector:
    """Handles BOM detection and byte decoding for subtitle streams."""

    @staticmethod
    def has_bom(data: bytes) -> bool:
        """Check whether ``data`` starts with the UTF-8 BOM."""
        return data.startswith(UTF8_BOM)

    @staticmethod
    def strip_bom(data: bytes) -> Tuple[bytes, bool]:
        """
        Remove a leading UTF-8 BOM.

        Args:
            data: Raw bytes

        Returns:
            Tuple of (data without BOM, whether a BOM was present)

        Example:
            >>> EncodingDetector.strip_bom(b"\\xef\\xbb\\xbfWEBVTT")
            (b'WEBVTT', True)
        """
        if EncodingDetector.has_bom(data):
            return data[len(UTF8_BOM):], True
        return data, False

    @staticmethod
    def detect_encoding(data: bytes) -> Optional[str]:
        """
        Detect the encoding of raw subtitle bytes.

        Args:
            data: Raw bytes (BOM already stripped or not)

        Returns:
            Encoding name or None if detection failed
        """
        if EncodingDetector.has_bom(data):
            return 'utf-8-sig'

        try:
            data.decode('utf-8')
            return 'utf-8'
        except UnicodeDecodeError:
            pass

        best = from_bytes(data).best()
        if best is not None:
            logger.debug(f"charset-normalizer detected encoding: {best.encoding}")
            return best.encoding

        return None

    @staticmethod
    def decode(data: bytes, encoding: Optional[str] = None) -> Tuple[str, str]:
        """
        Decode subtitle bytes to text.

        Args:
            data: Raw bytes
            encoding: Force a specific encoding instead of detecting one

        Returns:
            Tuple of (text, encoding used)
        """
        if encoding is None:
            encoding = EncodingDetector.detect_encoding(data)

        if encoding:
            try:
                return data.decode(encoding), encoding
            except (UnicodeDecodeError, LookupError) as e:
                logger.warning(f"Decoding as {encoding} failed: {e}")

        logger.warning("Could not determine encoding, decoding as UTF-8 with replacement")
        return data.decode('utf-8', errors='replace'), 'utf-8'
