"""
Shared constants and configurations for the subtitle resync application.

This module contains all the constants used across different modules including:
- Supported text subtitle dialects and their selector names
- Format detection limits and frame-rate defaults
- Resynchronization thresholds and the frame-rate table
- Default configuration values
"""

from enum import Enum
from typing import Dict, List, Tuple

# ============================================================================
# FILE FORMAT CONSTANTS
# ============================================================================

class SubtitleFormat(Enum):
    """Supported text subtitle dialects, keyed by their selector name."""
    MICRODVD = "microdvd"
    SUBRIP = "subrip"
    SUBVIEWER = "subviewer"
    SSA1 = "ssa1"
    SSA2_4 = "ssa2-4"
    ASS = "ass"
    VPLAYER = "vplayer"
    SAMI = "sami"
    DVDSUBTITLE = "dvdsubtitle"
    MPL2 = "mpl2"
    AQT = "aqt"
    PJS = "pjs"
    MPSUB = "mpsub"
    JACOSUB = "jacosub"
    PSB = "psb"
    REALTEXT = "realtext"
    DKS = "dks"
    SUBVIEWER1 = "subviewer1"
    VTT = "text/vtt"
    UNKNOWN = "unknown"

    @property
    def display_name(self) -> str:
        """Human readable name of the dialect."""
        return FORMAT_DISPLAY_NAMES[self]

    @property
    def is_ssa(self) -> bool:
        """True for the Sub Station Alpha family."""
        return self in (SubtitleFormat.SSA1, SubtitleFormat.SSA2_4, SubtitleFormat.ASS)

    @classmethod
    def from_name(cls, name: str) -> 'SubtitleFormat':
        """
        Get format from a selector name.

        Args:
            name: Selector name (case-insensitive), e.g. "subrip" or "vtt"

        Returns:
            SubtitleFormat enum value

        Raises:
            ValueError: If the name does not select a known dialect
        """
        name = name.strip().lower()
        name = FORMAT_ALIASES.get(name, name)
        for format_type in cls:
            if format_type is not cls.UNKNOWN and format_type.value == name:
                return format_type
        raise ValueError(f"Unsupported subtitle format: {name}")


FORMAT_DISPLAY_NAMES: Dict[SubtitleFormat, str] = {
    SubtitleFormat.MICRODVD: "MicroDVD",
    SubtitleFormat.SUBRIP: "SubRIP",
    SubtitleFormat.SUBVIEWER: "SubViewer",
    SubtitleFormat.SSA1: "SSA-1",
    SubtitleFormat.SSA2_4: "SSA-2/3/4",
    SubtitleFormat.ASS: "SSA/ASS",
    SubtitleFormat.VPLAYER: "VPlayer",
    SubtitleFormat.SAMI: "SAMI",
    SubtitleFormat.DVDSUBTITLE: "DVDSubtitle",
    SubtitleFormat.MPL2: "MPL2",
    SubtitleFormat.AQT: "AQTitle",
    SubtitleFormat.PJS: "PhoenixSub",
    SubtitleFormat.MPSUB: "MPSub",
    SubtitleFormat.JACOSUB: "JacoSub",
    SubtitleFormat.PSB: "PowerDivx",
    SubtitleFormat.REALTEXT: "RealText",
    SubtitleFormat.DKS: "DKS",
    SubtitleFormat.SUBVIEWER1: "Subviewer 1",
    SubtitleFormat.VTT: "WebVTT",
    SubtitleFormat.UNKNOWN: "Unknown",
}

# Extra selector spellings accepted on the command line
FORMAT_ALIASES: Dict[str, str] = {
    'vtt': 'text/vtt',
    'webvtt': 'text/vtt',
    'srt': 'subrip',
    'ssa': 'ssa2-4',
}

# Selector value meaning "run the format detector"
AUTO_FORMAT: str = "auto"

# ============================================================================
# FORMAT DETECTION CONSTANTS
# ============================================================================

# Maximum number of lines inspected by the detector
PROBE_LINE_LIMIT: int = 256

# UTF-8 BOM marker
UTF8_BOM: bytes = b"\xef\xbb\xbf"

# Encoding tag for BOM-marked input
UNICODE_ENCODING_TAG: str = "UTF-8"

# ============================================================================
# TIMING AND PROCESSING CONSTANTS
# ============================================================================

# Time units are microseconds throughout
MICROSECONDS_PER_SECOND: int = 1_000_000
MICROSECONDS_PER_MILLISECOND: int = 1_000

# Frame duration used by frame-based dialects when no rate is known (25 fps)
DEFAULT_MICROSECONDS_PER_FRAME: int = 40_000

# Longest text block accepted for a SAMI cue
SAMI_TEXT_LIMIT: int = 8191

# Default JacoSub time resolution (frames per second of the @ notation)
JACOSUB_DEFAULT_TIME_RESOLUTION: int = 30

# ============================================================================
# RESYNC CONSTANTS
# ============================================================================

# Frame rates combined pairwise into the speed ratio table
SPEED_ADJUST_FPS: Tuple[float, ...] = (23.976, 24.0, 25.0, 30.0)

# Minimum subtitle-time distance between bookmarks before a speed fit is tried
MIN_SPEED_FIT_INTERVAL: int = 45 * MICROSECONDS_PER_SECOND

# Minimum distance when a speed correction is already in effect
MIN_SPEED_REFIT_INTERVAL: int = 5 * 60 * MICROSECONDS_PER_SECOND

# Largest relative error accepted when matching a fitted speed to the table
SPEED_RATIO_TOLERANCE: float = 0.33

# ============================================================================
# DEFAULT CONFIGURATION VALUES
# ============================================================================

# Suffix replacing the input extension for the adjusted export
ADJUSTED_EXPORT_SUFFIX: str = "_adjusted.srt"

# Default backup directory name
BACKUP_DIR_NAME: str = "subtitle_backups"

# Default log format
DEFAULT_LOG_FORMAT: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_LOG_DATE_FORMAT: str = '%Y-%m-%d %H:%M:%S'

# Root logger name, module loggers are created beneath it
LOGGER_NAME: str = "subresync"

# Application metadata
APP_NAME: str = "Subtitle Resync Suite"
APP_VERSION: str = "1.0.0"
APP_DESCRIPTION: str = """
A text subtitle toolkit with support for:
- Detection and parsing of 19 legacy text subtitle dialects
- Delay and frame-rate correction of cue timing
- Bookmark driven resynchronization against a media clock
- Export of the corrected timeline as SubRip
"""

# Selector names in display order, used by the CLI
FORMAT_SELECTORS: List[str] = [
    f.value for f in SubtitleFormat if f is not SubtitleFormat.UNKNOWN
]
