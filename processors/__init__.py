"""
Subtitle processing modules.

This package contains specialized processors for different subtitle operations:
- Bookmark based resynchronization
- Cue emission against the playback horizon
- Adjusted SubRip export
- Timing adjustment of whole files
- The session tying them to one opened stream
"""

from .resync_engine import ResyncEngine, ResyncResult
from .cue_emitter import CueEmitter, EmittedCue
from .srt_exporter import SRTExporter
from .session import (
    ControlQuery, SessionHost, SessionOptions, SubtitleSession, SyncTrigger
)
from .timing_adjuster import TimingAdjuster

__all__ = [
    'ResyncEngine',
    'ResyncResult',
    'CueEmitter',
    'EmittedCue',
    'SRTExporter',
    'ControlQuery',
    'SessionHost',
    'SessionOptions',
    'SubtitleSession',
    'SyncTrigger',
    'TimingAdjuster',
]
