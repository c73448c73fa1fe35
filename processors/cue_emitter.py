"""
Cue emission against the playback horizon.

The emitter walks the sorted cue store with a cursor. Each pass flushes the
cues whose adjusted start lies before the horizon set by the host, so every
cue is sent once while playback moves forward. Seeking recomputes the
cursor from scratch.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional
from utils.logging_config import get_logger
from core.subtitle_formats import CueStore
from core.sync_state import SyncState

logger = get_logger(__name__)


@dataclass
class EmittedCue:
    """A cue handed to the output sink."""
    timestamp: int   # Adjusted presentation time in microseconds
    duration: int    # Adjusted duration, 0 when the stop time is unknown
    text: str

    @property
    def payload(self) -> bytes:
        return self.text.encode('utf-8')


CueSink = Callable[[EmittedCue], None]


class CueEmitter:
    """Sends due cues of a CueStore to a sink."""

    def __init__(self, store: CueStore, state: SyncState,
                 sink: Optional[CueSink] = None):
        self.store = store
        self.state = state
        self.sink = sink
        self.cursor = 0
        self.next_horizon = 0
        self.last_horizon = 0

    @property
    def exhausted(self) -> bool:
        return self.cursor >= len(self.store)

    def set_next_horizon(self, horizon: int) -> None:
        self.next_horizon = horizon

    def emit(self, horizon: Optional[int] = None) -> bool:
        """
        Emit every due cue.

        Args:
            horizon: Playback time to flush up to. Defaults to the value
                given to set_next_horizon().

        Returns:
            False once the cursor has moved past the last cue
        """
        if horizon is not None:
            self.next_horizon = horizon
        if self.exhausted:
            return False

        max_date = self.next_horizon
        if max_date <= 0:
            max_date = self.state.adjust(self.store[self.cursor].start) + 1

        while (not self.exhausted
               and self.state.adjust(self.store[self.cursor].start) < max_date):
            cue = self.store[self.cursor]
            self.cursor += 1
            if not cue.text or cue.start < 0:
                continue

            start = self.state.adjust(cue.start)
            duration = 0
            if cue.has_stop and cue.stop >= cue.start:
                duration = self.state.adjust(cue.stop) - start

            emitted = EmittedCue(timestamp=start, duration=duration, text=cue.text)
            if self.sink is not None:
                self.sink(emitted)

        self.last_horizon = self.next_horizon
        self.next_horizon = 0
        return True

    def collect(self, horizon: int) -> List[EmittedCue]:
        """Run one pass and return the emitted cues instead of sending them."""
        emitted: List[EmittedCue] = []
        sink = self.sink
        self.sink = emitted.append
        try:
            self.emit(horizon)
        finally:
            self.sink = sink
        return emitted

    def seek(self, when: int) -> bool:
        """
        Move the cursor to the first cue still relevant at ``when``.

        That is the first cue starting after ``when``, or still showing at
        ``when`` when it has a valid stop time.

        Returns:
            False when no cue is left after ``when``
        """
        self.cursor = 0
        while not self.exhausted:
            cue = self.store[self.cursor]
            if self.state.adjust(cue.start) > when:
                break
            if cue.stop > cue.start and self.state.adjust(cue.stop) > when:
                break
            self.cursor += 1
        return not self.exhausted

    def seek_position(self, when: int) -> bool:
        """Move the cursor to the first cue whose adjusted start is not before ``when``."""
        self.cursor = 0
        while not self.exhausted and self.state.adjust(self.store[self.cursor].start) < when:
            self.cursor += 1
        return not self.exhausted
