"""
Subtitle synchronization state.

This module holds the values the resync engine mutates and the timeline
adjuster reads: the current delay, the index of the current speed ratio,
a speed proposal awaiting confirmation, and the bookmark pairs.
"""

from dataclasses import dataclass, field
from typing import List, Optional
from utils.constants import SPEED_ADJUST_FPS
from core.timing_utils import TimeConverter


@dataclass(frozen=True)
class SpeedAdjust:
    """One entry of the speed ratio table."""
    ratio: float
    description: str


def build_speed_adjusts(fps_list=SPEED_ADJUST_FPS) -> List[SpeedAdjust]:
    """
    Build the speed ratio table.

    Entry 0 is the identity. The others are every ``a / b`` with ``a != b``
    taken from ``fps_list``, described like ``"25->24 fps"``.
    """
    adjusts = [SpeedAdjust(1.0, "")]
    for a in fps_list:
        for b in fps_list:
            if a != b:
                adjusts.append(SpeedAdjust(a / b, f"{a:.6g}->{b:.6g} fps"))
    return adjusts


SPEED_ADJUSTS: List[SpeedAdjust] = build_speed_adjusts()


@dataclass(frozen=True)
class SpeedDelay:
    """A delay in microseconds paired with a speed table index."""
    delay: int = 0
    speed_index: int = 0

    @property
    def speed(self) -> SpeedAdjust:
        return SPEED_ADJUSTS[self.speed_index]


@dataclass
class BookmarkPair:
    """Playback times captured when the user heard a line and when its subtitle showed."""
    audio_time: int = 0
    subtitle_time: int = 0

    def clear(self) -> None:
        self.audio_time = 0
        self.subtitle_time = 0

    @property
    def complete(self) -> bool:
        return self.audio_time != 0 and self.subtitle_time != 0


@dataclass
class SyncState:
    """Delay and speed currently applied to the cue timeline."""
    current: SpeedDelay = field(default_factory=SpeedDelay)
    pending: Optional[SpeedDelay] = None

    @property
    def delay(self) -> int:
        return self.current.delay

    @property
    def speed_index(self) -> int:
        return self.current.speed_index

    @property
    def speed_ratio(self) -> float:
        return self.current.speed.ratio

    def adjust(self, raw: int) -> int:
        """Map a raw cue time onto the adjusted timeline."""
        return TimeConverter.adjust_subtitle_time(raw, self.current.delay, self.speed_ratio)

    def describe(self) -> str:
        description = self.current.speed.description
        text = f"delay={int(self.current.delay / 1000)} ms"
        return f"{text} {description}" if description else text
