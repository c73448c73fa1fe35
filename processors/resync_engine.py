"""
Bookmark driven subtitle resynchronization.

The user bookmarks the playback time at which a line is heard (audio) and
the time at which its subtitle shows up. Syncing turns one bookmark pair
into a delay correction. Two pairs far enough apart also reveal a speed
mismatch, which is matched against the frame-rate ratio table and offered
as a proposal that the next sync without new bookmarks applies.
"""

from dataclasses import dataclass
from typing import Optional
from utils.constants import (
    MIN_SPEED_FIT_INTERVAL, MIN_SPEED_REFIT_INTERVAL, SPEED_RATIO_TOLERANCE
)
from utils.logging_config import get_logger
from core.sync_state import SPEED_ADJUSTS, BookmarkPair, SpeedDelay, SyncState

logger = get_logger(__name__)


def _ms(us: int) -> int:
    """Microseconds to whole milliseconds, truncating toward zero."""
    return int(us / 1000)


@dataclass
class ResyncResult:
    """Result of a resync operation."""
    applied: bool
    delay: int = 0
    speed_index: int = 0
    message: str = ""
    proposal: Optional[SpeedDelay] = None

    @property
    def speed_description(self) -> str:
        return SPEED_ADJUSTS[self.speed_index].description


class ResyncEngine:
    """
    Owns the SyncState of one session and the two bookmark pairs.

    Example:
        >>> engine = ResyncEngine()
        >>> engine.bookmark_audio(61_000_000)
        'Sub sync: bookmarked audio time'
        >>> engine.bookmark_subtitle(60_000_000)
        'Sub sync: bookmarked subtitle time'
        >>> engine.sync_bookmarks().delay
        1000000
    """

    def __init__(self, state: Optional[SyncState] = None):
        self.state = state or SyncState()
        self.current = BookmarkPair(0, 0)
        # No previous sample yet
        self.previous = BookmarkPair(-1, -1)

    def bookmark_audio(self, now: int) -> str:
        self.current.audio_time = now
        logger.debug(f"Bookmarked audio time {_ms(now)} ms")
        return "Sub sync: bookmarked audio time"

    def bookmark_subtitle(self, now: int) -> str:
        self.current.subtitle_time = now
        logger.debug(f"Bookmarked subtitle time {_ms(now)} ms")
        return "Sub sync: bookmarked subtitle time"

    def reset(self) -> ResyncResult:
        """Drop every correction and bookmark."""
        self.state.current = SpeedDelay()
        self.state.pending = None
        self.current.clear()
        self.previous.clear()
        logger.debug("Subtitle sync reset")
        return ResyncResult(applied=True, message="Sub sync: delay reset")

    def set_delay(self, delay: int) -> ResyncResult:
        """Set the delay directly, keeping the current speed."""
        return self.set_speed_delay(delay, self.state.speed_index)

    def set_speed_delay(self, delay: int, speed_index: int = 0) -> ResyncResult:
        """
        Replace the correction with an explicit delay and speed.

        Args:
            delay: Delay in microseconds
            speed_index: Index into the speed ratio table

        Raises:
            IndexError: If ``speed_index`` is outside the table
        """
        if not 0 <= speed_index < len(SPEED_ADJUSTS):
            raise IndexError(f"Speed index out of range: {speed_index}")
        self.state.current = SpeedDelay(delay, speed_index)
        logger.debug(f"Set delay {_ms(delay)} ms, speed index {speed_index}")
        return ResyncResult(applied=True, delay=delay, speed_index=speed_index)

    def sync_bookmarks(self) -> ResyncResult:
        """
        Reconcile the bookmarks into a correction.

        A pending speed proposal is applied when no bookmark was set since
        it was made. Otherwise a speed fit is attempted against the previous
        pair and the delay alone is corrected right away. In every case the
        current pair becomes the previous one afterwards.

        Returns:
            ResyncResult describing what changed and the message to show
        """
        logger.debug(
            f"Sync bookmarks: audio0={_ms(self.previous.audio_time)} "
            f"sub0={_ms(self.previous.subtitle_time)} "
            f"audio1={_ms(self.current.audio_time)} "
            f"sub1={_ms(self.current.subtitle_time)}"
        )

        pending = self.state.pending
        if (pending is not None
                and self.current.audio_time == 0
                and self.current.subtitle_time == 0):
            self.state.pending = None
            result = self._apply(pending)
        else:
            self.state.pending = None
            proposal = self.compute_speed_and_delay()
            proposal_message = ""
            if proposal is not None:
                self.state.pending = proposal
                proposal_message = (
                    f'Press "Sync subtitles" again to correct fps: '
                    f'{proposal.speed.description}'
                )

            correction = self.compute_delay_only()
            if correction is not None:
                result = self._apply(correction)
                if proposal_message:
                    result.message = proposal_message
            else:
                result = ResyncResult(
                    applied=False,
                    delay=self.state.delay,
                    speed_index=self.state.speed_index,
                    message=f"Sub sync: set bookmarks first! ({self.state.describe()})",
                )
            result.proposal = proposal

        self.previous.audio_time = self.current.audio_time
        self.previous.subtitle_time = self.current.subtitle_time
        self.current.clear()

        logger.debug(f"Subtitle speed {self.state.speed_ratio:.2f}, "
                     f"delay {_ms(self.state.delay)} ms")
        return result

    def compute_speed_and_delay(self) -> Optional[SpeedDelay]:
        """
        Fit a speed ratio and delay through the previous and current pairs.

        Returns:
            The closest table entry with its fitted delay, or None when the
            samples are missing, too close together, degenerate, or match no
            table ratio within tolerance
        """
        if self.previous.audio_time <= 0 or self.previous.subtitle_time <= 0:
            return None

        interval = self.current.subtitle_time - self.previous.subtitle_time
        if interval < MIN_SPEED_FIT_INTERVAL:
            return None
        if self.state.speed_index != 0 and interval < MIN_SPEED_REFIT_INTERVAL:
            return None

        # Work in milliseconds
        audio0 = self.previous.audio_time / 1000.0
        subtitle0 = self.previous.subtitle_time / 1000.0
        audio1 = self.current.audio_time / 1000.0
        subtitle1 = self.current.subtitle_time / 1000.0

        time0 = max(audio0, subtitle0)
        time1 = max(audio1, subtitle1)
        delay0 = self.state.delay / 1000.0
        delay1 = delay0 + (self.current.audio_time - self.current.subtitle_time) / 1000.0

        denominator = (time1 + delay1) - (time0 + delay0)
        if time1 == time0 or denominator == 0:
            logger.debug("Bookmarks do not allow a speed fit")
            return None

        speed = (time1 - time0) / denominator
        delay_fit = delay0 - time0 * (delay1 - delay0) / (time1 - time0)
        logger.debug(f"Fitted speed={speed:.4f} delay={delay_fit:.0f} ms")

        best_index = None
        best_error = SPEED_RATIO_TOLERANCE
        for index, adjust in enumerate(SPEED_ADJUSTS):
            if adjust.ratio == 1.0:
                continue
            error = abs((speed - 1.0) / (adjust.ratio - 1.0) - 1.0)
            if error < best_error:
                best_error = error
                best_index = index

        if best_index is None:
            return None
        return SpeedDelay(delay=int(delay_fit * 1000), speed_index=best_index)

    def compute_delay_only(self) -> Optional[SpeedDelay]:
        """Delay correction from the current pair, keeping the current speed."""
        if not self.current.complete:
            return None
        additional = self.current.audio_time - self.current.subtitle_time
        return SpeedDelay(self.state.delay + additional, self.state.speed_index)

    def _apply(self, speed_delay: SpeedDelay) -> ResyncResult:
        self.state.current = speed_delay
        if speed_delay.speed_index == 0:
            message = f"Sub sync: corrected, total delay = {_ms(speed_delay.delay)} ms"
        else:
            message = (f"Sub sync: corrected, delay = {_ms(speed_delay.delay)} ms / "
                       f"{speed_delay.speed.description}")
        logger.info(message)
        return ResyncResult(
            applied=True,
            delay=speed_delay.delay,
            speed_index=speed_delay.speed_index,
            message=message,
        )
