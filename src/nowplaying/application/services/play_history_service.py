"""Play History Service - reports a play once the listener has really heard the track.

A play counts after play_record_min_seconds (30s) OR play_record_min_ratio (30%) of the
track, whichever comes first, and is reported at most once per play. A repeat=one restart
or any new track binding starts a new play (reset()).
"""

import asyncio
import logging
from contextlib import suppress

from nowplaying.config.settings import PlaybackSettings
from nowplaying.domain.entities import Track
from nowplaying.domain.exceptions import DomainException
from nowplaying.domain.ports import IPlayHistoryRecorder

logger = logging.getLogger(__name__)


class PlayHistoryService:
    """Threshold-based play reporting."""

    def __init__(
        self,
        recorder: IPlayHistoryRecorder | None = None,
        settings: PlaybackSettings | None = None,
    ) -> None:
        self._recorder = recorder
        self._settings = settings or PlaybackSettings()
        # Hey future me - the token identifies ONE play of a track. reset() bumps it, so a
        # slow record_play() for the previous play can't mark the new play as recorded.
        self._play_token = 0
        self._recorded_token: int | None = None
        self._task: asyncio.Task[None] | None = None
        self._task_token: int | None = None

    @property
    def is_recorded(self) -> bool:
        return self._recorded_token == self._play_token

    def reset(self) -> None:
        """Start a new play."""
        self._play_token += 1

    def threshold_reached(self, track: Track, current_time: float) -> bool:
        if current_time >= self._settings.play_record_min_seconds:
            return True
        return track.duration > 0 and current_time / track.duration >= self._settings.play_record_min_ratio

    def track_progress(self, track: Track, current_time: float) -> None:
        """Schedule a report if this play just crossed the threshold."""
        if self._recorder is None or self.is_recorded:
            return
        if self._task is not None and not self._task.done() and self._task_token == self._play_token:
            return
        if not self.threshold_reached(track, current_time):
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; play of %s not reported", track.id)
            return

        self._task_token = self._play_token
        self._task = loop.create_task(
            self._record(track.id, self._play_token), name=f"record_play:{track.id}"
        )

    async def _record(self, track_id: str, token: int) -> None:
        if self._recorder is None:
            return
        try:
            await self._recorder.record_play(track_id)
        except DomainException as e:
            logger.warning("Failed to record play of %s: %s", track_id, e.message)
            return
        except Exception:
            # Unknown recorder errors are logged and the play stays unrecorded for a retry
            logger.exception("Unexpected error recording play of %s", track_id)
            return
        self._recorded_token = token
        logger.debug("Recorded play of %s", track_id)

    async def wait(self) -> None:
        """Wait for an in-flight report (tests and shutdown)."""
        if self._task is not None:
            with suppress(asyncio.CancelledError):
                await self._task

    def close(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
