"""Headless audio output - an IAudioOutput without a sound device.

Hey future me - this adapter plays NOTHING. It keeps the same state an HTML media element
would (source, clock, volume, muted, paused) and lets the caller drive the clock by hand:

    output.advance(12.5)   # emits timeupdate
    output.finish()        # emits ended
    output.fail(err)       # emits error

That makes it the output for tests, CLI dry runs and server-side simulations. Sources
listed in failing_sources make play() raise PlaybackPrimitiveError synchronously, which is
how a real decoder reports an unsupported or unreachable file.
"""

import logging
from collections.abc import Iterable

from nowplaying.domain.exceptions import PlaybackPrimitiveError
from nowplaying.domain.ports import AudioEvent, AudioEventHandler, IAudioOutput, Unsubscribe

logger = logging.getLogger(__name__)


class HeadlessAudioOutput(IAudioOutput):
    """In-memory audio output driven by explicit clock calls."""

    def __init__(self, failing_sources: Iterable[str] = ()) -> None:
        self.src: str | None = None
        self.volume = 1.0
        self.muted = False
        self.is_paused = True
        self.failing_sources = set(failing_sources)
        self._current_time = 0.0
        self._listeners: dict[AudioEvent, list[AudioEventHandler]] = {
            event: [] for event in AudioEvent
        }

    # ------------------------------------------------------------------
    # IAudioOutput
    # ------------------------------------------------------------------

    def set_source(self, src: str | None) -> None:
        self.src = src
        self._current_time = 0.0
        self.is_paused = True

    def play(self) -> None:
        if self.src is None:
            raise PlaybackPrimitiveError("No source loaded")
        if self.src in self.failing_sources:
            raise PlaybackPrimitiveError(f"Cannot decode {self.src}")
        self.is_paused = False

    def pause(self) -> None:
        self.is_paused = True

    def seek(self, time: float) -> None:
        self._current_time = max(0.0, time)

    def set_volume(self, volume: float) -> None:
        self.volume = volume

    def set_muted(self, muted: bool) -> None:
        self.muted = muted

    @property
    def current_time(self) -> float:
        return self._current_time

    def add_listener(self, event: AudioEvent, handler: AudioEventHandler) -> Unsubscribe:
        handlers = self._listeners[AudioEvent(event)]
        handlers.append(handler)

        def unsubscribe() -> None:
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    # ------------------------------------------------------------------
    # Driving the clock
    # ------------------------------------------------------------------

    @property
    def listener_count(self) -> int:
        return sum(len(handlers) for handlers in self._listeners.values())

    def advance(self, seconds: float) -> None:
        """Move the clock forward and emit timeupdate."""
        self._current_time += seconds
        self.emit(AudioEvent.TIME_UPDATE, self._current_time)

    def finish(self) -> None:
        """Emit ended, as a real element does at the end of the source."""
        self.is_paused = True
        self.emit(AudioEvent.ENDED)

    def fail(self, error: Exception | None = None) -> None:
        """Emit error, as a real element does on a decode or network failure."""
        self.emit(AudioEvent.ERROR, error or PlaybackPrimitiveError(f"Cannot play {self.src}"))

    def emit(self, event: AudioEvent, *args: object) -> None:
        # Copy first: handlers may unsubscribe (rebind) while we iterate
        for handler in list(self._listeners[event]):
            handler(*args)
