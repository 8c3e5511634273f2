"""Transport Controller - play/pause/seek/next/previous and the audio binding.

Hey future me - this class has TWO jobs that belong together:

1. Navigation rules (pure): given a PlayerState, where does next/previous/end-of-track go?
   These return new PlayerState objects and never touch the audio output.
2. The audio binding: it is the ONLY code that talks to IAudioOutput.

REPEAT SEMANTICS:
- next() (manual skip) always advances. repeat=one does NOT pin a manual skip.
- Past the last track: repeat=all wraps to index 0, otherwise the player goes Idle
  (or, with autoplay_recommendations on, appends the suggestions and keeps going).
- Natural end-of-track with repeat=one restarts the same entry from 0.
- previous(): after previous_restart_threshold seconds it restarts the current track,
  otherwise it steps back; at index 0 it wraps only with repeat=all.

LISTENER LIFETIME:
Every load() first releases the previous track's listeners, then subscribes fresh ones
stamped with a generation number. Handlers from an older generation are ignored even if
the output delivers a late event, so a slow "ended" from track A can never skip track B.
stop() and close() release everything - listener_count must drop to 0 when Idle.
"""

import logging
from collections.abc import Callable
from dataclasses import replace
from typing import Any

from nowplaying.config.settings import PlaybackSettings
from nowplaying.domain.entities import PlayerState, RepeatMode, Track
from nowplaying.domain.exceptions import PlaybackPrimitiveError
from nowplaying.domain.ports import AudioEvent, IAudioOutput, Unsubscribe

logger = logging.getLogger(__name__)


def _idle(state: PlayerState) -> PlayerState:
    return replace(
        state,
        current_track=None,
        current_index=None,
        is_playing=False,
        position=0.0,
    )


def _move_to(state: PlayerState, index: int) -> PlayerState:
    return replace(
        state,
        current_index=index,
        current_track=state.queue[index],
        is_playing=True,
        position=0.0,
    )


class TransportController:
    """Transport rules plus ownership of the audio output subscription."""

    def __init__(
        self,
        output: IAudioOutput,
        settings: PlaybackSettings | None = None,
        on_time_update: Callable[[float], None] | None = None,
        on_ended: Callable[[], None] | None = None,
        on_error: Callable[[Exception], None] | None = None,
    ) -> None:
        self._output = output
        self._settings = settings or PlaybackSettings()
        self._on_time_update = on_time_update
        self._on_ended = on_ended
        self._on_error = on_error
        self._unsubscribers: list[Unsubscribe] = []
        self._generation = 0
        self._bound_track: Track | None = None

    # ------------------------------------------------------------------
    # Navigation rules
    # ------------------------------------------------------------------

    def next_state(self, state: PlayerState) -> PlayerState:
        """State after a manual skip. Idle stays Idle."""
        if state.current_index is None:
            return state

        following = state.current_index + 1
        if following < len(state.queue):
            return _move_to(state, following)

        if state.repeat_mode == RepeatMode.ALL and state.queue:
            return _move_to(state, 0)

        if self._settings.autoplay_recommendations and state.recommended_tracks:
            appended = tuple(rec.as_track() for rec in state.recommended_tracks)
            original = (
                (*state.original_queue, *appended) if state.original_queue is not None else None
            )
            extended = replace(
                state,
                queue=(*state.queue, *appended),
                original_queue=original,
                recommended_tracks=(),
            )
            return _move_to(extended, len(state.queue))

        return _idle(state)

    def end_of_track_state(self, state: PlayerState) -> PlayerState | None:
        """State after the output reports "ended".

        Returns:
            None when the current track should restart (repeat=one), else the next state
        """
        if state.current_index is None:
            return state
        if state.repeat_mode == RepeatMode.ONE:
            return None
        return self.next_state(state)

    def previous_state(self, state: PlayerState, elapsed: float) -> PlayerState | None:
        """State after previous().

        Returns:
            None when the current track should be restarted from 0, the same state
            when there is nowhere to go, else the new state
        """
        if state.current_index is None:
            return state
        if elapsed > self._settings.previous_restart_threshold:
            return None

        if state.current_index > 0:
            return _move_to(state, state.current_index - 1)
        if state.repeat_mode == RepeatMode.ALL and state.queue:
            return _move_to(state, len(state.queue) - 1)
        return state

    @staticmethod
    def clamp_seek(time: float, track: Track) -> float:
        return min(max(0.0, time), max(0.0, track.duration))

    @staticmethod
    def idle_state(state: PlayerState) -> PlayerState:
        return _idle(state)

    # ------------------------------------------------------------------
    # Audio binding
    # ------------------------------------------------------------------

    @property
    def bound_track(self) -> Track | None:
        return self._bound_track

    @property
    def listener_count(self) -> int:
        return len(self._unsubscribers)

    @property
    def elapsed(self) -> float:
        return self._output.current_time

    def load(self, track: Track, autoplay: bool = True) -> None:
        """Bind the output to a track, replacing the previous subscription.

        Raises:
            PlaybackPrimitiveError: If the output rejects the source synchronously
        """
        self.release()
        self._generation += 1
        generation = self._generation
        self._bound_track = track

        self._primitive(track, lambda: self._output.set_source(track.audio_url))
        self._unsubscribers = [
            self._output.add_listener(
                AudioEvent.TIME_UPDATE, self._guard(generation, self._handle_time_update)
            ),
            self._output.add_listener(
                AudioEvent.ENDED, self._guard(generation, self._handle_ended)
            ),
            self._output.add_listener(
                AudioEvent.ERROR, self._guard(generation, self._handle_error)
            ),
        ]
        logger.debug("Bound audio output to track %s (generation %s)", track.id, generation)

        if autoplay:
            self._primitive(track, self._output.play)

    def resume(self) -> None:
        if self._bound_track is None:
            return
        self._primitive(self._bound_track, self._output.play)

    def pause(self) -> None:
        self._output.pause()

    def seek(self, time: float) -> None:
        self._output.seek(time)

    def restart(self) -> None:
        """Rewind the bound track to 0 and keep playing."""
        self._output.seek(0.0)
        self.resume()

    def apply_volume(self, volume: float, muted: bool) -> None:
        self._output.set_volume(volume)
        self._output.set_muted(muted)

    def release(self) -> None:
        """Drop every listener registered for the bound track."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    def stop(self) -> None:
        """Unbind the output entirely (Idle)."""
        self.release()
        self._generation += 1
        self._bound_track = None
        self._output.pause()
        self._output.set_source(None)

    def close(self) -> None:
        self.stop()

    @staticmethod
    def _primitive(track: Track, action: Callable[[], None]) -> None:
        try:
            action()
        except PlaybackPrimitiveError:
            raise
        except Exception as e:
            raise PlaybackPrimitiveError(str(e), track_id=track.id) from e

    def _guard(self, generation: int, handler: Callable[..., None]) -> Callable[..., None]:
        def guarded(*args: Any) -> None:
            if generation != self._generation:
                logger.debug("Dropping audio event from stale generation %s", generation)
                return
            handler(*args)

        return guarded

    def _handle_time_update(self, current_time: float) -> None:
        if self._on_time_update is not None:
            self._on_time_update(current_time)

    def _handle_ended(self) -> None:
        if self._on_ended is not None:
            self._on_ended()

    def _handle_error(self, error: Exception) -> None:
        if self._on_error is not None:
            self._on_error(error)
