"""Player Store - composition root for the now-playing engine.

Hey future me - this is THE object a UI binds to. It owns exactly one PlayerState and
wires the stateless services (QueueManager, ShuffleEngine, RecommendationMerger) to the
stateful ones (TransportController, PlayHistoryService). There is NO module-level
singleton - build one store per player and pass it around.

STATE PUBLICATION:
Every command computes the complete next PlayerState first and then commits it with a
single assignment in _commit(). Subscribers get that frozen snapshot - they can never see
a shuffle toggle that changed the queue but not original_queue yet.

RECOMMENDATIONS:
After every commit we compare the (queue ids, current id) key with the key of the last
fetch. A changed key cancels the in-flight fetch and starts a new one on the running
event loop. When a result comes back we check the key AGAIN - if the queue moved on while
we were waiting, the result is thrown away (last-relevant-result-wins). Without a running
loop (sync callers) fetches are skipped; await refresh_recommendations() to run one.

ERROR POLICY:
- Out-of-range indices: silently ignored
- Empty-queue next/previous/toggle: no-op
- Audio failures: "could not play this track, skipping" + advance (skip_on_error)
- Lookup failures: logged, empty recommendation list published
"""

import asyncio
import logging
import random
from collections.abc import Callable, Sequence
from contextlib import suppress
from dataclasses import replace

from nowplaying.application.services.play_history_service import PlayHistoryService
from nowplaying.application.services.queue_manager import QueueManager
from nowplaying.application.services.recommendation_merger import RecommendationMerger
from nowplaying.application.services.shuffle_engine import ShuffleEngine
from nowplaying.application.services.transport_controller import TransportController
from nowplaying.config.settings import Settings, get_settings
from nowplaying.domain.entities import PlayerState, RepeatMode, Track
from nowplaying.domain.exceptions import PlaybackPrimitiveError, RecommendationLookupError
from nowplaying.domain.ports import IAudioOutput, IPlayHistoryRecorder, IRecommendationClient
from nowplaying.infrastructure.observability.log_messages import LogMessages
from nowplaying.infrastructure.observability.logging import set_session_id

logger = logging.getLogger(__name__)

StateListener = Callable[[PlayerState], None]
RecommendationKey = tuple[tuple[str, ...], str | None]


class PlayerStore:
    """Holds the current PlayerState, exposes commands, publishes changes."""

    def __init__(
        self,
        output: IAudioOutput,
        recommendation_client: IRecommendationClient | None = None,
        play_recorder: IPlayHistoryRecorder | None = None,
        settings: Settings | None = None,
        rng: random.Random | None = None,
        session_id: str | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        # Tags this player's log lines; tasks started later inherit it from the context
        self.session_id = set_session_id(session_id)
        playback = self._settings.playback

        self._queue = QueueManager()
        self._shuffle = ShuffleEngine(rng)
        self._recommendations = RecommendationMerger(
            recommendation_client, self._settings.recommendations
        )
        self._history = PlayHistoryService(play_recorder, playback)
        self._transport = TransportController(
            output,
            playback,
            on_time_update=self._handle_time_update,
            on_ended=self._handle_track_ended,
            on_error=self._handle_playback_error,
        )

        self._state = PlayerState(volume=playback.default_volume)
        self._listeners: list[StateListener] = []
        self._recommendation_key: RecommendationKey = self._state.recommendation_key
        self._recommendation_task: asyncio.Task[None] | None = None
        self._consecutive_failures = 0
        self._closed = False

        self._transport.apply_volume(self._state.volume, self._state.is_muted)

    # ------------------------------------------------------------------
    # State & subscriptions
    # ------------------------------------------------------------------

    @property
    def state(self) -> PlayerState:
        return self._state

    @property
    def transport(self) -> TransportController:
        return self._transport

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener called with every new snapshot.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            with suppress(ValueError):
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, new_state: PlayerState) -> None:
        if new_state is self._state:
            return
        new_state = self._recommendations.prune(new_state)
        self._state = new_state
        self._publish(new_state)
        self._sync_recommendations()

    def _publish(self, state: PlayerState) -> None:
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                # A broken view must not take the player down with it
                logger.exception("Player state listener %r failed", listener)

    # ------------------------------------------------------------------
    # Transport commands
    # ------------------------------------------------------------------

    def play(self, track: Track, tracks: Sequence[Track] | None = None) -> None:
        """Play track, replacing the queue with tracks (or just [track])."""
        self._consecutive_failures = 0
        new_state = self._queue.set_queue(
            self._state, tracks if tracks is not None else [track], track
        )
        if self._state.is_shuffled:
            new_state = self._shuffle.shuffle(new_state)
        self._advance_to(replace(new_state, is_playing=True))

    def pause(self) -> None:
        if not self._state.is_playing:
            return
        self._transport.pause()
        self._commit(replace(self._state, is_playing=False))

    def resume(self) -> None:
        state = self._state
        if state.is_idle or state.is_playing:
            return
        self._commit(replace(state, is_playing=True, error=None))
        try:
            self._transport.resume()
        except PlaybackPrimitiveError as e:
            self._handle_playback_error(e)

    def toggle(self) -> None:
        if self._state.is_idle:
            return
        if self._state.is_playing:
            self.pause()
        else:
            self.resume()

    def next(self) -> None:
        if self._state.is_idle:
            return
        target = self._transport.next_state(self._state)
        self._advance_to(replace(target, error=None))

    def previous(self) -> None:
        state = self._state
        if state.is_idle:
            return
        target = self._transport.previous_state(state, self._elapsed())
        if target is None:
            self.seek(0.0)
        elif target is not state:
            self._advance_to(replace(target, error=None))

    def seek(self, time: float) -> None:
        state = self._state
        if state.current_track is None:
            return
        clamped = self._transport.clamp_seek(time, state.current_track)
        self._transport.seek(clamped)
        self._commit(replace(state, position=clamped))

    def seek_relative(self, delta: float) -> None:
        self.seek(self._elapsed() + delta)

    def seek_forward(self) -> None:
        self.seek_relative(self._settings.playback.seek_step)

    def seek_backward(self) -> None:
        self.seek_relative(-self._settings.playback.seek_step)

    def set_volume(self, volume: float) -> None:
        volume = min(1.0, max(0.0, float(volume)))
        self._commit(replace(self._state, volume=volume, is_muted=volume == 0))
        self._transport.apply_volume(self._state.volume, self._state.is_muted)

    def step_volume(self, delta: float) -> None:
        self.set_volume(self._state.volume + delta)

    def volume_up(self) -> None:
        self.step_volume(self._settings.playback.volume_step)

    def volume_down(self) -> None:
        self.step_volume(-self._settings.playback.volume_step)

    def toggle_mute(self) -> None:
        self._commit(replace(self._state, is_muted=not self._state.is_muted))
        self._transport.apply_volume(self._state.volume, self._state.is_muted)

    def set_repeat_mode(self, mode: RepeatMode | str) -> None:
        if not isinstance(mode, RepeatMode):
            mode = RepeatMode.from_string(mode)
        if mode != self._state.repeat_mode:
            self._commit(replace(self._state, repeat_mode=mode))

    def toggle_repeat_mode(self) -> None:
        self.set_repeat_mode(self._state.repeat_mode.cycle())

    # ------------------------------------------------------------------
    # Queue commands
    # ------------------------------------------------------------------

    def add_to_queue(self, track: Track) -> None:
        self._commit(self._queue.add(self._state, track))

    def add_next_to_queue(self, track: Track) -> None:
        if self._state.is_idle:
            self.play(track)
            return
        self._commit(self._queue.add_next(self._state, track))

    def remove_from_queue(self, index: int) -> None:
        previous = self._state
        new_state = self._queue.remove(previous, index)
        if new_state is previous:
            return
        self._commit(new_state)
        if index != previous.current_index:
            return
        if new_state.current_track is None:
            self._transport.stop()
        else:
            self._bind_current(autoplay=new_state.is_playing)

    def reorder_queue(self, old_index: int, new_index: int, track_id: str | None = None) -> None:
        self._commit(self._queue.reorder(self._state, old_index, new_index, track_id))

    def clear_queue(self) -> None:
        self._transport.stop()
        self._commit(self._queue.clear(self._state))

    def toggle_shuffle(self) -> None:
        self._commit(self._shuffle.toggle(self._state))

    # ------------------------------------------------------------------
    # Recommendation commands
    # ------------------------------------------------------------------

    def add_recommended_to_queue(self) -> None:
        self._commit(self._recommendations.append_to_queue(self._state))

    def remove_from_recommendations(self, index: int) -> None:
        self._commit(self._recommendations.remove(self._state, index))

    def reorder_recommendations(
        self, old_index: int, new_index: int, recommendation_id: str | None = None
    ) -> None:
        self._commit(
            self._recommendations.reorder(self._state, old_index, new_index, recommendation_id)
        )

    async def refresh_recommendations(self) -> None:
        """Fetch recommendations for the current key and wait for the result."""
        self._cancel_recommendation_task()
        key = self._state.recommendation_key
        self._recommendation_key = key
        if not self._should_fetch(key):
            self._commit(replace(self._state, recommended_tracks=()))
            return
        await self._fetch_recommendations(key)

    async def wait_for_recommendations(self) -> None:
        """Wait until no recommendation fetch is in flight."""
        while self._recommendation_task is not None and not self._recommendation_task.done():
            task = self._recommendation_task
            with suppress(asyncio.CancelledError):
                await task

    async def wait_for_play_recording(self) -> None:
        """Wait until an in-flight play report has finished."""
        await self._history.wait()

    def _should_fetch(self, key: RecommendationKey) -> bool:
        queue_ids, _current_id = key
        return bool(queue_ids) and self._recommendations.enabled

    def _sync_recommendations(self) -> None:
        key = self._state.recommendation_key
        if key == self._recommendation_key or self._closed:
            return
        self._recommendation_key = key
        self._cancel_recommendation_task()

        if not self._should_fetch(key):
            if self._state.recommended_tracks or self._state.is_loading_recommendations:
                self._commit(
                    replace(self._state, recommended_tracks=(), is_loading_recommendations=False)
                )
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; recommendation fetch deferred")
            return

        self._recommendation_task = loop.create_task(
            self._fetch_recommendations(key), name="fetch_recommendations"
        )
        self._commit(replace(self._state, is_loading_recommendations=True))

    async def _fetch_recommendations(self, key: RecommendationKey) -> None:
        queue_ids, _current_id = key
        try:
            candidates = await self._recommendations.lookup(queue_ids)
        except RecommendationLookupError as e:
            logger.warning(LogMessages.recommendation_lookup_failed(len(queue_ids), e.message))
            candidates = []
        except Exception as e:
            # Any client, not just ours; the loading flag must still clear below
            logger.exception(LogMessages.recommendation_lookup_failed(len(queue_ids), str(e)))
            candidates = []

        if key != self._state.recommendation_key or self._closed:
            logger.debug(LogMessages.stale_recommendations_discarded(len(candidates)))
            return

        batch = self._recommendations.merge(self._state, candidates)
        self._commit(
            replace(self._state, recommended_tracks=batch, is_loading_recommendations=False)
        )

    def _cancel_recommendation_task(self) -> None:
        if self._recommendation_task is not None and not self._recommendation_task.done():
            self._recommendation_task.cancel()
        self._recommendation_task = None

    # ------------------------------------------------------------------
    # Audio binding & events
    # ------------------------------------------------------------------

    def _elapsed(self) -> float:
        if self._transport.bound_track is None:
            return self._state.position
        return self._transport.elapsed

    def _advance_to(self, new_state: PlayerState) -> None:
        """Commit a navigation result and (re)bind the audio output."""
        failure = self._commit_and_bind(new_state)
        if failure is not None:
            self._handle_playback_error(failure)

    def _commit_and_bind(self, new_state: PlayerState) -> PlaybackPrimitiveError | None:
        was_idle = self._state.is_idle
        self._commit(new_state)
        if self._state.is_idle:
            if not was_idle:
                self._transport.stop()
            return None
        return self._load_current(autoplay=self._state.is_playing)

    def _bind_current(self, autoplay: bool) -> None:
        failure = self._load_current(autoplay)
        if failure is not None:
            self._handle_playback_error(failure)

    def _load_current(self, autoplay: bool) -> PlaybackPrimitiveError | None:
        """Load the current track; returns the failure instead of handling it."""
        track = self._state.current_track
        if track is None:
            return None
        self._history.reset()
        try:
            self._transport.load(track, autoplay=autoplay)
        except PlaybackPrimitiveError as e:
            return e
        return None

    def _handle_time_update(self, current_time: float) -> None:
        state = self._state
        if state.current_track is None:
            return
        if current_time > 0:
            self._consecutive_failures = 0
        self._commit(replace(state, position=current_time))
        self._history.track_progress(state.current_track, current_time)

    def _handle_track_ended(self) -> None:
        state = self._state
        if state.is_idle:
            return
        target = self._transport.end_of_track_state(state)
        if target is None:
            self._history.reset()
            self._commit(replace(state, position=0.0, is_playing=True))
            try:
                self._transport.restart()
            except PlaybackPrimitiveError as e:
                self._handle_playback_error(e)
            return
        self._advance_to(target)

    def _handle_playback_error(self, error: Exception) -> None:
        # Hey future me - sources can fail synchronously (offline, dead CDN), so skipping
        # is a loop and not a recursion. A long queue of broken tracks would otherwise blow
        # the stack before the "give up after len(queue) failures" rule kicks in.
        failure: Exception | None = error
        while failure is not None:
            failure = self._skip_failed_track(failure)

    def _skip_failed_track(self, error: Exception) -> PlaybackPrimitiveError | None:
        """Handle one failed track; returns the failure of the track skipped to, if any."""
        state = self._state
        track = state.current_track
        if track is None:
            return None

        skip = self._settings.playback.skip_on_error
        self._consecutive_failures += 1
        logger.warning(LogMessages.playback_failed(track=track, error=str(error), skipping=skip))

        if not skip:
            self._transport.pause()
            self._commit(
                replace(state, is_playing=False, error=f"Could not play {track.title}")
            )
            return None

        message = f"Could not play {track.title}, skipping"
        if self._consecutive_failures >= len(state.queue):
            logger.error(LogMessages.playback_abandoned(self._consecutive_failures))
            self._consecutive_failures = 0
            self._transport.stop()
            self._commit(replace(self._transport.idle_state(state), error=message))
            return None

        return self._commit_and_bind(replace(self._transport.next_state(state), error=message))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Tear down: cancel fetches, release the audio output, drop listeners."""
        self._closed = True
        self._cancel_recommendation_task()
        self._history.close()
        self._transport.close()
        self._listeners.clear()
