"""Queue Manager - insertion, removal and reordering of queue entries.

Hey future me - QueueManager is STATELESS! Every method takes a PlayerState and returns a
new one (or the SAME object when the call is a no-op, so the store can skip publishing).
That keeps each operation one atomic transition: the store swaps the whole snapshot in a
single assignment and observers never see a half-updated queue.

INDEX POLICY:
Out-of-range indices are silently ignored. The UI fires drag-and-drop and "remove" events
against whatever it rendered last, and crashing on a stale index helps nobody.

CURRENT TRACK TRACKING:
current_index is carried along through every mutation. Reordering moves the index with the
track; removing something in front of it shifts it down by one.

SHUFFLE MIRRORING:
While shuffled, original_queue is the order we restore on un-shuffle. Adds and removes are
mirrored into it so that restoring never drops a track the user added (or resurrects one
they removed) while shuffle was on. Reorders are NOT mirrored - they only affect the
shuffled view.
"""

import logging
from collections.abc import Sequence
from dataclasses import replace

from nowplaying.domain.entities import PlayerState, Track

logger = logging.getLogger(__name__)


def _in_bounds(index: int, length: int) -> bool:
    return 0 <= index < length


def find_entry(tracks: Sequence[Track], track: Track) -> int | None:
    """Locate a queue entry, preferring the exact object over an id match."""
    for i, candidate in enumerate(tracks):
        if candidate is track:
            return i
    for i, candidate in enumerate(tracks):
        if candidate.id == track.id:
            return i
    return None


class QueueManager:
    """Pure state transitions over the play queue."""

    def set_queue(
        self, state: PlayerState, tracks: Sequence[Track], start_track: Track
    ) -> PlayerState:
        """Replace the queue and make start_track current.

        Queue order equals input order. If start_track is not in tracks (by id) it is
        prepended at index 0.

        Args:
            state: Current player state
            tracks: New queue contents
            start_track: Track to make current

        Returns:
            New state with the replaced queue
        """
        queue = tuple(tracks)
        start_index = next(
            (i for i, track in enumerate(queue) if track.id == start_track.id), None
        )
        if start_index is None:
            queue = (start_track, *queue)
            start_index = 0

        return replace(
            state,
            queue=queue,
            current_track=queue[start_index],
            current_index=start_index,
            original_queue=None,
            is_shuffled=False,
            position=0.0,
            error=None,
        )

    def add(self, state: PlayerState, track: Track) -> PlayerState:
        """Append a track. Duplicates are allowed."""
        original = (*state.original_queue, track) if state.original_queue is not None else None
        return replace(state, queue=(*state.queue, track), original_queue=original)

    def add_next(self, state: PlayerState, track: Track) -> PlayerState:
        """Insert a track right after the current one ("play next").

        Callers handle the Idle case (the track simply starts playing); here an Idle state
        just gets the track appended.
        """
        if state.current_index is None:
            return self.add(state, track)

        insert_at = state.current_index + 1
        queue = (*state.queue[:insert_at], track, *state.queue[insert_at:])

        original = state.original_queue
        if original is not None:
            anchor = find_entry(original, state.current_track) if state.current_track else None
            original_at = anchor + 1 if anchor is not None else len(original)
            original = (*original[:original_at], track, *original[original_at:])

        return replace(state, queue=queue, original_queue=original)

    # Hey future me - the "who plays now" rule when the CURRENT entry is removed:
    # the track that slides into the same position, else the one before it, else Idle.
    # is_playing is preserved (a paused player stays paused on the new track), except
    # Idle which is never playing.
    def remove(self, state: PlayerState, index: int) -> PlayerState:
        """Remove the entry at index; no-op when index is out of range."""
        if not _in_bounds(index, len(state.queue)):
            logger.debug("Ignoring remove of out-of-range index %s", index)
            return state

        removed = state.queue[index]
        queue = (*state.queue[:index], *state.queue[index + 1 :])

        original = state.original_queue
        if original is not None:
            original_index = find_entry(original, removed)
            if original_index is not None:
                original = (*original[:original_index], *original[original_index + 1 :])

        current_index = state.current_index
        current_track = state.current_track
        is_playing = state.is_playing
        position = state.position

        if current_index is not None:
            if index < current_index:
                current_index -= 1
            elif index == current_index:
                position = 0.0
                if index < len(queue):
                    current_index = index
                elif index - 1 >= 0:
                    current_index = index - 1
                else:
                    current_index = None

                if current_index is None:
                    current_track = None
                    is_playing = False
                else:
                    current_track = queue[current_index]

        return replace(
            state,
            queue=queue,
            original_queue=original,
            current_index=current_index,
            current_track=current_track,
            is_playing=is_playing,
            position=position,
        )

    def reorder(
        self,
        state: PlayerState,
        old_index: int,
        new_index: int,
        track_id: str | None = None,
    ) -> PlayerState:
        """Move one entry from old_index to new_index.

        Args:
            state: Current player state
            old_index: Position of the entry to move
            new_index: Destination position
            track_id: Optional identity guard from the drag source. If the entry at
                old_index no longer has this id the event is a duplicate (or stale) and
                is ignored, which makes repeated drop events idempotent.

        Returns:
            New state, or the same state when the move is ignored
        """
        length = len(state.queue)
        if not (_in_bounds(old_index, length) and _in_bounds(new_index, length)):
            logger.debug("Ignoring reorder %s -> %s (queue length %s)", old_index, new_index, length)
            return state
        if track_id is not None and state.queue[old_index].id != track_id:
            logger.debug("Ignoring duplicate reorder of %s", track_id)
            return state
        if old_index == new_index:
            return state

        queue = list(state.queue)
        moved = queue.pop(old_index)
        queue.insert(new_index, moved)

        return replace(
            state,
            queue=tuple(queue),
            current_index=self._shift_index(state.current_index, old_index, new_index),
        )

    def clear(self, state: PlayerState) -> PlayerState:
        """Empty the queue and recommendations and go Idle."""
        return replace(
            state,
            queue=(),
            original_queue=() if state.is_shuffled else None,
            current_track=None,
            current_index=None,
            is_playing=False,
            recommended_tracks=(),
            position=0.0,
        )

    @staticmethod
    def _shift_index(current: int | None, old_index: int, new_index: int) -> int | None:
        if current is None:
            return None
        if current == old_index:
            return new_index
        if old_index < current <= new_index:
            return current - 1
        if new_index <= current < old_index:
            return current + 1
        return current
