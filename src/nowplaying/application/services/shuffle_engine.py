"""Shuffle Engine - reversible randomized queue order.

Hey future me - shuffle is a VIEW over the queue, not a destructive operation!
Enabling it snapshots the current order into original_queue; disabling puts that snapshot
back verbatim. Round-trip law: enable + disable with nothing in between gives you the
exact queue you started with.

The currently playing track is pinned to index 0 and everything else is permuted behind
it, so turning shuffle on never yanks the listener to a different song and "next" always
lands on a random upcoming track.

Randomness comes from an injectable random.Random - pass a seeded one in tests.
"""

import logging
import random
from collections.abc import Sequence
from dataclasses import replace
from typing import TypeVar

from nowplaying.application.services.queue_manager import find_entry
from nowplaying.domain.entities import PlayerState

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ShuffleEngine:
    """Computes and restores shuffled queue orders."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._random = rng or random.Random()

    def permute(self, items: Sequence[T]) -> list[T]:
        """Return an unbiased random permutation (Fisher-Yates)."""
        result = list(items)
        for i in range(len(result) - 1, 0, -1):
            j = self._random.randint(0, i)
            result[i], result[j] = result[j], result[i]
        return result

    def toggle(self, state: PlayerState) -> PlayerState:
        """Enable shuffle if off, restore the original order if on.

        Toggling an empty, unshuffled queue is a no-op.
        """
        if state.is_shuffled:
            return self.restore(state)
        if not state.queue:
            return state
        return self.shuffle(state)

    def shuffle(self, state: PlayerState) -> PlayerState:
        """Snapshot the present queue and replace it with a shuffled order."""
        snapshot = state.queue
        remaining = list(snapshot)
        current = state.current_track

        if state.current_index is not None:
            remaining.pop(state.current_index)

        shuffled = self.permute(remaining)
        if current is not None:
            queue = (current, *shuffled)
            current_index: int | None = 0
        else:
            queue = tuple(shuffled)
            current_index = None

        logger.debug("Shuffled queue of %s tracks", len(queue))
        return replace(
            state,
            queue=queue,
            current_index=current_index,
            original_queue=snapshot,
            is_shuffled=True,
        )

    def restore(self, state: PlayerState) -> PlayerState:
        """Put original_queue back exactly and clear it."""
        original = state.original_queue if state.original_queue is not None else state.queue
        current_index = (
            find_entry(original, state.current_track) if state.current_track else None
        )
        current_track = original[current_index] if current_index is not None else None

        return replace(
            state,
            queue=original,
            original_queue=None,
            is_shuffled=False,
            current_index=current_index,
            current_track=current_track,
            is_playing=state.is_playing and current_track is not None,
        )

