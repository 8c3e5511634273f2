"""Recommendation Merger - filters suggestion batches against the live queue.

Hey future me - this service NEVER decides what to recommend (the server ranks candidates).
It only makes the ranked list safe to show next to the queue:

1. Drop candidates already in the queue or equal to the current track
2. Drop repeats inside the batch (the ranker sometimes returns a track twice)
3. Give every survivor a FRESH recommendation_id (uuid-based, never reused)
4. Cap the batch at max_results

prune() re-applies rule 1 to an existing batch. The store runs it on every state commit,
so adding a recommended track to the queue by hand makes it vanish from the suggestions
immediately instead of waiting for the next fetch.
"""

import logging
import uuid
from collections.abc import Iterable
from dataclasses import replace

from nowplaying.config.settings import RecommendationSettings
from nowplaying.domain.entities import PlayerState, RecommendedTrack, Track
from nowplaying.domain.ports import IRecommendationClient

logger = logging.getLogger(__name__)


def _excluded_ids(state: PlayerState) -> set[str]:
    excluded = set(state.queue_ids)
    if state.current_track is not None:
        excluded.add(state.current_track.id)
    return excluded


class RecommendationMerger:
    """Deduplicates and merges recommendation batches."""

    def __init__(
        self,
        client: IRecommendationClient | None = None,
        settings: RecommendationSettings | None = None,
    ) -> None:
        self._client = client
        self._settings = settings or RecommendationSettings()

    @property
    def enabled(self) -> bool:
        return self._client is not None and self._settings.enabled

    async def lookup(self, track_ids: Iterable[str]) -> list[Track]:
        """Fetch ranked candidates for the given queue ids.

        Raises:
            RecommendationLookupError: If the lookup fails
        """
        if self._client is None:
            return []
        return await self._client.get_recommendations(list(track_ids))

    @staticmethod
    def new_recommendation_id(track: Track) -> str:
        return f"recommendation-{track.id}-{uuid.uuid4().hex}"

    def merge(self, state: PlayerState, candidates: Iterable[Track]) -> tuple[RecommendedTrack, ...]:
        """Filter candidates against state and wrap them in a fresh batch.

        Args:
            state: Player state the batch is computed for
            candidates: Ranked candidates from the lookup

        Returns:
            The new batch; empty when nothing survives filtering
        """
        excluded = _excluded_ids(state)
        seen: set[str] = set()
        batch: list[RecommendedTrack] = []
        limit = self._settings.max_results

        for track in candidates:
            if track.id in excluded or track.id in seen:
                continue
            seen.add(track.id)
            batch.append(RecommendedTrack(track=track, recommendation_id=self.new_recommendation_id(track)))
            if limit and len(batch) >= limit:
                break

        logger.debug("Merged recommendations: %s kept", len(batch))
        return tuple(batch)

    def prune(self, state: PlayerState) -> PlayerState:
        """Drop recommendations that collide with the queue or current track."""
        if not state.recommended_tracks:
            return state
        excluded = _excluded_ids(state)
        kept = tuple(rec for rec in state.recommended_tracks if rec.id not in excluded)
        if len(kept) == len(state.recommended_tracks):
            return state
        return replace(state, recommended_tracks=kept)

    def append_to_queue(self, state: PlayerState) -> PlayerState:
        """Append every recommendation to the queue and clear the batch."""
        if not state.recommended_tracks:
            return state
        tracks = tuple(rec.as_track() for rec in state.recommended_tracks)
        original = (
            (*state.original_queue, *tracks) if state.original_queue is not None else None
        )
        return replace(
            state,
            queue=(*state.queue, *tracks),
            original_queue=original,
            recommended_tracks=(),
        )

    def remove(self, state: PlayerState, index: int) -> PlayerState:
        """Remove one recommendation; no-op when index is out of range."""
        recs = state.recommended_tracks
        if not 0 <= index < len(recs):
            logger.debug("Ignoring recommendation remove at %s", index)
            return state
        return replace(state, recommended_tracks=(*recs[:index], *recs[index + 1 :]))

    def reorder(
        self,
        state: PlayerState,
        old_index: int,
        new_index: int,
        recommendation_id: str | None = None,
    ) -> PlayerState:
        """Move one recommendation; same bounds and duplicate-event policy as the queue."""
        recs = list(state.recommended_tracks)
        if not (0 <= old_index < len(recs) and 0 <= new_index < len(recs)):
            return state
        if recommendation_id is not None and recs[old_index].recommendation_id != recommendation_id:
            return state
        if old_index == new_index:
            return state
        moved = recs.pop(old_index)
        recs.insert(new_index, moved)
        return replace(state, recommended_tracks=tuple(recs))
