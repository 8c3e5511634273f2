"""Domain entities for the now-playing engine.

Hey future me - everything in here is an IMMUTABLE snapshot! PlayerState is a
frozen dataclass whose sequences are tuples, so a subscriber can hold on to a
state object forever and it will never change under its feet. Every mutation
in the application layer builds a NEW PlayerState via dataclasses.replace().
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from nowplaying.domain.exceptions import ValidationException


class RepeatMode(str, Enum):
    """Repeat policy at queue boundaries (ALL) or on natural track end (ONE)."""

    OFF = "off"
    ALL = "all"
    ONE = "one"

    @classmethod
    def from_string(cls, value: str) -> "RepeatMode":
        """Parse a repeat mode from its string value (case-insensitive)."""
        try:
            return cls(value.strip().lower())
        except ValueError as e:
            raise ValidationException(f"Unknown repeat mode: {value!r}") from e

    def cycle(self) -> "RepeatMode":
        """Next mode in the off -> all -> one -> off rotation."""
        order = (RepeatMode.OFF, RepeatMode.ALL, RepeatMode.ONE)
        return order[(order.index(self) + 1) % len(order)]


class PlaybackStatus(str, Enum):
    """Transport state derived from PlayerState."""

    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"


@dataclass(frozen=True)
class AlbumRef:
    """Denormalized album reference carried by a track."""

    id: str
    title: str
    cover_image: str | None = None


@dataclass(frozen=True)
class ArtistRef:
    """Denormalized artist reference carried by a track."""

    id: str
    name: str


# Yo, Track is owned by the content API - the engine never edits one. Equality is by VALUE
# (frozen dataclass), so two Track objects with the same fields compare equal. Identity in the
# queue is the `id` field; the same track may legitimately sit in the queue twice.
@dataclass(frozen=True)
class Track:
    """A playable track as delivered by the content API."""

    id: str
    title: str
    duration: float
    audio_url: str
    album: AlbumRef | None = None
    artist: ArtistRef | None = None
    album_id: str | None = None
    lyrics: str | None = None
    plays: int = 0

    def __post_init__(self) -> None:
        if not self.id:
            raise ValidationException("Track id must not be empty")
        if self.duration < 0:
            raise ValidationException(
                f"Track {self.id} has negative duration {self.duration}"
            )

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "Track":
        """Build a Track from the content API's camelCase JSON payload."""
        album_data = payload.get("album")
        artist_data = payload.get("artist")
        album = (
            AlbumRef(
                id=str(album_data["id"]),
                title=album_data.get("title", ""),
                cover_image=album_data.get("coverImage"),
            )
            if album_data
            else None
        )
        artist = (
            ArtistRef(id=str(artist_data["id"]), name=artist_data.get("name", ""))
            if artist_data
            else None
        )
        return cls(
            id=str(payload["id"]),
            title=payload.get("title", ""),
            duration=float(payload.get("duration") or 0),
            audio_url=payload.get("audioUrl", ""),
            album=album,
            artist=artist,
            album_id=payload.get("albumId"),
            lyrics=payload.get("lyrics"),
            plays=int(payload.get("plays") or 0),
        )


@dataclass(frozen=True)
class RecommendedTrack:
    """A suggested track plus an id scoped to one recommendation batch.

    recommendation_id is regenerated every time the batch is recomputed, so UI keys
    never collide even when the same track resurfaces in a later batch.
    """

    track: Track
    recommendation_id: str

    @property
    def id(self) -> str:
        return self.track.id

    def as_track(self) -> Track:
        return self.track


# Hey future me - PlayerState is THE snapshot published to subscribers. Invariants:
#   1. current_track is not None  <=>  current_index is not None, and
#      queue[current_index] == current_track
#   2. original_queue is not None  <=>  is_shuffled
#   3. no recommendation id is in queue_ids or equals current_track.id
# current_index is stored (not recomputed from the id) so a track that appears twice in the
# queue is still unambiguous. The application services keep these invariants; the entity
# itself does not police them because intermediate states are built with replace().
@dataclass(frozen=True)
class PlayerState:
    """Immutable snapshot of the player."""

    current_track: Track | None = None
    current_index: int | None = None
    queue: tuple[Track, ...] = ()
    original_queue: tuple[Track, ...] | None = None
    is_shuffled: bool = False
    is_playing: bool = False
    volume: float = 1.0
    is_muted: bool = False
    repeat_mode: RepeatMode = RepeatMode.OFF
    recommended_tracks: tuple[RecommendedTrack, ...] = ()
    is_loading_recommendations: bool = False
    position: float = 0.0
    error: str | None = None

    @property
    def status(self) -> PlaybackStatus:
        if self.current_track is None:
            return PlaybackStatus.IDLE
        return PlaybackStatus.PLAYING if self.is_playing else PlaybackStatus.PAUSED

    @property
    def is_idle(self) -> bool:
        return self.current_track is None

    @property
    def queue_ids(self) -> tuple[str, ...]:
        return tuple(track.id for track in self.queue)

    @property
    def recommendation_key(self) -> tuple[tuple[str, ...], str | None]:
        """Composite key that drives recommendation recomputation."""
        current_id = self.current_track.id if self.current_track else None
        return (self.queue_ids, current_id)


__all__ = [
    "AlbumRef",
    "ArtistRef",
    "PlaybackStatus",
    "PlayerState",
    "RecommendedTrack",
    "RepeatMode",
    "Track",
]
