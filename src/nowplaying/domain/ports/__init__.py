"""Port interfaces for the collaborators the engine commands or consumes.

Hey future me - these are the PORTS of the hexagon! The application layer only ever talks
to these abstractions:

- IAudioOutput: the stateful audio primitive (browser <audio>, mpv, a test double...)
- IRecommendationClient: ranked candidate lookup keyed on the queue's track ids
- IPlayHistoryRecorder: "this track was played" reporting

Concrete adapters live in nowplaying.infrastructure.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from enum import Enum
from typing import Any

from nowplaying.domain.entities import Track


class AudioEvent(str, Enum):
    """Events emitted by an audio output."""

    TIME_UPDATE = "timeupdate"
    ENDED = "ended"
    ERROR = "error"


# Handler signatures per event:
#   TIME_UPDATE -> handler(current_time: float)
#   ENDED       -> handler()
#   ERROR       -> handler(error: Exception)
AudioEventHandler = Callable[..., Any]
Unsubscribe = Callable[[], None]


class IAudioOutput(ABC):
    """Interface for the audio output primitive.

    Mirrors the shape of an HTML media element: a source, play/pause/seek, volume and
    muted, plus an event stream. add_listener() MUST return a callable that removes
    exactly that listener - the transport controller relies on it to avoid leaking
    listeners across track switches.
    """

    @abstractmethod
    def set_source(self, src: str | None) -> None:
        """Point the output at a new audio URL (None unloads)."""
        pass

    @abstractmethod
    def play(self) -> None:
        """Start or resume playback.

        Raises:
            PlaybackPrimitiveError: If the source cannot be loaded or decoded
        """
        pass

    @abstractmethod
    def pause(self) -> None:
        pass

    @abstractmethod
    def seek(self, time: float) -> None:
        """Jump to an absolute position in seconds."""
        pass

    @abstractmethod
    def set_volume(self, volume: float) -> None:
        """Set output volume in the range 0.0 - 1.0."""
        pass

    @abstractmethod
    def set_muted(self, muted: bool) -> None:
        pass

    @property
    @abstractmethod
    def current_time(self) -> float:
        """Elapsed seconds on the loaded source."""
        pass

    @abstractmethod
    def add_listener(self, event: AudioEvent, handler: AudioEventHandler) -> Unsubscribe:
        """Subscribe to an event, returning a callable that unsubscribes."""
        pass


class IRecommendationClient(ABC):
    """Interface for the recommendation lookup."""

    @abstractmethod
    async def get_recommendations(self, track_ids: Sequence[str]) -> list[Track]:
        """Return ranked candidate tracks for the given queue.

        Raises:
            RecommendationLookupError: If the lookup fails
        """
        pass


class IPlayHistoryRecorder(ABC):
    """Interface for reporting completed plays back to the content API."""

    @abstractmethod
    async def record_play(self, track_id: str) -> None:
        pass


__all__ = [
    "AudioEvent",
    "AudioEventHandler",
    "IAudioOutput",
    "IPlayHistoryRecorder",
    "IRecommendationClient",
    "Unsubscribe",
]
