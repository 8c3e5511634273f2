"""Shared fixtures for the now-playing engine tests."""

import asyncio
import random
from collections.abc import Sequence

import pytest

from nowplaying.application.services import PlayerStore
from nowplaying.config.settings import Settings
from nowplaying.domain.entities import AlbumRef, ArtistRef, Track
from nowplaying.domain.exceptions import PlayRecordingError
from nowplaying.domain.ports import IPlayHistoryRecorder, IRecommendationClient
from nowplaying.infrastructure.audio import HeadlessAudioOutput


def make_track(track_id: str, duration: float = 200.0) -> Track:
    """Build a track whose title and audio URL derive from its id."""
    return Track(
        id=track_id,
        title=f"Track {track_id.upper()}",
        duration=duration,
        audio_url=f"https://cdn.test/audio/{track_id}.mp3",
        album=AlbumRef(id="album-1", title="Test Album"),
        artist=ArtistRef(id="artist-1", name="Test Artist"),
        album_id="album-1",
    )


class FakeRecommendationClient(IRecommendationClient):
    """Recommendation lookup returning canned candidates.

    responses maps a tuple of queue ids to the candidates for it; anything else gets
    default. Set error to make every lookup fail. on_call runs inside the lookup, which
    lets a test mutate the store while a fetch is in flight.
    """

    def __init__(self, default: Sequence[Track] = ()) -> None:
        self.default = list(default)
        self.responses: dict[tuple[str, ...], list[Track]] = {}
        self.calls: list[tuple[str, ...]] = []
        self.error: Exception | None = None
        self.gate: asyncio.Event | None = None
        self.on_call = None

    async def get_recommendations(self, track_ids: Sequence[str]) -> list[Track]:
        key = tuple(track_ids)
        self.calls.append(key)
        if self.on_call is not None:
            callback, self.on_call = self.on_call, None
            callback()
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return list(self.responses.get(key, self.default))


class FakePlayRecorder(IPlayHistoryRecorder):
    """Collects reported plays; fail_next makes the next report raise."""

    def __init__(self) -> None:
        self.recorded: list[str] = []
        self.fail_next = False

    async def record_play(self, track_id: str) -> None:
        if self.fail_next:
            self.fail_next = False
            raise PlayRecordingError(f"Failed to record play of {track_id}")
        self.recorded.append(track_id)


@pytest.fixture
def track_factory():
    """Factory for extra tracks: track_factory("e", duration=60.0)."""
    return make_track


@pytest.fixture
def track_a() -> Track:
    return make_track("a")


@pytest.fixture
def track_b() -> Track:
    return make_track("b")


@pytest.fixture
def track_c() -> Track:
    return make_track("c")


@pytest.fixture
def track_d() -> Track:
    return make_track("d")


@pytest.fixture
def settings() -> Settings:
    """Settings with defaults only (no .env, no environment overrides)."""
    return Settings(_env_file=None)


@pytest.fixture
def output() -> HeadlessAudioOutput:
    return HeadlessAudioOutput()


@pytest.fixture
def recommendation_client() -> FakeRecommendationClient:
    return FakeRecommendationClient()


@pytest.fixture
def play_recorder() -> FakePlayRecorder:
    return FakePlayRecorder()


@pytest.fixture
def store(output: HeadlessAudioOutput, settings: Settings):
    """Store without recommendation or play-history collaborators."""
    player = PlayerStore(output, settings=settings, rng=random.Random(7))
    yield player
    player.close()


@pytest.fixture
def connected_store(
    output: HeadlessAudioOutput,
    settings: Settings,
    recommendation_client: FakeRecommendationClient,
    play_recorder: FakePlayRecorder,
):
    """Store wired to the fake recommendation client and play recorder."""
    player = PlayerStore(
        output,
        recommendation_client=recommendation_client,
        play_recorder=play_recorder,
        settings=settings,
        rng=random.Random(7),
    )
    yield player
    player.close()

