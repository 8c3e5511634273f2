"""Content API HTTP client - recommendations and play reporting."""

import logging
from collections.abc import Sequence
from typing import Any

import httpx

from nowplaying.config.settings import ApiSettings
from nowplaying.domain.entities import Track
from nowplaying.domain.exceptions import (
    ConfigurationError,
    PlayRecordingError,
    RecommendationLookupError,
    ValidationException,
)
from nowplaying.domain.ports import IPlayHistoryRecorder, IRecommendationClient

logger = logging.getLogger(__name__)


class TrackApiClient(IRecommendationClient, IPlayHistoryRecorder):
    """HTTP client for the content API's track endpoints."""

    RECOMMENDATIONS_PATH = "/tracks/recommendations/from-queue"

    def __init__(self, settings: ApiSettings) -> None:
        """
        Initialize the content API client.

        Args:
            settings: Content API connection settings

        Raises:
            ConfigurationError: If base_url is not an http(s) URL
        """
        if not settings.base_url.startswith(("http://", "https://")):
            raise ConfigurationError(
                f"Content API base_url must be an http(s) URL, got {settings.base_url!r}"
            )
        self.settings = settings
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            headers = {"Accept": "application/json"}
            if self.settings.access_token:
                headers["Authorization"] = f"Bearer {self.settings.access_token}"
            self._client = httpx.AsyncClient(
                base_url=self.settings.base_url,
                headers=headers,
                timeout=self.settings.timeout,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # Hey future me - the server ranks candidates by co-occurrence with the given ids and
    # returns a plain JSON array of tracks. Anything that isn't a list of track objects is
    # treated as a failed lookup, not as "no recommendations" - an empty array is the only
    # way the server says "nothing to suggest".
    async def get_recommendations(self, track_ids: Sequence[str]) -> list[Track]:
        """
        Fetch ranked recommendations for a queue.

        Args:
            track_ids: Ids of the tracks currently in the queue, in queue order

        Returns:
            Candidate tracks in ranking order (may contain queue tracks)

        Raises:
            RecommendationLookupError: If the request or the payload is bad
        """
        client = await self._get_client()
        try:
            response = await client.post(
                self.RECOMMENDATIONS_PATH, json={"trackIds": list(track_ids)}
            )
            response.raise_for_status()
            payload: Any = response.json()
        except httpx.HTTPStatusError as e:
            raise RecommendationLookupError(
                f"Recommendation lookup failed with HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise RecommendationLookupError(f"Recommendation lookup failed: {e}") from e
        except ValueError as e:
            raise RecommendationLookupError("Recommendation lookup returned invalid JSON") from e

        if not isinstance(payload, list):
            raise RecommendationLookupError("Recommendation lookup returned a non-list payload")

        tracks: list[Track] = []
        for item in payload:
            try:
                tracks.append(Track.from_api(item))
            except (AttributeError, KeyError, TypeError, ValueError, ValidationException) as e:
                logger.debug("Skipping malformed recommendation %r: %s", item, e)
        return tracks

    async def record_play(self, track_id: str) -> None:
        """
        Report one play of a track.

        Args:
            track_id: Track that crossed the play threshold

        Raises:
            PlayRecordingError: If the request fails
        """
        client = await self._get_client()
        try:
            response = await client.post(f"/tracks/{track_id}/plays")
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise PlayRecordingError(f"Failed to record play of {track_id}: {e}") from e
