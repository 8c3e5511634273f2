"""Integrations with external services."""

from nowplaying.infrastructure.integrations.track_api_client import TrackApiClient

__all__ = ["TrackApiClient"]
