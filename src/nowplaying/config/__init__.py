"""Configuration module for NowPlaying."""

from .settings import (
    ApiSettings,
    ObservabilitySettings,
    PlaybackSettings,
    RecommendationSettings,
    Settings,
    get_settings,
)

__all__ = [
    "ApiSettings",
    "ObservabilitySettings",
    "PlaybackSettings",
    "RecommendationSettings",
    "Settings",
    "get_settings",
]
