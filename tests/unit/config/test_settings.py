"""Tests for application settings."""

import pytest
from pydantic import ValidationError

from nowplaying.config.settings import ApiSettings, ObservabilitySettings, Settings, get_settings


class TestSettingsDefaults:
    """Test default values."""

    def test_playback_defaults(self, settings: Settings) -> None:
        assert settings.playback.previous_restart_threshold == 3.0
        assert settings.playback.skip_on_error is True
        assert settings.playback.autoplay_recommendations is False
        assert settings.playback.play_record_min_seconds == 30.0
        assert settings.playback.play_record_min_ratio == 0.3

    def test_recommendation_defaults(self, settings: Settings) -> None:
        assert settings.recommendations.enabled is True
        assert settings.recommendations.max_results == 20


class TestSettingsEnvironment:
    """Test loading from environment variables."""

    def test_nested_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NOWPLAYING_PLAYBACK__SKIP_ON_ERROR", "false")
        monkeypatch.setenv("NOWPLAYING_API__BASE_URL", "https://music.example.com/api/")
        monkeypatch.setenv("NOWPLAYING_OBSERVABILITY__LOG_LEVEL", "debug")

        settings = Settings(_env_file=None)

        assert settings.playback.skip_on_error is False
        assert settings.api.base_url == "https://music.example.com/api"
        assert settings.observability.log_level == "DEBUG"

    def test_get_settings_is_cached(self) -> None:
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()


class TestSettingsValidation:
    """Test field validation."""

    def test_invalid_log_level(self) -> None:
        with pytest.raises(ValidationError):
            ObservabilitySettings(log_level="LOUD")

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            ApiSettings(timeout=0)
