"""Application settings loaded from environment variables.

Hey future me - settings come from env vars (prefix NOWPLAYING_) and an optional .env file.
Nested groups use a double underscore: NOWPLAYING_PLAYBACK__SKIP_ON_ERROR=false sets
settings.playback.skip_on_error. Call get_settings() - it is cached, so the env is read once.
"""

from functools import lru_cache

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Hey future me, these knobs shape the transport semantics! previous_restart_threshold is the
# "press previous within 3 seconds goes back, later restarts the track" rule every player has.
# autoplay_recommendations defaults to False - with it on, running off the end of the queue
# appends the recommendations and keeps playing instead of going Idle.
class PlaybackSettings(BaseModel):
    """Transport and queue behaviour."""

    previous_restart_threshold: float = Field(
        default=3.0, ge=0.0, description="Seconds after which previous() restarts the track"
    )
    default_volume: float = Field(default=1.0, ge=0.0, le=1.0)
    seek_step: float = Field(default=5.0, gt=0.0, description="Keyboard seek step (seconds)")
    volume_step: float = Field(default=0.1, gt=0.0, le=1.0)
    skip_on_error: bool = Field(
        default=True, description="Advance to the next track when playback fails"
    )
    autoplay_recommendations: bool = Field(
        default=False, description="Append recommendations when the queue runs out"
    )
    play_record_min_seconds: float = Field(default=30.0, ge=0.0)
    play_record_min_ratio: float = Field(default=0.3, ge=0.0, le=1.0)


class ApiSettings(BaseModel):
    """Content API connection."""

    base_url: str = Field(default="http://localhost:8000/api")
    timeout: float = Field(default=10.0, gt=0.0)
    access_token: str | None = Field(default=None, description="Bearer token (optional)")

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class RecommendationSettings(BaseModel):
    """Recommendation merging."""

    enabled: bool = True
    max_results: int = Field(default=20, ge=0, description="0 means no limit")


class ObservabilitySettings(BaseModel):
    """Logging configuration."""

    log_level: str = Field(default="INFO")
    log_json_format: bool = Field(default=False)

    @field_validator("log_level")
    @classmethod
    def normalize_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {value}")
        return level


class Settings(BaseSettings):
    """Root settings object."""

    model_config = SettingsConfigDict(
        env_prefix="NOWPLAYING_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    app_name: str = "nowplaying"
    playback: PlaybackSettings = Field(default_factory=PlaybackSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)
    recommendations: RecommendationSettings = Field(default_factory=RecommendationSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)


@lru_cache
def get_settings() -> Settings:
    """Return the cached application settings."""
    return Settings()
