"""Domain exceptions."""

from typing import Any


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    # Hey future me, we store message as an attribute so code can inspect it without parsing
    # str(exception). Don't raise this directly - use a specific subclass so callers can catch
    # precisely.
    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class ValidationException(DomainException):
    """Raised when input data violates an entity's rules.

    Example: a Track with a negative duration, or an unknown repeat mode string.
    """

    pass


class PlaybackPrimitiveError(DomainException):
    """Raised when the audio output fails to load or decode a track.

    Hey future me - this is RECOVERABLE! Network failure, unsupported format, 404 on the
    audio URL... the queue stays intact and the store skips to the next track. Never let
    this bubble up to the UI as a crash.
    """

    def __init__(self, message: str, track_id: str | None = None) -> None:
        super().__init__(message)
        self.track_id = track_id


class RecommendationLookupError(DomainException):
    """Raised when the recommendation endpoint fails.

    The store catches this, logs it, and publishes an empty recommendation list.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PlayRecordingError(DomainException):
    """Raised when a play could not be reported to the content API.

    Never user-visible. The play stays unrecorded and is retried on the next tick.
    """

    pass


class ConfigurationError(DomainException):
    """Application misconfiguration.

    Example:
        raise ConfigurationError("Content API base_url is not configured")
    """

    pass


__all__ = [
    "ConfigurationError",
    "DomainException",
    "PlayRecordingError",
    "PlaybackPrimitiveError",
    "RecommendationLookupError",
    "ValidationException",
]
