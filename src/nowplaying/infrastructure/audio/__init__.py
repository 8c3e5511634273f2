"""Audio output adapters."""

from nowplaying.infrastructure.audio.headless_output import HeadlessAudioOutput

__all__ = ["HeadlessAudioOutput"]
