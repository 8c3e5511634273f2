"""NowPlaying - client-side playback queue and transport-control engine."""

__version__ = "0.1.0"
