"""Structured log message templates for player events.

Hey future me - instead of "Error: 404" in the logs, a skipped track looks like:

    🔴 Playback Failed
    ├─ Track: Comfortably Numb (trk-42)
    ├─ Source: https://cdn.example.com/audio/42.mp3
    ├─ Reason: 404 Not Found
    └─ 💡 Skipping to the next track

Usage:
    from nowplaying.infrastructure.observability.log_messages import LogMessages

    logger.warning(LogMessages.playback_failed(track=track, error=str(e), skipping=True))
"""

from dataclasses import dataclass
from typing import Any

from nowplaying.domain.entities import Track


@dataclass
class LogTemplate:
    """A reusable log message template with placeholders."""

    icon: str
    title: str
    fields: dict[str, str]
    hint: str | None = None

    def format(self, **kwargs: Any) -> str:
        """Format the template with provided values.

        Args:
            **kwargs: Values to fill into template placeholders

        Returns:
            Formatted multi-line log message with icon, title, fields, and optional hint
        """
        lines = [f"{self.icon} {self.title}"]

        field_items = list(self.fields.items())
        for i, (key, value_template) in enumerate(field_items):
            prefix = "└─" if i == len(field_items) - 1 and not self.hint else "├─"
            try:
                value = value_template.format(**kwargs)
            except KeyError as e:
                value = f"<missing: {e}>"
            lines.append(f"{prefix} {key}: {value}")

        if self.hint:
            try:
                hint_text = self.hint.format(**kwargs)
            except KeyError as e:
                hint_text = f"<missing: {e}>"
            lines.append(f"└─ 💡 {hint_text}")

        return "\n".join(lines)


class LogMessages:
    """Collection of standardized player log messages."""

    @staticmethod
    def playback_failed(track: Track, error: str, skipping: bool) -> str:
        """Format a playback failure message.

        Args:
            track: Track that failed to play
            error: Error message from the audio output
            skipping: Whether the store is advancing to the next track
        """
        template = LogTemplate(
            icon="🔴",
            title="Playback Failed",
            fields={
                "Track": "{title} ({track_id})",
                "Source": "{source}",
                "Reason": "{error}",
            },
            hint=(
                "Skipping to the next track"
                if skipping
                else "Playback stopped - check the audio URL and format"
            ),
        )
        return template.format(
            title=track.title, track_id=track.id, source=track.audio_url, error=error
        )

    @staticmethod
    def playback_abandoned(failures: int) -> str:
        """Format the message logged when every queued track failed in a row."""
        template = LogTemplate(
            icon="⛔",
            title="Playback Abandoned",
            fields={"Consecutive failures": "{failures}"},
            hint="Every track in the queue failed - is the content API reachable?",
        )
        return template.format(failures=failures)

    @staticmethod
    def recommendation_lookup_failed(track_count: int, error: str) -> str:
        """Format a recommendation lookup failure."""
        template = LogTemplate(
            icon="⚠️",
            title="Recommendation Lookup Failed",
            fields={"Queue size": "{track_count}", "Reason": "{error}"},
            hint="Publishing an empty recommendation list",
        )
        return template.format(track_count=track_count, error=error)

    @staticmethod
    def stale_recommendations_discarded(result_count: int) -> str:
        """Format the debug message for a superseded recommendation fetch."""
        template = LogTemplate(
            icon="🗑️",
            title="Stale Recommendations Discarded",
            fields={"Results": "{result_count}"},
        )
        return template.format(result_count=result_count)
