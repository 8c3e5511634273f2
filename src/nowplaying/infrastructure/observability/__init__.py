"""Observability infrastructure for structured logging."""

from nowplaying.infrastructure.observability.log_messages import LogMessages, LogTemplate
from nowplaying.infrastructure.observability.logging import (
    configure_logging,
    get_session_id,
    set_session_id,
)

__all__ = [
    "LogMessages",
    "LogTemplate",
    "configure_logging",
    "get_session_id",
    "set_session_id",
]
