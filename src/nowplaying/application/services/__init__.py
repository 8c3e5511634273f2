"""Application services for the now-playing engine."""

from nowplaying.application.services.play_history_service import PlayHistoryService
from nowplaying.application.services.player_store import PlayerStore
from nowplaying.application.services.queue_manager import QueueManager
from nowplaying.application.services.recommendation_merger import RecommendationMerger
from nowplaying.application.services.shuffle_engine import ShuffleEngine
from nowplaying.application.services.transport_controller import TransportController

__all__ = [
    "PlayHistoryService",
    "PlayerStore",
    "QueueManager",
    "RecommendationMerger",
    "ShuffleEngine",
    "TransportController",
]
