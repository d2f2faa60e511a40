"""
VibeJo Host Session.

Table events, read-only snapshots and bot turn scheduling for the host UI.
"""

from src.realtime.events import EventPayload, GameEvent, classify_transition
from src.realtime.models import CardView, PlayerView, TableSnapshot
from src.realtime.scheduler import BotScheduler
from src.realtime.session import GameSession, create_session

__all__ = [
    "BotScheduler",
    "CardView",
    "EventPayload",
    "GameEvent",
    "GameSession",
    "PlayerView",
    "TableSnapshot",
    "classify_transition",
    "create_session",
]
