"""
VibeJo Game Engine.

Pure Python game logic with zero UI dependencies.
Handles deck building, dealing, column matching, scoring, turn
progression and the random bot.
"""

from src.engine.actions import (
    Action,
    EndGame,
    EndTurn,
    PickOpenCard,
    PickRevealedCard,
    RejectRevealedCard,
    RevealFromDeck,
    RevealInitialCards,
    RevealOwnCard,
    StartGame,
    StartNewRound,
    SwapCard,
)
from src.engine.base import ActionPhase, Card, GamePhase, Hand, Participant
from src.engine.bot import HUMAN_PLAYER_ID, RandomBot
from src.engine.deck import DeckEngine
from src.engine.lifecycle import LifecycleEngine
from src.engine.scoring import ScoringEngine
from src.engine.state import TableState
from src.engine.turns import TurnEngine, transition

__all__ = [
    # Data Classes
    "Card",
    "Hand",
    "Participant",
    "TableState",
    # Enums
    "ActionPhase",
    "GamePhase",
    # Actions
    "Action",
    "EndGame",
    "EndTurn",
    "PickOpenCard",
    "PickRevealedCard",
    "RejectRevealedCard",
    "RevealFromDeck",
    "RevealInitialCards",
    "RevealOwnCard",
    "StartGame",
    "StartNewRound",
    "SwapCard",
    # Engines
    "DeckEngine",
    "LifecycleEngine",
    "ScoringEngine",
    "TurnEngine",
    "RandomBot",
    "HUMAN_PLAYER_ID",
    "transition",
]
