"""
VibeJo - Action Catalog

Discrete inputs to the turn state machine. The host builds them from UI
gestures; the bot builds them from its random choices.
"""

from dataclasses import dataclass
from typing import Sequence, Union

from src.engine.base import Card


@dataclass(frozen=True)
class StartGame:
    """Deal the first round and flip the open card."""


@dataclass(frozen=True)
class RevealOwnCard:
    """Turn the active participant's card at ``index`` face-up."""
    index: int


@dataclass(frozen=True)
class RevealInitialCards:
    """Reveal two cards for every participant at once (lowest positions first)."""


@dataclass(frozen=True)
class PickOpenCard:
    """Take the open card; it will be swapped into the hand."""


@dataclass(frozen=True)
class RevealFromDeck:
    """
    Draw the front card of the deck.

    Attributes:
        card: The drawn card
        deck: The deck without the drawn card
    """
    card: Card
    deck: tuple[Card, ...]

    @classmethod
    def draw(cls, deck: Sequence[Card]) -> "RevealFromDeck":
        """
        Build the action from the current deck.

        Raises:
            ValueError: If the deck is empty
        """
        if not deck:
            raise ValueError("Cannot draw from an empty deck.")
        return cls(card=deck[0], deck=tuple(deck[1:]))


@dataclass(frozen=True)
class PickRevealedCard:
    """Take the drawn card; it becomes the open card to be swapped."""


@dataclass(frozen=True)
class RejectRevealedCard:
    """Discard the drawn card to the open pile and reveal an own card instead."""


@dataclass(frozen=True)
class SwapCard:
    """Swap the open card with the active participant's card at ``index``."""
    index: int


@dataclass(frozen=True)
class EndTurn:
    """Explicitly pass the turn, tracking who finished first."""


@dataclass(frozen=True)
class StartNewRound:
    """
    Deal a new round, keeping cumulative scores.

    Attributes:
        deck: Pre-built deck (a fresh shuffled deck if omitted)
    """
    deck: tuple[Card, ...] | None = None


@dataclass(frozen=True)
class EndGame:
    """Finish the game immediately."""


Action = Union[
    StartGame,
    RevealOwnCard,
    RevealInitialCards,
    PickOpenCard,
    RevealFromDeck,
    PickRevealedCard,
    RejectRevealedCard,
    SwapCard,
    EndTurn,
    StartNewRound,
    EndGame,
]
