"""
VibeJo - Game Engine Base Classes

This module defines the foundational data structures and enums used throughout
the game engine. All classes are immutable (frozen dataclasses) so a state can
be retained by the host for rendering while the next one is built.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterator, Sequence

MIN_CARD_VALUE = -2
MAX_CARD_VALUE = 12
GRID_ROWS = 3
GRID_COLUMNS = 4
HAND_SIZE = GRID_ROWS * GRID_COLUMNS
INITIAL_REVEAL_COUNT = 2
DEFAULT_TARGET_SCORE = 100


class GamePhase(Enum):
    """Overall phase of a game."""
    INITIAL = "initial"
    PLAYING = "playing"
    ROUND_FINISHED = "round_finished"
    GAME_FINISHED = "game_finished"


class ActionPhase(Enum):
    """Step within a single turn while playing."""
    CHOOSE = "choose"
    SWAP = "swap"
    REVEAL = "reveal"
    CHOOSE_REVEALED = "choose_revealed"


@dataclass(frozen=True)
class Card:
    """
    A single card.

    Attributes:
        id: Unique token within a deck
        value: Face value (-2 to 12), zeroed once removed
        visible: Whether the card is face-up
        removed: Whether the card was eliminated by a column match
        position: Grid position (0-11) once dealt
    """
    id: str
    value: int
    visible: bool = False
    removed: bool = False
    position: int = 0

    def __post_init__(self) -> None:
        """Validate value and grid position."""
        if not (MIN_CARD_VALUE <= self.value <= MAX_CARD_VALUE):
            raise ValueError(
                f"Invalid card value {self.value}. "
                f"Must be between {MIN_CARD_VALUE} and {MAX_CARD_VALUE}."
            )
        if not (0 <= self.position < HAND_SIZE):
            raise ValueError(
                f"Invalid grid position {self.position}. "
                f"Must be between 0 and {HAND_SIZE - 1}."
            )

    @property
    def column(self) -> int:
        """Column index (0-3) of this card in the grid."""
        return self.position % GRID_COLUMNS

    @property
    def is_face_down(self) -> bool:
        return not self.visible and not self.removed

    @property
    def counts_towards_score(self) -> bool:
        return self.visible and not self.removed

    def face_up(self) -> "Card":
        """Return a visible copy of this card."""
        return replace(self, visible=True)


@dataclass(frozen=True)
class Hand:
    """
    Immutable 3x4 card grid of a participant.

    Cards are stored in position order. Column ``c`` holds positions
    ``c``, ``c + 4`` and ``c + 8``. A hand is empty until dealt.
    """
    cards: tuple[Card, ...] = ()

    def __post_init__(self) -> None:
        """Validate hand structure."""
        if len(self.cards) not in (0, HAND_SIZE):
            raise ValueError(
                f"Hand must have 0 or {HAND_SIZE} cards, got {len(self.cards)}"
            )
        for index, card in enumerate(self.cards):
            if card.position != index:
                raise ValueError(
                    f"Card at index {index} has grid position {card.position}"
                )

    def __len__(self) -> int:
        return len(self.cards)

    def __getitem__(self, index: int) -> Card:
        return self.cards[index]

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards)

    @classmethod
    def from_values(
        cls,
        values: Sequence[int],
        visible: Sequence[int] = (),
        removed: Sequence[int] = (),
        prefix: str = "card",
    ) -> "Hand":
        """Create a hand from 12 values, flipping/removing the given positions."""
        cards = []
        for position, value in enumerate(values):
            is_removed = position in removed
            cards.append(Card(
                id=f"{prefix}-{position}",
                value=0 if is_removed else value,
                visible=position in visible or is_removed,
                removed=is_removed,
                position=position,
            ))
        return cls(cards=tuple(cards))

    @property
    def is_dealt(self) -> bool:
        return len(self.cards) == HAND_SIZE

    def column(self, column_index: int) -> tuple[Card, ...]:
        """Cards of one column, top to bottom."""
        if not (0 <= column_index < GRID_COLUMNS):
            raise ValueError(
                f"Column index must be 0-{GRID_COLUMNS - 1}, got {column_index}"
            )
        return tuple(self.cards[column_index::GRID_COLUMNS])

    def replace_card(self, index: int, card: Card) -> "Hand":
        """Return a new hand with the card at ``index`` replaced."""
        cards = list(self.cards)
        cards[index] = replace(card, position=index)
        return Hand(cards=tuple(cards))

    @property
    def visible_count(self) -> int:
        """Number of face-up cards that still count (not removed)."""
        return sum(1 for card in self.cards if card.counts_towards_score)

    @property
    def face_down_indices(self) -> tuple[int, ...]:
        return tuple(i for i, card in enumerate(self.cards) if card.is_face_down)

    @property
    def active_indices(self) -> tuple[int, ...]:
        """Indices of cards that have not been removed."""
        return tuple(i for i, card in enumerate(self.cards) if not card.removed)


@dataclass(frozen=True)
class Participant:
    """
    A seat at the table.

    Attributes:
        id: Participant identity
        name: Display name
        hand: Current 12-card grid
        finished: Whether every card is visible or removed
        round_score: Score of the current round
        total_score: Cumulative score across rounds
    """
    id: str
    name: str
    hand: Hand = field(default_factory=Hand)
    finished: bool = False
    round_score: int = 0
    total_score: int = 0

    def with_hand(self, hand: Hand) -> "Participant":
        return replace(self, hand=hand)
