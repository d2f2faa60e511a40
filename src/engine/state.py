"""
VibeJo - Table State

The full snapshot of a game. The phase is a tagged union: each phase class
carries only the fields that mean something in that phase, e.g. the card
drawn from the deck only exists while its owner decides to take or reject it.

Phase graph:
    InitialPhase -> PlayingPhase -> RoundFinishedPhase -> InitialPhase
                                 \\-> GameFinishedPhase (terminal)

Turn graph (inside PlayingPhase):
    Choose -> Swap | ChooseRevealed
    ChooseRevealed -> Swap | Reveal
    Swap -> Choose
    Reveal -> Choose
"""

import random
from dataclasses import dataclass, field
from typing import ClassVar, Sequence, Union

from src.engine.base import (
    DEFAULT_TARGET_SCORE,
    ActionPhase,
    Card,
    GamePhase,
    Participant,
)
from src.engine.deck import DeckEngine
from src.engine.validators import validate_player_names, validate_target_score


@dataclass(frozen=True)
class ChoosePhase:
    """Take the open card or draw from the deck."""
    action_phase: ClassVar[ActionPhase] = ActionPhase.CHOOSE


@dataclass(frozen=True)
class ChooseRevealedPhase:
    """Take or reject the card just drawn from the deck."""
    revealed_card: Card
    action_phase: ClassVar[ActionPhase] = ActionPhase.CHOOSE_REVEALED


@dataclass(frozen=True)
class SwapPhase:
    """Swap the open card into the hand."""
    action_phase: ClassVar[ActionPhase] = ActionPhase.SWAP


@dataclass(frozen=True)
class RevealPhase:
    """Turn one of the own face-down cards after rejecting a drawn card."""
    action_phase: ClassVar[ActionPhase] = ActionPhase.REVEAL


TurnPhase = Union[ChoosePhase, ChooseRevealedPhase, SwapPhase, RevealPhase]


@dataclass(frozen=True)
class InitialPhase:
    """Cards are dealt and every participant reveals two of them."""
    game_phase: ClassVar[GamePhase] = GamePhase.INITIAL


@dataclass(frozen=True)
class PlayingPhase:
    """
    Regular turns.

    Attributes:
        turn: Step of the active participant's turn
        ended_by: Id of the first participant to finish (closing stretch)
        last_turn: Whether the closing stretch has started
    """
    turn: TurnPhase = field(default_factory=ChoosePhase)
    ended_by: str | None = None
    last_turn: bool = False
    game_phase: ClassVar[GamePhase] = GamePhase.PLAYING


@dataclass(frozen=True)
class RoundFinishedPhase:
    """Scores are in; waiting for the next round to be started."""
    ended_by: str | None = None
    game_phase: ClassVar[GamePhase] = GamePhase.ROUND_FINISHED


@dataclass(frozen=True)
class GameFinishedPhase:
    """Someone reached the target score."""
    ended_by: str | None = None
    game_phase: ClassVar[GamePhase] = GamePhase.GAME_FINISHED


Phase = Union[InitialPhase, PlayingPhase, RoundFinishedPhase, GameFinishedPhase]


@dataclass(frozen=True)
class TableState:
    """
    Complete state of a table.

    Attributes:
        participants: Participants in seat order
        current_index: Seat of the active participant
        deck: Remaining cards, drawn from the front
        open_card: Face-up card available for taking
        phase: Current phase (see module docstring)
        round: Round counter, starting at 1
        target_score: Cumulative score that ends the game
        version: Generation counter, bumped on every effective transition
    """
    participants: tuple[Participant, ...]
    deck: tuple[Card, ...] = ()
    current_index: int = 0
    open_card: Card | None = None
    phase: Phase = field(default_factory=InitialPhase)
    round: int = 1
    target_score: int = DEFAULT_TARGET_SCORE
    version: int = 0

    @classmethod
    def new_game(
        cls,
        players: Sequence[Participant] | Sequence[str],
        rng: random.Random | None = None,
        target_score: int = DEFAULT_TARGET_SCORE,
    ) -> "TableState":
        """
        Create a table ready for the first deal.

        Args:
            players: Participants, or display names (ids become "1", "2", ...)
            rng: Random source for the deck shuffle
            target_score: Cumulative score that ends the game

        Raises:
            ValueError: If the player count, a name or the target is invalid
        """
        if players and isinstance(players[0], str):
            names = validate_player_names(players)  # type: ignore[arg-type]
            participants = tuple(
                Participant(id=str(i + 1), name=name) for i, name in enumerate(names)
            )
        else:
            participants = tuple(players)  # type: ignore[arg-type]
            validate_player_names([p.name for p in participants])

        return cls(
            participants=participants,
            deck=DeckEngine.build_deck(rng),
            target_score=validate_target_score(target_score),
        )

    @property
    def game_phase(self) -> GamePhase:
        return self.phase.game_phase

    @property
    def action_phase(self) -> ActionPhase:
        """Step of the current turn; reads CHOOSE outside of play."""
        if isinstance(self.phase, PlayingPhase):
            return self.phase.turn.action_phase
        return ActionPhase.CHOOSE

    @property
    def revealed_card(self) -> Card | None:
        """Card drawn from the deck and not yet taken or rejected."""
        if isinstance(self.phase, PlayingPhase) and isinstance(
            self.phase.turn, ChooseRevealedPhase
        ):
            return self.phase.turn.revealed_card
        return None

    @property
    def ended_by(self) -> str | None:
        return getattr(self.phase, "ended_by", None)

    @property
    def last_turn(self) -> bool:
        return isinstance(self.phase, PlayingPhase) and self.phase.last_turn

    @property
    def current_player(self) -> Participant:
        return self.participants[self.current_index]

    @property
    def has_dealt(self) -> bool:
        """Whether hands have been dealt for the current round."""
        return all(p.hand.is_dealt for p in self.participants)

    @property
    def is_over(self) -> bool:
        return isinstance(self.phase, GameFinishedPhase)
