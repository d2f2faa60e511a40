"""
VibeJo - Random Bot

Plays for every participant except the human by picking uniformly among
the legal actions of the current phase. It does not try to play well.
"""

import random

from src.engine.actions import (
    Action,
    PickOpenCard,
    PickRevealedCard,
    RejectRevealedCard,
    RevealFromDeck,
    RevealOwnCard,
    SwapCard,
)
from src.engine.base import INITIAL_REVEAL_COUNT, Participant
from src.engine.state import (
    ChoosePhase,
    ChooseRevealedPhase,
    InitialPhase,
    PlayingPhase,
    RevealPhase,
    SwapPhase,
    TableState,
)

HUMAN_PLAYER_ID = "1"
MIN_DELAY_MS = 100
MAX_DELAY_MS = 300


class RandomBot:
    """
    Stateless random policy.

    All methods are class methods; the random source is passed in so tests
    can use a seeded ``random.Random``.
    """

    @classmethod
    def is_bot(cls, state: TableState, human_id: str = HUMAN_PLAYER_ID) -> bool:
        """Whether the active participant is played by the bot."""
        return state.current_player.id != human_id

    @classmethod
    def random_delay(
        cls,
        rng: random.Random | None = None,
        low: float = MIN_DELAY_MS,
        high: float = MAX_DELAY_MS,
    ) -> float:
        """Pause before a bot move, in milliseconds."""
        return (rng or random).uniform(low, high)

    @classmethod
    def decide(
        cls,
        state: TableState,
        rng: random.Random | None = None,
        human_id: str = HUMAN_PLAYER_ID,
    ) -> Action | None:
        """
        Pick a random legal action for the active participant.

        Args:
            state: Current table state
            rng: Random source (module ``random`` if omitted)
            human_id: Id of the participant the bot never plays for

        Returns:
            An action, or None when it is the human's turn or nothing applies
        """
        if not cls.is_bot(state, human_id):
            return None

        rng = rng or random
        player = state.current_player
        phase = state.phase

        if isinstance(phase, InitialPhase):
            return cls._initial_decision(player, rng)
        if not isinstance(phase, PlayingPhase):
            return None

        turn = phase.turn
        if isinstance(turn, ChoosePhase):
            return cls._choose_decision(state, rng)
        if isinstance(turn, ChooseRevealedPhase):
            return PickRevealedCard() if rng.random() < 0.5 else RejectRevealedCard()
        if isinstance(turn, SwapPhase):
            return cls._swap_decision(player, rng)
        if isinstance(turn, RevealPhase):
            return cls._reveal_decision(player, rng)
        return None

    @classmethod
    def _initial_decision(cls, player: Participant, rng) -> Action | None:
        """Turn a random card until two are showing."""
        if player.hand.visible_count >= INITIAL_REVEAL_COUNT:
            return None
        return cls._reveal_decision(player, rng)

    @classmethod
    def _choose_decision(cls, state: TableState, rng) -> Action | None:
        """Draw from the deck or take the open card."""
        options: list[Action] = []
        if state.deck:
            options.append(RevealFromDeck.draw(state.deck))
        if state.open_card is not None:
            options.append(PickOpenCard())
        if not options:
            return None
        return rng.choice(options)

    @classmethod
    def _swap_decision(cls, player: Participant, rng) -> Action | None:
        """Swap into any card that has not been removed."""
        candidates = player.hand.active_indices
        if not candidates:
            return None
        return SwapCard(index=rng.choice(candidates))

    @classmethod
    def _reveal_decision(cls, player: Participant, rng) -> Action | None:
        """Turn a random face-down card."""
        candidates = player.hand.face_down_indices
        if not candidates:
            return None
        return RevealOwnCard(index=rng.choice(candidates))
