"""
VibeJo - Round and Game Lifecycle

Decides when a round or the whole game is over.
"""

from dataclasses import replace
from typing import Sequence

from src.engine.base import DEFAULT_TARGET_SCORE, Hand, Participant
from src.engine.scoring import ScoringEngine


class LifecycleEngine:
    """Stateless checks for round and game completion."""

    @classmethod
    def is_hand_complete(cls, hand: Hand) -> bool:
        """True when every dealt card is visible or removed."""
        return hand.is_dealt and all(card.visible or card.removed for card in hand)

    @classmethod
    def should_end_round(cls, participants: Sequence[Participant]) -> bool:
        """A round ends as soon as any hand is complete."""
        return any(cls.is_hand_complete(p.hand) for p in participants)

    @classmethod
    def reveal_all(
        cls,
        participants: Sequence[Participant],
    ) -> tuple[Participant, ...]:
        """
        Turn every card face-up and compute final round scores.

        Removed flags, values and the finished flag are kept as they are.
        """
        revealed = []
        for participant in participants:
            hand = Hand(cards=tuple(card.face_up() for card in participant.hand))
            revealed.append(replace(
                participant,
                hand=hand,
                round_score=ScoringEngine.final_score(hand),
            ))
        return tuple(revealed)

    @classmethod
    def is_game_over(
        cls,
        participants: Sequence[Participant],
        target_score: int = DEFAULT_TARGET_SCORE,
    ) -> bool:
        """The game ends once any cumulative score reaches the target."""
        return any(p.total_score >= target_score for p in participants)
