"""
VibeJo - Scoring & Column Matching

Game Rules:
- A hand scores the sum of its face-up, non-removed cards
- A column whose three cards are face-up and equal is removed:
  the cards stay face-up, are flagged removed and their value drops to 0
- At round end every card is forced face-up before the final score
- Lowest cumulative score wins the game
"""

from dataclasses import replace
from typing import Iterable, Sequence

from src.engine.base import GRID_COLUMNS, Hand, Participant


class ScoringEngine:
    """Stateless engine for hand scoring and column matching."""

    @classmethod
    def hand_sum(cls, hand: Hand) -> int:
        """
        Sum the values of visible, non-removed cards.

        Face-down and removed cards contribute nothing.
        """
        return sum(card.value for card in hand if card.counts_towards_score)

    @classmethod
    def matched_columns(cls, hand: Hand) -> frozenset[int]:
        """
        Find positions belonging to fully matched columns.

        A column matches when all three of its cards are visible, not
        removed and share the same value. Columns are checked independently,
        so several can match at once.

        Args:
            hand: The hand to inspect

        Returns:
            Grid positions of every card in a matched column
        """
        if not hand.is_dealt:
            return frozenset()

        matched: set[int] = set()
        for column_index in range(GRID_COLUMNS):
            column = hand.column(column_index)
            if not all(card.counts_towards_score for card in column):
                continue
            if len({card.value for card in column}) == 1:
                matched.update(card.position for card in column)
        return frozenset(matched)

    @classmethod
    def apply_removal(cls, hand: Hand, positions: Iterable[int]) -> Hand:
        """
        Flag the cards at ``positions`` as removed.

        Removed cards are visible with value 0. Already removed cards are
        left as they are.
        """
        targets = set(positions)
        if not targets:
            return hand
        return Hand(cards=tuple(
            replace(card, visible=True, removed=True, value=0)
            if card.position in targets and not card.removed
            else card
            for card in hand
        ))

    @classmethod
    def resolve_matches(cls, hand: Hand) -> Hand:
        """Remove every matched column from the hand."""
        return cls.apply_removal(hand, cls.matched_columns(hand))

    @classmethod
    def final_score(cls, hand: Hand) -> int:
        """Score a hand as if every card had been turned face-up."""
        return cls.hand_sum(Hand(cards=tuple(card.face_up() for card in hand)))

    @classmethod
    def starting_player_index(cls, participants: Sequence[Participant]) -> int:
        """
        Choose who opens play after the initial reveal.

        Highest visible sum starts; the lowest seat wins ties.
        """
        sums = [cls.hand_sum(participant.hand) for participant in participants]
        return sums.index(max(sums))

    @classmethod
    def rank_participants(
        cls,
        participants: Sequence[Participant],
    ) -> tuple[Participant, ...]:
        """Order participants by cumulative score, lowest (the winner) first."""
        return tuple(sorted(participants, key=lambda p: p.total_score))
