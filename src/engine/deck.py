"""
VibeJo - Deck and Dealer

Builds the fixed 150-card deck, shuffles it, and deals 12-card hands.

Deck composition:
    - value -2: 5 cards
    - value 0: 15 cards
    - values -1 and 1 through 12: 10 cards each
"""

import random
from dataclasses import replace
from typing import ClassVar, Sequence

from src.engine.base import HAND_SIZE, Card, Hand, Participant


class DeckEngine:
    """
    Stateless engine for deck construction and dealing.

    All methods are class methods operating on immutable data.
    Randomness comes from the optional ``rng`` argument so tests can
    pass a seeded ``random.Random``.
    """

    VALUE_COUNTS: ClassVar[dict[int, int]] = {
        -2: 5,
        0: 15,
        **{value: 10 for value in (-1, *range(1, 13))},
    }
    DECK_SIZE: ClassVar[int] = 150

    @classmethod
    def build_deck(cls, rng: random.Random | None = None) -> tuple[Card, ...]:
        """
        Build a full, shuffled deck.

        Args:
            rng: Random source (module ``random`` if omitted)

        Returns:
            150 face-down cards with unique ids
        """
        deck = [
            Card(id=f"deck-{value}-{n}", value=value)
            for value, count in cls.VALUE_COUNTS.items()
            for n in range(count)
        ]
        return cls.shuffle_deck(deck, rng)

    @classmethod
    def shuffle_deck(
        cls,
        deck: Sequence[Card],
        rng: random.Random | None = None,
    ) -> tuple[Card, ...]:
        """
        Return a uniformly shuffled copy of the deck.

        ``Random.shuffle`` is a Fisher-Yates shuffle; the input is not touched.
        """
        shuffled = list(deck)
        (rng or random).shuffle(shuffled)
        return tuple(shuffled)

    @classmethod
    def deal_cards(
        cls,
        participants: Sequence[Participant],
        deck: Sequence[Card],
        preserve_total_score: bool = False,
    ) -> tuple[tuple[Participant, ...], tuple[Card, ...]]:
        """
        Deal 12 face-down cards to every participant.

        Cards are taken from the front of the deck in seat order and laid
        out in grid positions 0-11.

        Args:
            participants: Participants in seat order
            deck: Deck to deal from
            preserve_total_score: Keep cumulative scores (new round) or reset them

        Returns:
            Tuple of (dealt participants, remaining deck)

        Raises:
            ValueError: If there are no participants or not enough cards
        """
        if not participants:
            raise ValueError("Cannot deal to an empty table.")

        needed = HAND_SIZE * len(participants)
        if len(deck) < needed:
            raise ValueError(
                f"Deck has {len(deck)} cards, {needed} needed for "
                f"{len(participants)} players."
            )

        dealt = []
        for seat, participant in enumerate(participants):
            start = seat * HAND_SIZE
            cards = tuple(
                replace(card, visible=False, removed=False, position=position)
                for position, card in enumerate(deck[start:start + HAND_SIZE])
            )
            dealt.append(replace(
                participant,
                hand=Hand(cards=cards),
                round_score=0,
                finished=False,
                total_score=participant.total_score if preserve_total_score else 0,
            ))

        return tuple(dealt), tuple(deck[needed:])
