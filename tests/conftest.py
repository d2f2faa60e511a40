"""
VibeJo - Test Configuration and Fixtures

Common fixtures and test data for all test modules.
"""

import random
from typing import Sequence

import pytest

from src.engine.base import Card, Hand, Participant
from src.engine.state import PlayingPhase, TableState


# =============================================================================
# HAND TEST DATA
# =============================================================================

# No column of this layout holds three equal values
NO_MATCH_VALUES: tuple[int, ...] = (1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11, 12)

ALL_POSITIONS: tuple[int, ...] = tuple(range(12))


@pytest.fixture
def no_match_values() -> tuple[int, ...]:
    return NO_MATCH_VALUES


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source for deterministic shuffles and bot choices."""
    return random.Random(1234)


# =============================================================================
# TABLE FACTORIES
# =============================================================================

def _make_participant(
    pid: str,
    values: Sequence[int] = NO_MATCH_VALUES,
    visible: Sequence[int] = (),
    removed: Sequence[int] = (),
    total_score: int = 0,
    finished: bool = False,
) -> Participant:
    return Participant(
        id=pid,
        name=f"Player {pid}",
        hand=Hand.from_values(values, visible=visible, removed=removed, prefix=f"p{pid}"),
        total_score=total_score,
        finished=finished,
    )


@pytest.fixture
def make_participant():
    """Factory for a dealt participant with a chosen hand layout."""
    return _make_participant


@pytest.fixture
def make_table():
    """Factory for a table in any phase, defaulting to the start of a turn."""

    def _make(
        participants: Sequence[Participant],
        *,
        phase=None,
        open_card: Card | None = None,
        deck: Sequence[Card] | None = None,
        current_index: int = 0,
        target_score: int = 100,
    ) -> TableState:
        if deck is None:
            deck = tuple(Card(id=f"d-{i}", value=i % 13) for i in range(20))
        return TableState(
            participants=tuple(participants),
            deck=tuple(deck),
            current_index=current_index,
            open_card=open_card,
            phase=phase if phase is not None else PlayingPhase(),
            target_score=target_score,
        )

    return _make


@pytest.fixture
def open_card_factory():
    """Factory for a face-up open card."""

    def _make(value: int, card_id: str = "open") -> Card:
        return Card(id=card_id, value=value, visible=True)

    return _make
