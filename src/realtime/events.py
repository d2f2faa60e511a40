"""
VibeJo - Table Event Definitions

Event types and payloads emitted to the host after each state change.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any

from src.engine.base import ActionPhase, GamePhase
from src.engine.state import TableState


class GameEvent(Enum):
    """Events that can occur during a game."""

    GAME_STARTED = auto()
    CARD_REVEALED = auto()
    PLAY_STARTED = auto()
    OPEN_CARD_PICKED = auto()
    DECK_CARD_REVEALED = auto()
    REVEALED_CARD_TAKEN = auto()
    REVEALED_CARD_REJECTED = auto()
    CARD_SWAPPED = auto()
    COLUMN_REMOVED = auto()
    TURN_ADVANCED = auto()
    ROUND_FINISHED = auto()
    ROUND_STARTED = auto()
    GAME_FINISHED = auto()
    STATE_UPDATED = auto()


@dataclass
class EventPayload:
    """Wrapper for table event data."""

    event: GameEvent
    version: int
    player_id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)


# Map turn-step changes to game events
_ACTION_PHASE_EVENT_MAP: dict[tuple[ActionPhase, ActionPhase], GameEvent] = {
    (ActionPhase.CHOOSE, ActionPhase.SWAP): GameEvent.OPEN_CARD_PICKED,
    (ActionPhase.CHOOSE, ActionPhase.CHOOSE_REVEALED): GameEvent.DECK_CARD_REVEALED,
    (ActionPhase.CHOOSE_REVEALED, ActionPhase.SWAP): GameEvent.REVEALED_CARD_TAKEN,
    (ActionPhase.CHOOSE_REVEALED, ActionPhase.REVEAL): GameEvent.REVEALED_CARD_REJECTED,
}

_FINISH_EVENT_MAP: dict[GamePhase, GameEvent] = {
    GamePhase.ROUND_FINISHED: GameEvent.ROUND_FINISHED,
    GamePhase.GAME_FINISHED: GameEvent.GAME_FINISHED,
}


def _removed_count(state: TableState) -> int:
    return sum(1 for p in state.participants for card in p.hand if card.removed)


def _visible_count(state: TableState) -> int:
    return sum(1 for p in state.participants for card in p.hand if card.visible)


def classify_transition(old: TableState, new: TableState) -> GameEvent | None:
    """Determine the game event from a table state change."""
    if new is old:
        return None

    old_phase, new_phase = old.game_phase, new.game_phase
    if new_phase != old_phase and new_phase in _FINISH_EVENT_MAP:
        return _FINISH_EVENT_MAP[new_phase]
    if new.round != old.round:
        return GameEvent.ROUND_STARTED
    if new.has_dealt and not old.has_dealt:
        return GameEvent.GAME_STARTED
    if old_phase == GamePhase.INITIAL and new_phase == GamePhase.PLAYING:
        return GameEvent.PLAY_STARTED

    if new_phase == GamePhase.PLAYING and old_phase == GamePhase.PLAYING:
        step = (old.action_phase, new.action_phase)
        if step in _ACTION_PHASE_EVENT_MAP:
            return _ACTION_PHASE_EVENT_MAP[step]
        if _removed_count(new) > _removed_count(old):
            return GameEvent.COLUMN_REMOVED
        if old.action_phase == ActionPhase.SWAP:
            return GameEvent.CARD_SWAPPED

    if _visible_count(new) > _visible_count(old):
        return GameEvent.CARD_REVEALED
    if new.current_index != old.current_index:
        return GameEvent.TURN_ADVANCED

    return GameEvent.STATE_UPDATED
