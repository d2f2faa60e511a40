"""
VibeJo - Table Snapshot Models

Pydantic models of the read-only view handed to the host after every
transition. Face-down card values are hidden.
"""

from pydantic import BaseModel, Field

from src.engine.base import ActionPhase, Card, GamePhase, Participant
from src.engine.scoring import ScoringEngine
from src.engine.state import TableState


class CardView(BaseModel):
    """Mirrors a card as the host may show it."""

    id: str
    position: int = Field(ge=0, le=11)
    value: int | None = None
    visible: bool = False
    removed: bool = False

    model_config = {"frozen": True}

    @classmethod
    def from_card(cls, card: Card) -> "CardView":
        return cls(
            id=card.id,
            position=card.position,
            value=card.value if card.visible else None,
            visible=card.visible,
            removed=card.removed,
        )


class PlayerView(BaseModel):
    """Mirrors a participant."""

    id: str
    name: str
    cards: list[CardView] = Field(default_factory=list)
    visible_sum: int = 0
    round_score: int = 0
    total_score: int = 0
    finished: bool = False
    is_current: bool = False

    model_config = {"frozen": True}

    @classmethod
    def from_participant(
        cls, participant: Participant, visible_sum: int, is_current: bool
    ) -> "PlayerView":
        return cls(
            id=participant.id,
            name=participant.name,
            cards=[CardView.from_card(card) for card in participant.hand],
            visible_sum=visible_sum,
            round_score=participant.round_score,
            total_score=participant.total_score,
            finished=participant.finished,
            is_current=is_current,
        )


class TableSnapshot(BaseModel):
    """Mirrors a whole table state."""

    version: int
    round: int
    game_phase: GamePhase
    action_phase: ActionPhase
    current_player_index: int
    deck_count: int
    target_score: int
    open_card: CardView | None = None
    revealed_card: CardView | None = None
    players: list[PlayerView] = Field(default_factory=list)
    ended_by: str | None = None
    last_turn: bool = False

    model_config = {"frozen": True}

    @classmethod
    def from_state(cls, state: TableState) -> "TableSnapshot":
        """Build the host view of a table state."""
        return cls(
            version=state.version,
            round=state.round,
            game_phase=state.game_phase,
            action_phase=state.action_phase,
            current_player_index=state.current_index,
            deck_count=len(state.deck),
            target_score=state.target_score,
            open_card=CardView.from_card(state.open_card) if state.open_card else None,
            revealed_card=(
                CardView.from_card(state.revealed_card) if state.revealed_card else None
            ),
            players=[
                PlayerView.from_participant(
                    p, ScoringEngine.hand_sum(p.hand), i == state.current_index
                )
                for i, p in enumerate(state.participants)
            ],
            ended_by=state.ended_by,
            last_turn=state.last_turn,
        )

    @property
    def current_player(self) -> PlayerView:
        return self.players[self.current_player_index]
