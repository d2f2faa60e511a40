"""
VibeJo - Turn State Machine

Single entry point for changing a table: ``transition(state, action)``.

Game Rules:
- Every participant is dealt 12 face-down cards in a 3x4 grid
- Each participant turns two cards; the highest visible sum starts
- On a turn: take the open card and swap it into the grid, or draw from the
  deck and either swap the drawn card in or discard it and turn an own card
- Three equal face-up cards in a column are removed (worth 0)
- The round ends as soon as any grid is fully face-up or removed; all cards
  are turned and round scores are added to the cumulative totals
- The game ends when a cumulative total reaches the target (100)

``transition`` is total: an action that does not apply to the current phase
returns the same state object unchanged.
"""

import random
from dataclasses import replace
from typing import Callable

from src.engine.actions import (
    Action,
    EndGame,
    EndTurn,
    PickOpenCard,
    PickRevealedCard,
    RejectRevealedCard,
    RevealFromDeck,
    RevealInitialCards,
    RevealOwnCard,
    StartGame,
    StartNewRound,
    SwapCard,
)
from src.engine.base import HAND_SIZE, INITIAL_REVEAL_COUNT, Card, Hand, Participant
from src.engine.deck import DeckEngine
from src.engine.lifecycle import LifecycleEngine
from src.engine.scoring import ScoringEngine
from src.engine.state import (
    ChoosePhase,
    ChooseRevealedPhase,
    GameFinishedPhase,
    InitialPhase,
    PlayingPhase,
    RevealPhase,
    RoundFinishedPhase,
    SwapPhase,
    TableState,
)
from src.engine.validators import validate_card_index

Handler = Callable[..., TableState]


class TurnEngine:
    """
    Stateless handlers for each action type.

    All methods are class methods: state is passed in and returned,
    never stored.
    """

    # -- Helpers ----------------------------------------------------------

    @classmethod
    def _replace_participant(
        cls,
        participants: tuple[Participant, ...],
        index: int,
        participant: Participant,
    ) -> tuple[Participant, ...]:
        return participants[:index] + (participant,) + participants[index + 1:]

    @classmethod
    def _deal_round(
        cls,
        state: TableState,
        deck: tuple[Card, ...],
        preserve_total_score: bool,
    ) -> TableState | None:
        """Deal hands, flip the open card and reset per-round state."""
        if len(deck) < HAND_SIZE * len(state.participants) + 1:
            return None

        participants, remaining = DeckEngine.deal_cards(
            state.participants, deck, preserve_total_score
        )
        return replace(
            state,
            participants=participants,
            deck=remaining[1:],
            open_card=remaining[0].face_up(),
            current_index=0,
            phase=InitialPhase(),
        )

    @classmethod
    def _close_round(
        cls,
        state: TableState,
        participants: tuple[Participant, ...],
    ) -> TableState:
        """Turn every card, bank round scores and pick the next phase."""
        acting = participants[state.current_index]
        if LifecycleEngine.is_hand_complete(acting.hand):
            ended_by = acting.id
        else:
            ended_by = next(
                (p.id for p in participants if LifecycleEngine.is_hand_complete(p.hand)),
                state.ended_by,
            )

        revealed = LifecycleEngine.reveal_all(participants)
        totals = tuple(
            replace(p, total_score=p.total_score + p.round_score) for p in revealed
        )

        if LifecycleEngine.is_game_over(totals, state.target_score):
            phase = GameFinishedPhase(ended_by=ended_by)
        else:
            phase = RoundFinishedPhase(ended_by=ended_by)

        return replace(state, participants=totals, open_card=None, phase=phase)

    @classmethod
    def _finish_turn(
        cls,
        state: TableState,
        participants: tuple[Participant, ...],
    ) -> TableState:
        """Close the round if a hand is complete, else pass to the next seat."""
        acting = participants[state.current_index]
        participants = cls._replace_participant(
            participants,
            state.current_index,
            replace(acting, finished=LifecycleEngine.is_hand_complete(acting.hand)),
        )

        if LifecycleEngine.should_end_round(participants):
            return cls._close_round(state, participants)

        playing = state.phase if isinstance(state.phase, PlayingPhase) else PlayingPhase()
        return replace(
            state,
            participants=participants,
            current_index=(state.current_index + 1) % len(participants),
            phase=replace(playing, turn=ChoosePhase()),
        )

    @classmethod
    def _begin_play(
        cls,
        state: TableState,
        participants: tuple[Participant, ...],
    ) -> TableState:
        """Everyone has revealed; the highest visible sum opens play."""
        return replace(
            state,
            participants=participants,
            current_index=ScoringEngine.starting_player_index(participants),
            phase=PlayingPhase(),
        )

    @classmethod
    def _is_valid_index(cls, hand: Hand, index: int) -> bool:
        try:
            validate_card_index(index, len(hand))
        except ValueError:
            return False
        return True

    @classmethod
    def _everyone_revealed(cls, participants: tuple[Participant, ...]) -> bool:
        return all(p.hand.visible_count >= INITIAL_REVEAL_COUNT for p in participants)

    # -- Handlers ---------------------------------------------------------

    @classmethod
    def start_game(
        cls, state: TableState, action: StartGame, rng: random.Random | None = None
    ) -> TableState:
        if not isinstance(state.phase, InitialPhase):
            return state
        if any(p.hand.is_dealt for p in state.participants):
            return state
        dealt = cls._deal_round(state, state.deck, preserve_total_score=False)
        return state if dealt is None else dealt

    @classmethod
    def reveal_own_card(
        cls, state: TableState, action: RevealOwnCard, rng: random.Random | None = None
    ) -> TableState:
        in_initial = isinstance(state.phase, InitialPhase) and state.has_dealt
        in_reveal = isinstance(state.phase, PlayingPhase) and isinstance(
            state.phase.turn, RevealPhase
        )
        if not (in_initial or in_reveal):
            return state

        acting = state.current_player
        index = action.index
        if not cls._is_valid_index(acting.hand, index) or not acting.hand[index].is_face_down:
            return state

        hand = acting.hand.replace_card(index, acting.hand[index].face_up())
        hand = ScoringEngine.resolve_matches(hand)
        participants = cls._replace_participant(
            state.participants, state.current_index, acting.with_hand(hand)
        )

        if in_reveal:
            return cls._finish_turn(state, participants)

        if cls._everyone_revealed(participants):
            return cls._begin_play(state, participants)
        if hand.visible_count >= INITIAL_REVEAL_COUNT:
            return replace(
                state,
                participants=participants,
                current_index=(state.current_index + 1) % len(participants),
            )
        return replace(state, participants=participants)

    @classmethod
    def reveal_initial_cards(
        cls,
        state: TableState,
        action: RevealInitialCards,
        rng: random.Random | None = None,
    ) -> TableState:
        if not (isinstance(state.phase, InitialPhase) and state.has_dealt):
            return state

        participants = []
        for participant in state.participants:
            hand = participant.hand
            for index in hand.face_down_indices:
                if hand.visible_count >= INITIAL_REVEAL_COUNT:
                    break
                hand = hand.replace_card(index, hand[index].face_up())
            participants.append(participant.with_hand(hand))

        return cls._begin_play(state, tuple(participants))

    @classmethod
    def pick_open_card(
        cls, state: TableState, action: PickOpenCard, rng: random.Random | None = None
    ) -> TableState:
        phase = state.phase
        if not (isinstance(phase, PlayingPhase) and isinstance(phase.turn, ChoosePhase)):
            return state
        if state.open_card is None:
            return state
        return replace(state, phase=replace(phase, turn=SwapPhase()))

    @classmethod
    def reveal_from_deck(
        cls, state: TableState, action: RevealFromDeck, rng: random.Random | None = None
    ) -> TableState:
        phase = state.phase
        if not (isinstance(phase, PlayingPhase) and isinstance(phase.turn, ChoosePhase)):
            return state
        if action.card is None:
            return state
        return replace(
            state,
            deck=tuple(action.deck),
            phase=replace(phase, turn=ChooseRevealedPhase(revealed_card=action.card.face_up())),
        )

    @classmethod
    def _discard_revealed(
        cls, state: TableState, next_turn: SwapPhase | RevealPhase
    ) -> TableState:
        """Move the drawn card onto the open pile."""
        phase = state.phase
        if not (
            isinstance(phase, PlayingPhase)
            and isinstance(phase.turn, ChooseRevealedPhase)
        ):
            return state
        return replace(
            state,
            open_card=phase.turn.revealed_card.face_up(),
            phase=replace(phase, turn=next_turn),
        )

    @classmethod
    def pick_revealed_card(
        cls, state: TableState, action: PickRevealedCard, rng: random.Random | None = None
    ) -> TableState:
        return cls._discard_revealed(state, SwapPhase())

    @classmethod
    def reject_revealed_card(
        cls, state: TableState, action: RejectRevealedCard, rng: random.Random | None = None
    ) -> TableState:
        return cls._discard_revealed(state, RevealPhase())

    @classmethod
    def swap_card(
        cls, state: TableState, action: SwapCard, rng: random.Random | None = None
    ) -> TableState:
        phase = state.phase
        if not (isinstance(phase, PlayingPhase) and isinstance(phase.turn, SwapPhase)):
            return state

        pending = state.open_card
        acting = state.current_player
        index = action.index
        if pending is None or not cls._is_valid_index(acting.hand, index):
            return state
        displaced = acting.hand[index]
        if displaced.removed:
            return state

        hand = acting.hand.replace_card(index, replace(pending, visible=True, removed=False))
        hand = ScoringEngine.resolve_matches(hand)
        participants = cls._replace_participant(
            state.participants, state.current_index, acting.with_hand(hand)
        )
        swapped = replace(state, open_card=displaced.face_up())
        return cls._finish_turn(swapped, participants)

    @classmethod
    def end_turn(
        cls, state: TableState, action: EndTurn, rng: random.Random | None = None
    ) -> TableState:
        """
        Pass the turn explicitly.

        The first participant to finish starts the closing stretch; finished
        participants are skipped. When nobody is left to play the round closes.
        """
        phase = state.phase
        if not isinstance(phase, PlayingPhase):
            return state

        acting = state.current_player
        participants = cls._replace_participant(
            state.participants,
            state.current_index,
            replace(acting, finished=LifecycleEngine.is_hand_complete(acting.hand)),
        )

        ended_by, last_turn = phase.ended_by, phase.last_turn
        finished = [p for p in participants if p.finished]
        if finished and not last_turn:
            ended_by, last_turn = finished[0].id, True

        count = len(participants)
        next_index = next(
            (
                (state.current_index + step) % count
                for step in range(1, count + 1)
                if not participants[(state.current_index + step) % count].finished
            ),
            None,
        )
        if next_index is None:
            return cls._close_round(state, participants)

        return replace(
            state,
            participants=participants,
            current_index=next_index,
            phase=PlayingPhase(turn=ChoosePhase(), ended_by=ended_by, last_turn=last_turn),
        )

    @classmethod
    def start_new_round(
        cls, state: TableState, action: StartNewRound, rng: random.Random | None = None
    ) -> TableState:
        if not isinstance(state.phase, RoundFinishedPhase):
            return state

        deck = action.deck if action.deck is not None else DeckEngine.build_deck(rng)
        dealt = cls._deal_round(state, tuple(deck), preserve_total_score=True)
        if dealt is None:
            return state
        return replace(dealt, round=state.round + 1)

    @classmethod
    def end_game(
        cls, state: TableState, action: EndGame, rng: random.Random | None = None
    ) -> TableState:
        if isinstance(state.phase, GameFinishedPhase):
            return state
        return replace(state, phase=GameFinishedPhase(ended_by=state.ended_by))


_HANDLERS: dict[type, Handler] = {
    StartGame: TurnEngine.start_game,
    RevealOwnCard: TurnEngine.reveal_own_card,
    RevealInitialCards: TurnEngine.reveal_initial_cards,
    PickOpenCard: TurnEngine.pick_open_card,
    RevealFromDeck: TurnEngine.reveal_from_deck,
    PickRevealedCard: TurnEngine.pick_revealed_card,
    RejectRevealedCard: TurnEngine.reject_revealed_card,
    SwapCard: TurnEngine.swap_card,
    EndTurn: TurnEngine.end_turn,
    StartNewRound: TurnEngine.start_new_round,
    EndGame: TurnEngine.end_game,
}


def transition(
    state: TableState,
    action: Action,
    rng: random.Random | None = None,
) -> TableState:
    """
    Apply an action to a table.

    Args:
        state: Current table state (never modified)
        action: Action to apply
        rng: Random source for decks built during the transition

    Returns:
        The next state with ``version`` bumped, or ``state`` itself when the
        action does not apply
    """
    handler = _HANDLERS.get(type(action))
    if handler is None:
        return state

    new_state = handler(state, action, rng)
    if new_state is state:
        return state
    return replace(new_state, version=state.version + 1)
