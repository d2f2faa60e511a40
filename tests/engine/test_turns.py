"""
Tests for the turn state machine.
"""

import random
from dataclasses import replace

import pytest

from src.engine.actions import (
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
from src.engine.base import ActionPhase, Card, GamePhase, Participant
from src.engine.bot import RandomBot
from src.engine.deck import DeckEngine
from src.engine.state import (
    ChooseRevealedPhase,
    GameFinishedPhase,
    InitialPhase,
    PlayingPhase,
    RevealPhase,
    RoundFinishedPhase,
    SwapPhase,
    TableState,
)
from src.engine.turns import transition

ALL = tuple(range(12))
ALL_BUT_LAST = tuple(range(11))

# Column 3 (positions 3, 7, 11) completes with a third 9
NINES_IN_LAST_COLUMN = (1, 2, 3, 9, 4, 5, 6, 9, 7, 8, 10, 12)


@pytest.fixture
def fresh_table(rng) -> TableState:
    return TableState.new_game(["Ann", "Bob", "Cy"], rng=rng)


@pytest.fixture
def started_table(fresh_table, rng) -> TableState:
    return transition(fresh_table, StartGame(), rng)


class TestNewGame:
    def test_new_game_from_names(self, fresh_table):
        assert [p.id for p in fresh_table.participants] == ["1", "2", "3"]
        assert [p.name for p in fresh_table.participants] == ["Ann", "Bob", "Cy"]
        assert len(fresh_table.deck) == 150
        assert fresh_table.game_phase == GamePhase.INITIAL
        assert fresh_table.version == 0
        assert not fresh_table.has_dealt

    def test_new_game_rejects_single_player(self):
        with pytest.raises(ValueError, match="Player count must be 2-4"):
            TableState.new_game(["Solo"])

    def test_new_game_from_participants(self, make_participant):
        players = [make_participant("a"), make_participant("b")]
        table = TableState.new_game(players, target_score=50)
        assert table.participants[0].id == "a"
        assert table.target_score == 50


class TestStartGame:
    def test_deals_and_flips_open_card(self, started_table):
        for participant in started_table.participants:
            assert len(participant.hand) == 12
            assert all(card.is_face_down for card in participant.hand)
        assert started_table.open_card is not None
        assert started_table.open_card.visible
        assert len(started_table.deck) == 150 - 12 * 3 - 1

    def test_phase_after_start(self, started_table):
        assert started_table.game_phase == GamePhase.INITIAL
        assert started_table.action_phase == ActionPhase.CHOOSE
        assert started_table.current_index == 0
        assert started_table.version == 1

    def test_open_card_comes_after_hands(self, fresh_table, started_table):
        assert started_table.open_card.id == fresh_table.deck[36].id

    def test_second_start_ignored(self, started_table):
        assert transition(started_table, StartGame()) is started_table

    def test_start_resets_totals(self, rng):
        players = (
            Participant(id="1", name="Ann", total_score=40),
            Participant(id="2", name="Bob", total_score=70),
        )
        table = TableState(participants=players, deck=DeckEngine.build_deck(rng))
        started = transition(table, StartGame())
        assert all(p.total_score == 0 for p in started.participants)

    def test_short_deck_ignored(self):
        table = TableState.new_game(["Ann", "Bob"])
        short = replace(table, deck=table.deck[:24])
        assert transition(short, StartGame()) is short

    def test_original_state_untouched(self, fresh_table, started_table):
        assert not fresh_table.has_dealt
        assert fresh_table.open_card is None
        assert started_table.has_dealt


class TestInitialReveal:
    def test_first_reveal_stays_on_player(self, started_table):
        state = transition(started_table, RevealOwnCard(index=3))
        assert state.participants[0].hand[3].visible
        assert state.current_index == 0
        assert state.game_phase == GamePhase.INITIAL

    def test_second_reveal_advances(self, started_table):
        state = transition(started_table, RevealOwnCard(index=3))
        state = transition(state, RevealOwnCard(index=7))
        assert state.current_index == 1
        assert state.game_phase == GamePhase.INITIAL

    def test_reveal_visible_card_ignored(self, started_table):
        state = transition(started_table, RevealOwnCard(index=3))
        assert transition(state, RevealOwnCard(index=3)) is state

    @pytest.mark.parametrize("index", [-1, 12, 40, True])
    def test_reveal_out_of_range_ignored(self, started_table, index):
        assert transition(started_table, RevealOwnCard(index=index)) is started_table

    def test_reveal_before_deal_ignored(self, fresh_table):
        assert transition(fresh_table, RevealOwnCard(index=0)) is fresh_table

    def test_extra_reveal_passes_turn(self, make_participant, make_table):
        players = [
            make_participant("1", visible=(0, 1)),
            make_participant("2", visible=(0, 1)),
            make_participant("3"),
        ]
        table = make_table(players, phase=InitialPhase(), current_index=1)
        state = transition(table, RevealOwnCard(index=5))
        assert state.participants[1].hand[5].visible
        assert state.current_index == 2
        assert state.game_phase == GamePhase.INITIAL
        assert RandomBot.decide(state, random.Random(0), human_id="nobody") is not None

    def test_extra_reveal_when_everyone_ready_starts_play(self, make_participant, make_table):
        players = [make_participant("1", visible=(0, 1)), make_participant("2", visible=(0, 1))]
        table = make_table(players, phase=InitialPhase())
        state = transition(table, RevealOwnCard(index=5))
        assert state.participants[0].hand.visible_count == 3
        assert state.game_phase == GamePhase.PLAYING
        # 1 + 2 + 6 beats 1 + 2
        assert state.current_index == 0

    def test_advances_while_others_pending(self, make_participant, make_table):
        players = [
            make_participant("1", visible=(0, 1)),
            make_participant("2", visible=(0,)),
            make_participant("3"),
        ]
        table = make_table(players, phase=InitialPhase(), current_index=1)
        state = transition(table, RevealOwnCard(index=4))
        assert state.current_index == 2
        assert state.game_phase == GamePhase.INITIAL

    def test_last_reveal_starts_play_with_highest_sum(self, make_participant, make_table):
        players = [
            make_participant("1", visible=(0, 1)),   # 1 + 2
            make_participant("2", visible=(0, 1)),   # 1 + 2
            make_participant("3", visible=(11,)),    # 12 + ...
        ]
        table = make_table(players, phase=InitialPhase(), current_index=2)
        state = transition(table, RevealOwnCard(index=10))
        assert state.game_phase == GamePhase.PLAYING
        assert state.action_phase == ActionPhase.CHOOSE
        assert state.current_index == 2

    def test_tie_goes_to_lowest_index(self, make_participant, make_table):
        players = [
            make_participant("1", visible=(0, 4)),   # 1 + 5
            make_participant("2", visible=(1, 3)),   # 2 + 4
            make_participant("3", visible=(2,)),     # 3 + ...
        ]
        table = make_table(players, phase=InitialPhase(), current_index=2)
        # Player 3 reveals position 0 (value 1): 3 + 1 = 4 < 6
        state = transition(table, RevealOwnCard(index=0))
        assert state.current_index == 0
        assert state.game_phase == GamePhase.PLAYING

    def test_reveal_initial_cards(self, started_table):
        state = transition(started_table, RevealInitialCards())
        assert state.game_phase == GamePhase.PLAYING
        for participant in state.participants:
            assert participant.hand.visible_count == 2
            assert participant.hand[0].visible and participant.hand[1].visible
        sums = [p.hand[0].value + p.hand[1].value for p in state.participants]
        assert state.current_index == sums.index(max(sums))

    def test_reveal_initial_cards_before_deal_ignored(self, fresh_table):
        assert transition(fresh_table, RevealInitialCards()) is fresh_table


class TestChooseStep:
    def test_pick_open_card(self, make_participant, make_table, open_card_factory):
        table = make_table([make_participant("1"), make_participant("2")], open_card=open_card_factory(4))
        state = transition(table, PickOpenCard())
        assert state.action_phase == ActionPhase.SWAP
        assert state.open_card == table.open_card
        assert state.participants == table.participants

    def test_pick_open_card_without_open_card(self, make_participant, make_table):
        table = make_table([make_participant("1"), make_participant("2")])
        assert transition(table, PickOpenCard()) is table

    def test_pick_open_card_outside_choose(self, make_participant, make_table, open_card_factory):
        table = make_table(
            [make_participant("1"), make_participant("2")],
            phase=PlayingPhase(turn=SwapPhase()),
            open_card=open_card_factory(4),
        )
        assert transition(table, PickOpenCard()) is table

    def test_reveal_from_deck(self, make_participant, make_table):
        table = make_table([make_participant("1"), make_participant("2")])
        state = transition(table, RevealFromDeck.draw(table.deck))
        assert state.action_phase == ActionPhase.CHOOSE_REVEALED
        assert state.revealed_card.id == table.deck[0].id
        assert state.revealed_card.visible
        assert len(state.deck) == len(table.deck) - 1

    def test_draw_from_empty_deck_raises(self):
        with pytest.raises(ValueError, match="empty deck"):
            RevealFromDeck.draw(())

    def test_reveal_from_deck_during_initial_ignored(self, started_table):
        assert transition(started_table, RevealFromDeck.draw(started_table.deck)) is started_table

    def test_swap_in_choose_phase_ignored(self, make_participant, make_table, open_card_factory):
        table = make_table([make_participant("1"), make_participant("2")], open_card=open_card_factory(4))
        assert transition(table, SwapCard(index=0)) is table


class TestRevealedCard:
    @pytest.fixture
    def revealed_table(self, make_participant, make_table, open_card_factory):
        drawn = Card(id="drawn", value=-1, visible=True)
        return make_table(
            [make_participant("1"), make_participant("2")],
            phase=PlayingPhase(turn=ChooseRevealedPhase(revealed_card=drawn)),
            open_card=open_card_factory(10),
        )

    def test_pick_revealed_card(self, revealed_table):
        state = transition(revealed_table, PickRevealedCard())
        assert state.open_card.id == "drawn"
        assert state.revealed_card is None
        assert state.action_phase == ActionPhase.SWAP

    def test_reject_revealed_card(self, revealed_table):
        state = transition(revealed_table, RejectRevealedCard())
        assert state.open_card.id == "drawn"
        assert state.revealed_card is None
        assert state.action_phase == ActionPhase.REVEAL

    def test_pick_without_revealed_card_ignored(self, make_participant, make_table):
        table = make_table([make_participant("1"), make_participant("2")])
        assert transition(table, PickRevealedCard()) is table
        assert transition(table, RejectRevealedCard()) is table

    def test_reject_then_reveal_passes_turn(self, revealed_table):
        state = transition(revealed_table, RejectRevealedCard())
        state = transition(state, RevealOwnCard(index=6))
        assert state.participants[0].hand[6].visible
        assert state.current_index == 1
        assert state.action_phase == ActionPhase.CHOOSE

    def test_reveal_own_card_outside_reveal_step_ignored(self, make_participant, make_table):
        table = make_table([make_participant("1"), make_participant("2")])
        assert transition(table, RevealOwnCard(index=0)) is table


class TestSwapCard:
    @pytest.fixture
    def swap_table(self, make_participant, make_table, open_card_factory):
        def _make(values=None, visible=(0, 1), removed=(), open_value=-2, others_total=0):
            first = (
                make_participant("1", visible=visible, removed=removed)
                if values is None
                else make_participant("1", values=values, visible=visible, removed=removed)
            )
            return make_table(
                [first, make_participant("2", total_score=others_total)],
                phase=PlayingPhase(turn=SwapPhase()),
                open_card=open_card_factory(open_value),
            )
        return _make

    def test_swap_places_open_card(self, swap_table):
        table = swap_table()
        state = transition(table, SwapCard(index=5))
        card = state.participants[0].hand[5]
        assert card.id == "open"
        assert card.value == -2
        assert card.visible
        assert card.position == 5

    def test_displaced_card_becomes_open_card(self, swap_table):
        table = swap_table()
        state = transition(table, SwapCard(index=5))
        assert state.open_card.id == "p1-5"
        assert state.open_card.value == 6
        assert state.open_card.visible

    def test_swap_passes_turn(self, swap_table):
        state = transition(swap_table(), SwapCard(index=5))
        assert state.current_index == 1
        assert state.action_phase == ActionPhase.CHOOSE
        assert state.game_phase == GamePhase.PLAYING

    def test_turn_wraps_around(self, swap_table):
        table = replace(swap_table(), current_index=1)
        state = transition(table, SwapCard(index=0))
        assert state.current_index == 0

    def test_swap_completing_column_removes_it(self, swap_table):
        values = (7, 2, 3, 4, 7, 6, 1, 8, 9, 10, 11, 12)
        table = swap_table(values=values, visible=(0, 4), open_value=7)
        state = transition(table, SwapCard(index=8))
        hand = state.participants[0].hand
        for position in (0, 4, 8):
            assert hand[position].removed
            assert hand[position].value == 0
        assert [c.position for c in hand if c.removed] == [0, 4, 8]
        assert state.game_phase == GamePhase.PLAYING

    def test_swap_onto_removed_card_ignored(self, swap_table):
        table = swap_table(removed=(0, 4, 8), visible=(1,))
        assert transition(table, SwapCard(index=4)) is table

    def test_swap_without_open_card_ignored(self, swap_table):
        table = replace(swap_table(), open_card=None)
        assert transition(table, SwapCard(index=3)) is table

    @pytest.mark.parametrize("index", [-1, 12, True])
    def test_swap_out_of_range_ignored(self, swap_table, index):
        table = swap_table()
        assert transition(table, SwapCard(index=index)) is table

    def test_swap_onto_visible_card(self, swap_table):
        state = transition(swap_table(), SwapCard(index=0))
        assert state.participants[0].hand[0].value == -2
        assert state.open_card.value == 1


class TestRoundEnd:
    @pytest.fixture
    def nearly_done(self, make_participant, make_table, open_card_factory):
        def _make(phase, other_total=0, open_value=9):
            players = [
                make_participant("1", values=NINES_IN_LAST_COLUMN, visible=ALL_BUT_LAST),
                make_participant("2", total_score=other_total),
            ]
            return make_table(players, phase=phase, open_card=open_card_factory(open_value))
        return _make

    def test_swap_completing_hand_ends_round_immediately(self, nearly_done):
        table = nearly_done(PlayingPhase(turn=SwapPhase()), open_value=0)
        state = transition(table, SwapCard(index=11))
        # Player 2 never gets a final turn
        assert state.game_phase == GamePhase.ROUND_FINISHED
        assert state.ended_by == "1"
        assert state.open_card is None

    def test_all_hands_revealed_and_scored(self, nearly_done):
        table = nearly_done(PlayingPhase(turn=SwapPhase()), open_value=0)
        state = transition(table, SwapCard(index=11))
        for participant in state.participants:
            assert all(card.visible for card in participant.hand)
        # 1+2+3+9+4+5+6+9+7+8+10+0
        assert state.participants[0].round_score == 64
        assert state.participants[1].round_score == 78
        assert state.participants[0].total_score == 64
        assert state.participants[1].total_score == 78

    def test_only_finisher_flagged(self, nearly_done):
        table = nearly_done(PlayingPhase(turn=SwapPhase()), open_value=0)
        state = transition(table, SwapCard(index=11))
        assert [p.finished for p in state.participants] == [True, False]

    def test_column_removed_before_round_scored(self, nearly_done):
        table = nearly_done(PlayingPhase(turn=SwapPhase()), open_value=9)
        state = transition(table, SwapCard(index=11))
        hand = state.participants[0].hand
        assert all(hand[p].removed for p in (3, 7, 11))
        assert state.participants[0].round_score == 46
        assert state.game_phase == GamePhase.ROUND_FINISHED

    def test_reveal_completing_hand_ends_round(self, nearly_done):
        table = nearly_done(PlayingPhase(turn=RevealPhase()))
        state = transition(table, RevealOwnCard(index=11))
        assert state.game_phase == GamePhase.ROUND_FINISHED
        # 12 revealed at position 11: 1+2+3+9+4+5+6+9+7+8+10+12
        assert state.participants[0].round_score == 76

    def test_game_ends_at_target(self, nearly_done):
        table = nearly_done(PlayingPhase(turn=SwapPhase()), other_total=30, open_value=0)
        state = transition(table, SwapCard(index=11))
        assert state.game_phase == GamePhase.GAME_FINISHED
        assert state.participants[1].total_score == 108
        assert state.is_over

    def test_game_ends_exactly_at_target(self, nearly_done):
        table = nearly_done(PlayingPhase(turn=SwapPhase()), other_total=22, open_value=0)
        state = transition(table, SwapCard(index=11))
        assert state.participants[1].total_score == 100
        assert state.game_phase == GamePhase.GAME_FINISHED

    def test_game_finished_is_terminal(self, nearly_done):
        table = nearly_done(PlayingPhase(turn=SwapPhase()), other_total=30, open_value=0)
        state = transition(table, SwapCard(index=11))
        for action in (StartNewRound(), StartGame(), PickOpenCard(), EndTurn(), EndGame()):
            assert transition(state, action) is state


class TestStartNewRound:
    @pytest.fixture
    def finished_round(self, make_participant, make_table):
        players = [
            make_participant("1", visible=ALL, total_score=40),
            make_participant("2", visible=ALL, total_score=55),
        ]
        table = make_table(players, phase=RoundFinishedPhase(ended_by="1"))
        return replace(table, round=3)

    def test_deals_new_round(self, finished_round, rng):
        state = transition(finished_round, StartNewRound(), rng)
        assert state.game_phase == GamePhase.INITIAL
        assert state.round == 4
        assert state.current_index == 0
        assert state.ended_by is None
        for participant in state.participants:
            assert len(participant.hand) == 12
            assert all(card.is_face_down for card in participant.hand)
            assert participant.round_score == 0

    def test_keeps_totals(self, finished_round, rng):
        state = transition(finished_round, StartNewRound(), rng)
        assert [p.total_score for p in state.participants] == [40, 55]

    def test_fresh_deck_and_open_card(self, finished_round, rng):
        state = transition(finished_round, StartNewRound(), rng)
        assert len(state.deck) == 150 - 24 - 1
        assert state.open_card is not None and state.open_card.visible
        assert state.revealed_card is None

    def test_uses_given_deck(self, finished_round, rng):
        deck = DeckEngine.build_deck(rng)
        state = transition(finished_round, StartNewRound(deck=deck))
        assert state.participants[0].hand[0].id == deck[0].id
        assert state.open_card.id == deck[24].id

    def test_short_deck_ignored(self, finished_round):
        deck = tuple(Card(id=str(i), value=1) for i in range(24))
        assert transition(finished_round, StartNewRound(deck=deck)) is finished_round

    def test_ignored_while_playing(self, make_participant, make_table):
        table = make_table([make_participant("1"), make_participant("2")])
        assert transition(table, StartNewRound()) is table


class TestEndTurn:
    def test_first_finisher_starts_closing_stretch(self, make_participant, make_table):
        players = [make_participant("1", visible=ALL), make_participant("2")]
        table = make_table(players)
        state = transition(table, EndTurn())
        assert state.participants[0].finished
        assert state.ended_by == "1"
        assert state.last_turn
        assert state.current_index == 1
        assert state.game_phase == GamePhase.PLAYING

    def test_skips_finished_participants(self, make_participant, make_table):
        players = [
            make_participant("1", visible=ALL, finished=True),
            make_participant("2"),
            make_participant("3"),
        ]
        table = make_table(players, phase=PlayingPhase(ended_by="1", last_turn=True), current_index=2)
        state = transition(table, EndTurn())
        assert state.current_index == 1
        assert state.ended_by == "1"

    def test_drops_pending_revealed_card(self, make_participant, make_table):
        drawn = Card(id="drawn", value=3, visible=True)
        table = make_table(
            [make_participant("1"), make_participant("2")],
            phase=PlayingPhase(turn=ChooseRevealedPhase(revealed_card=drawn)),
        )
        state = transition(table, EndTurn())
        assert state.revealed_card is None
        assert state.action_phase == ActionPhase.CHOOSE
        assert not state.last_turn

    def test_closes_round_when_everyone_finished(self, make_participant, make_table):
        players = [
            make_participant("1", visible=ALL),
            make_participant("2", visible=ALL, finished=True),
        ]
        state = transition(make_table(players), EndTurn())
        assert state.game_phase == GamePhase.ROUND_FINISHED

    def test_ignored_outside_play(self, started_table):
        assert transition(started_table, EndTurn()) is started_table


class TestEndGame:
    def test_end_game(self, make_participant, make_table):
        table = make_table([make_participant("1"), make_participant("2")])
        state = transition(table, EndGame())
        assert state.game_phase == GamePhase.GAME_FINISHED
        assert isinstance(state.phase, GameFinishedPhase)


class TestTransitionContract:
    def test_unknown_action_ignored(self, started_table):
        assert transition(started_table, object()) is started_table

    def test_version_bumps_once_per_change(self, started_table):
        state = transition(started_table, RevealOwnCard(index=0))
        assert state.version == started_table.version + 1
        assert transition(state, RevealOwnCard(index=0)).version == state.version

    def test_previous_state_not_mutated(self, started_table):
        state = transition(started_table, RevealOwnCard(index=0))
        assert state.participants[0].hand[0].visible
        assert not started_table.participants[0].hand[0].visible


class TestFullGame:
    """Play whole games with the random bot to check invariants."""

    @pytest.mark.parametrize("seed", [1, 7, 2024])
    def test_random_game_terminates(self, seed):
        rng = random.Random(seed)
        state = transition(TableState.new_game(["A", "B", "C"], rng=rng), StartGame(), rng)
        rounds = 1

        for _ in range(50_000):
            if state.game_phase == GamePhase.GAME_FINISHED:
                break
            if state.game_phase == GamePhase.ROUND_FINISHED:
                for participant in state.participants:
                    assert all(card.visible for card in participant.hand)
                state = transition(state, StartNewRound(), rng)
                rounds += 1
                continue

            action = RandomBot.decide(state, rng, human_id="nobody")
            assert action is not None
            next_state = transition(state, action, rng)
            assert next_state is not state
            state = next_state

            for participant in state.participants:
                assert len(participant.hand) == 12
                assert [c.position for c in participant.hand] == list(ALL)
                for card in participant.hand:
                    if card.removed:
                        assert card.visible and card.value == 0

        assert state.game_phase == GamePhase.GAME_FINISHED
        assert any(p.total_score >= 100 for p in state.participants)
        assert state.round == rounds
