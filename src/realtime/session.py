"""
VibeJo - Game Session

High-level manager that owns one table state, applies actions through the
turn state machine, notifies subscribers and keeps the bot moving.
"""

from __future__ import annotations

import logging
import random
import threading
from typing import Callable, Sequence

from src.config.settings import Settings, get_settings
from src.engine.actions import Action, StartGame
from src.engine.base import Participant
from src.engine.bot import HUMAN_PLAYER_ID
from src.engine.scoring import ScoringEngine
from src.engine.state import TableState
from src.engine.turns import transition
from src.realtime.events import EventPayload, classify_transition
from src.realtime.models import PlayerView, TableSnapshot
from src.realtime.scheduler import BotScheduler

logger = logging.getLogger(__name__)


class GameSession:
    """Coordinates one in-memory game between a human and bots.

    The session is the only writer of its table state. Every transition
    replaces the state as a whole; old states stay valid for whoever holds
    them.
    """

    def __init__(
        self,
        state: TableState,
        *,
        human_id: str = HUMAN_PLAYER_ID,
        scheduler: BotScheduler | None = None,
        rng: random.Random | None = None,
        auto_play: bool = True,
    ) -> None:
        self._state = state
        self._human_id = human_id
        self._rng = rng
        self._scheduler = scheduler or BotScheduler(human_id=human_id, rng=rng)
        self._auto_play = auto_play
        self._listeners: list[Callable[[EventPayload], None]] = []
        self._lock = threading.RLock()

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        human_name: str | None = None,
        rng: random.Random | None = None,
        auto_play: bool = True,
    ) -> GameSession:
        """Seat the human and the configured number of bots.

        Args:
            settings: Settings to use (cached settings if omitted).
            human_name: Display name overriding ``settings.human_name``.
            rng: Random source for the deck and the bot.
            auto_play: Schedule bot moves automatically.
        """
        settings = settings or get_settings()
        human = Participant(
            id=settings.human_player_id,
            name=human_name or settings.human_name,
        )
        bots = [
            Participant(id=f"bot-{i}", name=f"Player {i + 2}")
            for i in range(settings.bot_count)
        ]
        state = TableState.new_game(
            [human, *bots], rng=rng, target_score=settings.target_score
        )
        scheduler = BotScheduler(
            human_id=settings.human_player_id,
            min_delay_ms=settings.bot_delay_min_ms,
            max_delay_ms=settings.bot_delay_max_ms,
            rng=rng,
        )
        return cls(
            state,
            human_id=settings.human_player_id,
            scheduler=scheduler,
            rng=rng,
            auto_play=auto_play,
        )

    @property
    def state(self) -> TableState:
        return self._state

    @property
    def human_id(self) -> str:
        return self._human_id

    def snapshot(self) -> TableSnapshot:
        """Read-only view of the current state for rendering."""
        return TableSnapshot.from_state(self._state)

    def standings(self) -> list[PlayerView]:
        """Participants ordered by cumulative score, winner first."""
        snapshot = self.snapshot()
        by_id = {p.id: p for p in snapshot.players}
        return [by_id[p.id] for p in ScoringEngine.rank_participants(self._state.participants)]

    # -- Subscriptions ---------------------------------------------------

    def subscribe(self, on_event: Callable[[EventPayload], None]) -> None:
        """Register a callback receiving an EventPayload per state change."""
        if on_event in self._listeners:
            logger.warning("Listener already subscribed")
            return
        self._listeners.append(on_event)

    def unsubscribe(self, on_event: Callable[[EventPayload], None]) -> None:
        if on_event in self._listeners:
            self._listeners.remove(on_event)

    # -- Dispatch --------------------------------------------------------

    def start(self) -> TableState:
        """Deal the first round."""
        return self.dispatch(StartGame())

    def dispatch(self, action: Action, expected_version: int | None = None) -> TableState:
        """Apply an action and notify subscribers.

        Args:
            action: Action to apply.
            expected_version: Only apply when the table is still at this
                version (used by delayed bot moves).

        Returns:
            The resulting table state.
        """
        with self._lock:
            old = self._state
            if expected_version is not None and old.version != expected_version:
                logger.debug(
                    "Ignoring %s for version %d, table is at %d",
                    type(action).__name__, expected_version, old.version,
                )
                return old

            new = transition(old, action, self._rng)
            if new is old:
                logger.debug(
                    "Ignored %s in %s/%s",
                    type(action).__name__, old.game_phase.value, old.action_phase.value,
                )
                return old

            self._state = new
            self._notify(old, new)
            if self._auto_play:
                self._scheduler.schedule(new, self.dispatch)

        if new.is_over:
            logger.info("Game finished after round %d", new.round)
        return new

    def _notify(self, old: TableState, new: TableState) -> None:
        event = classify_transition(old, new)
        if event is None:
            return

        payload = EventPayload(
            event=event,
            version=new.version,
            player_id=old.current_player.id,
            data={"snapshot": TableSnapshot.from_state(new).model_dump()},
        )
        for listener in list(self._listeners):
            try:
                listener(payload)
            except Exception:
                logger.exception("Error in listener for %s", event.name)

    def shutdown(self) -> None:
        """Cancel any pending bot move."""
        self._scheduler.cancel()


def create_session(
    names: Sequence[str],
    *,
    human_id: str = HUMAN_PLAYER_ID,
    rng: random.Random | None = None,
    auto_play: bool = True,
) -> GameSession:
    """Create a session from display names; the first seat gets id "1"."""
    state = TableState.new_game(names, rng=rng)
    return GameSession(state, human_id=human_id, rng=rng, auto_play=auto_play)
