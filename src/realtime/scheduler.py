"""
VibeJo - Bot Turn Scheduler

Arms one delayed bot move at a time. Each timer remembers the table
version it was armed for; when it fires after the table has moved on it
does nothing, so a stale move is never applied to the wrong participant.
"""

from __future__ import annotations

import logging
import random
import threading
from typing import Callable

from src.engine.actions import Action
from src.engine.bot import HUMAN_PLAYER_ID, MAX_DELAY_MS, MIN_DELAY_MS, RandomBot
from src.engine.state import TableState

logger = logging.getLogger(__name__)

TimerFactory = Callable[[float, Callable[[], None]], threading.Timer]


def _daemon_timer(interval: float, function: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(interval, function)
    timer.daemon = True
    return timer


class BotScheduler:
    """Schedules delayed bot moves as cancellable one-shot timers.

    Timers fire on a background thread; ``dispatch`` must be safe to call
    from there.
    """

    def __init__(
        self,
        *,
        human_id: str = HUMAN_PLAYER_ID,
        min_delay_ms: float = MIN_DELAY_MS,
        max_delay_ms: float = MAX_DELAY_MS,
        rng: random.Random | None = None,
        timer_factory: TimerFactory = _daemon_timer,
    ) -> None:
        self._human_id = human_id
        self._min_delay_ms = min_delay_ms
        self._max_delay_ms = max_delay_ms
        self._rng = rng
        self._timer_factory = timer_factory
        self._timer: threading.Timer | None = None
        self._armed_version: int | None = None
        self._ticket = 0
        self._lock = threading.Lock()

    def schedule(
        self,
        state: TableState,
        dispatch: Callable[[Action, int], object],
    ) -> Action | None:
        """Cancel any pending move and arm a new one for ``state`` if the bot is up.

        Args:
            state: Table state the move is decided against.
            dispatch: Callback receiving the action and the version it was
                decided for.

        Returns:
            The scheduled action, or None when nothing was armed.
        """
        action = RandomBot.decide(state, self._rng, self._human_id)

        with self._lock:
            self._cancel_locked()
            if action is None:
                return None

            delay_ms = RandomBot.random_delay(
                self._rng, self._min_delay_ms, self._max_delay_ms
            )
            version = state.version
            self._ticket += 1
            ticket = self._ticket
            timer = self._timer_factory(
                delay_ms / 1000.0, lambda: self._fire(action, version, ticket, dispatch)
            )
            self._timer = timer
            self._armed_version = version

        logger.debug(
            "Scheduled %s for version %d in %.0f ms",
            type(action).__name__, version, delay_ms,
        )
        timer.start()
        return action

    def _fire(
        self,
        action: Action,
        version: int,
        ticket: int,
        dispatch: Callable[[Action, int], object],
    ) -> None:
        with self._lock:
            if ticket != self._ticket or self._armed_version != version:
                logger.debug("Dropping stale bot move for version %d", version)
                return
            self._timer = None
            self._armed_version = None

        try:
            dispatch(action, version)
        except Exception:
            logger.exception("Bot move %s failed", type(action).__name__)

    def cancel(self) -> None:
        """Cancel the pending move, if any."""
        with self._lock:
            self._cancel_locked()

    def _cancel_locked(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._ticket += 1
        self._timer = None
        self._armed_version = None

    @property
    def pending(self) -> bool:
        """Whether a move is armed and has not fired yet."""
        return self._timer is not None
