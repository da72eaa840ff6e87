"""
Turn timeout scheduling.

Each started session owns at most one armed timer. Re-arming replaces the
handle on the session and draws a fresh generation, so a firing that was
already in flight when the timer was replaced is recognised as stale and
dropped instead of advancing the turn a second time.
"""

from __future__ import annotations

import itertools
import threading
from typing import Callable, Optional

from loguru import logger

from .config import config
from .engine import GameEngine
from .session import GameSession, SessionStore, TurnTimer

# Shared across sessions so a recreated room never reuses a generation
_generations = itertools.count(1)

TimeoutCallback = Callable[[str, Optional[GameSession]], None]


class TurnScheduler:
    def __init__(
        self,
        store: SessionStore,
        engine: GameEngine,
        on_timeout: Optional[TimeoutCallback] = None,
        timeout: float = config.TURN_TIMEOUT_SEC,
        timer_factory: Callable[..., object] = threading.Timer,
    ) -> None:
        self.store = store
        self.engine = engine
        self.on_timeout = on_timeout
        self.timeout = timeout
        self.timer_factory = timer_factory

    def reset(self, room_id: str) -> bool:
        """Cancel any pending timeout for the room and arm a fresh one."""
        session = self.store.get_session(room_id)
        if session is None:
            return False
        with session.lock:
            session.cancel_timer()
            if not session.started or session.finished:
                return False
            generation = next(_generations)
            session.timer_generation = generation
            timer = self.timer_factory(self.timeout, self._fire, args=(room_id, generation))
            # daemon so a pending timeout never holds the process open
            if hasattr(timer, "daemon"):
                timer.daemon = True
            session.turn_timer = TurnTimer(generation=generation, timer=timer)
            timer.start()
        return True

    def cancel(self, room_id: str) -> None:
        session = self.store.get_session(room_id)
        if session is None:
            return
        with session.lock:
            session.cancel_timer()

    def _fire(self, room_id: str, generation: int) -> None:
        session = self.store.get_session(room_id)
        if session is None:
            return
        with session.lock:
            handle = session.turn_timer
            if handle is None or handle.generation != generation:
                logger.debug(f"[{room_id}] stale turn timeout ignored")
                return
            session.turn_timer = None

            if not session.players:
                self.store.delete_session(room_id)
                logger.info(f"[{room_id}] turn timeout on empty session, session deleted")
                self._notify(room_id, None)
                return

            player = self.engine.advance_turn(session)
            logger.info(
                f"[{room_id}] turn timed out, advancing to {player.name} ({player.player_id})"
            )
            self.reset(room_id)
            self._notify(room_id, session)

    def _notify(self, room_id: str, session: Optional[GameSession]) -> None:
        if self.on_timeout is None:
            return
        try:
            self.on_timeout(room_id, session)
        except Exception as exc:
            # runs on the timer thread, nothing upstream to propagate to
            logger.exception(f"[{room_id}] turn timeout callback failed: {exc}")
