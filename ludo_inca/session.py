"""
Per-room game sessions and the store that owns them.

The store is an explicit object created by the process entry point and
handed to the engine, scheduler and service; there is no module-level
registry of sessions.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from loguru import logger

from .config import config
from .exceptions import SessionExistsError, SessionNotFoundError
from .types import Player, Token


@dataclass(slots=True)
class TurnTimer:
    """Handle for the currently armed turn timeout of one session."""

    generation: int
    timer: Any  # threading.Timer or a compatible object

    def cancel(self) -> None:
        self.timer.cancel()


@dataclass(slots=True)
class GameSession:
    room_id: str
    players: List[Player] = field(default_factory=list)
    tokens: Dict[str, List[Token]] = field(default_factory=dict)
    current_player_index: int = 0
    last_dice_roll: Optional[int] = None
    can_roll_again: bool = False
    # True between a roll and the move that consumes it
    move_pending: bool = False
    started: bool = False
    finished: bool = False
    winner_id: Optional[str] = None
    turn_timer: Optional[TurnTimer] = field(default=None, repr=False)
    timer_generation: int = field(default=0, repr=False)
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    @property
    def current_player(self) -> Optional[Player]:
        if not self.players:
            return None
        return self.players[self.current_player_index]

    def is_turn(self, player_id: str) -> bool:
        current = self.current_player
        return current is not None and current.player_id == player_id

    def get_player(self, player_id: str) -> Optional[Player]:
        return next((p for p in self.players if p.player_id == player_id), None)

    def find_token(self, player_id: str, token_id: str) -> Optional[Token]:
        return next(
            (t for t in self.tokens.get(player_id, []) if t.token_id == token_id),
            None,
        )

    def opponents_tokens(self, player_id: str):
        """Yield (owner_id, token) for every token not owned by ``player_id``."""
        for owner_id, tokens in self.tokens.items():
            if owner_id == player_id:
                continue
            for token in tokens:
                yield owner_id, token

    def begin(self) -> None:
        """Mark the session started with every token home and seat 0 to play."""
        for tokens in self.tokens.values():
            for token in tokens:
                token.send_home()
        self.current_player_index = 0
        self.last_dice_roll = None
        self.can_roll_again = False
        self.move_pending = False
        self.finished = False
        self.winner_id = None
        self.started = True

    def cancel_timer(self) -> None:
        if self.turn_timer is not None:
            self.turn_timer.cancel()
            self.turn_timer = None


class SessionStore:
    """Keyed collection of independent game sessions, one per room."""

    def __init__(self) -> None:
        self._sessions: Dict[str, GameSession] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, room_id: str) -> bool:
        return room_id in self._sessions

    def create_session(self, room_id: str) -> GameSession:
        with self._lock:
            if room_id in self._sessions:
                raise SessionExistsError(f"Session already exists for room {room_id}")
            session = GameSession(room_id=room_id)
            self._sessions[room_id] = session
        logger.info(f"[{room_id}] session created")
        return session

    def get_or_create(self, room_id: str) -> GameSession:
        """Return the room's session, creating it if absent, as one step."""
        with self._lock:
            session = self._sessions.get(room_id)
            created = session is None
            if created:
                session = GameSession(room_id=room_id)
                self._sessions[room_id] = session
        if created:
            logger.info(f"[{room_id}] session created")
        return session

    def get_session(self, room_id: str) -> Optional[GameSession]:
        return self._sessions.get(room_id)

    def require(self, room_id: str) -> GameSession:
        session = self._sessions.get(room_id)
        if session is None:
            raise SessionNotFoundError(room_id)
        return session

    def add_player(self, room_id: str, player: Player) -> GameSession:
        """Seat ``player`` with four fresh home tokens. Re-adding is a no-op."""
        session = self.require(room_id)
        with session.lock:
            if session.get_player(player.player_id) is not None:
                return session
            session.players.append(player)
            session.tokens[player.player_id] = [
                Token() for _ in range(config.TOKENS_PER_PLAYER)
            ]
        logger.info(f"[{room_id}] player {player.name} ({player.player_id}) added")
        return session

    def remove_player(self, room_id: str, player_id: str) -> Optional[GameSession]:
        """Unseat a player, keeping the turn index valid.

        A started session left with no players is deleted and None is
        returned; an unstarted one is kept.
        """
        session = self._sessions.get(room_id)
        if session is None:
            return None
        with session.lock:
            index = next(
                (i for i, p in enumerate(session.players) if p.player_id == player_id),
                None,
            )
            if index is not None:
                session.players.pop(index)
                session.tokens.pop(player_id, None)
                if index < session.current_player_index:
                    session.current_player_index -= 1
                elif index == session.current_player_index:
                    # the seat's next occupant inherits a fresh turn
                    session.last_dice_roll = None
                    session.can_roll_again = False
                    session.move_pending = False
                if session.players:
                    session.current_player_index %= len(session.players)
                else:
                    session.current_player_index = 0

            if not session.players and session.started:
                self.delete_session(room_id)
                logger.info(
                    f"[{room_id}] session deleted, no players left after start"
                )
                return None
        return session

    def delete_session(self, room_id: str) -> bool:
        with self._lock:
            session = self._sessions.pop(room_id, None)
        if session is None:
            return False
        session.cancel_timer()
        return True
