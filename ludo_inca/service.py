"""
Game service: the orchestration layer between validated client actions and
the per-room game engine.

For every action the service resolves the room and session, checks turn
ownership (actions from anyone but the current player are silently
ignored), applies the engine operation, applies the turn-retention policy,
re-arms the turn timer and broadcasts the outcome.

Turn retention:
    - rolling a 6 keeps the turn; the player rolls again after moving
    - any other roll passes the turn once the move is made
    - a non-6 roll with no legal move passes the turn automatically
    - a move rejected for overshooting the goal passes the turn automatically
"""

from __future__ import annotations

import threading
from typing import Callable, Dict, Optional, Protocol, Type

from loguru import logger

from . import events
from .actions import (
    Action,
    CreateRoom,
    Disconnect,
    EndTurn,
    JoinRoom,
    MoveToken,
    QueryRoomPlayers,
    QueryRoomState,
    RollDice,
    SetReady,
    SkipTurn,
    StartGame,
)
from .config import config
from .engine import GameEngine
from .events import Event
from .exceptions import RoomExistsError
from .rooms import RoomRegistry
from .scheduler import TurnScheduler
from .session import GameSession, SessionStore
from .types import RejectReason, RoomState


class Broadcaster(Protocol):
    """Delivery side of the transport layer."""

    def to_room(self, room_id: str, event: Event) -> None:
        ...

    def to_connection(self, connection_id: str, event: Event) -> None:
        ...

    def subscribe(self, connection_id: str, room_id: str) -> None:
        ...


class GameService:
    def __init__(
        self,
        store: SessionStore,
        registry: RoomRegistry,
        broadcaster: Broadcaster,
        *,
        engine: Optional[GameEngine] = None,
        turn_timeout: float = config.TURN_TIMEOUT_SEC,
        timer_factory: Callable[..., object] = threading.Timer,
    ) -> None:
        self.store = store
        self.registry = registry
        self.broadcaster = broadcaster
        self.engine = engine or GameEngine()
        self.scheduler = TurnScheduler(
            store,
            self.engine,
            on_timeout=self._on_turn_timeout,
            timeout=turn_timeout,
            timer_factory=timer_factory,
        )
        self._handlers: Dict[Type, Callable] = {
            CreateRoom: self.create_room,
            JoinRoom: self.join_room,
            SetReady: self.set_ready,
            RollDice: self.roll_dice,
            MoveToken: self.move_token,
            EndTurn: self.end_turn,
            SkipTurn: self.end_turn,
            StartGame: self.start_game,
            QueryRoomState: self.query_room_state,
            QueryRoomPlayers: self.query_room_players,
            Disconnect: self.disconnect,
        }

    def handle(self, action: Action) -> None:
        handler = self._handlers.get(type(action))
        if handler is None:
            raise TypeError(f"Unsupported action: {type(action).__name__}")
        handler(action)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _active_session(self, room_id: str) -> Optional[GameSession]:
        session = self.store.get_session(room_id)
        if session is None:
            logger.debug(f"[{room_id}] no session, action ignored")
            return None
        if not session.started or session.finished:
            logger.debug(f"[{room_id}] session not in play, action ignored")
            return None
        return session

    @staticmethod
    def _owns_turn(session: GameSession, connection_id: str) -> bool:
        if session.is_turn(connection_id):
            return True
        logger.debug(f"[{session.room_id}] not {connection_id}'s turn, action ignored")
        return False

    def _advance(self, session: GameSession, automatic_skip: bool = False) -> None:
        player = self.engine.advance_turn(session)
        if player is not None:
            self.broadcaster.to_room(
                session.room_id, events.next_turn(player, automatic_skip=automatic_skip)
            )

    def _retain(self, session: GameSession, message: Optional[str] = None) -> None:
        player = session.current_player
        self.broadcaster.to_room(
            session.room_id,
            events.next_turn(player, can_roll_again=True, message=message),
        )

    def _reject(self, session: GameSession, action: MoveToken, reason: RejectReason) -> None:
        logger.debug(f"[{session.room_id}] move rejected for {action.player_id}: {reason.value}")
        self.broadcaster.to_connection(
            action.connection_id,
            events.move_invalid(reason, action.player_id, action.token_id),
        )

    def _roster(self, room_id: str, players) -> Event:
        """Roster event with the turn flag set on the current player of a game in play."""
        session = self.store.get_session(room_id)
        current = None
        if session is not None and session.started and not session.finished:
            current = session.current_player
        return events.room_update(players, current.player_id if current else None)

    def _start_game(self, room_id: str) -> bool:
        if not self.registry.start_game(room_id):
            return False
        room = self.registry.get_room(room_id)
        session = self.store.get_or_create(room_id)
        with session.lock:
            for player in room.players:
                self.store.add_player(room_id, player)
            session.begin()
            first = session.current_player
        self.scheduler.reset(room_id)
        self.broadcaster.to_room(room_id, events.game_started())
        self.broadcaster.to_room(room_id, events.game_state(session))
        self.broadcaster.to_room(room_id, events.next_turn(first))
        return True

    # ------------------------------------------------------------------
    # Lobby actions
    # ------------------------------------------------------------------
    def create_room(self, action: CreateRoom) -> None:
        try:
            self.registry.create_room(action.room_id)
        except RoomExistsError:
            logger.warning(f"[{action.room_id}] room already exists")
            self.broadcaster.to_connection(
                action.connection_id,
                events.room_created(action.room_id, action.connection_id, success=False),
            )
            return
        self.broadcaster.to_connection(
            action.connection_id,
            events.room_created(action.room_id, action.connection_id, success=True),
        )

    def join_room(self, action: JoinRoom) -> None:
        room = self.registry.get_room(action.room_id)
        if room is None or room.state == RoomState.FINISHED:
            logger.debug(f"[{action.room_id}] join refused, room missing or finished")
            self.broadcaster.to_connection(action.connection_id, events.redirect_home())
            return
        if room.state == RoomState.PLAYING and room.get_player(action.connection_id) is None:
            self.broadcaster.to_connection(
                action.connection_id, events.join_failed("The game has already started")
            )
            return

        player = self.registry.join_room(action.room_id, action.connection_id, action.name)
        if player is None:
            self.broadcaster.to_connection(
                action.connection_id, events.join_failed("Could not join the room")
            )
            return

        self.broadcaster.subscribe(action.connection_id, action.room_id)
        self.store.get_or_create(action.room_id)
        self.store.add_player(action.room_id, player)
        self.broadcaster.to_connection(
            action.connection_id, events.join_success(player, action.room_id)
        )
        self.broadcaster.to_room(action.room_id, self._roster(action.room_id, room.players))

    def set_ready(self, action: SetReady) -> None:
        room = self.registry.set_ready(action.connection_id, action.ready)
        if room is None:
            return
        self.broadcaster.to_room(room.room_id, self._roster(room.room_id, room.players))
        if self.registry.can_start_game(room.room_id):
            self._start_game(room.room_id)

    def start_game(self, action: StartGame) -> None:
        room = self.registry.get_room(action.room_id)
        if room is None or not room.players:
            logger.warning(f"[{action.room_id}] cannot start, room missing or empty")
            return
        if room.get_player(action.connection_id) is None:
            logger.debug(f"[{action.room_id}] start requested by non-member, ignored")
            return
        self._start_game(action.room_id)

    def query_room_state(self, action: QueryRoomState) -> None:
        state = self.registry.get_room_state(action.room_id)
        if state is None:
            logger.debug(f"[{action.room_id}] state requested for unknown room")
            return
        self.broadcaster.to_connection(
            action.connection_id,
            events.room_state(action.room_id, state, self.store.get_session(action.room_id)),
        )

    def query_room_players(self, action: QueryRoomPlayers) -> None:
        self.broadcaster.to_connection(
            action.connection_id,
            self._roster(action.room_id, self.registry.get_room_players(action.room_id)),
        )

    # ------------------------------------------------------------------
    # Game actions
    # ------------------------------------------------------------------
    def roll_dice(self, action: RollDice) -> None:
        session = self._active_session(action.room_id)
        if session is None:
            return
        player_id = action.connection_id
        with session.lock:
            if not self._owns_turn(session, player_id):
                return
            if session.move_pending:
                self.broadcaster.to_connection(
                    player_id, events.move_invalid(RejectReason.MOVE_PENDING, player_id, "")
                )
                return

            value = self.engine.roll_dice(session)
            self.broadcaster.to_room(
                action.room_id, events.dice_rolled(value, player_id, session.can_roll_again)
            )

            if not self.engine.can_make_valid_move(session, player_id, value):
                session.move_pending = False
                if session.can_roll_again:
                    self._retain(session)
                else:
                    self._advance(session, automatic_skip=True)
            elif session.can_roll_again:
                tokens = session.tokens.get(player_id, [])
                has_home = any(t.in_home for t in tokens)
                has_active = any(not t.in_home and not t.at_goal for t in tokens)
                if has_home and has_active:
                    self.broadcaster.to_connection(player_id, events.multiple_options())
            self.scheduler.reset(action.room_id)

    def move_token(self, action: MoveToken) -> None:
        session = self._active_session(action.room_id)
        if session is None:
            return
        with session.lock:
            if action.player_id != action.connection_id:
                logger.debug(f"[{action.room_id}] move for another player's tokens ignored")
                return
            if not self._owns_turn(session, action.connection_id):
                return
            if not session.move_pending:
                self._reject(session, action, RejectReason.DICE_NOT_ROLLED)
                return
            if action.steps != session.last_dice_roll:
                self._reject(session, action, RejectReason.DICE_MISMATCH)
                return
            token = session.find_token(action.player_id, action.token_id)
            leaving_home = action.is_initial_move or (token is not None and token.in_home)
            if leaving_home and session.last_dice_roll != config.EXIT_HOME_ROLL:
                self._reject(session, action, RejectReason.NEEDS_SIX)
                return

            result = self.engine.move_token(
                session, action.player_id, action.token_id, action.steps
            )
            if not result.success:
                if result.needs_exact_roll:
                    self._reject(session, action, RejectReason.NEEDS_EXACT_ROLL)
                    self._advance(session, automatic_skip=True)
                    self.scheduler.reset(action.room_id)
                else:
                    self._reject(session, action, RejectReason.INVALID_MOVE)
                return

            session.move_pending = False
            self.broadcaster.to_room(
                action.room_id,
                events.token_moved(
                    action.player_id,
                    action.token_id,
                    action.steps,
                    result,
                    action.is_initial_move,
                ),
            )

            if result.has_won:
                self.registry.finish_game(action.room_id)
                self.scheduler.cancel(action.room_id)
                self.broadcaster.to_room(
                    action.room_id, events.player_won(session.current_player)
                )
                return

            for captured in result.captured_tokens:
                self.broadcaster.to_room(action.room_id, events.token_captured(captured))

            if session.last_dice_roll == config.EXIT_HOME_ROLL:
                self._retain(session, message="You rolled a 6! Roll again")
            else:
                self._advance(session)
            self.scheduler.reset(action.room_id)

    def end_turn(self, action: EndTurn | SkipTurn) -> None:
        session = self._active_session(action.room_id)
        if session is None:
            return
        with session.lock:
            if not self._owns_turn(session, action.connection_id):
                return
            self._advance(session)
            self.scheduler.reset(action.room_id)

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------
    def disconnect(self, action: Disconnect) -> None:
        room_id = self.registry.leave_room(action.connection_id)
        if room_id is None:
            return
        room = self.registry.get_room(room_id)

        remaining: Optional[GameSession] = None
        turn_passed = False
        session = self.store.get_session(room_id)
        if session is not None:
            with session.lock:
                was_current = (
                    session.started
                    and not session.finished
                    and session.is_turn(action.connection_id)
                )
                remaining = self.store.remove_player(room_id, action.connection_id)
                turn_passed = was_current and remaining is not None and bool(remaining.players)

        if room is None:
            return
        if not room.players:
            if room.started:
                logger.info(f"[{room_id}] last player left, removing room and session")
                self.registry.delete_room(room_id)
                self.store.delete_session(room_id)
            return

        self.broadcaster.to_room(room_id, self._roster(room_id, room.players))
        if remaining is not None:
            self.broadcaster.to_room(room_id, events.game_state(remaining))
        if turn_passed:
            self.broadcaster.to_room(room_id, events.next_turn(remaining.current_player))
            self.scheduler.reset(room_id)

    def _on_turn_timeout(self, room_id: str, session: Optional[GameSession]) -> None:
        if session is None:
            room = self.registry.get_room(room_id)
            if room is not None and not room.players:
                self.registry.delete_room(room_id)
            return
        self.broadcaster.to_room(
            room_id, events.next_turn(session.current_player, timed_out=True)
        )
