from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from loguru import logger

from . import board
from .config import config
from .session import GameSession
from .types import CapturedToken, MoveResult, Player


@dataclass(slots=True)
class GameEngine:
    """State machine for one session at a time: dice, moves, captures, wins, turns.

    The engine does not check turn ownership; callers do that before
    invoking any operation.
    """

    rng: random.Random = field(default_factory=random.Random)

    # --- Dice ---
    def roll_dice(self, session: GameSession) -> int:
        value = self.rng.randint(config.DICE_MIN, config.DICE_MAX)
        session.last_dice_roll = value
        session.can_roll_again = value == config.EXIT_HOME_ROLL
        session.move_pending = True
        logger.debug(f"[{session.room_id}] dice rolled: {value}")
        return value

    # --- Rules: destinations and legality ---
    @staticmethod
    def _destination(position: int, steps: int) -> Tuple[Optional[int], bool]:
        """Where a token already on the board lands after ``steps``.

        Returns (destination, needs_exact_roll); destination is None when the
        move is illegal.
        """
        if board.is_goal(position) or steps < 1:
            return None, False
        target = position + steps
        if target <= board.GOAL:
            return target, False
        if board.is_perimeter(position):
            # crossing in from the perimeter bounces back off the goal
            bounced = board.GOAL - (target - board.GOAL)
            if bounced >= board.FINAL_PATH_START:
                return bounced, False
        return None, True

    def can_make_valid_move(
        self, session: GameSession, player_id: str, dice_value: int
    ) -> bool:
        for token in session.tokens.get(player_id, []):
            if token.in_home:
                if dice_value == config.EXIT_HOME_ROLL:
                    return True
                continue
            destination, _ = self._destination(token.position, dice_value)
            if destination is not None:
                return True
        return False

    # --- Applying a move ---
    def move_token(
        self, session: GameSession, player_id: str, token_id: str, steps: int
    ) -> MoveResult:
        token = session.find_token(player_id, token_id)
        if token is None:
            logger.debug(f"[{session.room_id}] unknown token {token_id} for {player_id}")
            return MoveResult(success=False)

        old = token.position
        if token.in_home:
            if session.last_dice_roll != config.EXIT_HOME_ROLL:
                return MoveResult.rejected(old)
            token.move_to(board.ENTRY)
            captured = self._capture(session, player_id, board.ENTRY)
            logger.debug(f"[{session.room_id}] {player_id} entered token {token_id}")
            return MoveResult(
                success=True,
                old_position=old,
                new_position=board.ENTRY,
                captured_tokens=captured,
            )

        if token.at_goal:
            return MoveResult.rejected(old)

        destination, needs_exact = self._destination(old, steps)
        if destination is None:
            return MoveResult.rejected(old, needs_exact_roll=needs_exact)

        token.move_to(destination)
        logger.debug(
            f"[{session.room_id}] {player_id} moved {token_id}: {old} -> {destination}"
        )

        if board.is_goal(destination):
            if self.has_won(session, player_id):
                session.finished = True
                session.winner_id = player_id
                logger.info(f"[{session.room_id}] player {player_id} won")
                return MoveResult(
                    success=True,
                    old_position=old,
                    new_position=destination,
                    reached_end=True,
                    has_won=True,
                )
            return MoveResult(
                success=True,
                old_position=old,
                new_position=destination,
                reached_end=True,
            )

        captured: List[CapturedToken] = []
        if board.is_perimeter(destination):
            captured = self._capture(session, player_id, destination)
        return MoveResult(
            success=True,
            old_position=old,
            new_position=destination,
            captured_tokens=captured,
        )

    @staticmethod
    def _capture(
        session: GameSession, player_id: str, position: int
    ) -> List[CapturedToken]:
        if board.is_safe_square(position):
            return []
        captured: List[CapturedToken] = []
        for owner_id, token in session.opponents_tokens(player_id):
            if token.position == position:
                token.send_home()
                captured.append(CapturedToken(player_id=owner_id, token_id=token.token_id))
        if captured:
            logger.debug(
                f"[{session.room_id}] {player_id} captured {len(captured)} token(s) at {position}"
            )
        return captured

    @staticmethod
    def has_won(session: GameSession, player_id: str) -> bool:
        tokens = session.tokens.get(player_id, [])
        return len(tokens) == config.TOKENS_PER_PLAYER and all(t.at_goal for t in tokens)

    # --- Turns ---
    @staticmethod
    def advance_turn(session: GameSession) -> Optional[Player]:
        """Pass the turn to the next seated player, wrapping around."""
        if not session.players:
            return None
        session.current_player_index = (session.current_player_index + 1) % len(
            session.players
        )
        session.can_roll_again = False
        session.move_pending = False
        player = session.players[session.current_player_index]
        logger.debug(f"[{session.room_id}] turn passes to {player.name} ({player.player_id})")
        return player
