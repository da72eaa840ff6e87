"""
Outbound notifications.

Builders return an Event carrying the wire event name and a JSON-ready
payload with camelCase keys, matching what the browser client listens for.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from . import board
from .session import GameSession
from .types import CapturedToken, MoveResult, Player, RejectReason, RoomState

REJECT_MESSAGES = {
    RejectReason.NEEDS_EXACT_ROLL: "You need an exact roll to reach the goal",
    RejectReason.NEEDS_SIX: "You need a 6 to bring a token out",
    RejectReason.INVALID_MOVE: "Invalid move",
    RejectReason.DICE_NOT_ROLLED: "Roll the dice before moving",
    RejectReason.DICE_MISMATCH: "Move must use the rolled value",
    RejectReason.MOVE_PENDING: "Move a token before rolling again",
}


@dataclass(slots=True)
class Event:
    name: str
    payload: Any = field(default_factory=dict)


def roster(players: Iterable[Player], current_id: Optional[str] = None) -> List[dict]:
    return [p.to_dict(is_turn=p.player_id == current_id) for p in players]


def game_snapshot(session: GameSession) -> Dict[str, Any]:
    current = session.current_player
    current_id = current.player_id if current else None
    tokens: Dict[str, List[dict]] = {}
    for player in session.players:
        tokens[player.player_id] = [
            {
                "id": token.token_id,
                "position": token.position,
                "inHome": token.in_home,
                "inFinalPath": token.in_final_path,
                "atGoal": token.at_goal,
                "square": board.board_square(player.color, token.position),
            }
            for token in session.tokens.get(player.player_id, [])
        ]
    return {
        "id": session.room_id,
        "players": roster(session.players, current_id),
        "currentPlayer": session.current_player_index,
        "currentPlayerId": current_id,
        "diceValue": session.last_dice_roll,
        "canRollAgain": session.can_roll_again,
        "started": session.started,
        "finished": session.finished,
        "winnerId": session.winner_id,
        "tokens": tokens,
    }


# --- Replies to a single connection ---
def room_created(room_id: str, connection_id: str, success: bool) -> Event:
    payload = {"roomId": room_id, "success": success, "socketId": connection_id}
    if not success:
        payload["message"] = "Room already exists"
    return Event("roomCreated", payload)


def join_success(player: Player, room_id: str) -> Event:
    return Event("joinSuccess", {"player": player.to_dict(), "roomId": room_id})


def join_failed(message: str) -> Event:
    return Event("joinFailed", {"message": message})


def redirect_home(message: str = "The room is no longer available") -> Event:
    return Event("redirectHome", {"message": message})


def multiple_options() -> Event:
    return Event(
        "multipleOptions",
        {"message": "You can bring a token out or move one on the board"},
    )


def move_invalid(reason: RejectReason, player_id: str, token_id: str) -> Event:
    payload = {
        "reason": reason.value,
        "message": REJECT_MESSAGES[reason],
        "playerId": player_id,
        "tokenId": token_id,
    }
    if reason == RejectReason.NEEDS_EXACT_ROLL:
        payload["needsExactRoll"] = True
    return Event("moveInvalid", payload)


def room_state(
    room_id: str, state: Optional[RoomState], session: Optional[GameSession]
) -> Event:
    current = session.current_player if session else None
    return Event(
        "roomState",
        {
            "roomId": room_id,
            "state": state.value if state else None,
            "gameState": game_snapshot(session) if session else None,
            "currentPlayer": (
                {"id": current.player_id, "name": current.name, "color": current.color.value}
                if current
                else None
            ),
        },
    )


def error(message: str) -> Event:
    return Event("error", {"message": message})


# --- Room broadcasts ---
def room_update(players: Iterable[Player], current_id: Optional[str] = None) -> Event:
    return Event("roomUpdate", roster(players, current_id))


def game_started() -> Event:
    return Event("gameStarted", {})


def game_state(session: GameSession) -> Event:
    return Event("gameState", game_snapshot(session))


def dice_rolled(value: int, player_id: str, can_roll_again: bool) -> Event:
    return Event(
        "diceRolled",
        {"value": value, "playerId": player_id, "canRollAgain": can_roll_again},
    )


def token_moved(
    player_id: str,
    token_id: str,
    steps: int,
    result: MoveResult,
    is_initial_move: bool = False,
) -> Event:
    return Event(
        "tokenMoved",
        {
            "playerId": player_id,
            "tokenId": token_id,
            "steps": steps,
            "isInitialMove": is_initial_move,
            "position": result.new_position,
            "capturedTokens": [c.to_dict() for c in result.captured_tokens],
            "reachedEnd": result.reached_end,
        },
    )


def token_captured(captured: CapturedToken) -> Event:
    return Event("tokenCaptured", captured.to_dict())


def next_turn(
    player: Player,
    can_roll_again: bool = False,
    automatic_skip: bool = False,
    timed_out: bool = False,
    message: Optional[str] = None,
) -> Event:
    payload: Dict[str, Any] = {
        "currentPlayer": player.player_id,
        "playerName": player.name,
        "color": player.color.value,
        "canRollAgain": can_roll_again,
    }
    if automatic_skip:
        payload["automaticSkip"] = True
    if timed_out:
        payload["timedOut"] = True
    if message:
        payload["message"] = message
    return Event("nextTurn", payload)


def player_won(player: Player) -> Event:
    return Event("playerWon", {"playerId": player.player_id, "playerName": player.name})
