"""
Inbound actions.

Every client message becomes one of a closed set of frozen dataclasses
before it reaches the game service. ``parse_action`` validates the raw
payload and raises InvalidActionError for anything malformed, so the
engine never sees a missing room id or a non-integer step count.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Union

from .config import config
from .exceptions import InvalidActionError

MAX_NAME_LENGTH = 32
MAX_ID_LENGTH = 64


@dataclass(frozen=True, slots=True)
class CreateRoom:
    connection_id: str
    room_id: str


@dataclass(frozen=True, slots=True)
class JoinRoom:
    connection_id: str
    room_id: str
    name: str


@dataclass(frozen=True, slots=True)
class SetReady:
    connection_id: str
    ready: bool


@dataclass(frozen=True, slots=True)
class RollDice:
    connection_id: str
    room_id: str


@dataclass(frozen=True, slots=True)
class MoveToken:
    connection_id: str
    room_id: str
    player_id: str
    token_id: str
    steps: int
    is_initial_move: bool = False


@dataclass(frozen=True, slots=True)
class EndTurn:
    connection_id: str
    room_id: str


@dataclass(frozen=True, slots=True)
class SkipTurn:
    connection_id: str
    room_id: str


@dataclass(frozen=True, slots=True)
class StartGame:
    connection_id: str
    room_id: str


@dataclass(frozen=True, slots=True)
class QueryRoomState:
    connection_id: str
    room_id: str


@dataclass(frozen=True, slots=True)
class QueryRoomPlayers:
    connection_id: str
    room_id: str


@dataclass(frozen=True, slots=True)
class Disconnect:
    connection_id: str


Action = Union[
    CreateRoom,
    JoinRoom,
    SetReady,
    RollDice,
    MoveToken,
    EndTurn,
    SkipTurn,
    StartGame,
    QueryRoomState,
    QueryRoomPlayers,
    Disconnect,
]


# --- Field validation ---
def _identifier(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise InvalidActionError(f"{field_name} must be a string")
    value = value.strip()
    if not value:
        raise InvalidActionError(f"{field_name} is required")
    if len(value) > MAX_ID_LENGTH:
        raise InvalidActionError(f"{field_name} is longer than {MAX_ID_LENGTH} characters")
    return value


def _name(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidActionError("name is required")
    value = value.strip()
    if len(value) > MAX_NAME_LENGTH:
        raise InvalidActionError(f"name is longer than {MAX_NAME_LENGTH} characters")
    return value


def _steps(value: Any) -> int:
    # bool is an int subclass; True is not a step count
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidActionError("steps must be an integer")
    if not config.DICE_MIN <= value <= config.DICE_MAX:
        raise InvalidActionError(
            f"steps must be between {config.DICE_MIN} and {config.DICE_MAX}"
        )
    return value


def _flag(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise InvalidActionError(f"{field_name} must be a boolean")
    return value


def _mapping(payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise InvalidActionError("payload must be an object")
    return payload


def _room_id(payload: Any) -> str:
    """Room-only actions accept either a bare room id or {"roomId": ...}."""
    if isinstance(payload, str):
        return _identifier(payload, "roomId")
    return _identifier(_mapping(payload).get("roomId"), "roomId")


def _room_action(cls):
    def build(connection_id: str, payload: Any):
        return cls(connection_id=connection_id, room_id=_room_id(payload))

    return build


def _join_room(connection_id: str, payload: Any) -> JoinRoom:
    data = _mapping(payload)
    return JoinRoom(
        connection_id=connection_id,
        room_id=_identifier(data.get("roomId"), "roomId"),
        name=_name(data.get("name")),
    )


def _set_ready(connection_id: str, payload: Any) -> SetReady:
    if isinstance(payload, dict):
        payload = payload.get("ready")
    return SetReady(connection_id=connection_id, ready=_flag(payload, "ready"))


def _move_token(connection_id: str, payload: Any) -> MoveToken:
    data = _mapping(payload)
    initial = data.get("isInitialMove")
    return MoveToken(
        connection_id=connection_id,
        room_id=_identifier(data.get("roomId"), "roomId"),
        player_id=_identifier(data.get("playerId"), "playerId"),
        token_id=_identifier(data.get("tokenId"), "tokenId"),
        steps=_steps(data.get("steps")),
        is_initial_move=False if initial is None else _flag(initial, "isInitialMove"),
    )


def _disconnect(connection_id: str, payload: Any) -> Disconnect:
    return Disconnect(connection_id=connection_id)


PARSERS: Dict[str, Callable[[str, Any], Action]] = {
    "createRoom": _room_action(CreateRoom),
    "joinRoom": _join_room,
    "playerReady": _set_ready,
    "rollDice": _room_action(RollDice),
    "moveToken": _move_token,
    "endTurn": _room_action(EndTurn),
    "skipTurn": _room_action(SkipTurn),
    "startGame": _room_action(StartGame),
    "getRoomState": _room_action(QueryRoomState),
    "getRoomPlayers": _room_action(QueryRoomPlayers),
    "disconnect": _disconnect,
}


def parse_action(event: str, payload: Any, connection_id: str) -> Action:
    """Turn a raw (event name, payload) pair into a validated action."""
    parser: Optional[Callable[[str, Any], Action]] = PARSERS.get(event)
    if parser is None:
        raise InvalidActionError(f"Unknown action: {event}")
    if not connection_id:
        raise InvalidActionError("connection id is required")
    return parser(connection_id, payload)
