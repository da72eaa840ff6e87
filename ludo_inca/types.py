from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import List

from .config import config


class Color(Enum):
    RED = "red"
    GREEN = "green"
    BLUE = "blue"
    YELLOW = "yellow"

    @classmethod
    def seating_order(cls) -> List["Color"]:
        """Order in which free colors are handed out to joining players."""
        return [cls.RED, cls.GREEN, cls.BLUE, cls.YELLOW]


class RoomState(Enum):
    LOBBY = "lobby"
    PLAYING = "playing"
    FINISHED = "finished"


class RejectReason(Enum):
    """Reason codes attached to a rejected move."""

    NEEDS_EXACT_ROLL = "needs_exact_roll"
    NEEDS_SIX = "needs_six"
    INVALID_MOVE = "invalid_move"
    DICE_NOT_ROLLED = "dice_not_rolled"
    DICE_MISMATCH = "dice_mismatch"
    MOVE_PENDING = "move_pending"


def new_token_id() -> str:
    return uuid.uuid4().hex


@dataclass(slots=True)
class Token:
    """State-only token. Movement rules live in the engine."""

    token_id: str = field(default_factory=new_token_id)
    position: int = config.HOME_POSITION

    @property
    def in_home(self) -> bool:
        return self.position == config.HOME_POSITION

    @property
    def in_final_path(self) -> bool:
        return config.FINAL_PATH_START <= self.position < config.FINAL_PATH_END

    @property
    def at_goal(self) -> bool:
        return self.position == config.FINAL_PATH_END

    def move_to(self, new_position: int) -> None:
        self.position = new_position

    def send_home(self) -> None:
        self.position = config.HOME_POSITION


@dataclass(slots=True)
class Player:
    player_id: str
    name: str
    color: Color
    ready: bool = False

    def to_dict(self, is_turn: bool = False) -> dict:
        return {
            "id": self.player_id,
            "name": self.name,
            "color": self.color.value,
            "ready": self.ready,
            "turn": is_turn,
        }


@dataclass(slots=True, frozen=True)
class CapturedToken:
    player_id: str
    token_id: str

    def to_dict(self) -> dict:
        return {"playerId": self.player_id, "tokenId": self.token_id}


@dataclass(slots=True)
class MoveResult:
    success: bool
    old_position: int = config.HOME_POSITION
    new_position: int = config.HOME_POSITION
    captured_tokens: List[CapturedToken] = field(default_factory=list)
    reached_end: bool = False
    has_won: bool = False
    needs_exact_roll: bool = False

    @classmethod
    def rejected(cls, position: int, needs_exact_roll: bool = False) -> "MoveResult":
        return cls(
            success=False,
            old_position=position,
            new_position=position,
            needs_exact_roll=needs_exact_roll,
        )
