from .config import config, server_config
from .engine import GameEngine
from .rooms import Room, RoomRegistry
from .scheduler import TurnScheduler
from .service import Broadcaster, GameService
from .session import GameSession, SessionStore
from .types import CapturedToken, Color, MoveResult, Player, RejectReason, RoomState, Token

__all__ = [
    "config",
    "server_config",
    "Broadcaster",
    "CapturedToken",
    "Color",
    "GameEngine",
    "GameService",
    "GameSession",
    "MoveResult",
    "Player",
    "RejectReason",
    "Room",
    "RoomRegistry",
    "RoomState",
    "SessionStore",
    "Token",
    "TurnScheduler",
]
