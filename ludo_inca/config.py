import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


@dataclass(slots=True)
class Config:
    # --- Board (fixed, not tunable) ---
    PERIMETER_LENGTH: int = 52  # 0..51 shared outer track
    FINAL_PATH_START: int = 52  # 52..56 final path
    FINAL_PATH_END: int = 57  # goal
    HOME_POSITION: int = -1
    ENTRY_POSITION: int = 0
    SAFE_SQUARES: list[int] = field(
        default_factory=lambda: [0, 8, 13, 21, 26, 34, 39, 47]
    )
    # Where each color's position 0 sits on the drawn board (red, green, blue, yellow)
    ENTRY_OFFSETS: list[int] = field(default_factory=lambda: [0, 13, 26, 39])

    # --- Players and dice ---
    MAX_PLAYERS: int = 4
    TOKENS_PER_PLAYER: int = 4
    DICE_MIN: int = 1
    DICE_MAX: int = 6
    EXIT_HOME_ROLL: int = 6

    # --- Tunables ---
    TURN_TIMEOUT_SEC: float = float(os.getenv("TURN_TIMEOUT_SEC", 30))
    MIN_PLAYERS_TO_START: int = int(os.getenv("MIN_PLAYERS_TO_START", 1))
    DEFAULT_ROOM_ID: str = os.getenv("DEFAULT_ROOM_ID", "default")

    def __post_init__(self):
        if self.TURN_TIMEOUT_SEC <= 0:
            raise ValueError("TURN_TIMEOUT_SEC must be positive")
        if not 1 <= self.MIN_PLAYERS_TO_START <= self.MAX_PLAYERS:
            raise ValueError(
                f"MIN_PLAYERS_TO_START must be between 1 and {self.MAX_PLAYERS}"
            )


@dataclass(slots=True)
class ServerConfig:
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", 5000))
    SECRET_KEY: str = os.getenv("SECRET_KEY", "ludo-inca-dev")
    CORS_ORIGINS: list[str] = field(
        default_factory=lambda: [
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", "*").split(",")
            if origin.strip()
        ]
    )
    SOCKETIO_NAMESPACE: str = os.getenv("SOCKETIO_NAMESPACE", "/")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    def cors_allowed_origins(self) -> str | list[str]:
        # flask-socketio wants the literal "*" rather than a list for wildcard
        if self.CORS_ORIGINS == ["*"]:
            return "*"
        return self.CORS_ORIGINS


config = Config()
server_config = ServerConfig()
