class LudoError(Exception):
    """Base exception for the game server."""

    pass


class SessionNotFoundError(LudoError, KeyError):
    """Raised when a session is required but no session exists for the room."""

    pass


class SessionExistsError(LudoError):
    """Raised when creating a session for a room that already has one."""

    pass


class RoomExistsError(LudoError):
    """Raised when creating a room id that is already taken."""

    pass


class InvalidActionError(LudoError, ValueError):
    """Raised when an inbound action payload is malformed."""

    pass
