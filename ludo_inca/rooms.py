"""
Room membership and lobby lifecycle.

A room seats up to four players, each with a distinct color, and moves
through lobby -> playing -> finished. The game session for a room is
kept separately in the SessionStore.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from loguru import logger

from .config import config
from .exceptions import RoomExistsError
from .types import Color, Player, RoomState


@dataclass(slots=True)
class Room:
    room_id: str
    players: List[Player] = field(default_factory=list)
    max_players: int = config.MAX_PLAYERS
    state: RoomState = RoomState.LOBBY

    @property
    def started(self) -> bool:
        return self.state != RoomState.LOBBY

    @property
    def is_full(self) -> bool:
        return len(self.players) >= self.max_players

    def get_player(self, player_id: str) -> Optional[Player]:
        return next((p for p in self.players if p.player_id == player_id), None)

    def available_colors(self) -> List[Color]:
        taken = {p.color for p in self.players}
        return [c for c in Color.seating_order() if c not in taken]


class RoomRegistry:
    def __init__(self, default_room_id: str = config.DEFAULT_ROOM_ID) -> None:
        self._rooms: Dict[str, Room] = {}
        self._lock = threading.RLock()
        if default_room_id:
            self.create_room(default_room_id)

    def create_room(self, room_id: str) -> Room:
        with self._lock:
            if room_id in self._rooms:
                raise RoomExistsError(f"Room {room_id} already exists")
            room = Room(room_id=room_id)
            self._rooms[room_id] = room
        logger.info(f"[{room_id}] room created")
        return room

    def get_room(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    def delete_room(self, room_id: str) -> bool:
        with self._lock:
            removed = self._rooms.pop(room_id, None) is not None
        if removed:
            logger.info(f"[{room_id}] room deleted")
        return removed

    def room_of(self, player_id: str) -> Optional[str]:
        with self._lock:
            for room_id, room in self._rooms.items():
                if room.get_player(player_id) is not None:
                    return room_id
        return None

    def join_room(self, room_id: str, player_id: str, name: str) -> Optional[Player]:
        """Seat a player in a lobby room with the first free color.

        Returns None when the room is missing, not in the lobby, full, out of
        colors, or the player is already seated in another room. Joining a
        room twice returns the existing seat.
        """
        with self._lock:
            room = self._rooms.get(room_id)
            if room is None:
                return None
            existing = room.get_player(player_id)
            if existing is not None:
                return existing
            if room.state != RoomState.LOBBY or room.is_full:
                return None
            if self.room_of(player_id) is not None:
                return None
            colors = room.available_colors()
            if not colors:
                return None
            player = Player(player_id=player_id, name=name, color=colors[0])
            room.players.append(player)
        logger.info(f"[{room_id}] {name} ({player_id}) joined as {player.color.value}")
        return player

    def leave_room(self, player_id: str) -> Optional[str]:
        """Remove a player from whichever room seats them; returns that room id."""
        with self._lock:
            for room_id, room in self._rooms.items():
                player = room.get_player(player_id)
                if player is not None:
                    room.players.remove(player)
                    logger.info(f"[{room_id}] {player.name} ({player_id}) left")
                    return room_id
        return None

    def set_ready(self, player_id: str, ready: bool) -> Optional[Room]:
        with self._lock:
            for room in self._rooms.values():
                player = room.get_player(player_id)
                if player is not None:
                    player.ready = ready
                    return room
        return None

    def get_room_players(self, room_id: str) -> List[Player]:
        room = self._rooms.get(room_id)
        return list(room.players) if room else []

    def can_start_game(self, room_id: str) -> bool:
        """All seated players ready and enough of them to play."""
        room = self._rooms.get(room_id)
        if room is None or room.state != RoomState.LOBBY:
            return False
        if len(room.players) < config.MIN_PLAYERS_TO_START:
            return False
        return all(p.ready for p in room.players)

    def start_game(self, room_id: str) -> bool:
        with self._lock:
            room = self._rooms.get(room_id)
            if room is None or room.state != RoomState.LOBBY:
                return False
            if len(room.players) < config.MIN_PLAYERS_TO_START:
                return False
            room.state = RoomState.PLAYING
        logger.info(f"[{room_id}] game started with {len(room.players)} player(s)")
        return True

    def finish_game(self, room_id: str) -> None:
        with self._lock:
            room = self._rooms.get(room_id)
            if room is not None:
                room.state = RoomState.FINISHED

    def get_room_state(self, room_id: str) -> Optional[RoomState]:
        room = self._rooms.get(room_id)
        return room.state if room else None
