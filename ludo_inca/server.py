"""
Socket.IO transport for the game service.

Maps inbound Socket.IO events onto validated actions and delivers the
service's events to rooms and single connections.
"""

from __future__ import annotations

import threading
from typing import Callable, Optional

from flask import Flask, jsonify, request
from flask_socketio import SocketIO
from loguru import logger

from . import events
from .actions import PARSERS, parse_action
from .config import config, server_config
from .engine import GameEngine
from .events import Event
from .exceptions import InvalidActionError
from .rooms import RoomRegistry
from .service import GameService
from .session import SessionStore


class SocketIOBroadcaster:
    def __init__(self, socketio: SocketIO, namespace: str = "/") -> None:
        self.socketio = socketio
        self.namespace = namespace

    def to_room(self, room_id: str, event: Event) -> None:
        self.socketio.emit(event.name, event.payload, to=room_id, namespace=self.namespace)

    def to_connection(self, connection_id: str, event: Event) -> None:
        self.socketio.emit(
            event.name, event.payload, to=connection_id, namespace=self.namespace
        )

    def subscribe(self, connection_id: str, room_id: str) -> None:
        self.socketio.server.enter_room(connection_id, room_id, namespace=self.namespace)


def register_socketio_handlers(
    socketio: SocketIO, service: GameService, namespace: str = "/"
) -> None:
    broadcaster = service.broadcaster

    def dispatch(event_name: str):
        def handler(payload=None):
            sid = request.sid
            try:
                action = parse_action(event_name, payload, sid)
            except InvalidActionError as exc:
                logger.warning(f"Rejected {event_name} from {sid}: {exc}")
                broadcaster.to_connection(sid, events.error(str(exc)))
                return
            service.handle(action)

        return handler

    def on_connect(auth=None):
        logger.info(f"Client connected: {request.sid}")

    def on_disconnect(reason=None):
        sid = request.sid
        logger.info(f"Client disconnected: {sid}")
        service.handle(parse_action("disconnect", None, sid))

    socketio.on_event("connect", on_connect, namespace=namespace)
    socketio.on_event("disconnect", on_disconnect, namespace=namespace)
    for event_name in PARSERS:
        if event_name == "disconnect":
            continue
        socketio.on_event(event_name, dispatch(event_name), namespace=namespace)


def create_app(
    *,
    store: Optional[SessionStore] = None,
    registry: Optional[RoomRegistry] = None,
    engine: Optional[GameEngine] = None,
    turn_timeout: Optional[float] = None,
    timer_factory: Callable[..., object] = threading.Timer,
    testing: bool = False,
) -> Flask:
    """Build the Flask app with its own SocketIO server, store and registry."""
    flask_app = Flask(__name__)
    flask_app.config["SECRET_KEY"] = server_config.SECRET_KEY
    flask_app.config["TESTING"] = testing

    namespace = server_config.SOCKETIO_NAMESPACE
    socketio = SocketIO(
        flask_app,
        cors_allowed_origins=server_config.cors_allowed_origins(),
        async_mode="threading",
    )
    service = GameService(
        store if store is not None else SessionStore(),
        registry if registry is not None else RoomRegistry(),
        SocketIOBroadcaster(socketio, namespace),
        engine=engine,
        turn_timeout=turn_timeout if turn_timeout is not None else config.TURN_TIMEOUT_SEC,
        timer_factory=timer_factory,
    )
    flask_app.extensions["ludo_inca"] = service
    register_socketio_handlers(socketio, service, namespace)

    @flask_app.get("/")
    def index():
        return "Ludo Inca Backend"

    @flask_app.get("/health")
    def health():
        return jsonify({"status": "ok", "sessions": len(service.store)})

    return flask_app
