"""
Ludo Inca game server entry point.
Configures logging and serves the Socket.IO game backend.
"""

import sys

from loguru import logger

from ludo_inca.config import server_config
from ludo_inca.server import create_app


def main():
    logger.remove()
    logger.add(sys.stderr, level=server_config.LOG_LEVEL)

    app = create_app()
    socketio = app.extensions["socketio"]
    logger.info(
        f"Server listening on {server_config.HOST}:{server_config.PORT}"
    )
    socketio.run(
        app,
        host=server_config.HOST,
        port=server_config.PORT,
        allow_unsafe_werkzeug=True,
    )


if __name__ == "__main__":
    main()
